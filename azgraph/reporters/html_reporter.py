"""
Interactive HTML + Mermaid run report.
"""
from datetime import datetime, timezone

from jinja2 import Environment

from azgraph import __version__
from azgraph.engine import ExecutionResult, StepStatus
from azgraph.models.step import IntegrationInstance
from azgraph.reporters import markdown

_HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Azure Graph Report - azgraph</title>
    <script src="https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js"></script>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 1200px; margin: 0 auto; padding: 2rem; background: #f9f9f9; }
        header { border-bottom: 2px solid #ddd; margin-bottom: 2rem; padding-bottom: 1rem; }
        h1 { color: #0078d4; margin-bottom: 0; }
        .meta { color: #666; font-size: 0.9rem; margin-bottom: 2rem; }
        .summary-cards { display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 1rem; margin-bottom: 2rem; }
        .card { background: white; padding: 1rem; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); text-align: center; border-left: 5px solid #0078d4; }
        .card.failure { border-left-color: #f44336; }
        .card-num { font-size: 2rem; font-weight: bold; margin-bottom: 0.2rem; }
        .card-label { color: #666; font-size: 0.8rem; text-transform: uppercase; }
        .mermaid-container { background: white; padding: 2rem; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); margin-bottom: 2rem; overflow-x: auto; }
        .step-table { width: 100%; border-collapse: collapse; background: white; border-radius: 8px; overflow: hidden; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .step-table th, .step-table td { padding: 0.75rem 1rem; text-align: left; border-bottom: 1px solid #eee; }
        .step-table th { background: #f5f5f5; font-weight: 600; }
        .status { font-weight: bold; padding: 0.2rem 0.5rem; border-radius: 4px; font-size: 0.8rem; }
        .st-success { background: #e8f5e9; color: #2e7d32; }
        .st-failure { background: #ffebee; color: #c62828; }
        .st-disabled { background: #f5f5f5; color: #757575; }
        .st-skipped_dependency_failure { background: #fff3e0; color: #ef6c00; }
        .error { font-family: monospace; font-size: 0.85rem; color: #c62828; }
        footer { margin-top: 4rem; text-align: center; color: #999; font-size: 0.8rem; }
    </style>
</head>
<body>
    <header>
        <h1>Azure Graph Report</h1>
        <div class="meta">Generated: {{ generated }} | Instance: {{ instance.name }} | azgraph v{{ version }}</div>
    </header>

    <div class="summary-cards">
        <div class="card"><div class="card-num">{{ entity_count }}</div><div class="card-label">Entities</div></div>
        <div class="card"><div class="card-num">{{ relationship_count }}</div><div class="card-label">Relationships</div></div>
        <div class="card"><div class="card-num">{{ succeeded }}</div><div class="card-label">Steps succeeded</div></div>
        <div class="card failure"><div class="card-num">{{ failed }}</div><div class="card-label">Steps failed</div></div>
    </div>

    <h2>Graph</h2>
    <div class="mermaid-container">
        <div class="mermaid">
{{ mermaid }}
        </div>
    </div>

    <h2>Steps</h2>
    <table class="step-table">
        <thead>
            <tr>
                <th>Step</th>
                <th>Status</th>
                <th>Entities</th>
                <th>Relationships</th>
                <th>Duration</th>
            </tr>
        </thead>
        <tbody>
            {% for s in steps %}
            <tr>
                <td><strong>{{ s.name }}</strong><br><code>{{ s.id }}</code></td>
                <td><span class="status st-{{ s.status.value }}">{{ s.status.value }}</span></td>
                <td>{{ s.entity_count }}</td>
                <td>{{ s.relationship_count }}</td>
                <td>
                    {{ "%.2f"|format(s.duration) }}s
                    {% if s.error %}<div class="error">{{ s.error }}</div>{% endif %}
                </td>
            </tr>
            {% endfor %}
        </tbody>
    </table>

    <footer>azgraph | Azure resource graph ingestion</footer>

    <script>
        mermaid.initialize({ startOnLoad: true, theme: 'neutral', securityLevel: 'loose' });
    </script>
</body>
</html>
"""


def build_report(result: ExecutionResult, instance: IntegrationInstance) -> str:
    job_state = result.job_state
    env = Environment(autoescape=True)
    template = env.from_string(_HTML_TEMPLATE)

    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        instance=instance,
        version=__version__,
        entity_count=len(job_state.entities),
        relationship_count=len(job_state.relationships),
        succeeded=sum(1 for s in result.steps if s.status == StepStatus.SUCCESS),
        failed=sum(1 for s in result.steps if s.status == StepStatus.FAILURE),
        steps=result.steps,
        mermaid=markdown.build_mermaid(job_state),
    )
