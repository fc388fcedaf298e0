"""
Markdown + Mermaid run report.
"""
import re
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from jinja2 import Environment

from azgraph import __version__
from azgraph.constants import ENTITY_SCHEMAS
from azgraph.engine import ExecutionResult, StepStatus
from azgraph.models.step import IntegrationInstance
from azgraph.state import JobState

_STATUS_ICON = {
    StepStatus.SUCCESS.value: "✅",
    StepStatus.FAILURE.value: "❌",
    StepStatus.DISABLED.value: "⏸",
    StepStatus.SKIPPED_DEPENDENCY_FAILURE.value: "⏭",
}

_CATEGORY_MAP = {
    # entity type prefix → subgraph label
    "azure_account": "Directory",
    "azure_user": "Directory",
    "azure_service_principal": "Directory",
    "azure_management_group": "Directory",
    "azure_resource_group": "Resources",
    "azure_vnet": "Networking",
    "azure_subnet": "Networking",
    "azure_security_group": "Networking",
    "azure_nic": "Networking",
    "azure_public_ip": "Networking",
    "azure_lb": "Networking",
    "azure_keyvault": "Security",
    "azure_diagnostic": "Security",
    "azure_advisor": "Security",
    "azure_event_grid": "Messaging",
}

_SUBGRAPH_ORDER = ["Directory", "Resources", "Networking", "Messaging", "Security", "Other"]


def _sanitize_node_id(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


def _type_subgraph(_type: str) -> str:
    for prefix, label in _CATEGORY_MAP.items():
        if _type.startswith(prefix):
            return label
    return "Other"


def _node_shape(_type: str, count: int) -> str:
    """Mermaid node definition string (without ID)."""
    # quoted so the count parentheses are not read as a shape token
    label = f'"{_type} ({count})"'
    schema = ENTITY_SCHEMAS.get(_type)
    classes = schema.classes if schema else ()

    if "Account" in classes:
        return f"(({label}))"
    if "Firewall" in classes or "Network" in classes:
        return f"{{{label}}}"
    if "User" in classes or "UserGroup" in classes:
        return f"[/{label}/]"
    if "Finding" in classes:
        return f">{label}]"
    return f"[{label}]"


def build_mermaid(job_state: JobState) -> str:
    """One node per entity type, one edge per (source type, class, target type)."""
    type_counts = Counter(e.type for e in job_state.entities)
    edges: Dict[Tuple[str, str, str], int] = Counter(
        (r.from_type, r.relationship_class, r.to_type) for r in job_state.relationships
    )
    # Relationship endpoints that were never ingested still get a node.
    for from_type, _, to_type in edges:
        type_counts.setdefault(from_type, 0)
        type_counts.setdefault(to_type, 0)

    subgraphs: Dict[str, List[str]] = defaultdict(list)
    for _type in sorted(type_counts):
        subgraphs[_type_subgraph(_type)].append(_type)

    lines = ["flowchart LR"]
    for sg_name in _SUBGRAPH_ORDER:
        types = subgraphs.get(sg_name, [])
        if not types:
            continue
        lines.append(f"    subgraph {sg_name}")
        for _type in types:
            lines.append(f"        {_sanitize_node_id(_type)}{_node_shape(_type, type_counts[_type])}")
        lines.append("    end")

    for (from_type, _class, to_type), count in sorted(edges.items()):
        lines.append(
            f"    {_sanitize_node_id(from_type)} -->|{_class} x{count}| {_sanitize_node_id(to_type)}"
        )

    for _type, count in sorted(type_counts.items()):
        if count == 0:
            lines.append(f"    style {_sanitize_node_id(_type)} stroke-dasharray: 5 5")

    return "\n".join(lines)


_TEMPLATE = """\
# Azure Graph Report

**Generated:** {{ generated }}
**Instance:** {{ instance.name }} (`{{ instance.id }}`)
**Tool:** azgraph v{{ version }}

---

## Summary

Collected **{{ entity_count }} entities** and **{{ relationship_count }} relationships** across {{ steps|length }} steps.
{% if failed %}
Some steps failed; their dependents were skipped and the graph is partial.
{% endif %}

| Entity type | Count |
|-------------|-------|
{% for t, n in entity_counts %}| `{{ t }}` | {{ n }} |
{% endfor %}

| Relationship type | Count |
|-------------------|-------|
{% for t, n in relationship_counts %}| `{{ t }}` | {{ n }} |
{% endfor %}

---

## Steps

| Step | Status | Entities | Relationships | Error |
|------|--------|----------|---------------|-------|
{% for s in steps %}| `{{ s.id }}` | {{ icons[s.status.value] }} {{ s.status.value }} | {{ s.entity_count }} | {{ s.relationship_count }} | {{ s.error or "" }} |
{% endfor %}

---

## Graph

```mermaid
{{ mermaid }}
```
"""


def build_report(result: ExecutionResult, instance: IntegrationInstance) -> str:
    job_state = result.job_state
    counts = job_state.counts_by_type()

    env = Environment(autoescape=False)
    template = env.from_string(_TEMPLATE)

    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        instance=instance,
        version=__version__,
        entity_count=len(job_state.entities),
        relationship_count=len(job_state.relationships),
        entity_counts=sorted(counts["entities"].items()),
        relationship_counts=sorted(counts["relationships"].items()),
        steps=result.steps,
        failed=result.failed,
        icons=_STATUS_ICON,
        mermaid=build_mermaid(job_state),
    )
