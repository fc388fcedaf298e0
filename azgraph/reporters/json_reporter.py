"""
JSON graph report: run metadata, per-type counts, step outcomes and the
collected entities and relationships in their wire form.
"""
import json
from datetime import datetime, timezone

from azgraph import __version__
from azgraph.engine import ExecutionResult
from azgraph.models.step import IntegrationInstance


def build_summary(result: ExecutionResult) -> dict:
    counts = result.job_state.counts_by_type()
    return {
        "entities": counts["entities"],
        "relationships": counts["relationships"],
        "steps": {r.id: r.status.value for r in result.steps},
    }


def build_report(
    result: ExecutionResult,
    instance: IntegrationInstance,
    include_raw_data: bool = True,
) -> str:
    job_state = result.job_state
    report = {
        "meta": {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "instance": {"id": instance.id, "name": instance.name},
            "tool": "azgraph",
            "version": __version__,
        },
        "summary": build_summary(result),
        "steps": [r.to_dict() for r in result.steps],
        "entities": [e.to_dict(include_raw_data=include_raw_data) for e in job_state.entities],
        "relationships": [r.to_dict() for r in job_state.relationships],
    }
    return json.dumps(report, indent=2, default=str)
