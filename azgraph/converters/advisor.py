from typing import Any, Dict, Optional, Tuple

from azgraph.constants import RECOMMENDATION_ENTITY
from azgraph.models.entity import Entity, create_integration_entity
from azgraph.provider import AzureWebLinker, get_time

# Advisor impact → (severity, numericSeverity)
IMPACT_SEVERITY: Dict[str, Tuple[str, int]] = {
    "high":   ("high", 7),
    "medium": ("medium", 5),
    "low":    ("low", 2),
}


def severity_for_impact(impact: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
    return IMPACT_SEVERITY.get((impact or "").lower(), (None, None))


def create_recommendation_entity(web_linker: AzureWebLinker, data: Dict[str, Any]) -> Entity:
    description = data.get("shortDescription") or {}
    metadata = data.get("resourceMetadata") or {}
    severity, numeric_severity = severity_for_impact(data.get("impact"))

    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": RECOMMENDATION_ENTITY.type,
            "_class": RECOMMENDATION_ENTITY.classes,
            "id": data.get("id"),
            "name": data.get("name"),
            "displayName": description.get("problem") or data.get("name"),
            "category": data.get("category"),
            "impact": data.get("impact"),
            "impactedField": data.get("impactedField"),
            "impactedValue": data.get("impactedValue"),
            "lastUpdated": get_time(data.get("lastUpdated")),
            "recommendationTypeId": data.get("recommendationTypeId"),
            "risk": data.get("risk"),
            "shortDescription.problem": description.get("problem"),
            "shortDescription.solution": description.get("solution"),
            "resourceId": metadata.get("resourceId"),
            "source": metadata.get("source"),
            "severity": severity,
            "numericSeverity": numeric_severity,
            "open": True,
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )
