"""
Azure helpers shared by clients, converters and steps: portal web links,
resource id parsing, entity key generation, credentials and SDK model
flattening.
"""
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from azure.identity import ClientSecretCredential

from azgraph.errors import IntegrationError

if TYPE_CHECKING:
    from azgraph.config import IntegrationConfig

PORTAL_URL = "https://portal.azure.com"

_RESOURCE_GROUP_RE = re.compile(r"/resourceGroups/([^/]+)", re.IGNORECASE)
_EVENT_GRID_DOMAIN_RE = re.compile(r"/domains/([^/]+)", re.IGNORECASE)
_SUBSCRIPTION_RE = re.compile(r"^/subscriptions/([^/]+)", re.IGNORECASE)
# "properties.addressSpace" → "addressSpace"; "\." escapes a literal dot.
_FLATTEN_RE = re.compile(r"(?<!\\)\.")
_FRACTION_RE = re.compile(r"\.\d+")


class AzureWebLinker:
    def __init__(self, default_domain: Optional[str]):
        self.default_domain = default_domain

    def portal_resource_url(self, resource_id: Optional[str]) -> Optional[str]:
        if not resource_id:
            return None
        return f"{PORTAL_URL}/#@{self.default_domain}/resource{resource_id}"


def create_azure_web_linker(default_domain: Optional[str]) -> AzureWebLinker:
    return AzureWebLinker(default_domain)


def resource_group_name(resource_id: Optional[str], required: bool = False) -> Optional[str]:
    """Lower-cased resource group segment of ``resource_id``, or ``None``."""
    match = _RESOURCE_GROUP_RE.search(resource_id or "")
    if match:
        return match.group(1).lower()
    if required:
        raise IntegrationError(
            "Resource group name not found in resource id",
            details={"id": resource_id},
        )
    return None


def resource_group_id(resource_id: Optional[str]) -> Optional[str]:
    """``/subscriptions/{sub}/resourceGroups/{rg}`` prefix of ``resource_id``."""
    sub = _SUBSCRIPTION_RE.search(resource_id or "")
    match = _RESOURCE_GROUP_RE.search(resource_id or "")
    if not (sub and match):
        return None
    return f"/subscriptions/{sub.group(1)}/resourceGroups/{match.group(1)}"


def get_event_grid_domain_name_from_id(resource_id: Optional[str]) -> Optional[str]:
    match = _EVENT_GRID_DOMAIN_RE.search(resource_id or "")
    return match.group(1) if match else None


def generate_entity_key(id: Optional[str]) -> str:
    if not id:
        raise IntegrationError("Unable to generate entity key without an id")
    return f"azure_{id}"


def get_time(value: Any) -> Optional[int]:
    """ISO-8601 string or datetime → epoch milliseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        # fromisoformat wants exactly 6 fractional digits; .NET emits 7.
        text = _FRACTION_RE.sub(lambda m: (m.group(0) + "000000")[:7], str(value).replace("Z", "+00:00"))
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def create_credential(config: "IntegrationConfig") -> ClientSecretCredential:
    return ClientSecretCredential(
        tenant_id=config.directory_id,
        client_id=config.client_id,
        client_secret=config.client_secret,
    )


def _last_rest_key(key: str, attr_desc: Dict[str, Any], value: Any):
    return _FLATTEN_RE.split(attr_desc["key"])[-1].replace("\\.", "."), value


def to_raw(model: Any) -> Optional[Dict[str, Any]]:
    """
    Flatten an Azure SDK model into its camelCase REST shape, e.g.
    ``LoadBalancer`` → ``{"frontendIPConfigurations": [...], ...}``.
    """
    if model is None:
        return None
    if isinstance(model, Mapping):
        return dict(model)
    return model.as_dict(keep_readonly=True, key_transformer=_last_rest_key)
