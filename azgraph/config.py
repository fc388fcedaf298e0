"""
Instance configuration.

Precedence (highest to lowest):
  1. Environment variables (AZURE_CLIENT_ID, AZURE_CLIENT_SECRET,
     AZURE_DIRECTORY_ID / AZURE_TENANT_ID, AZURE_SUBSCRIPTION_ID,
     SKIP_ACTIVE_DIRECTORY)
  2. YAML config file (azgraph.yaml by default)
  3. DEFAULT_SETTINGS
"""
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

import yaml

from azgraph.errors import IntegrationConfigError

DEFAULT_CONFIG_FILE = "azgraph.yaml"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "instance_id": "azgraph",
    "instance_name": "Azure",
    "skip_active_directory": False,
}

_ENV_MAP = {
    "AZURE_CLIENT_ID": "client_id",
    "AZURE_CLIENT_SECRET": "client_secret",
    "AZURE_TENANT_ID": "directory_id",
    "AZURE_DIRECTORY_ID": "directory_id",
    "AZURE_SUBSCRIPTION_ID": "subscription_id",
    "SKIP_ACTIVE_DIRECTORY": "skip_active_directory",
    "AZGRAPH_INSTANCE_ID": "instance_id",
    "AZGRAPH_INSTANCE_NAME": "instance_name",
}

_REQUIRED = ("client_id", "client_secret", "directory_id")


@dataclass
class IntegrationConfig:
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    directory_id: Optional[str] = None
    subscription_id: Optional[str] = None
    skip_active_directory: bool = False
    instance_id: str = DEFAULT_SETTINGS["instance_id"]
    instance_name: str = DEFAULT_SETTINGS["instance_name"]

    def masked(self) -> Dict[str, Any]:
        out = asdict(self)
        if out.get("client_secret"):
            out["client_secret"] = "****"
        return out


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_config(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> IntegrationConfig:
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = dict(DEFAULT_SETTINGS)

    path = path or DEFAULT_CONFIG_FILE
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh) or {}
        known = {f.name for f in fields(IntegrationConfig)}
        values.update({k: v for k, v in loaded.items() if k in known})

    for env_name, attr in _ENV_MAP.items():
        if environ.get(env_name):
            values[attr] = environ[env_name]

    values["skip_active_directory"] = _as_bool(values.get("skip_active_directory", False))
    return IntegrationConfig(**values)


def validate_config(config: IntegrationConfig) -> IntegrationConfig:
    missing: List[str] = [name for name in _REQUIRED if not getattr(config, name)]
    if missing:
        raise IntegrationConfigError(missing)
    return config
