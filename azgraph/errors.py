"""
Exception hierarchy for azgraph.

    IntegrationError
    ├── IntegrationConfigError   (missing or malformed instance config)
    ├── DuplicateKeyError        (entity/relationship key seen twice in a run)
    ├── StepDependencyError      (unknown dependency, duplicate id, cycle)
    └── ProviderAPIError         (Azure / Microsoft Graph call failed)
"""
from typing import Any, Dict, List, Optional


class IntegrationError(Exception):
    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


class IntegrationConfigError(IntegrationError):
    def __init__(self, missing: List[str]):
        super().__init__(
            f"Invalid configuration, missing: {', '.join(missing)}",
            details={"missing": missing},
        )
        self.missing = missing


class DuplicateKeyError(IntegrationError):
    def __init__(self, key: str, kind: str = "entity"):
        super().__init__(f"Duplicate {kind} key: {key}", details={"key": key, "kind": kind})
        self.key = key


class StepDependencyError(IntegrationError):
    pass


class ProviderAPIError(IntegrationError):
    """An upstream API call failed. Fatal for the step that made it."""

    def __init__(
        self,
        endpoint: str,
        status: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        label = f"{endpoint} ({status})" if status else endpoint
        super().__init__(
            f"Provider API request failed: {label}",
            cause=cause,
            details={"endpoint": endpoint, "status": status},
        )
        self.endpoint = endpoint
        self.status = status
