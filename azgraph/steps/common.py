import logging
from typing import Callable, Optional, Type, TypeVar

from azgraph.constants import ACCOUNT_ENTITY_TYPE
from azgraph.errors import IntegrationError
from azgraph.models.entity import Entity
from azgraph.provider import AzureWebLinker, create_azure_web_linker
from azgraph.state import JobState

S = TypeVar("S")


def get_account_entity(job_state: JobState) -> Entity:
    account = job_state.get_data(ACCOUNT_ENTITY_TYPE)
    if account is None:
        raise IntegrationError(
            "Account entity not found in job state", details={"dataKey": ACCOUNT_ENTITY_TYPE}
        )
    return account


def get_web_linker(job_state: JobState) -> AzureWebLinker:
    return create_azure_web_linker(get_account_entity(job_state).get("defaultDomain"))


def iterate_scopes(
    job_state: JobState,
    entity_type: str,
    scope_cls: Type[S],
    callback: Callable[[Entity, S], None],
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Call ``callback(parent, scope)`` for every stored ``entity_type`` entity.

    Parents whose scope cannot be built are skipped with a debug line.
    """
    log = logger or logging.getLogger(__name__)

    def visit(entity: Entity) -> None:
        scope = scope_cls.from_entity(entity)
        if scope is None:
            log.debug("Skipping %s %s: incomplete scope fields", entity.type, entity.key)
            return
        callback(entity, scope)

    job_state.iterate_entities({"_type": entity_type}, visit)
