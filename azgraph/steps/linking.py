"""
Best-effort relationships to entities another step may or may not have
stored. A missing target is a normal outcome, not an error.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from azgraph.converters.resource_groups import create_resource_group_resource_relationship
from azgraph.models.entity import Entity, Relationship
from azgraph.provider import resource_group_id
from azgraph.state import JobState


@dataclass(frozen=True)
class Linked:
    relationship: Relationship


@dataclass(frozen=True)
class TargetNotFound:
    key: Optional[str]


LinkResult = Union[Linked, TargetNotFound]


def link_to_existing(
    job_state: JobState,
    target_key: Optional[str],
    build: Callable[[Entity], Relationship],
    ignore_case: bool = False,
) -> LinkResult:
    """Add ``build(target)`` when ``target_key`` is stored; otherwise add nothing."""
    target = job_state.find_entity(target_key, ignore_case=ignore_case)
    if target is None:
        return TargetNotFound(target_key)
    return Linked(job_state.add_relationship(build(target)))


def link_to_resource_group(
    job_state: JobState, resource: Entity, logger: Optional[logging.Logger] = None
) -> LinkResult:
    """
    Resource group HAS ``resource``, when the group named in the resource id
    was ingested. Azure does not keep the group segment's casing stable
    across APIs, so the lookup ignores case.
    """
    result = link_to_existing(
        job_state,
        resource_group_id(resource.key),
        lambda group: create_resource_group_resource_relationship(group, resource),
        ignore_case=True,
    )
    if isinstance(result, TargetNotFound):
        (logger or logging.getLogger(__name__)).debug(
            "No stored resource group %s for %s", result.key, resource.key
        )
    return result
