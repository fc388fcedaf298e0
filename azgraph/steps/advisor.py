from typing import Any, Dict

from azgraph.clients.advisor import AdvisorClient
from azgraph.constants import (
    ANY_RESOURCE_HAS_FINDING,
    ASSESSMENT_IDENTIFIED_FINDING,
    EXECUTE_FIRST_STEPS,
    RECOMMENDATION_ENTITY,
    STEP_AD_ACCOUNT,
    STEP_RM_ADVISOR_RECOMMENDATIONS,
)
from azgraph.converters.advisor import create_recommendation_entity
from azgraph.models.entity import Entity, RelationshipClass, create_direct_relationship
from azgraph.models.step import Step, StepExecutionContext
from azgraph.steps.common import get_web_linker
from azgraph.steps.linking import TargetNotFound, link_to_existing


def fetch_recommendations(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = AdvisorClient(context.instance.config, context.logger)

    def on_recommendation(data: Dict[str, Any]) -> None:
        finding = job_state.add_entity(create_recommendation_entity(web_linker, data))
        metadata = data.get("resourceMetadata") or {}

        def identified(assessment: Entity):
            return create_direct_relationship(
                RelationshipClass.IDENTIFIED,
                from_entity=assessment,
                to_entity=finding,
                properties={"_type": ASSESSMENT_IDENTIFIED_FINDING.type},
            )

        def has_finding(resource: Entity):
            return create_direct_relationship(
                RelationshipClass.HAS,
                from_entity=resource,
                to_entity=finding,
                properties={"_type": ANY_RESOURCE_HAS_FINDING.type},
            )

        link_to_existing(job_state, metadata.get("source"), identified)
        result = link_to_existing(job_state, metadata.get("resourceId"), has_finding)
        if isinstance(result, TargetNotFound):
            context.logger.debug(
                "Recommendation %s targets a resource not ingested: %s", finding.key, result.key
            )

    client.iterate_recommendations(on_recommendation)


advisor_steps = (
    Step(
        id=STEP_RM_ADVISOR_RECOMMENDATIONS,
        name="Recommendations",
        entities=(RECOMMENDATION_ENTITY,),
        relationships=(ASSESSMENT_IDENTIFIED_FINDING, ANY_RESOURCE_HAS_FINDING),
        depends_on=(STEP_AD_ACCOUNT,) + EXECUTE_FIRST_STEPS,
        execution_handler=fetch_recommendations,
    ),
)
