import json
import logging
import os

import pytest

from azgraph.config import IntegrationConfig
from azgraph.constants import ACCOUNT_ENTITY, ACCOUNT_ENTITY_TYPE
from azgraph.models.entity import Entity
from azgraph.models.step import IntegrationInstance, StepExecutionContext
from azgraph.state import JobState

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")

SUBSCRIPTION_ID = "40474ebe-55a2-4071-8fa8-b610acdd8e56"
DIRECTORY_ID = "bcd90474-9b62-4040-9d7b-8af257b1427d"
RESOURCE_GROUP_ID = f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/j1dev"
DEFAULT_DOMAIN = "www.fake-domain.com"


@pytest.fixture
def load_fixture():
    def _load(name):
        with open(os.path.join(FIXTURES, name), "r", encoding="utf-8") as fh:
            return json.load(fh)
    return _load


@pytest.fixture
def config():
    return IntegrationConfig(
        client_id="clientId",
        client_secret="clientSecret",
        directory_id=DIRECTORY_ID,
        subscription_id=SUBSCRIPTION_ID,
    )


@pytest.fixture
def instance(config):
    return IntegrationInstance(id="test-instance", name="Test Azure", config=config)


@pytest.fixture
def account():
    return Entity(
        key="azure_account_id",
        type=ACCOUNT_ENTITY.type,
        classes=list(ACCOUNT_ENTITY.classes),
        properties={"id": "azure_account_id", "defaultDomain": DEFAULT_DOMAIN},
    )


@pytest.fixture
def job_state(account):
    """Job state as every step after the account step sees it."""
    state = JobState()
    state.add_entity(account)
    state.set_data(ACCOUNT_ENTITY_TYPE, account)
    return state


@pytest.fixture
def context(instance, job_state):
    return StepExecutionContext(
        instance=instance, job_state=job_state, logger=logging.getLogger("azgraph.test")
    )
