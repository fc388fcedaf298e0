"""
CLI tests.
"""
import json
import shutil
import subprocess
import sys

import pytest
from click.testing import CliRunner

from azgraph import cli as cli_module
from azgraph.cli import cli
from azgraph.engine import ExecutionResult, StepResult, StepStatus
from azgraph.models.entity import Entity
from azgraph.state import JobState

from conftest import DIRECTORY_ID, FIXTURES, SUBSCRIPTION_ID

_ENV_NAMES = (
    "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET", "AZURE_TENANT_ID",
    "AZURE_DIRECTORY_ID", "AZURE_SUBSCRIPTION_ID", "SKIP_ACTIVE_DIRECTORY",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_module, "_setup_logging", lambda debug: None)
    return tmp_path


@pytest.fixture
def azure_env(clean_env, monkeypatch):
    monkeypatch.setenv("AZURE_CLIENT_ID", "clientId")
    monkeypatch.setenv("AZURE_CLIENT_SECRET", "clientSecret")
    monkeypatch.setenv("AZURE_DIRECTORY_ID", DIRECTORY_ID)
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", SUBSCRIPTION_ID)
    return clean_env


def _fake_execute(status=StepStatus.SUCCESS, calls=None):
    def execute(instance, steps, start_states, logger=None):
        if calls is not None:
            calls.append({"instance": instance, "steps": [s.id for s in steps], "start_states": start_states})
        state = JobState()
        state.add_entity(Entity(key="azure_a", type="azure_account", classes=["Account"],
                                raw_data=[{"name": "default", "rawData": {}}]))
        return ExecutionResult(
            steps=[StepResult(id="ad-account", name="Account", status=status, entity_count=1)],
            job_state=state,
        )
    return execute


def test_module_execution():
    result = subprocess.run(
        [sys.executable, "-m", "azgraph", "--help"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "azgraph" in result.stdout


class TestRunCommand:
    def test_writes_graph_and_markdown(self, azure_env, monkeypatch):
        calls = []
        monkeypatch.setattr(cli_module, "execute_integration", _fake_execute(calls=calls))

        result = CliRunner().invoke(cli, ["run", "-o", "out"], catch_exceptions=False)

        assert result.exit_code == 0
        graph = json.loads((azure_env / "out" / "graph.json").read_text())
        assert graph["entities"][0]["_key"] == "azure_a"
        assert "_rawData" in graph["entities"][0]
        assert (azure_env / "out" / "report.md").exists()
        assert calls[0]["instance"].config.subscription_id == SUBSCRIPTION_ID
        assert not any(s.disabled for s in calls[0]["start_states"].values())

    def test_html_without_raw_data(self, azure_env, monkeypatch):
        monkeypatch.setattr(cli_module, "execute_integration", _fake_execute())

        result = CliRunner().invoke(
            cli, ["run", "-o", "out", "--format", "html", "--no-raw-data"], catch_exceptions=False
        )

        assert result.exit_code == 0
        graph = json.loads((azure_env / "out" / "graph.json").read_text())
        assert "_rawData" not in graph["entities"][0]
        assert (azure_env / "out" / "report.html").exists()
        assert not (azure_env / "out" / "report.md").exists()

    def test_failed_step_exits_1(self, azure_env, monkeypatch):
        monkeypatch.setattr(cli_module, "execute_integration", _fake_execute(StepStatus.FAILURE))
        result = CliRunner().invoke(cli, ["run", "-o", "out"], catch_exceptions=False)
        assert result.exit_code == 1

    def test_step_selection_pulls_dependencies(self, azure_env, monkeypatch):
        calls = []
        monkeypatch.setattr(cli_module, "execute_integration", _fake_execute(calls=calls))

        CliRunner().invoke(cli, ["run", "-o", "out", "--step", "rm-keyvault-vaults"], catch_exceptions=False)

        assert set(calls[0]["steps"]) == {
            "ad-account", "rm-resources-resource-groups", "rm-keyvault-vaults"
        }

    def test_unknown_step_exits_2(self, azure_env, monkeypatch):
        monkeypatch.setattr(cli_module, "execute_integration", _fake_execute())
        result = CliRunner().invoke(cli, ["run", "--step", "no-such-step"])
        assert result.exit_code == 2

    def test_missing_config_exits_2(self, clean_env):
        result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 2
        assert "client_id" in result.output


class TestOtherCommands:
    def test_steps_lists_registry(self):
        result = CliRunner().invoke(cli, ["steps"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "ad-account" in result.output

    def test_validate_config_from_file(self, clean_env):
        config_file = clean_env / "azgraph.yaml"
        config_file.write_text(
            f"client_id: cid\nclient_secret: s3cret\ndirectory_id: {DIRECTORY_ID}\n"
        )
        result = CliRunner().invoke(cli, ["validate-config"], catch_exceptions=False)

        assert result.exit_code == 0
        assert "s3cret" not in result.output
        assert "Disabled steps" in result.output
        assert "Configuration OK" in result.output

    def test_validate_config_missing(self, clean_env):
        result = CliRunner().invoke(cli, ["validate-config"])
        assert result.exit_code == 2

    def test_redact_recording(self, azure_env):
        target = azure_env / "recording.har"
        shutil.copy(f"{FIXTURES}/recording.har", target)

        result = CliRunner().invoke(cli, ["redact-recording", str(target)], catch_exceptions=False)

        assert result.exit_code == 0
        text = target.read_text()
        assert "s3cret" not in text
        assert "/subscriptions/subscription-id/resourcegroups" in text
