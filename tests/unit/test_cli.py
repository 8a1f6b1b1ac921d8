import json

import pytest
from click.testing import CliRunner

from haive.cli import cli
from haive.core.results import (
    CheckoutResult,
    DatabaseInfo,
    DatabaseListResult,
    ProjectInfo,
    WorkflowCreateResult,
    WorktreeCreateResult,
)
from haive.exceptions import CommandError, ErrorCode


@pytest.fixture
def runner():
    return CliRunner()


def _extract_json(output: str) -> dict:
    """Return the JSON object embedded in CLI output."""

    start = output.find("{")
    end = output.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise AssertionError(f"No JSON object found in CLI output:\n{output}")
    return json.loads(output[start : end + 1])


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.4.0" in result.output


def test_worktree_create_reports_result(monkeypatch, runner):
    calls = {}

    def fake_create(branch_name, new_branch=None):
        calls["branch"] = branch_name
        calls["new_branch"] = new_branch
        return WorktreeCreateResult(path="/repo/.worktrees/feature-foo", branch=branch_name, new_branch=True)

    monkeypatch.setattr("haive.api.create_worktree", fake_create)

    result = runner.invoke(cli, ["worktree", "create", "feature/foo", "--json"])
    assert result.exit_code == 0
    assert calls == {"branch": "feature/foo", "new_branch": None}
    payload = _extract_json(result.output)
    assert payload["success"] is True
    assert payload["data"]["path"] == "/repo/.worktrees/feature-foo"


def test_error_is_reported_as_json(monkeypatch, runner):
    def fake_list_dbs():
        raise CommandError("Config file not found", error_code=ErrorCode.CONFIG_MISSING)

    monkeypatch.setattr("haive.api.list_dbs", fake_list_dbs)

    result = runner.invoke(cli, ["db", "list", "--json"])
    assert result.exit_code == 1
    payload = _extract_json(result.output)
    assert payload["success"] is False
    assert payload["error_code"] == "CONFIG_MISSING"


def test_error_without_json_exits(monkeypatch, runner):
    def fake_drop(db_name):
        raise CommandError(f"Refusing to operate on default database '{db_name}'",
                           error_code=ErrorCode.DB_IS_DEFAULT)

    monkeypatch.setattr("haive.api.drop_db", fake_drop)

    result = runner.invoke(cli, ["db", "drop", "app"])
    assert result.exit_code == 1


def test_db_list_json(monkeypatch, runner):
    monkeypatch.setattr(
        "haive.api.list_dbs",
        lambda: DatabaseListResult(engine="MySQL", databases=[DatabaseInfo("app", True), DatabaseInfo("app_x")]),
    )

    result = runner.invoke(cli, ["db", "list", "--json"])
    assert result.exit_code == 0
    payload = _extract_json(result.output)
    assert [db["name"] for db in payload["data"]["databases"]] == ["app", "app_x"]


def test_partial_failure_exits_nonzero(monkeypatch, runner):
    monkeypatch.setattr(
        "haive.api.create_isolated_worktree",
        lambda branch_name, new_branch=None: WorkflowCreateResult(
            path="/repo/.worktrees/feature-x",
            branch=branch_name,
            new_branch=True,
            error="worktree created but database clone failed: Access denied",
        ),
    )

    result = runner.invoke(cli, ["isolate", "create", "feature/x", "--json"])
    assert result.exit_code == 1
    payload = _extract_json(result.output)
    assert payload["success"] is False
    assert payload["error"].startswith("worktree created but database clone failed")
    assert payload["details"]["path"] == "/repo/.worktrees/feature-x"


def test_checkout_passes_options(monkeypatch, runner):
    calls = {}

    def fake_checkout(branch_name, create=False, clone_from=None):
        calls.update(branch=branch_name, create=create, clone_from=clone_from)
        return CheckoutResult(branch=branch_name, database="app_wt_feature_x", created=True, cloned=True)

    monkeypatch.setattr("haive.api.checkout", fake_checkout)

    result = runner.invoke(cli, ["checkout", "feature/x", "-b", "--clone-from", "main", "--json"])
    assert result.exit_code == 0
    assert calls == {"branch": "feature/x", "create": True, "clone_from": "main"}
    assert _extract_json(result.output)["data"]["database"] == "app_wt_feature_x"


def test_init_prints_suggestion(tmp_path, runner):
    with runner.isolated_filesystem(temp_dir=tmp_path):
        with open("compose.yml", "w") as f:
            f.write("services:\n  db:\n    image: mysql:8\n")
        result = runner.invoke(cli, ["init"])
    assert result.exit_code == 0
    assert "service: db" in result.output


def test_info_reports_invalid_config(monkeypatch, runner):
    info = ProjectInfo(
        project_root="/repo",
        config_path="/repo/haive.json",
        config_error="database.service is required",
    )
    monkeypatch.setattr("haive.api.info", lambda: info)

    result = runner.invoke(cli, ["info"])
    assert result.exit_code == 0
    assert "Config: /repo/haive.json" in result.output
    assert "database.service is required" in result.output

    result = runner.invoke(cli, ["info", "--json"])
    assert result.exit_code == 0
    payload = _extract_json(result.output)
    assert payload["data"]["config_error"] == "database.service is required"
    assert payload["data"]["config"] is None
