"""
Tests for the typer command-line interface.
"""

import base64
import json
import logging
import os
import typing

import httpx
import pytest
from typer.testing import CliRunner

from pipeline_reconciler import cli
from pipeline_reconciler.models import ClusterSpec, DeploymentSpec
from pipeline_reconciler.orchestrator import RunReport
from pipeline_reconciler.transport import HttpTransport

from conftest import ENDPOINT, ORGS_RESPONSE

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith(("PLUGIN_", "DRONE_")) or name in ("ENDPOINT", "TOKEN"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PLUGIN_ENDPOINT", ENDPOINT)
    monkeypatch.setenv("PLUGIN_TOKEN", "secret-token")
    monkeypatch.setenv("DRONE_REPO_OWNER", "org1")
    monkeypatch.setenv("DRONE_WORKSPACE", str(tmp_path))
    monkeypatch.setenv("PLUGIN_POLL_INTERVAL", "0.01")
    monkeypatch.setenv("PLUGIN_RESOURCE_TIMEOUT", "30")
    return monkeypatch


@pytest.fixture
def mock_transport(monkeypatch, fake_api):
    """Route the CLI's transport through the fake API."""
    def _factory(**auth):
        return HttpTransport(client=httpx.Client(transport=httpx.MockTransport(fake_api.handler)), **auth)
    monkeypatch.setattr(cli, "HttpTransport", _factory)
    return fake_api


def test_show_config():
    result = runner.invoke(cli.app, ["show-config"])

    assert result.exit_code == 0
    assert "Configuration" in result.output
    assert "secret-token" not in result.output


def test_run_creates_cluster(mock_transport, tmp_path):
    kubeconfig = base64.b64encode(b"apiVersion: v1\n").decode()
    mock_transport.add("GET", "/orgs?field=name", (200, ORGS_RESPONSE))
    mock_transport.add("HEAD", "/orgs/1/clusters/demo?field=name", 404, 200)
    mock_transport.add("POST", "/orgs/1/clusters", 202)
    mock_transport.add("GET", "/orgs/1/clusters/demo/config?field=name", (200, {"status": 200, "data": kubeconfig}))
    mock_transport.add("HEAD", "/orgs/1/clusters/demo/deployments?field=name", 200)

    result = runner.invoke(cli.app, ["run", "--cluster-name", "demo"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / ".kube" / "config").read_bytes() == b"apiVersion: v1\n"
    assert mock_transport.count("POST", "/orgs/1/clusters") == 1
    assert mock_transport.requests[0].headers["Authorization"] == "Bearer secret-token"


def test_run_validation_failure_exits_non_zero(mock_transport):
    result = runner.invoke(cli.app, ["run"])

    assert result.exit_code == 1
    assert mock_transport.count() == 0


def test_run_unknown_owner_exits_non_zero(mock_transport):
    mock_transport.add("GET", "/orgs?field=name", (200, ORGS_RESPONSE))

    result = runner.invoke(cli.app, ["run", "--cluster-name", "demo", "--repo-owner", "org3"])

    assert result.exit_code == 1
    assert mock_transport.count("HEAD") == 0


def test_run_delete_with_cli_state(mock_transport):
    mock_transport.add("GET", "/orgs?field=name", (200, ORGS_RESPONSE))
    mock_transport.add("HEAD", "/orgs/1/clusters/demo?field=name", 200)
    mock_transport.add("DELETE", "/orgs/1/clusters/demo?field=name", 202)

    result = runner.invoke(cli.app, ["run", "--cluster-name", "demo", "--cluster-state", "deleted"])

    assert result.exit_code == 0, result.output
    assert mock_transport.count("DELETE") == 1
    assert mock_transport.count("GET", "/orgs/1/clusters/demo/config?field=name") == 0


def _json_records(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


@pytest.fixture(autouse=True)
def restore_package_logger():
    package_logger = logging.getLogger("pipeline_reconciler")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    handlers, level, propagate = saved
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate


def _cluster_delete_routes(fake_api):
    fake_api.add("GET", "/orgs?field=name", (200, ORGS_RESPONSE))
    fake_api.add("HEAD", "/orgs/1/clusters/demo?field=name", 200)
    fake_api.add("DELETE", "/orgs/1/clusters/demo?field=name", 202)


def test_json_log_format_flag(mock_transport):
    _cluster_delete_routes(mock_transport)

    result = runner.invoke(
        cli.app, ["--log-format", "json", "run", "--cluster-name", "demo", "--cluster-state", "deleted"],
    )

    assert result.exit_code == 0, result.output
    records = _json_records(result.output)
    events = [record["event"] for record in records]
    assert "Trying to delete demo cluster" in events
    delete_record = records[events.index("Trying to delete demo cluster")]
    assert delete_record["level"] == "info"
    assert delete_record["logger"] == "pipeline_reconciler"
    assert "timestamp" in delete_record


def test_json_log_format_from_env(mock_transport, clean_env):
    clean_env.setenv("PLUGIN_LOG_FORMAT", "json")
    _cluster_delete_routes(mock_transport)

    result = runner.invoke(cli.app, ["run", "--cluster-name", "demo", "--cluster-state", "deleted"])

    assert result.exit_code == 0, result.output
    assert any(record["event"] == "Cluster (demo) will be deleted" for record in _json_records(result.output))


def test_unknown_log_format_is_rejected():
    result = runner.invoke(cli.app, ["--log-format", "xml", "show-config"])

    assert result.exit_code != 0


def test_kubeconfig_write_error_exits_non_zero(mock_transport, clean_env, tmp_path):
    blocker = tmp_path / "workspace"
    blocker.write_text("not a directory")
    clean_env.setenv("DRONE_WORKSPACE", str(blocker))
    mock_transport.add("GET", "/orgs?field=name", (200, ORGS_RESPONSE))
    mock_transport.add("HEAD", "/orgs/1/clusters/demo?field=name", 200)
    mock_transport.add("GET", "/orgs/1/clusters/demo/config?field=name", (200, {"status": 200, "data": "apiVersion: v1"}))

    result = runner.invoke(cli.app, ["run", "--cluster-name", "demo"])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "File write error" in result.output


def test_reconcile_signature_is_typed():
    hints = typing.get_type_hints(cli._reconcile)

    assert hints["cluster"] is ClusterSpec
    assert hints["deployment"] is DeploymentSpec
    assert hints["return"] is RunReport
