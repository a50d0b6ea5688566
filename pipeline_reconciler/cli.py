#!/usr/bin/env python3
# /*
# Copyright 2026 The Pipeline Reconciler Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""
cli.py - Pipeline step reconciling a cluster and a deployment.

Subcommands:
    run          Drive the cluster and deployment to their desired state
    show-config  Print the resolved configuration and exit

Environment Variables:
    All settings can be provided via PLUGIN_* environment variables:
    - PLUGIN_ENDPOINT, PLUGIN_TOKEN (or PLUGIN_USERNAME/PLUGIN_PASSWORD)
    - PLUGIN_CLUSTER_NAME, PLUGIN_CLUSTER_STATE, PLUGIN_CLUSTER_PROVIDER
    - PLUGIN_DEPLOYMENT_NAME, PLUGIN_DEPLOYMENT_RELEASE_NAME, PLUGIN_DEPLOYMENT_VALUES
    - PLUGIN_RESOURCE_TIMEOUT (default: 7200 seconds for the whole run)
    - PLUGIN_LOG_LEVEL, PLUGIN_LOG_FORMAT (text or json)
    - And more (see config classes for full list)

Examples:
    # Create the cluster declared in the environment
    pipeline-reconciler run

    # Delete a cluster
    pipeline-reconciler run --cluster-name demo --cluster-state deleted
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from pipeline_reconciler import console, logger
from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.config import (
    PluginConfig,
    build_cluster_spec,
    build_deployment_spec,
    display_config,
    resolve_config,
)
from pipeline_reconciler.errors import ReconcileError
from pipeline_reconciler.logging_config import LOG_FORMATS, configure_logging, resolve_log_level
from pipeline_reconciler.models import ClusterSpec, DeploymentSpec
from pipeline_reconciler.orchestrator import Reconciler, RunReport
from pipeline_reconciler.transport import HttpTransport

app = typer.Typer(
    help="Reconcile a pipeline cluster and deployment to their desired state.",
    no_args_is_help=True,
)


def _logging_settings(log_level: str | None, log_format: str | None) -> tuple[int, str]:
    try:
        plugin = PluginConfig()
    except ValidationError:
        # Invalid settings are reported by the command through resolve_config.
        plugin = PluginConfig.model_construct()
    return resolve_log_level(log_level or plugin.log_level), (log_format or plugin.log_format).lower()


@app.callback()
def _main_callback(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (debug, info, warn, error); overrides PLUGIN_LOG_LEVEL"),
    log_format: str | None = typer.Option(
        None, "--log-format", help="Log output format (text, json); overrides PLUGIN_LOG_FORMAT"),
) -> None:
    """Initialize logging for all subcommands."""
    level, fmt = _logging_settings(log_level, log_format)
    if fmt not in LOG_FORMATS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_FORMATS)}", param_hint="--log-format")
    configure_logging(level, fmt)


@app.command("run")
def run_command(
    endpoint: str | None = typer.Option(None, "--endpoint", help="API base URL"),
    token: str | None = typer.Option(None, "--token", help="API bearer token"),
    repo_owner: str | None = typer.Option(None, "--repo-owner", help="Organization name to resolve"),
    workspace: Path | None = typer.Option(None, "--workspace", help="Build workspace for .kube/config"),
    timeout: int | None = typer.Option(None, "--timeout", help="Run-wide resource wait budget in seconds"),
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="Cluster name"),
    cluster_state: str | None = typer.Option(None, "--cluster-state", help="created or deleted"),
    provider: str | None = typer.Option(None, "--provider", help="amazon, azure or google"),
    location: str | None = typer.Option(None, "--location", help="Cluster location"),
    deployment_name: str | None = typer.Option(None, "--deployment-name", help="Chart to deploy"),
    release_name: str | None = typer.Option(None, "--release-name", help="Deployment release name"),
    deployment_state: str | None = typer.Option(None, "--deployment-state", help="created or deleted"),
) -> None:
    """Drive the cluster and the optional deployment to their desired state."""
    logger.info("start executing step interacting with pipeline")
    try:
        cfg = resolve_config(
            endpoint=endpoint,
            token=token,
            resource_timeout=timeout,
            workspace=workspace,
            repo_owner=repo_owner,
            cluster_name=cluster_name,
            cluster_state=cluster_state,
            provider=provider,
            location=location,
            deployment_name=deployment_name,
            release_name=release_name,
            deployment_state=deployment_state,
        )
        display_config(cfg)
        cluster = build_cluster_spec(cfg)
        deployment = build_deployment_spec(cfg)
        report = _reconcile(cfg.plugin, cluster, deployment)
    except ReconcileError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Cluster {cluster.name}: {report.cluster.value}[/green]")
    if report.deployment is not None:
        console.print(f"[green]✅ Deployment {deployment.name}: {report.deployment.value}[/green]")


def _reconcile(plugin: PluginConfig, cluster: ClusterSpec, deployment: DeploymentSpec) -> RunReport:
    with HttpTransport(token=plugin.token, username=plugin.username, password=plugin.password) as transport:
        client = PipelineClient(transport, plugin.endpoint, bad_request_not_ready=plugin.bad_request_not_ready)
        reconciler = Reconciler(
            client,
            cluster,
            deployment,
            repo_owner=plugin.repo_owner,
            workspace=plugin.path,
            resource_timeout=plugin.resource_timeout,
            poll_interval=plugin.poll_interval,
        )
        return reconciler.run()


@app.command("show-config")
def show_config() -> None:
    """Print the resolved configuration without contacting the API."""
    try:
        display_config(resolve_config())
    except ReconcileError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
