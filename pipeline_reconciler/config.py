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

"""Configuration classes, spec building, and config resolution/display."""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from pipeline_reconciler import console, logger
from pipeline_reconciler.constants import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NODE_POOL_NAME,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_PROVIDER,
    DEFAULT_RESOURCE_TIMEOUT_SECONDS,
    PROVIDER_AMAZON,
    PROVIDER_AZURE,
    PROVIDER_GOOGLE,
    STATE_CREATED,
    default_value,
)
from pipeline_reconciler.errors import SpecValidationError
from pipeline_reconciler.models import ClusterSpec, DeploymentSpec
from pipeline_reconciler.utils import expand_plugin_secrets


# ============================================================================
# Configuration classes
# ============================================================================

class PluginConfig(BaseSettings):
    """API access and run settings, auto-loaded from PLUGIN_* env vars.

    Attributes:
        endpoint: API base URL.
        token: Bearer token; takes precedence over basic auth.
        username: Basic auth username.
        password: Basic auth password.
        resource_timeout: Seconds the whole run may spend waiting for resources.
        poll_interval: Seconds between readiness probes.
        bad_request_not_ready: Whether probes read HTTP 400 as "not ready yet".
        log_level: Logging level name.
        log_format: ``text`` or ``json`` log lines.
        path: Build workspace where the kubeconfig is written.
        repo_owner: Repository owner, matched against organization names.
    """

    model_config = SettingsConfigDict(env_prefix="PLUGIN_", extra="ignore")

    endpoint: str = Field(default="", validation_alias=AliasChoices("PLUGIN_ENDPOINT", "ENDPOINT"))
    token: str = Field(default="", validation_alias=AliasChoices("PLUGIN_TOKEN", "TOKEN"))
    username: str = ""
    password: str = ""
    resource_timeout: int = Field(default=DEFAULT_RESOURCE_TIMEOUT_SECONDS, ge=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, ge=0)
    bad_request_not_ready: bool = True
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, pattern=r"(?i)^(debug|info|warn|warning|error|critical)$")
    log_format: str = Field(default=DEFAULT_LOG_FORMAT, pattern=r"(?i)^(text|json)$")
    path: Path = Field(default=Path("."), validation_alias=AliasChoices("PLUGIN_PATH", "DRONE_WORKSPACE"))
    repo_owner: str = Field(default="", validation_alias=AliasChoices("PLUGIN_REPO_OWNER", "DRONE_REPO_OWNER"))


class ClusterConfig(BaseSettings):
    """Cluster desired state, auto-loaded from PLUGIN_CLUSTER_* env vars."""

    model_config = SettingsConfigDict(env_prefix="PLUGIN_CLUSTER_", extra="ignore")

    name: str = ""
    location: str = ""
    state: str = STATE_CREATED
    provider: str = DEFAULT_PROVIDER
    secret_id: str = Field(default="", validation_alias=AliasChoices("PLUGIN_CLUSTER_SECRET_ID", "PLUGIN_SECRET_ID"))
    profile_name: str = Field(
        default="", validation_alias=AliasChoices("PLUGIN_CLUSTER_PROFILE_NAME", "PLUGIN_PROFILE_NAME"),
    )


class AmazonConfig(BaseSettings):
    """Amazon node pool and master settings, from PLUGIN_AMAZON_* env vars."""

    model_config = SettingsConfigDict(env_prefix="PLUGIN_AMAZON_", extra="ignore")

    node_image: str = ""
    node_instance_type: str = ""
    node_min_count: int = Field(default=1, ge=0)
    node_max_count: int = Field(default=1, ge=0)
    node_spot_price: str = ""
    master_image: str = ""
    master_instance_type: str = ""


class AzureConfig(BaseSettings):
    """Azure settings, from PLUGIN_AZURE_* env vars."""

    model_config = SettingsConfigDict(env_prefix="PLUGIN_AZURE_", extra="ignore")

    resource_group: str = ""
    kubernetes_version: str = ""
    node_count: int = Field(default=1, ge=1)
    node_instance_type: str = ""


class GoogleConfig(BaseSettings):
    """Google (GKE) settings, from PLUGIN_GOOGLE_* env vars."""

    model_config = SettingsConfigDict(env_prefix="PLUGIN_GOOGLE_", extra="ignore")

    project: str = ""
    gke_version: str = ""
    node_count: int = Field(default=1, ge=1)
    instance_type: str = ""
    service_account: str = ""


class DeploymentConfig(BaseSettings):
    """Deployment desired state, from PLUGIN_DEPLOYMENT_* env vars.

    Attributes:
        name: Chart to deploy; empty disables the deployment step.
        release_name: Helm release name.
        state: ``created`` or ``deleted``.
        values: JSON values document, may reference ``${PLUGIN_*}`` variables.
    """

    model_config = SettingsConfigDict(env_prefix="PLUGIN_DEPLOYMENT_", extra="ignore")

    name: str = ""
    release_name: str = ""
    state: str = STATE_CREATED
    values: str = ""


# ============================================================================
# Resolved configuration
# ============================================================================

@dataclass(frozen=True)
class ResolvedConfig:
    """All configuration of a run after CLI > env > default resolution."""

    plugin: PluginConfig
    cluster: ClusterConfig
    amazon: AmazonConfig
    azure: AzureConfig
    google: GoogleConfig
    deployment: DeploymentConfig


def _override(settings: BaseSettings, **overrides: Any) -> BaseSettings:
    update = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=update) if update else settings


def resolve_config(
    endpoint: str | None = None,
    token: str | None = None,
    resource_timeout: int | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
    workspace: Path | None = None,
    repo_owner: str | None = None,
    cluster_name: str | None = None,
    cluster_state: str | None = None,
    provider: str | None = None,
    location: str | None = None,
    deployment_name: str | None = None,
    release_name: str | None = None,
    deployment_state: str | None = None,
) -> ResolvedConfig:
    """Merge CLI overrides, environment variables, and defaults into config objects.

    Resolution priority: CLI arguments > PLUGIN_* environment variables > defaults.
    Arguments left as None fall through to the environment.

    Returns:
        The resolved configuration.
    """
    try:
        plugin = PluginConfig()
        cluster = ClusterConfig()
        amazon, azure, google = AmazonConfig(), AzureConfig(), GoogleConfig()
        deployment = DeploymentConfig()
    except ValidationError as err:
        raise SpecValidationError(_describe(err, "config")) from err

    return ResolvedConfig(
        plugin=_override(
            plugin, endpoint=endpoint, token=token, resource_timeout=resource_timeout,
            log_level=log_level, log_format=log_format, path=workspace, repo_owner=repo_owner,
        ),
        cluster=_override(cluster, name=cluster_name, state=cluster_state, provider=provider, location=location),
        amazon=amazon,
        azure=azure,
        google=google,
        deployment=_override(deployment, name=deployment_name, release_name=release_name, state=deployment_state),
    )


# ============================================================================
# Spec building
# ============================================================================

def _describe(err: ValidationError, scope: str) -> list[str]:
    problems = []
    for error in err.errors():
        field = ".".join(str(part) for part in error["loc"]) or scope
        problems.append(f"{field}: {error['msg']}")
        logger.error("[%s] field validation error (%s)", field, error["msg"])
    return problems


def _validated(model: type[BaseModel], data: dict[str, Any], scope: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as err:
        raise SpecValidationError(_describe(err, scope)) from err


def _instance_type(provider: str, configured: str) -> str:
    return configured or default_value(provider, "instance_type", default="")


def _amazon_properties(cfg: ResolvedConfig) -> dict[str, Any]:
    amazon = cfg.amazon
    return {
        "provider": PROVIDER_AMAZON,
        "node_pools": {
            DEFAULT_NODE_POOL_NAME: {
                "instance_type": _instance_type(PROVIDER_AMAZON, amazon.node_instance_type),
                "spot_price": amazon.node_spot_price or default_value(PROVIDER_AMAZON, "spot_price", default=""),
                "min_count": amazon.node_min_count,
                "max_count": amazon.node_max_count,
                "image": amazon.node_image or default_value(PROVIDER_AMAZON, "image", default=""),
            },
        },
        "master": {
            "instance_type": _instance_type(PROVIDER_AMAZON, amazon.master_instance_type),
            "image": amazon.master_image or default_value(PROVIDER_AMAZON, "image", default=""),
        },
    }


def _azure_properties(cfg: ResolvedConfig) -> dict[str, Any]:
    azure = cfg.azure
    return {
        "provider": PROVIDER_AZURE,
        "resource_group": azure.resource_group,
        "kubernetes_version": azure.kubernetes_version
        or default_value(PROVIDER_AZURE, "kubernetes_version", default=""),
        "node_pools": {
            DEFAULT_NODE_POOL_NAME: {
                "count": azure.node_count,
                "instance_type": _instance_type(PROVIDER_AZURE, azure.node_instance_type),
            },
        },
    }


def _google_properties(cfg: ResolvedConfig) -> dict[str, Any]:
    google = cfg.google
    version = google.gke_version or default_value(PROVIDER_GOOGLE, "gke_version", default="")
    return {
        "provider": PROVIDER_GOOGLE,
        "project": google.project,
        "node_version": version,
        "master": {"version": version},
        "node_pools": {
            DEFAULT_NODE_POOL_NAME: {
                "count": google.node_count,
                "instance_type": _instance_type(PROVIDER_GOOGLE, google.instance_type),
                "service_account": google.service_account,
            },
        },
    }


_PROPERTY_BUILDERS: dict[str, Callable[[ResolvedConfig], dict[str, Any]]] = {
    PROVIDER_AMAZON: _amazon_properties,
    PROVIDER_AZURE: _azure_properties,
    PROVIDER_GOOGLE: _google_properties,
}


def build_cluster_spec(cfg: ResolvedConfig) -> ClusterSpec:
    """Build the desired cluster spec, filling provider defaults.

    Raises:
        SpecValidationError: If a required field is missing or invalid.
    """
    provider = cfg.cluster.provider.lower()
    builder = _PROPERTY_BUILDERS.get(provider)
    if builder is None:
        logger.error("[provider] field validation error (unsupported provider %r)", provider)
        raise SpecValidationError([f"provider: unsupported provider {provider!r}"])

    data = {
        "name": cfg.cluster.name,
        "location": cfg.cluster.location or default_value(provider, "location", default=""),
        "secret_id": cfg.cluster.secret_id,
        "profile_name": cfg.cluster.profile_name,
        "state": cfg.cluster.state.lower(),
        "properties": builder(cfg),
    }
    if cfg.cluster.profile_name:
        logger.debug("using profile: [%s]", cfg.cluster.profile_name)
    return _validated(ClusterSpec, data, "cluster")


def build_deployment_spec(cfg: ResolvedConfig, environ: Mapping[str, str] | None = None) -> DeploymentSpec:
    """Build the desired deployment spec, expanding secrets in its values.

    Args:
        cfg: Resolved configuration.
        environ: Environment used for ``${PLUGIN_*}`` expansion; defaults to ``os.environ``.

    Raises:
        SpecValidationError: If the values are not a JSON object or a field is invalid.
    """
    deployment = cfg.deployment
    values: dict[str, Any] = {}
    if deployment.values:
        logger.debug("filling secrets in deployment values...")
        expanded = expand_plugin_secrets(deployment.values, os.environ if environ is None else environ)
        try:
            values = json.loads(expanded)
        except json.JSONDecodeError as err:
            logger.error("unable to parse deployment values: [%s]", err)
            raise SpecValidationError([f"deployment.values: {err}"]) from err
        if not isinstance(values, dict):
            raise SpecValidationError(["deployment.values: must be a JSON object"])

    data = {
        "name": deployment.name,
        "release_name": deployment.release_name,
        "state": deployment.state.lower(),
        "values": values,
    }
    return _validated(DeploymentSpec, data, "deployment")


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: ResolvedConfig) -> None:
    """Print the configuration relevant to the run, secrets masked.

    Args:
        cfg: Resolved configuration.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))

    plugin = cfg.plugin
    auth = "bearer token" if plugin.token else ("basic" if plugin.username else "none")
    console.print("[yellow]API:[/yellow]")
    console.print(f"  endpoint        : {plugin.endpoint or '(not set)'}")
    console.print(f"  auth            : {auth}")
    console.print(f"  repo_owner      : {plugin.repo_owner or '(not set)'}")
    console.print(f"  resource_timeout: {plugin.resource_timeout}s")
    console.print(f"  workspace       : {plugin.path}")
    console.print(f"  log             : {plugin.log_level} ({plugin.log_format})")

    console.print("[yellow]Cluster:[/yellow]")
    console.print(f"  name            : {cfg.cluster.name or '(not set)'}")
    console.print(f"  state           : {cfg.cluster.state}")
    console.print(f"  provider        : {cfg.cluster.provider}")
    console.print(f"  location        : {cfg.cluster.location or '(provider default)'}")

    if cfg.deployment.name:
        console.print("[yellow]Deployment:[/yellow]")
        console.print(f"  name            : {cfg.deployment.name}")
        console.print(f"  release_name    : {cfg.deployment.release_name}")
        console.print(f"  state           : {cfg.deployment.state}")
