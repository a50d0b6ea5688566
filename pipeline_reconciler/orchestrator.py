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

"""Reconciliation workflow composing probes, operations, and the waiter."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pipeline_reconciler import logger as default_logger
from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.constants import DEFAULT_POLL_INTERVAL_SECONDS, DEFAULT_RESOURCE_TIMEOUT_SECONDS
from pipeline_reconciler.credentials import dump_cluster_config
from pipeline_reconciler.errors import IdentityResolutionError, SpecValidationError
from pipeline_reconciler.models import ClusterSpec, DeploymentSpec, DesiredState
from pipeline_reconciler.operations import (
    create_cluster,
    delete_cluster,
    delete_deployment,
    install_deployment,
    list_organizations,
)
from pipeline_reconciler.probes import Readiness, cluster_readiness, deployment_readiness, helm_readiness
from pipeline_reconciler.waiter import Deadline, wait_for


class ResourceOutcome(Enum):
    """What reconciling a single resource did."""

    CREATED = "created"
    EXISTING = "existing"
    DELETED = "deleted"
    ABSENT = "absent"


@dataclass(frozen=True)
class ResourceHandlers:
    """Probe and mutations of one resource kind.

    Attributes:
        kind: Resource kind, used in logs.
        readiness: Probe returning the current readiness.
        create: Requests creation.
        delete: Requests deletion; returns False if the resource was already gone.
    """

    kind: str
    readiness: Callable[[], Readiness]
    create: Callable[[], None]
    delete: Callable[[], bool]


@dataclass(frozen=True)
class RunReport:
    """Summary of a reconciliation run.

    Attributes:
        org_id: Organization the resources live in.
        cluster: Outcome of the cluster reconciliation.
        deployment: Outcome of the deployment reconciliation, or None if skipped.
        kubeconfig: Path of the written kubeconfig, or None if not written.
    """

    org_id: int
    cluster: ResourceOutcome
    deployment: ResourceOutcome | None = None
    kubeconfig: Path | None = None


def reconcile_resource(
    desired: DesiredState,
    handlers: ResourceHandlers,
    wait: Callable[[str, Callable[[], Readiness]], None],
    logger: logging.Logger,
) -> ResourceOutcome:
    """Drive one resource to its desired state.

    Creation is followed by a wait until the probe reports READY; deletion is
    only requested, never awaited. A resource that exists but is not ready
    yet is waited for without a second create.

    Args:
        desired: Desired state of the resource.
        handlers: Probe and mutations of the resource.
        wait: Blocks until the given probe reports READY.
        logger: Logger for progress messages.

    Returns:
        The outcome of the reconciliation.
    """
    observed = handlers.readiness()
    logger.info("%s desired state: %s, observed: %s", handlers.kind.capitalize(), desired.value, observed.value)

    if desired is DesiredState.CREATED:
        if observed is Readiness.READY:
            logger.info("Use existing %s, nothing to do", handlers.kind)
            return ResourceOutcome.EXISTING
        if observed is Readiness.NOT_FOUND:
            handlers.create()
        wait(handlers.kind, handlers.readiness)
        return ResourceOutcome.CREATED

    if observed is Readiness.NOT_FOUND:
        logger.info("No %s to delete, nothing to do", handlers.kind)
        return ResourceOutcome.ABSENT
    if not handlers.delete():
        return ResourceOutcome.ABSENT
    return ResourceOutcome.DELETED


class Reconciler:
    """Runs the reconciliation of one cluster and at most one deployment.

    The organization id is resolved lazily, once, from the repository owner
    and kept on the instance for the rest of the run. All waits of a run
    share a single :class:`Deadline` of ``resource_timeout`` seconds.
    """

    def __init__(
        self,
        client: PipelineClient,
        cluster: ClusterSpec,
        deployment: DeploymentSpec | None = None,
        *,
        repo_owner: str = "",
        workspace: Path = Path("."),
        org_id: int = 0,
        resource_timeout: float = DEFAULT_RESOURCE_TIMEOUT_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        cancel: threading.Event | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.cluster = cluster
        self.deployment = deployment or DeploymentSpec()
        self.repo_owner = repo_owner
        self.workspace = workspace
        self.org_id = org_id
        self.resource_timeout = resource_timeout
        self.poll_interval = poll_interval
        self.cancel = cancel if cancel is not None else threading.Event()
        self.logger = logger or default_logger
        self._deadline: Deadline | None = None

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check the run-level inputs the models cannot check on their own.

        Raises:
            SpecValidationError: If a required input is missing.
        """
        problems = []
        if not self.client.endpoint:
            problems.append("endpoint: must not be empty")
        if not self.org_id and not self.repo_owner:
            problems.append("repo_owner: required to resolve the organization")
        if self.resource_timeout < 0:
            problems.append("resource_timeout: must not be negative")
        for problem in problems:
            self.logger.error("field validation error (%s)", problem)
        if problems:
            raise SpecValidationError(problems)

    def resolve_org_id(self) -> int:
        """Return the organization id, looking it up by repository owner once.

        Raises:
            IdentityResolutionError: If no organization is named after the owner.
        """
        if self.org_id:
            return self.org_id
        for org in list_organizations(self.client):
            if org.name == self.repo_owner:
                self.org_id = org.id
                self.logger.info("Resolved organization %s to id %d", org.name, org.id)
                return self.org_id
        raise IdentityResolutionError(f"no organization found for repository owner [ {self.repo_owner} ]")

    def wait(self, kind: str, probe: Callable[[], Readiness]) -> None:
        """Wait for ``probe`` within what is left of the run budget."""
        deadline = self._deadline or Deadline(self.resource_timeout)
        wait_for(
            probe,
            deadline.remaining(),
            interval=self.poll_interval,
            cancel=self.cancel,
            description=kind,
            logger=self.logger,
        )

    def reconcile_cluster(self) -> ResourceOutcome:
        org_id, name = self.resolve_org_id(), self.cluster.name
        handlers = ResourceHandlers(
            kind="cluster",
            readiness=lambda: cluster_readiness(self.client, org_id, name),
            create=lambda: create_cluster(self.client, org_id, self.cluster),
            delete=lambda: delete_cluster(self.client, org_id, name),
        )
        return reconcile_resource(self.cluster.state, handlers, self.wait, self.logger)

    def wait_for_helm(self) -> None:
        org_id, name = self.resolve_org_id(), self.cluster.name
        self.wait("helm", lambda: helm_readiness(self.client, org_id, name))

    def reconcile_deployment(self) -> ResourceOutcome:
        org_id, name, deployment = self.resolve_org_id(), self.cluster.name, self.deployment
        handlers = ResourceHandlers(
            kind="deployment",
            readiness=lambda: deployment_readiness(self.client, org_id, name, deployment.release_name),
            create=lambda: install_deployment(self.client, org_id, name, deployment),
            delete=lambda: delete_deployment(self.client, org_id, name, deployment),
        )
        return reconcile_resource(deployment.state, handlers, self.wait, self.logger)

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def run(self) -> RunReport:
        """Reconcile the cluster, its credentials, helm, and the deployment.

        Returns:
            Summary of what the run did.

        Raises:
            ReconcileError: On any fatal condition.
        """
        self.validate()
        self._deadline = Deadline(self.resource_timeout)
        org_id = self.resolve_org_id()

        self.logger.info("Cluster desired state: %s", self.cluster.state.value)
        cluster_outcome = self.reconcile_cluster()
        if self.cluster.state is DesiredState.DELETED:
            return RunReport(org_id=org_id, cluster=cluster_outcome)

        kubeconfig = dump_cluster_config(self.client, org_id, self.cluster.name, self.workspace)
        self.wait_for_helm()

        deployment_outcome = None
        if self.deployment.enabled:
            deployment_outcome = self.reconcile_deployment()
        else:
            self.logger.info("No deployment configured, skipping deployment reconciliation")
        return RunReport(
            org_id=org_id,
            cluster=cluster_outcome,
            deployment=deployment_outcome,
            kubeconfig=kubeconfig,
        )
