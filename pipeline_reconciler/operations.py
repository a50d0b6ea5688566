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

"""Organization lookup and mutating cluster/deployment operations.

Mutations only request a transition; completion is observed by polling the
matching probe.
"""

from __future__ import annotations

from pydantic import ValidationError

from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.constants import (
    PATH_CLUSTER,
    PATH_CLUSTER_CONFIG,
    PATH_CLUSTERS,
    PATH_DEPLOYMENT,
    PATH_DEPLOYMENTS,
    PATH_ORGS,
)
from pipeline_reconciler.errors import ClusterRejectedError, IdentityResolutionError, InvalidResponseError
from pipeline_reconciler.models import (
    ORGANIZATIONS,
    ClusterConfigResponse,
    ClusterSpec,
    DeploymentSpec,
    Organization,
)
from pipeline_reconciler.utils import response_message, unexpected_status


# ============================================================================
# Organizations
# ============================================================================

def list_organizations(client: PipelineClient) -> list[Organization]:
    """List the organizations visible to the configured credentials.

    Raises:
        UnexpectedStatusError: If the listing does not answer 200.
        IdentityResolutionError: If the listing cannot be parsed.
    """
    response = client.call("GET", PATH_ORGS)
    if response.status_code != 200:
        raise unexpected_status(response, "could not retrieve organizations")
    try:
        return ORGANIZATIONS.validate_json(response.content)
    except ValidationError as err:
        raise IdentityResolutionError(f"could not parse orgs response [ {response.text} ]") from err


# ============================================================================
# Cluster
# ============================================================================

def create_cluster(client: PipelineClient, org_id: int, cluster: ClusterSpec) -> None:
    """Request cluster creation.

    Raises:
        ClusterRejectedError: If the API refuses the request (HTTP 400).
        UnexpectedStatusError: For any other status but 200/202.
    """
    client.logger.info("Trying to create %s cluster", cluster.name)
    response = client.call("POST", PATH_CLUSTERS, cluster.request_payload(), org=org_id)
    if response.status_code in (200, 202):
        client.logger.info("Cluster (%s) will be created", cluster.name)
        return
    if response.status_code == 400:
        message = response_message(response) or "cluster name already exists"
        raise ClusterRejectedError(f"Cluster {cluster.name} was rejected: {message}")
    raise unexpected_status(response, f"failed to create cluster {cluster.name}")


def delete_cluster(client: PipelineClient, org_id: int, cluster_name: str) -> bool:
    """Request cluster deletion.

    Returns:
        True if deletion was accepted, False if the cluster is already gone.

    Raises:
        UnexpectedStatusError: For any status but 202/404.
    """
    client.logger.info("Trying to delete %s cluster", cluster_name)
    response = client.call("DELETE", PATH_CLUSTER, org=org_id, cluster=cluster_name)
    if response.status_code == 202:
        client.logger.info("Cluster (%s) will be deleted", cluster_name)
        return True
    if response.status_code == 404:
        client.logger.info("Cluster (%s) already absent, nothing to delete", cluster_name)
        return False
    raise unexpected_status(response, f"failed to delete cluster {cluster_name}")


def fetch_cluster_config(client: PipelineClient, org_id: int, cluster_name: str) -> ClusterConfigResponse:
    """Retrieve the cluster access credentials document.

    Raises:
        UnexpectedStatusError: If the endpoint does not answer 200.
        InvalidResponseError: If the body is not a credentials document.
    """
    response = client.call("GET", PATH_CLUSTER_CONFIG, org=org_id, cluster=cluster_name)
    if response.status_code != 200:
        raise unexpected_status(response, f"failed to fetch config of cluster {cluster_name}")
    try:
        return ClusterConfigResponse.model_validate_json(response.content)
    except ValidationError as err:
        raise InvalidResponseError(f"Json parse error in cluster config response: {err}") from err


# ============================================================================
# Deployment
# ============================================================================

def install_deployment(client: PipelineClient, org_id: int, cluster_name: str, deployment: DeploymentSpec) -> None:
    """Request installation of the deployment.

    Raises:
        UnexpectedStatusError: For any status but 201.
    """
    client.logger.info("Install %s deployment", deployment.name)
    response = client.call(
        "POST", PATH_DEPLOYMENTS, deployment.request_payload(), org=org_id, cluster=cluster_name,
    )
    if response.status_code == 201:
        client.logger.info("Deployment (%s) will be installed", deployment.name)
        return
    raise unexpected_status(response, f"failed to install deployment {deployment.name}")


def delete_deployment(client: PipelineClient, org_id: int, cluster_name: str, deployment: DeploymentSpec) -> bool:
    """Request deletion of the deployment release.

    Returns:
        Always True; any status but 200 is fatal.

    Raises:
        UnexpectedStatusError: For any status but 200.
    """
    client.logger.info("Delete %s deployment", deployment.name)
    response = client.call(
        "DELETE", PATH_DEPLOYMENT, org=org_id, cluster=cluster_name, release=deployment.release_name,
    )
    if response.status_code == 200:
        client.logger.info("Deployment (%s) will be deleted", deployment.name)
        return True
    raise unexpected_status(response, f"failed to delete deployment {deployment.name}")
