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

"""Read-only readiness probes for clusters, helm, and deployments."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.constants import PATH_CLUSTER, PATH_DEPLOYMENT, PATH_DEPLOYMENTS
from pipeline_reconciler.utils import unexpected_status


class Readiness(Enum):
    """Outcome of a probe."""

    READY = "ready"
    NOT_READY = "not ready"
    NOT_FOUND = "not found"


_READINESS_BY_STATUS = {
    200: Readiness.READY,
    204: Readiness.NOT_READY,
    404: Readiness.NOT_FOUND,
    503: Readiness.NOT_READY,
}


def classify_status(status: int, *, bad_request_not_ready: bool = True) -> Readiness | None:
    """Map a probe status code to a readiness signal.

    Some API endpoints answer 400 while the resource is still materializing,
    so 400 reads as "not ready" unless ``bad_request_not_ready`` is off.

    Args:
        status: HTTP status code of the probe response.
        bad_request_not_ready: Whether 400 means "not ready yet".

    Returns:
        The readiness signal, or None when the status is not recognized.
    """
    if status == 400 and bad_request_not_ready:
        return Readiness.NOT_READY
    return _READINESS_BY_STATUS.get(status)


def probe(client: PipelineClient, kind: str, path: str, **params: Any) -> Readiness:
    """HEAD a resource URL and classify the answer.

    Args:
        client: API client.
        kind: Resource kind, used for logging only.
        path: Path template of the resource.
        **params: Path template parameters.

    Returns:
        The readiness of the resource.

    Raises:
        UnexpectedStatusError: If the status code is not recognized.
        TransportError: If the request fails.
    """
    response = client.call("HEAD", path, **params)
    readiness = classify_status(response.status_code, bad_request_not_ready=client.bad_request_not_ready)
    if readiness is None:
        raise unexpected_status(response, f"{kind} probe failed")
    client.logger.debug("%s probe: %s (HTTP %d)", kind, readiness.value, response.status_code)
    return readiness


def cluster_readiness(client: PipelineClient, org_id: int, cluster_name: str) -> Readiness:
    return probe(client, "cluster", PATH_CLUSTER, org=org_id, cluster=cluster_name)


def helm_readiness(client: PipelineClient, org_id: int, cluster_name: str) -> Readiness:
    return probe(client, "helm", PATH_DEPLOYMENTS, org=org_id, cluster=cluster_name)


def deployment_readiness(client: PipelineClient, org_id: int, cluster_name: str, release_name: str) -> Readiness:
    return probe(client, "deployment", PATH_DEPLOYMENT, org=org_id, cluster=cluster_name, release=release_name)
