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

"""Cluster credentials (kubeconfig) retrieval into the build workspace."""

from __future__ import annotations

from pathlib import Path

from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.constants import KUBECONFIG_DIR, KUBECONFIG_FILE, KUBECONFIG_MODE
from pipeline_reconciler.errors import InvalidResponseError, ReconcileError
from pipeline_reconciler.operations import fetch_cluster_config
from pipeline_reconciler.utils import decode_config_data


def write_kubeconfig(workspace: Path, content: bytes) -> Path:
    """Write the kubeconfig to ``<workspace>/.kube/config``.

    Args:
        workspace: Build workspace directory.
        content: Raw kubeconfig document.

    Returns:
        Path of the written file.

    Raises:
        ReconcileError: If the file cannot be written.
    """
    kube_dir = workspace / KUBECONFIG_DIR
    kubeconfig_path = kube_dir / KUBECONFIG_FILE
    try:
        kube_dir.mkdir(parents=True, exist_ok=True)
        kubeconfig_path.write_bytes(content)
        kubeconfig_path.chmod(KUBECONFIG_MODE)
    except OSError as err:
        raise ReconcileError(f"File write error: {err}") from err
    return kubeconfig_path


def dump_cluster_config(client: PipelineClient, org_id: int, cluster_name: str, workspace: Path) -> Path:
    """Fetch the cluster credentials and store them in the workspace.

    Args:
        client: API client.
        org_id: Resolved organization id.
        cluster_name: Name of the cluster.
        workspace: Build workspace directory.

    Returns:
        Path of the written kubeconfig.

    Raises:
        InvalidResponseError: If the API returned no credentials document.
    """
    config = fetch_cluster_config(client, org_id, cluster_name)
    if not config.data:
        raise InvalidResponseError(f"Cluster {cluster_name} returned an empty config")
    kubeconfig_path = write_kubeconfig(workspace, decode_config_data(config.data))
    client.logger.debug("export KUBECONFIG=%s", kubeconfig_path)
    client.logger.info("Write %s/%s to workspace", KUBECONFIG_DIR, KUBECONFIG_FILE)
    return kubeconfig_path
