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

"""Constants, provider default loading, and default_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_defaults() -> dict:
    """Load provider defaults from defaults.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    defaults_file = Path(__file__).resolve().parent / "defaults.yaml"
    with open(defaults_file) as f:
        return yaml.safe_load(f)


PROVIDER_DEFAULTS = load_defaults()


def default_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the PROVIDER_DEFAULTS dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = PROVIDER_DEFAULTS
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Desired states --
STATE_CREATED = "created"
STATE_DELETED = "deleted"

# -- Providers --
PROVIDER_AMAZON = "amazon"
PROVIDER_AZURE = "azure"
PROVIDER_GOOGLE = "google"
DEFAULT_PROVIDER = PROVIDER_AMAZON
DEFAULT_NODE_POOL_NAME = "default-node-pool"

# -- Timing --
DEFAULT_RESOURCE_TIMEOUT_SECONDS = 2 * 60 * 60
DEFAULT_POLL_INTERVAL_SECONDS = 5
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

# -- Logging --
DEFAULT_LOG_LEVEL = "info"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
LOG_FORMAT_TEXT = "text"
LOG_FORMAT_JSON = "json"
DEFAULT_LOG_FORMAT = LOG_FORMAT_TEXT

# -- HTTP --
HEADER_ACCEPT = "application/json"
POST_CONTENT_TYPE = "application/x-www-form-urlencoded"

# -- API paths (relative to the configured endpoint) --
PATH_ORGS = "/orgs?field=name"
PATH_CLUSTERS = "/orgs/{org}/clusters"
PATH_CLUSTER = "/orgs/{org}/clusters/{cluster}?field=name"
PATH_CLUSTER_CONFIG = "/orgs/{org}/clusters/{cluster}/config?field=name"
PATH_DEPLOYMENTS = "/orgs/{org}/clusters/{cluster}/deployments?field=name"
PATH_DEPLOYMENT = "/orgs/{org}/clusters/{cluster}/deployments/{release}?field=name"

# -- Cluster credentials --
KUBECONFIG_DIR = ".kube"
KUBECONFIG_FILE = "config"
KUBECONFIG_MODE = 0o600

# -- Deployment values secrets --
SECRET_ENV_MARKER = "PLUGIN"
SECRET_ENV_EXCLUDED = frozenset({"PLUGIN_ENDPOINT", "ENDPOINT"})
