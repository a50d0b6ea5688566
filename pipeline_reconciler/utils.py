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

"""Utility functions for responses, secrets expansion, and config decoding."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from string import Template

import httpx

from pipeline_reconciler.constants import SECRET_ENV_EXCLUDED, SECRET_ENV_MARKER
from pipeline_reconciler.errors import UnexpectedStatusError


def response_message(response: httpx.Response) -> str:
    """Extract a human readable message from an API error response.

    Args:
        response: A response whose body may be a JSON error document.

    Returns:
        The ``message`` or ``error`` field when present, else the raw body text.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return response.text.strip()


def unexpected_status(response: httpx.Response, detail: str = "") -> UnexpectedStatusError:
    """Build the fatal error for a status code outside the recognized set."""
    request = response.request
    return UnexpectedStatusError(request.method, str(request.url), response.status_code, detail)


def plugin_secrets(environ: Mapping[str, str]) -> dict[str, str]:
    """Select the environment variables that may be referenced from deployment values.

    Args:
        environ: Process environment.

    Returns:
        Variables whose name contains ``PLUGIN``, minus the API endpoint ones.
    """
    return {
        name: value
        for name, value in environ.items()
        if SECRET_ENV_MARKER in name and name not in SECRET_ENV_EXCLUDED
    }


def expand_plugin_secrets(raw_values: str, environ: Mapping[str, str]) -> str:
    """Substitute ``${PLUGIN_*}`` placeholders in the deployment values text.

    Unknown placeholders are left untouched.
    """
    return Template(raw_values).safe_substitute(plugin_secrets(environ))


def decode_config_data(data: str) -> bytes:
    """Decode the credentials document returned by the config endpoint.

    Older API revisions send the kubeconfig base64-encoded, newer ones send it
    as plain text. Base64, possibly wrapped over several lines, is decoded;
    anything else is kept.
    """
    try:
        return base64.b64decode("".join(data.split()), validate=True)
    except binascii.Error:
        return data.encode()
