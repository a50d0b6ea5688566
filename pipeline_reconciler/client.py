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

"""Endpoint-aware wrapper around a transport."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from pipeline_reconciler import logger as default_logger
from pipeline_reconciler.transport import Transport


class PipelineClient:
    """Binds a transport to the API base endpoint.

    Attributes:
        transport: Transport issuing the raw requests.
        endpoint: API base URL, e.g. ``https://pipeline.example.com/api/v1``.
        bad_request_not_ready: Whether probes read HTTP 400 as "not ready yet".
        logger: Logger used by probes and operations.
    """

    def __init__(
        self,
        transport: Transport,
        endpoint: str,
        *,
        bad_request_not_ready: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transport = transport
        self.endpoint = endpoint.rstrip("/")
        self.bad_request_not_ready = bad_request_not_ready
        self.logger = logger or default_logger

    def url(self, path: str, **params: Any) -> str:
        """Expand a path template against the endpoint, quoting each parameter."""
        quoted = {key: quote(str(value), safe="") for key, value in params.items()}
        return self.endpoint + path.format(**quoted)

    def call(self, method: str, path: str, payload: Any = None, **params: Any) -> httpx.Response:
        """Issue ``method`` against ``path``, JSON-encoding ``payload`` when given."""
        body = json.dumps(payload).encode() if payload is not None else None
        return self.transport.call(self.url(path, **params), method, body)
