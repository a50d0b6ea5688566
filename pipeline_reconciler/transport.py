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

"""Authenticated HTTP transport for the pipeline API."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Protocol

import httpx

from pipeline_reconciler import logger as default_logger
from pipeline_reconciler.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    HEADER_ACCEPT,
    POST_CONTENT_TYPE,
)
from pipeline_reconciler.errors import TransportError


class Transport(Protocol):
    """Anything that can issue a single request and return the raw response."""

    def call(self, url: str, method: str, body: bytes | None = None) -> httpx.Response:
        ...


class BearerAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` to every request."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


def request_auth(token: str = "", username: str = "", password: str = "") -> httpx.Auth | None:
    """Pick the authorization scheme for the configured credentials.

    A bearer token takes precedence over basic auth; basic auth is used when
    only a username is configured (the password may be empty).

    Args:
        token: API bearer token.
        username: Basic auth username.
        password: Basic auth password.

    Returns:
        The httpx auth to apply, or None to send no Authorization header.
    """
    if token:
        return BearerAuth(token)
    if username:
        return httpx.BasicAuth(username, password or "")
    return None


class HttpTransport:
    """Transport backed by an ``httpx.Client``.

    Responses are returned fully read, so the underlying connection is
    already released when :meth:`call` returns.
    """

    def __init__(
        self,
        *,
        token: str = "",
        username: str = "",
        password: str = "",
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._auth = request_auth(token, username, password)
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._logger = logger or default_logger

    def call(self, url: str, method: str, body: bytes | None = None) -> httpx.Response:
        """Issue one request.

        Args:
            url: Absolute request URL.
            method: HTTP method.
            body: Raw request body, or None.

        Returns:
            The response, body already read.

        Raises:
            TransportError: If the request cannot be built or executed.
        """
        headers = {"Accept": HEADER_ACCEPT}
        if method == "POST":
            headers["Content-Type"] = POST_CONTENT_TYPE
        try:
            request = self._client.build_request(method, url, content=body, headers=headers)
            response = self._client.send(request, auth=self._auth)
        except (httpx.HTTPError, httpx.InvalidURL) as err:
            raise TransportError(f"failed to call \"{method}\" on {url}: {err}") from err
        self._logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
