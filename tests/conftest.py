"""
Shared pytest fixtures for pipeline_reconciler tests.

This module provides:
- FakeApi: an in-memory pipeline API served through httpx.MockTransport
- Spec fixtures for a minimal amazon cluster and a deployment
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.models import (
    AmazonMaster,
    AmazonNodePool,
    AmazonProperties,
    ClusterSpec,
    DeploymentSpec,
)
from pipeline_reconciler.transport import HttpTransport

ENDPOINT = "http://pipeline.test/api/v1"

ORGS_RESPONSE = [
    {"id": 1, "createdAt": "2018-04-11T13:58:55Z", "updatedAt": "2018-04-11T13:58:55Z", "name": "org1"},
    {"id": 2, "githubId": 32848483, "createdAt": "2018-04-11T13:58:55Z", "name": "org2"},
]


# =============================================================================
# Fake pipeline API
# =============================================================================

@dataclass
class Canned:
    """A response to build for a matched request."""
    status: int
    body: Any = None

    def build(self) -> httpx.Response:
        if self.body is None:
            return httpx.Response(self.status)
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status, content=self.body)
        return httpx.Response(self.status, json=self.body)


@dataclass
class FakeApi:
    """
    Serve canned responses per (method, path) and record every request.

    Paths are relative to ENDPOINT and include the query string, e.g.
    ``/orgs/1/clusters/demo?field=name``. Each route holds a queue of
    responses; the last one repeats once the queue is drained.

    Usage:
        def test_probe(fake_api, client):
            fake_api.add("HEAD", "/orgs/1/clusters/demo?field=name", 404, 200)
            ...
            assert fake_api.count("HEAD") == 2
    """
    routes: Dict[Tuple[str, str], List[Canned]] = field(default_factory=dict)
    requests: List[httpx.Request] = field(default_factory=list)

    def add(self, method: str, path: str, *responses: Any) -> "FakeApi":
        queue = self.routes.setdefault((method, path), [])
        for response in responses:
            if isinstance(response, int):
                response = Canned(response)
            elif isinstance(response, tuple):
                response = Canned(*response)
            queue.append(response)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, self.path_of(request))
        queue = self.routes.get(key)
        if not queue:
            raise AssertionError(f"unexpected request {key}")
        canned = queue.pop(0) if len(queue) > 1 else queue[0]
        return canned.build()

    @staticmethod
    def path_of(request: httpx.Request) -> str:
        base = httpx.URL(ENDPOINT).raw_path.decode()
        return request.url.raw_path.decode()[len(base):]

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if (method is None or r.method == method) and (path is None or self.path_of(r) == path)
        ]

    def count(self, method: Optional[str] = None, path: Optional[str] = None) -> int:
        return len(self.calls(method, path))

    def json_body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def test_logger():
    return logging.getLogger("pipeline_reconciler.tests")


@pytest.fixture
def make_transport(fake_api, test_logger):
    def _make(**auth):
        http = httpx.Client(transport=httpx.MockTransport(fake_api.handler))
        return HttpTransport(client=http, logger=test_logger, **auth)
    return _make


@pytest.fixture
def client(make_transport, test_logger):
    return PipelineClient(make_transport(token="secret-token"), ENDPOINT, logger=test_logger)


# =============================================================================
# Spec fixtures
# =============================================================================

def amazon_cluster(name: str = "demo", state: str = "created") -> ClusterSpec:
    return ClusterSpec(
        name=name,
        location="eu-west-1",
        secret_id="secret-1",
        state=state,
        properties=AmazonProperties(
            node_pools={"default-node-pool": AmazonNodePool(instance_type="m4.xlarge", spot_price="0.2")},
            master=AmazonMaster(instance_type="m4.xlarge"),
        ),
    )


@pytest.fixture
def cluster_spec():
    return amazon_cluster()


@pytest.fixture
def deployment_spec():
    return DeploymentSpec(name="stable/nginx", release_name="web", values={"replicaCount": 2})
