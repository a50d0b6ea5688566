"""
Tests for readiness probes: the shared status mapping and the three
resource-specific probes.
"""

import pytest

from pipeline_reconciler.client import PipelineClient
from pipeline_reconciler.errors import UnexpectedStatusError
from pipeline_reconciler.probes import (
    Readiness,
    classify_status,
    cluster_readiness,
    deployment_readiness,
    helm_readiness,
)

from conftest import ENDPOINT

CLUSTER = "/orgs/1/clusters/demo?field=name"
HELM = "/orgs/1/clusters/demo/deployments?field=name"
DEPLOYMENT = "/orgs/1/clusters/demo/deployments/web?field=name"


@pytest.mark.parametrize(
    "status,expected",
    [
        (200, Readiness.READY),
        (404, Readiness.NOT_FOUND),
        (204, Readiness.NOT_READY),
        (503, Readiness.NOT_READY),
        (400, Readiness.NOT_READY),
    ],
)
def test_classify_recognized_status(status, expected):
    assert classify_status(status) is expected


@pytest.mark.parametrize("status", [201, 202, 301, 401, 403, 409, 500, 502])
def test_classify_unrecognized_status(status):
    assert classify_status(status) is None


def test_bad_request_mapping_can_be_disabled():
    assert classify_status(400, bad_request_not_ready=False) is None


@pytest.mark.parametrize(
    "probe,path",
    [
        (lambda c: cluster_readiness(c, 1, "demo"), CLUSTER),
        (lambda c: helm_readiness(c, 1, "demo"), HELM),
        (lambda c: deployment_readiness(c, 1, "demo", "web"), DEPLOYMENT),
    ],
    ids=["cluster", "helm", "deployment"],
)
class TestProbes:
    def test_uses_head_on_resource_url(self, fake_api, client, probe, path):
        fake_api.add("HEAD", path, 200)

        assert probe(client) is Readiness.READY
        assert fake_api.count("HEAD", path) == 1

    def test_not_ready_sequence(self, fake_api, client, probe, path):
        fake_api.add("HEAD", path, 404, 204, 503, 400, 200)

        observed = [probe(client) for _ in range(5)]

        assert observed == [
            Readiness.NOT_FOUND,
            Readiness.NOT_READY,
            Readiness.NOT_READY,
            Readiness.NOT_READY,
            Readiness.READY,
        ]

    def test_unrecognized_status_is_fatal(self, fake_api, client, probe, path):
        fake_api.add("HEAD", path, 500)

        with pytest.raises(UnexpectedStatusError) as excinfo:
            probe(client)

        assert excinfo.value.status == 500
        assert excinfo.value.method == "HEAD"
        assert excinfo.value.url == ENDPOINT + path


def test_bad_request_fatal_when_disabled(fake_api, make_transport, test_logger):
    strict = PipelineClient(make_transport(), ENDPOINT, bad_request_not_ready=False, logger=test_logger)
    fake_api.add("HEAD", CLUSTER, 400)

    with pytest.raises(UnexpectedStatusError):
        cluster_readiness(strict, 1, "demo")


def test_names_are_quoted_in_urls(fake_api, client):
    fake_api.add("HEAD", "/orgs/1/clusters/demo/deployments/my%2Frelease?field=name", 404)

    assert deployment_readiness(client, 1, "demo", "my/release") is Readiness.NOT_FOUND
