"""
Tests for response helpers, secrets selection, and config decoding.
"""

import httpx
import pytest

from pipeline_reconciler.utils import (
    decode_config_data,
    expand_plugin_secrets,
    plugin_secrets,
    response_message,
    unexpected_status,
)


def _response(status, **kwargs):
    request = httpx.Request("POST", "http://pipeline.test/api/v1/orgs/1/clusters")
    return httpx.Response(status, request=request, **kwargs)


@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({"json": {"message": "name taken"}}, "name taken"),
        ({"json": {"error": "bad request"}}, "bad request"),
        ({"json": {"code": 400}}, '{"code":400}'),
        ({"content": b"  plain failure \n"}, "plain failure"),
        ({}, ""),
    ],
)
def test_response_message(kwargs, expected):
    assert response_message(_response(400, **kwargs)).replace(" ", "") == expected.replace(" ", "")


def test_unexpected_status_carries_request():
    err = unexpected_status(_response(500), "failed to create cluster demo")

    assert err.method == "POST"
    assert err.status == 500
    assert str(err) == (
        "failed to create cluster demo: unexpected status 500 for POST "
        "http://pipeline.test/api/v1/orgs/1/clusters"
    )


def test_plugin_secrets_excludes_endpoint():
    environ = {
        "PLUGIN_DB_PASSWORD": "pw",
        "MY_PLUGIN_KEY": "k",
        "PLUGIN_ENDPOINT": "http://pipeline.test",
        "ENDPOINT": "http://pipeline.test",
        "HOME": "/root",
    }

    assert plugin_secrets(environ) == {"PLUGIN_DB_PASSWORD": "pw", "MY_PLUGIN_KEY": "k"}


def test_expand_leaves_unknown_placeholders():
    raw = '{"a": "${PLUGIN_A}", "b": "${PLUGIN_B}", "c": "$$"}'

    assert expand_plugin_secrets(raw, {"PLUGIN_A": "1"}) == '{"a": "1", "b": "${PLUGIN_B}", "c": "$"}'


@pytest.mark.parametrize(
    "data,expected",
    [
        ("YXBpVmVyc2lvbjogdjE=", b"apiVersion: v1"),
        ("YXBpVmVy\nc2lvbjog\r\ndjE=\n", b"apiVersion: v1"),
        ("apiVersion: v1\nkind: Config\n", b"apiVersion: v1\nkind: Config\n"),
    ],
    ids=["base64", "wrapped-base64", "plain"],
)
def test_decode_config_data(data, expected):
    assert decode_config_data(data) == expected
