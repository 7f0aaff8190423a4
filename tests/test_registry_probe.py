from __future__ import annotations

import httpx
import pytest

from adapters.registry_probe import probe_registry, registry_api_url


def _transport(status: int) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v2/"
        return httpx.Response(status)

    return httpx.MockTransport(handler)


@pytest.mark.parametrize(("status", "ok"), [(200, True), (401, True), (404, False), (503, False)])
def test_probe_status_codes(status, ok):
    reachable, detail = probe_registry("registry.example.com", transport=_transport(status))

    assert reachable is ok
    assert f"HTTP {status}" in detail


def test_probe_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    reachable, detail = probe_registry("registry.example.com", transport=httpx.MockTransport(handler))

    assert not reachable
    assert "refused" in detail


def test_no_registry():
    assert probe_registry("") == (False, "No registry configured")


def test_api_url():
    assert registry_api_url("reg.local:5000") == "https://reg.local:5000/v2/"
    assert registry_api_url("http://reg.local/") == "http://reg.local/v2/"
