"""Registry reachability probe (httpx).

Why a wrapper:
- Standardizes timeouts and headers for the one HTTP call the tool makes.
- Easy to substitute with `httpx.MockTransport` in tests.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create an `httpx.Client` with sane defaults."""

    settings = settings or AppSettings()
    return httpx.Client(
        timeout=httpx.Timeout(settings.registry_probe_timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": "buildrelay/0.1", "Accept": "application/json"},
        transport=transport,
    )


def registry_api_url(registry: str) -> str:
    registry = registry.strip().rstrip("/")
    if registry.startswith(("http://", "https://")):
        return f"{registry}/v2/"
    return f"https://{registry}/v2/"


def probe_registry(
    registry: str,
    *,
    settings: AppSettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> tuple[bool, str]:
    """Check that the registry speaks the Docker Registry v2 API.

    200 and 401 both count as reachable: 401 just means auth is required.
    """

    if not registry:
        return False, "No registry configured"
    url = registry_api_url(registry)
    try:
        with build_client(settings, transport=transport) as client:
            response = client.get(url)
    except httpx.HTTPError as exc:
        return False, f"{url}: {exc}"
    ok = response.status_code in (200, 401)
    return ok, f"{url} -> HTTP {response.status_code}"
