"""Fetch incident lists and catalog snapshots from an upstream HTTP provider."""

import logging

import httpx

from relief.config import PROVIDER_TIMEOUT

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Upstream provider unreachable or returned an unusable payload."""


def fetch_json(url: str, client: httpx.Client | None = None):
    """GET a JSON document. A client can be injected (tests use MockTransport)."""
    try:
        if client is not None:
            resp = client.get(url)
        else:
            resp = httpx.get(url, timeout=PROVIDER_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Provider fetch failed for %s: %s", url, e)
        raise ProviderError(f"Failed to fetch {url}: {e}") from e


def fetch_incidents(url: str, client: httpx.Client | None = None) -> list[dict]:
    """Accepts either a bare list or {"incidents": [...]}."""
    data = fetch_json(url, client)
    if isinstance(data, dict):
        data = data.get("incidents")
    if not isinstance(data, list):
        raise ProviderError(f"Incident payload from {url} is not a list")
    return data


def fetch_catalog(url: str, client: httpx.Client | None = None) -> dict:
    data = fetch_json(url, client)
    if not isinstance(data, dict):
        raise ProviderError(f"Catalog payload from {url} is not an object")
    return data
