"""Shared httpx client construction for calls to the target site."""

import logging
from typing import Any

import httpx

from .config import HarvesterConfig

log = logging.getLogger(__name__)


def build_client(config: HarvesterConfig, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Create the client used for one harvest or journey run.

    Args:
        config: Supplies the timeout.
        transport: Optional transport override (tests pass httpx.MockTransport).
    """
    return httpx.Client(follow_redirects=True, timeout=config.timeout, transport=transport)


def send(
    client: httpx.Client,
    method: str,
    url: str,
    headers: dict[str, str],
    json: Any = None,
) -> httpx.Response:
    """Send one request with exactly the given headers.

    Cookies are carried explicitly in the ``Cookie`` header by the callers,
    so the client's own jar is emptied first and never contributes.
    """
    client.cookies.clear()
    log.debug("%s %s", method, url)
    if json is not None:
        return client.request(method, url, headers=headers, json=json)
    return client.request(method, url, headers=headers)
