"""Pytest fixtures: a fake shop served through httpx.MockTransport."""

import json
from urllib.parse import quote

import httpx
import pytest

from tariff_harvester.config import HarvesterConfig

BASE_URL = "https://www.shop.test"
SESSION_ID = "s1"


def encode_token(payload: dict) -> str:
    """Encode a payload the way the shop sets its id-token cookie."""
    return quote("j:" + json.dumps(payload), safe="")


class FakeShop:
    """Minimal stand-in for the shop's session and journey endpoints.

    ``status`` overrides the status code per route key; ``bodies`` overrides
    the JSON body. Every request is kept in ``requests``.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.session_cookies = [
            "visitor=v1; Path=/; HttpOnly",
            f"eShop-auth-prod1_p_id_token={encode_token({'platformSessionId': SESSION_ID})}; Path=/; Secure",
        ]
        self.status: dict[str, int] = {}
        self.bodies: dict[str, object] = {
            "device-groups": {
                "deviceGroups": [
                    {"leadDeviceVariantId": "d0", "make": "Samsung", "model": "Galaxy"},
                    {"leadDeviceVariantId": "d1", "make": "Apple", "model": "iPhone15"},
                ]
            },
            "create-journey": {"id": "j1"},
            "latest-journey": {"id": "old"},
            "device-variants": {"variants": [{"totalDeviceCost": 1250, "minimumUpfrontPrice": 50}]},
            "prebuilt-plans": {"plans": []},
            "customer": {},
            "package": {},
            "plans": {"plans": [{"name": "Unlimited", "monthly": 40}], "filters": {"data": ["unlimited"]}},
            "page": "",
        }
        self.errors: dict[str, Exception] = {}

    def route(self, request: httpx.Request) -> str:
        path = request.url.path
        if path.endswith("/web-shop/login/auth/session"):
            return "session"
        if path.endswith("/device-groups"):
            return "device-groups"
        if path.endswith("/device-group-journeys") and request.method == "POST":
            return "create-journey"
        if path.endswith("/device-group-journeys/latest"):
            return "latest-journey"
        if path.endswith("/device-variants"):
            return "device-variants"
        if path.endswith("/plans"):
            return "prebuilt-plans" if request.url.params.get("preBuilt") == "true" else "plans"
        if path.endswith("/actions/new-or-existing-customer"):
            return "customer"
        if path.endswith("/package"):
            return "package"
        if path.startswith("/api-target"):
            return "api"
        if path.startswith("/page"):
            return "page"
        return "probe"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = self.route(request)
        if key in self.errors:
            raise self.errors[key]
        status = self.status.get(key, 404 if key == "probe" else 200)

        if key == "session":
            return httpx.Response(status, headers=[("set-cookie", c) for c in self.session_cookies], json={})
        if key == "page":
            return httpx.Response(status, text=self.bodies["page"], headers={"content-type": "text/html"})
        if key == "api":
            return httpx.Response(status, json=self.bodies.get("api", {"ok": True}))
        if key == "probe":
            return httpx.Response(status, text="not found")
        return httpx.Response(status, json=self.bodies[key])

    def requests_for(self, key: str) -> list[httpx.Request]:
        return [r for r in self.requests if self.route(r) == key]


@pytest.fixture
def config() -> HarvesterConfig:
    return HarvesterConfig(base_url=BASE_URL, probe_delay=0)


@pytest.fixture
def shop() -> FakeShop:
    return FakeShop()


@pytest.fixture
def client(shop):
    """httpx client whose every request is answered by the fake shop."""
    with httpx.Client(transport=httpx.MockTransport(shop), follow_redirects=True) as c:
        yield c


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    delays = []

    def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep
