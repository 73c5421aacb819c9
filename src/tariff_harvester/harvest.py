"""Cookie harvest against the shop's session endpoints.

The shop only hands out the eShop id-token cookie (which carries the
platform session id) to clients that look like a browser, and not reliably
on the first hit. The harvest therefore:

1. GETs the web-shop session endpoint with browser headers
2. GETs it again, this time with Sec-Fetch-* headers
3. Walks a fixed list of auth-flow probes, replaying the cookies gathered so
   far, with a fixed pause between probes

No step is fatal. A jar without a platform session id is a valid result.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from .config import HarvesterConfig
from .cookies import CookieJar
from .exceptions import HarvestError
from .headers import CHROME_UA_120, bootstrap_headers
from .transport import build_client, send

log = logging.getLogger(__name__)

SESSION_PATH = "/web-shop/login/auth/session"

# Markers that suggest a probe answered with token material in its body
TOKEN_MARKERS = ("eShop-auth", "id_token", "access_token")


@dataclass
class AuthProbe:
    """One auth-flow request tried during the harvest."""

    path: str
    method: str = "POST"
    body: dict[str, Any] | None = None
    accept: str | None = None
    on_listing: bool = False

    def url(self, config: HarvesterConfig) -> str:
        root = config.listing_url if self.on_listing else config.origin
        return f"{root}{self.path}"


AUTH_PROBES: list[AuthProbe] = [
    # OAuth initialisation
    AuthProbe("/oauth/authorize", method="GET", accept="text/html"),
    AuthProbe("/oauth/token", body={"grant_type": "client_credentials"}),
    # Digital API session endpoints
    AuthProbe("/api/digital/v2/anonymous-session", body={"anonymous": True}, on_listing=True),
    AuthProbe("/api/digital/v2/session", body={}, on_listing=True),
    # Guest and anonymous auth
    AuthProbe("/api/auth/guest", body={"type": "guest"}),
    AuthProbe("/api/v1/auth/anonymous", body={}),
    # eShop specific
    AuthProbe("/api/eshop/auth/init", body={}),
    AuthProbe("/eshop/auth/token", body={"type": "anonymous"}),
    # Device listing initialisation
    AuthProbe("/api/digital/v2/init", body={}, on_listing=True),
    AuthProbe("/api/digital/v2/auth/guest", body={}, on_listing=True),
]


@dataclass
class ProbeOutcome:
    """What happened to one harvest request, kept for diagnostics."""

    url: str
    method: str
    status: int | None = None
    cookies_added: int = 0
    error: str | None = None
    token_hint: bool = False


@dataclass
class HarvestReport:
    jar: CookieJar
    outcomes: list[ProbeOutcome] = field(default_factory=list)

    @property
    def platform_session_id(self) -> str | None:
        return self.jar.platform_session_id


class CookieHarvester:
    """Run the bootstrap sequence and collect cookies.

    Example:
        with CookieHarvester(HarvesterConfig.from_env()) as harvester:
            jar = harvester.harvest()
    """

    def __init__(
        self,
        config: HarvesterConfig | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        probes: list[AuthProbe] | None = None,
    ):
        """Initialize harvester.

        Args:
            config: HarvesterConfig instance. If None, loads from environment.
            client: httpx client to use. If None, one is created and owned.
            sleep: Pause function between probes (tests pass a no-op).
            probes: Auth-flow probe list, defaults to AUTH_PROBES.
        """
        self.config = config or HarvesterConfig.from_env()
        self._owns_client = client is None
        self._client = client
        self._sleep = sleep
        self.probes = AUTH_PROBES if probes is None else probes

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = build_client(self.config)
        return self._client

    def harvest(self) -> CookieJar:
        """Collect cookies and, if the shop hands it out, the platform session id."""
        return self.harvest_report().jar

    def harvest_report(self) -> HarvestReport:
        """Like harvest(), but also return per-request outcomes.

        Raises:
            HarvestError: If the configuration cannot address the target site.
        """
        problems = self.config.validate()
        if problems:
            raise HarvestError("; ".join(problems))

        report = HarvestReport(jar=CookieJar())
        session_url = f"{self.config.origin}{SESSION_PATH}"
        referer = self.config.listing_url

        log.info("Getting eShop auth cookies from %s", session_url)
        report.outcomes.append(self._bootstrap(report.jar, session_url, bootstrap_headers(referer)))
        report.outcomes.append(
            self._bootstrap(report.jar, session_url, bootstrap_headers(referer, fetch_metadata=True))
        )

        for index, probe in enumerate(self.probes):
            if index:
                self._sleep(self.config.probe_delay)
            report.outcomes.append(self._probe(report.jar, probe))

        log.info("Harvested %d cookies: %s", len(report.jar), ", ".join(report.jar.cookies))
        if report.jar.platform_session_id:
            log.info("Platform session id found: %s", report.jar.platform_session_id)
        else:
            log.warning("WARNING: platform session id not found")
        return report

    def _bootstrap(self, jar: CookieJar, url: str, headers: dict[str, str]) -> ProbeOutcome:
        """GET the session endpoint and merge its cookies into the jar."""
        outcome = ProbeOutcome(url=url, method="GET")
        try:
            response = send(self._ensure_client(), "GET", url, headers)
        except httpx.HTTPError as e:
            log.warning("eShop auth session request failed: %s", e)
            outcome.error = str(e)
            return outcome

        outcome.status = response.status_code
        log.info("eShop auth session status: %d", response.status_code)
        if not response.is_success:
            log.warning("eShop auth session failed with status %d", response.status_code)
            return outcome

        outcome.cookies_added = jar.merge_set_cookie_headers(response.headers.get_list("set-cookie"))
        return outcome

    def _probe(self, jar: CookieJar, probe: AuthProbe) -> ProbeOutcome:
        """Try one auth flow. Never raises."""
        url = probe.url(self.config)
        outcome = ProbeOutcome(url=url, method=probe.method)
        headers = {
            "User-Agent": CHROME_UA_120,
            "Accept": probe.accept or "application/json, text/plain, */*",
            "Accept-Language": "en-GB,en-US;q=0.9,en;q=0.8",
            "Accept-Encoding": "gzip, deflate, br",
            "Cookie": jar.header(),
            "DNT": "1",
            "Connection": "keep-alive",
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
            "Referer": self.config.listing_url,
            "Cache-Control": "no-cache",
        }
        body = probe.body if probe.method == "POST" else None

        log.debug("Trying %s auth flow: %s", probe.method, url)
        try:
            response = send(self._ensure_client(), probe.method, url, headers, json=body)
        except httpx.HTTPError as e:
            log.warning("Auth flow %s failed: %s", url, e)
            outcome.error = str(e)
            return outcome

        outcome.status = response.status_code
        log.debug("%s auth flow %s status: %d", probe.method, url, response.status_code)

        if response.is_success:
            text = response.text
            log.debug("Auth flow response preview: %s...", text[:200])
            if any(marker in text for marker in TOKEN_MARKERS):
                log.info("Potential auth token in response body from %s", url)
                outcome.token_hint = True

        outcome.cookies_added = jar.merge_set_cookie_headers(response.headers.get_list("set-cookie"))
        return outcome

    def close(self) -> None:
        """Close the HTTP client if this harvester created it."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "CookieHarvester":
        return self

    def __exit__(self, *args) -> None:
        self.close()
