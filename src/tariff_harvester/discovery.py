"""Candidate API endpoint discovery from a shop page.

Pure heuristics: the page HTML and inline scripts are scanned with a set of
regular expressions, and URL-ish tag attributes are collected with
BeautifulSoup. The output is a list for an operator to review, not something
the harvester consumes.
"""

import logging
import re
from dataclasses import dataclass, field

import httpx
from bs4 import BeautifulSoup

from .config import HarvesterConfig
from .headers import NAVIGATION_HEADERS
from .transport import build_client, send

log = logging.getLogger(__name__)

SKIP_MARKERS = (".css", ".js", ".png", ".jpg", ".gif", ".svg", "google", "facebook", "twitter", "linkedin")
API_MARKERS = ("api", "digital", "content", "eshop", "auth", "session")

# Attributes whose values are worth treating as URLs
URL_ATTRIBUTES = ("href", "action", "data-url", "data-endpoint", "data-api-url", "data-src")


def _patterns(site: str) -> list[re.Pattern]:
    site = re.escape(site)
    return [
        # Direct API paths
        re.compile(r"""["']([^"']*/api/[^"'?\s]+(?:\?[^"'\s]*)?)"""),
        re.compile(r"""["']([^"']*/digital/[^"'?\s]+)"""),
        re.compile(r"""["']([^"']*/content-service/[^"'?\s]+)"""),
        re.compile(r"""["']([^"']*/eshop/[^"'?\s]+)"""),
        re.compile(r"""["']([^"']*/auth/[^"'?\s]+)"""),
        re.compile(r"""["']([^"']*/session/[^"'?\s]+)"""),
        # Absolute site URLs
        re.compile(rf"""["'](https?://[^"']*{site}[^"']*/[^"']*(?:api|digital|content|eshop|auth)[^"'?\s]*(?:\?[^"'\s]*)?)"""),
        # Relative API paths under the shop
        re.compile(r"""["']([./]*mobile/[^"']*(?:api|digital|content|eshop|auth)/[^"'?\s]*(?:\?[^"'\s]*)?)"""),
        # Variable assignments
        re.compile(rf"""(?:url|endpoint|apiUrl|baseUrl)\s*[:=]\s*["']([^"']+{site}[^"']*)""", re.IGNORECASE),
        # fetch / axios / jQuery / generic verb calls
        re.compile(r"""fetch\s*\(\s*["']([^"']+)"""),
        re.compile(r"""axios\.[^(]+\(\s*["']([^"']+)"""),
        re.compile(r"""\$\.ajax\s*\([^)]*url\s*:\s*["']([^"']+)"""),
        re.compile(r"""(?:get|post|put|delete|patch)\s*\(\s*["']([^"']+)""", re.IGNORECASE),
        # Config objects
        re.compile(r"""apiConfig\s*[:=]\s*{[^}]*["']([^"']+)""", re.IGNORECASE),
        # Template literals
        re.compile(r"""`([^`]*/(?:api|digital|content|eshop|auth)/[^`]*)`"""),
    ]


@dataclass
class DiscoveryResult:
    page_url: str
    endpoints: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "pageUrl": self.page_url,
            "endpoints": self.endpoints,
            "totalEndpoints": len(self.endpoints),
        }


class EndpointDiscoverer:
    """Fetch a page and list the target-site URLs that look like APIs."""

    def __init__(self, config: HarvesterConfig | None = None, client: httpx.Client | None = None):
        self.config = config or HarvesterConfig.from_env()
        self._client = client
        self.site_domain = self.config.hostname.removeprefix("www.")
        self._patterns = _patterns(self.site_domain.split(".")[0])

    def discover(self, page_url: str) -> DiscoveryResult:
        """Fetch ``page_url`` and extract candidate endpoints.

        Raises:
            httpx.HTTPError: If the page cannot be fetched.
        """
        log.info("Discovering API endpoints for: %s", page_url)
        client = self._client or build_client(self.config)
        try:
            response = send(client, "GET", page_url, NAVIGATION_HEADERS)
        finally:
            if self._client is None:
                client.close()

        endpoints = self.extract(response.text)
        log.info("Found %d potential API endpoints", len(endpoints))
        for index, endpoint in enumerate(endpoints, 1):
            log.debug("%d. %s", index, endpoint)
        return DiscoveryResult(page_url=page_url, endpoints=endpoints)

    def extract(self, page: str) -> list[str]:
        """Sorted, de-duplicated candidate endpoints found in page content."""
        candidates = []
        for pattern in self._patterns:
            candidates.extend(match.group(1) for match in pattern.finditer(page))
        candidates.extend(self._attribute_urls(page))

        found = set()
        for candidate in candidates:
            endpoint = self.normalize(candidate)
            if endpoint:
                found.add(endpoint)
        return sorted(found)

    def _attribute_urls(self, page: str) -> list[str]:
        soup = BeautifulSoup(page, "html.parser")
        urls = []
        for tag in soup.find_all(True):
            for attr in URL_ATTRIBUTES:
                value = tag.get(attr)
                if isinstance(value, str) and value:
                    urls.append(value)
        return urls

    def normalize(self, candidate: str) -> str | None:
        """Make a candidate absolute and keep it only if it is a site API URL."""
        endpoint = candidate.strip()
        if any(marker in endpoint for marker in SKIP_MARKERS):
            return None

        if endpoint.startswith("/"):
            endpoint = f"{self.config.origin}{endpoint}"
        elif endpoint.startswith("./") or endpoint.startswith("../"):
            endpoint = f"{self.config.listing_url}/{endpoint.removeprefix('./')}"

        if self.site_domain not in endpoint:
            return None
        if not any(marker in endpoint for marker in API_MARKERS):
            return None
        return endpoint
