"""The cors-execute operation: harvest cookies, then call an API as the shop would.

Lifecycle of the backing record::

    pending -> fetching_cookies -> making_api_call -> success
                      |                   |
                      +-------> error <---+
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from .config import HarvesterConfig
from .cookies import CookieJar
from .exceptions import HarvestError, TariffHarvesterError, UpstreamError
from .harvest import CookieHarvester
from .headers import NAVIGATION_HEADERS, XHR_HEADERS
from .store import (
    STATUS_ERROR,
    STATUS_FETCHING_COOKIES,
    STATUS_MAKING_API_CALL,
    STATUS_SUCCESS,
    RequestStore,
)
from .transport import build_client, send
from .urls import has_placeholder, resolve

log = logging.getLogger(__name__)


@dataclass
class ExecuteResult:
    id: int
    cookies: dict[str, str]
    api_response: Any

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "cookies": self.cookies, "apiResponse": self.api_response, "status": STATUS_SUCCESS}


def parse_api_response(response: httpx.Response) -> Any:
    """Parsed JSON for JSON responses, otherwise the raw text and content type."""
    content_type = response.headers.get("content-type")
    if content_type and "application/json" in content_type:
        return response.json()
    return {"text": response.text, "contentType": content_type or "unknown"}


class CorsExecutor:
    """Run cors-execute requests against a shared record store."""

    def __init__(
        self,
        store: RequestStore,
        config: HarvesterConfig | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.config = config or HarvesterConfig.from_env()
        self._client = client
        self._sleep = sleep

    def execute(self, main_url: str, api_url: str, journey_url: str | None = None) -> ExecuteResult:
        """Harvest cookies and make the API call, recording progress.

        Args:
            main_url: Page the caller is scraping (recorded for reference).
            api_url: API URL, may contain the session placeholder.
            journey_url: Optional URL fetched first to initialise a journey.

        Raises:
            HarvestError: If the harvest could not run.
            UpstreamError: If the journey or API call failed.
        """
        record = self.store.create(main_url, api_url, journey_url)
        log.info("cors-execute #%d: main=%s journey=%s api=%s", record.id, main_url, journey_url, api_url)

        client = self._client or build_client(self.config)
        try:
            self.store.update(record.id, status=STATUS_FETCHING_COOKIES)
            try:
                with CookieHarvester(self.config, client=client, sleep=self._sleep) as harvester:
                    jar = harvester.harvest()
            except (TariffHarvesterError, httpx.HTTPError) as e:
                message = f"Failed to fetch cookies: {e}"
                self.store.update(record.id, status=STATUS_ERROR, error=message)
                raise HarvestError(message) from e

            cookies = jar.as_dict()
            self.store.update(record.id, cookies=cookies, status=STATUS_MAKING_API_CALL)

            try:
                api_response = self._call_api(client, jar, api_url, journey_url)
            except (TariffHarvesterError, httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                message = f"API call failed: {e}"
                self.store.update(record.id, status=STATUS_ERROR, error=message)
                raise UpstreamError(message) from e
        except TariffHarvesterError:
            raise
        except Exception as e:
            # No record is left mid-phase
            message = f"cors-execute failed: {e}"
            log.exception("cors-execute #%d: %s", record.id, message)
            self.store.update(record.id, status=STATUS_ERROR, error=message)
            raise UpstreamError(message) from e
        finally:
            if self._client is None:
                client.close()

        self.store.update(record.id, response=api_response, status=STATUS_SUCCESS)
        return ExecuteResult(id=record.id, cookies=cookies, api_response=api_response)

    def _call_api(self, client: httpx.Client, jar: CookieJar, api_url: str, journey_url: str | None) -> Any:
        if has_placeholder(api_url) and not jar.platform_session_id:
            log.warning("URL requires platform session id but none was extracted")
        final_api_url = resolve(api_url, jar.platform_session_id)
        cookie_header = jar.header()

        if journey_url:
            final_journey_url = resolve(journey_url, jar.platform_session_id)
            log.info("Initializing journey at: %s", final_journey_url)
            headers = {**XHR_HEADERS, "Cookie": cookie_header, "Referer": self.config.listing_url}
            response = send(client, "GET", final_journey_url, headers)
            log.info("Journey initialization status: %d", response.status_code)
            if not response.is_success:
                raise UpstreamError(f"Journey initialization failed: {response.status_code} - {response.text}")
            log.debug("Journey response data: %s", response.text[:500])

        log.info("Making API call to: %s", final_api_url)
        response = send(client, "GET", final_api_url, {**NAVIGATION_HEADERS, "Cookie": cookie_header})
        log.info("API response status: %d", response.status_code)
        if not response.is_success:
            raise UpstreamError(
                f"API call failed with status {response.status_code}: {response.reason_phrase} - {response.text}"
            )
        return parse_api_response(response)
