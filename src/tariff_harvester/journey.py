"""Device purchase journey replay.

The shop only returns tariff plans for a device once its purchase journey
has been walked in order:

0. look the device up in the device-groups listing (make, model)
1. create a device-group journey (or fall back to the ``latest`` one)
2. list device variants (gives the device pricing)
3. list prebuilt plans
4. select "new customer"
5. configure the package twice (setup, then confirm)
6. list plans

Each step is described once in ``STEPS``; ``JourneyClient`` walks the table.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from .config import HarvesterConfig
from .cookies import CookieJar
from .exceptions import (
    DeviceNotFoundError,
    SessionRequiredError,
    StepFailedError,
    TariffHarvesterError,
    UpstreamError,
)
from .headers import JOURNEY_HEADERS
from .pricing import DEFAULT_MONTHLY_PRICE, DEFAULT_UPFRONT_PRICE, TERM_MONTHS, resolve_from_variants_response
from .transport import build_client, send
from .urls import PLACEHOLDER, resolve

log = logging.getLogger(__name__)

LATEST_JOURNEY = "latest"

DEVICE_GROUPS_PATH = (
    f"/device-list/paym/v3/{PLACEHOLDER}/device-groups-listing-journey/device-groups"
    "?pageNumber=0&pageSize=200&sort=priority"
)
JOURNEYS_PATH = f"/device-purchase/paym/v3/{PLACEHOLDER}/{{make}}/{{model}}/device-group-journeys"
JOURNEY_PATH = JOURNEYS_PATH + "/{journey_id}"

PACKAGE_HEADERS = {
    "X-HTTP-Method-Override": "PATCH",
    "dalHeaders": '{"Accept":"application/hal+json"}',
}


@dataclass
class JourneyContext:
    """Values gathered along the journey and threaded into later steps."""

    platform_session_id: str
    device_id: str
    make: str | None = None
    model: str | None = None
    journey_id: str | None = None
    upfront_price: Any = DEFAULT_UPFRONT_PRICE
    device_monthly_price: Any = DEFAULT_MONTHLY_PRICE

    def format_values(self) -> dict[str, str]:
        return {
            "device_id": self.device_id,
            "make": self.make or "",
            "model": self.model or "",
            "journey_id": self.journey_id or "",
        }


def _package_body(confirm: bool) -> Callable[[JourneyContext], dict[str, Any]]:
    def build(ctx: JourneyContext) -> dict[str, Any]:
        return {
            "tenure": str(TERM_MONTHS),
            "upfrontPrice": ctx.upfront_price,
            "deviceMonthlyPrice": ctx.device_monthly_price,
            "confirmConfigurator": confirm,
        }

    return build


@dataclass
class JourneyStep:
    """One upstream call in the journey."""

    name: str
    label: str
    method: str
    path: str
    requires: tuple[str, ...] = ()
    body: Callable[[JourneyContext], Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


STEPS: dict[str, JourneyStep] = {
    step.name: step
    for step in [
        JourneyStep("0", "device details", "GET", DEVICE_GROUPS_PATH, requires=("device_id",)),
        JourneyStep(
            "1",
            "create journey",
            "POST",
            JOURNEYS_PATH + "?segment=Consumer",
            requires=("make", "model"),
            body=lambda ctx: {},
        ),
        JourneyStep(
            "1-fallback",
            "latest journey",
            "GET",
            JOURNEYS_PATH + f"/{LATEST_JOURNEY}?segment=Consumer",
            requires=("make", "model"),
        ),
        JourneyStep(
            "2",
            "device variants",
            "GET",
            JOURNEY_PATH + "/device-variants",
            requires=("make", "model", "journey_id"),
        ),
        JourneyStep(
            "3",
            "prebuilt plans",
            "GET",
            JOURNEY_PATH + "/device-variants/{device_id}/plans?preBuilt=true",
            requires=("make", "model", "journey_id", "device_id"),
        ),
        JourneyStep(
            "4",
            "new or existing customer",
            "POST",
            JOURNEY_PATH + "/actions/new-or-existing-customer",
            requires=("make", "model", "journey_id"),
            body=lambda ctx: {"isExisting": False},
        ),
        JourneyStep(
            "5A",
            "package configuration",
            "POST",
            JOURNEY_PATH + "/package",
            requires=("make", "model", "journey_id", "upfront_price", "device_monthly_price"),
            body=_package_body(confirm=False),
            headers=PACKAGE_HEADERS,
        ),
        JourneyStep(
            "5B",
            "package confirmation",
            "POST",
            JOURNEY_PATH + "/package",
            requires=("make", "model", "journey_id", "upfront_price", "device_monthly_price"),
            body=_package_body(confirm=True),
            headers=PACKAGE_HEADERS,
        ),
        JourneyStep(
            "6",
            "final plans",
            "GET",
            JOURNEY_PATH + "/device-variants/{device_id}/plans",
            requires=("make", "model", "journey_id", "device_id"),
        ),
    ]
}


@dataclass
class StepRecord:
    """URL and status of one call made during the journey."""

    step: str
    method: str
    url: str
    status: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step, "method": self.method, "url": self.url, "status": self.status}


@dataclass
class TariffResult:
    """Final plan listing plus what it took to get there."""

    data: Any
    context: JourneyContext
    steps: list[StepRecord] = field(default_factory=list)

    @property
    def pricing(self) -> list[Any]:
        if isinstance(self.data, dict):
            return self.data.get("plans") or self.data.get("tariffs") or []
        return []

    @property
    def filters(self) -> dict[str, Any]:
        if isinstance(self.data, dict):
            return self.data.get("filters") or {}
        return {}


class JourneyClient:
    """Walk the purchase journey for one device and return its plans.

    Example:
        with JourneyClient(jar, config) as journey:
            result = journey.fetch_tariffs("d1")
    """

    def __init__(
        self,
        jar: CookieJar,
        config: HarvesterConfig | None = None,
        client: httpx.Client | None = None,
    ):
        """Initialize journey client.

        Args:
            jar: Harvested cookies; must carry the platform session id.
            config: HarvesterConfig instance. If None, loads from environment.
            client: httpx client to use. If None, one is created and owned.
        """
        self.jar = jar
        self.config = config or HarvesterConfig.from_env()
        self._owns_client = client is None
        self._client = client
        self.steps: list[StepRecord] = []

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = build_client(self.config)
        return self._client

    def fetch_tariffs(self, device_id: str) -> TariffResult:
        """Run steps 0-6 for a device.

        Raises:
            SessionRequiredError: If the jar has no platform session id.
            DeviceNotFoundError: If the device is not in the listing.
            StepFailedError: If any step answers non-2xx.
        """
        if not self.jar.platform_session_id:
            raise SessionRequiredError("Platform session ID required")

        self.steps = []
        ctx = JourneyContext(platform_session_id=self.jar.platform_session_id, device_id=device_id)

        self._resolve_device(ctx)
        self._open_journey(ctx)

        variants = self._json(self.run_step("2", ctx), "2")
        pricing = resolve_from_variants_response(variants)
        ctx.upfront_price = pricing.upfront_price
        ctx.device_monthly_price = pricing.monthly_price
        log.info(
            "Device pricing for %s %s: upfront %s, monthly %s",
            ctx.make,
            ctx.model,
            ctx.upfront_price,
            ctx.device_monthly_price,
        )

        for name in ("3", "4", "5A", "5B"):
            self.run_step(name, ctx)

        data = self._json(self.run_step("6", ctx), "6")
        log.info("Fetched tariff data for %s/%s", ctx.make, ctx.model)
        return TariffResult(data=data, context=ctx, steps=list(self.steps))

    def _resolve_device(self, ctx: JourneyContext) -> None:
        response = self.run_step("0", ctx, error="Failed to fetch device details: {status}")
        data = self._json(response, "0")
        groups = data.get("deviceGroups") if isinstance(data, dict) else None
        device = next(
            (g for g in groups or [] if isinstance(g, dict) and g.get("leadDeviceVariantId") == ctx.device_id),
            None,
        )
        if device is None:
            raise DeviceNotFoundError("Device not found")
        ctx.make = device.get("make")
        ctx.model = device.get("model")
        log.info("Found device: %s/%s", ctx.make, ctx.model)

    def _open_journey(self, ctx: JourneyContext) -> None:
        """Create a journey, or use the latest one when creation is unusable."""
        try:
            response = self.run_step("1", ctx, fatal=False)
        except httpx.HTTPError as e:
            log.warning("Journey creation failed: %s", e)
            response = None

        journey_id = None
        if response is not None and response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict):
                journey_id = data.get("id") or data.get("journeyId")
            if not journey_id:
                log.warning("Journey creation returned no journey id")

        if journey_id:
            ctx.journey_id = str(journey_id)
            log.info("Created journey id: %s", ctx.journey_id)
            return

        log.info("Journey creation failed, trying latest endpoint")
        latest = self.run_step("1-fallback", ctx, error="Failed to get journey: {status}")
        log.debug("Latest journey response: %s", latest.text[:400])
        ctx.journey_id = LATEST_JOURNEY

    def build_url(self, step: JourneyStep, ctx: JourneyContext) -> str:
        """Fill a step's URL template from the context and session id."""
        missing = [key for key in step.requires if getattr(ctx, key) in (None, "")]
        if missing:
            raise TariffHarvesterError(f"Step {step.name} is missing {', '.join(missing)}")
        template = self.config.digital_api_url + step.path.format(**ctx.format_values())
        return resolve(template, ctx.platform_session_id)

    def run_step(
        self,
        name: str,
        ctx: JourneyContext,
        fatal: bool = True,
        error: str = "Step {step} failed: {status}",
    ) -> httpx.Response:
        """Send one step and record it.

        Args:
            name: Key into STEPS.
            ctx: Journey context supplying URL values and bodies.
            fatal: Raise StepFailedError on a non-2xx answer.
            error: Message template for StepFailedError.
        """
        step = STEPS[name]
        url = self.build_url(step, ctx)
        headers = {**JOURNEY_HEADERS, "Cookie": self.jar.header(), **step.headers}
        body = step.body(ctx) if step.body else None

        record = StepRecord(step=name, method=step.method, url=url)
        self.steps.append(record)
        log.info("Step %s (%s): %s %s", name, step.label, step.method, url)

        response = send(self._ensure_client(), step.method, url, headers, json=body)
        record.status = response.status_code

        if fatal and not response.is_success:
            log.debug("Step %s error body: %s", name, response.text[:500])
            raise StepFailedError(name, response.status_code, error.format(step=name, status=response.status_code))
        return response

    @staticmethod
    def _json(response: httpx.Response, step: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Step {step} returned invalid JSON: {e}") from e

    def close(self) -> None:
        """Close the HTTP client if this journey client created it."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "JourneyClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
