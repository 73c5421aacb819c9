"""JSON API exposing discovery, cors-execute and tariff fetching."""

import logging
import time
from typing import Callable

import httpx
from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from .config import HarvesterConfig
from .cookies import CookieJar
from .discovery import EndpointDiscoverer
from .exceptions import StepFailedError, TariffHarvesterError
from .execute import CorsExecutor
from .journey import JourneyClient
from .models import CorsExecuteRequest, DiscoverRequest, FetchTariffsRequest
from .store import RequestStore

log = logging.getLogger(__name__)


def _validation_error(e: ValidationError):
    return jsonify({"error": "Invalid request data", "details": e.errors(include_url=False)}), 400


def create_app(
    config: HarvesterConfig | None = None,
    store: RequestStore | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Flask:
    """Build the Flask app.

    Args:
        config: HarvesterConfig instance. If None, loads from environment.
        store: Record store shared by all requests. If None, a new one.
        client: httpx client for upstream calls (tests pass a mocked one).
        sleep: Pause function used between harvest probes.
    """
    config = config or HarvesterConfig.from_env()
    store = store if store is not None else RequestStore()

    app = Flask(__name__)
    CORS(app)
    app.config["HARVESTER_CONFIG"] = config
    app.config["REQUEST_STORE"] = store

    executor = CorsExecutor(store, config, client=client, sleep=sleep)

    @app.post("/api/discover-endpoints")
    def discover_endpoints():
        try:
            body = DiscoverRequest.model_validate(request.get_json(silent=True) or {})
        except ValidationError as e:
            return _validation_error(e)

        try:
            result = EndpointDiscoverer(config, client=client).discover(body.main_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.error("Error discovering endpoints: %s", e)
            return jsonify({"error": "Failed to discover endpoints", "details": str(e)}), 500
        return jsonify(result.to_dict())

    @app.post("/api/cors-execute")
    def cors_execute():
        try:
            body = CorsExecuteRequest.model_validate(request.get_json(silent=True) or {})
        except ValidationError as e:
            return _validation_error(e)

        try:
            result = executor.execute(body.main_url, body.api_url, body.journey_url)
        except TariffHarvesterError as e:
            log.error("cors-execute failed: %s", e)
            return jsonify({"error": str(e)}), 500
        return jsonify(result.to_dict())

    @app.get("/api/cors-request/<int:record_id>")
    def cors_request(record_id: int):
        record = store.get(record_id)
        if record is None:
            return jsonify({"error": "Request not found"}), 404
        return jsonify(record.to_dict())

    @app.post("/api/fetch-tariffs")
    def fetch_tariffs():
        try:
            body = FetchTariffsRequest.model_validate(request.get_json(silent=True) or {})
        except ValidationError as e:
            return _validation_error(e)

        log.info("Fetching tariffs for device %s (capacity %s)", body.device_id, body.capacity)
        journey = JourneyClient(CookieJar.from_dict(body.cookies), config, client=client)
        try:
            with journey:
                result = journey.fetch_tariffs(body.device_id)
        except (TariffHarvesterError, httpx.HTTPError) as e:
            log.error("Error fetching tariffs: %s", e)
            step = e.step if isinstance(e, StepFailedError) else None
            return (
                jsonify({"error": str(e), "success": False, "debug": {"error": str(e), "step": step}}),
                500,
            )

        ctx = result.context
        return jsonify(
            {
                "success": True,
                "data": result.data,
                "pricing": result.pricing,
                "filters": result.filters,
                "metadata": {
                    "deviceId": body.device_id,
                    "capacity": body.capacity,
                    "make": ctx.make,
                    "model": ctx.model,
                    "journeyId": ctx.journey_id,
                    "upfrontPrice": ctx.upfront_price,
                    "deviceMonthlyPrice": ctx.device_monthly_price,
                    "steps": [step.to_dict() for step in result.steps],
                },
            }
        )

    return app
