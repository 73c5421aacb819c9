"""Device pricing extraction from a device-variants payload.

The variants endpoint has shipped several field layouts, so each price is
looked up through an ordered list of candidate accessors. A field counts as
present when it holds a value, so a price of 0 wins over later candidates;
JSON null is treated as absent.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

log = logging.getLogger(__name__)

DEFAULT_UPFRONT_PRICE = 50
DEFAULT_MONTHLY_PRICE = 29
TERM_MONTHS = 36

Accessor = Callable[[dict[str, Any]], Any]


def field_accessor(name: str) -> Accessor:
    """Accessor returning ``variant[name]``, or None when absent."""

    def _get(variant: dict[str, Any]) -> Any:
        return variant.get(name)

    _get.__name__ = name
    return _get


UPFRONT_ACCESSORS: list[Accessor] = [
    field_accessor(name) for name in ("minimumUpfrontPrice", "upfrontPrice", "minUpfront", "upfront")
]
TOTAL_COST_ACCESSORS: list[Accessor] = [
    field_accessor(name) for name in ("totalDeviceCost", "deviceCost", "totalCost", "cost", "price")
]
MONTHLY_ACCESSORS: list[Accessor] = [
    field_accessor(name) for name in ("deviceMonthlyPrice", "monthlyPrice", "monthly")
]


@dataclass
class DevicePricing:
    upfront_price: Any = DEFAULT_UPFRONT_PRICE
    monthly_price: Any = DEFAULT_MONTHLY_PRICE
    upfront_source: str | None = None
    monthly_source: str | None = None


def first_present(variant: dict[str, Any], accessors: list[Accessor]) -> tuple[str, Any] | None:
    """Return (accessor name, value) for the first accessor that finds a value."""
    for accessor in accessors:
        value = accessor(variant)
        if value is not None:
            return accessor.__name__, value
    return None


def round_pence(amount: float) -> float:
    """Round to two decimals, halves away from zero upwards (``Math.round``)."""
    return math.floor(amount * 100 + 0.5) / 100


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def monthly_from_total(total_cost: float, upfront_price: float) -> float:
    return round_pence((total_cost - upfront_price) / TERM_MONTHS)


def resolve_pricing(variant: dict[str, Any] | None) -> DevicePricing:
    """Resolve upfront and monthly device price from one variant.

    Args:
        variant: First element of the ``variants`` array, or None.

    Returns:
        DevicePricing, always populated (defaults 50 / 29).
    """
    pricing = DevicePricing()
    if not isinstance(variant, dict):
        log.info("No variants found, using default pricing")
        return pricing

    log.debug("Variant keys: %s", list(variant))

    found = first_present(variant, UPFRONT_ACCESSORS)
    if found:
        pricing.upfront_source, pricing.upfront_price = found
    else:
        log.info("No upfront price found in variant")

    found = first_present(variant, TOTAL_COST_ACCESSORS)
    if found and _is_number(found[1]) and _is_number(pricing.upfront_price):
        name, total_cost = found
        pricing.monthly_price = monthly_from_total(total_cost, pricing.upfront_price)
        pricing.monthly_source = name
        log.debug(
            "Monthly price from %s: %s (total %s - upfront %s) / %d",
            name,
            pricing.monthly_price,
            total_cost,
            pricing.upfront_price,
            TERM_MONTHS,
        )
    else:
        if found:
            log.warning("Cost field %s is not numeric: %r", found[0], found[1])
        found = first_present(variant, MONTHLY_ACCESSORS)
        if found:
            pricing.monthly_source, pricing.monthly_price = found
        else:
            log.info("No monthly price found in variant")

    return pricing


def resolve_from_variants_response(data: Any) -> DevicePricing:
    """Pick the first variant out of a device-variants response and resolve it."""
    variants = data.get("variants") if isinstance(data, dict) else None
    if isinstance(variants, list) and variants:
        return resolve_pricing(variants[0])
    return resolve_pricing(None)
