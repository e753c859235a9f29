"""Pricing Engine — the only place an order's cost is computed.

Invariants:
    - compute_cost is PURE: no IO, no config lookups, Decimal arithmetic only
    - color_units never exceeds total_units, whatever the colour selection
    - total_cost = bw_units * bw_rate + color_units * color_rate + service_fee
"""

from collections.abc import Collection
from dataclasses import dataclass
from decimal import Decimal

from campus_print.core.errors import ValidationError
from campus_print.core.page_ranges import ALL_PAGES, NO_PAGES


@dataclass(frozen=True)
class PricingRates:
    """Per-page rates and flat fee, all in the same currency unit."""
    bw_rate: Decimal
    color_rate: Decimal
    service_fee: Decimal


@dataclass(frozen=True)
class CostBreakdown:
    total_units: int
    color_units: int
    bw_units: int
    total_cost: Decimal


def compute_cost(
    total_pages: int,
    copies: int,
    color: str | Collection[int],
    rates: PricingRates,
) -> CostBreakdown:
    """Price an order. `color` is "all", "" or the resolved global colour page set."""
    if total_pages < 0:
        raise ValidationError("total_pages must be >= 0", "pageCount")
    if copies < 1:
        raise ValidationError("copies must be >= 1", "copies")

    total_units = total_pages * copies
    if color == ALL_PAGES:
        color_units = total_units
    elif color == NO_PAGES:
        color_units = 0
    elif isinstance(color, str):
        raise ValidationError(
            "colour selection must be resolved to a page set before pricing",
            "colorSpec",
        )
    else:
        color_units = min(len(color) * copies, total_units)
    bw_units = total_units - color_units

    total_cost = (
        bw_units * rates.bw_rate
        + color_units * rates.color_rate
        + rates.service_fee
    )
    return CostBreakdown(
        total_units=total_units,
        color_units=color_units,
        bw_units=bw_units,
        total_cost=total_cost,
    )
