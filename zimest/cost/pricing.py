"""PricingProvider interface, seed-data and injected-price providers.

The engine never fetches prices.  Callers inject current unit prices through
:class:`StaticProvider`; :class:`LocalProvider` serves the embedded survey.
Local-currency prices are always USD times an injected exchange rate.
"""

from __future__ import annotations

import abc
import logging
import math
from collections.abc import Mapping
from typing import Any

from zimest.cost.seed_data import MATERIALS, SEED_PRICES, SOURCE

logger = logging.getLogger(__name__)


class UnitPrice:
    """USD and local-currency price for one purchase unit of a material."""

    def __init__(
        self,
        material_id: str,
        price_usd: float,
        price_local: float,
        unit: str = "",
        source: str = "",
    ) -> None:
        self.material_id = material_id
        self.price_usd = price_usd
        self.price_local = price_local
        self.unit = unit
        self.source = source

    def to_dict(self) -> dict[str, Any]:
        return {
            "material_id": self.material_id,
            "price_usd": self.price_usd,
            "price_local": self.price_local,
            "unit": self.unit,
            "source": self.source,
        }


class PricingProvider(abc.ABC):
    """Abstract pricing provider."""

    @abc.abstractmethod
    def get_price_usd(self, material_id: str) -> float | None:
        """Return the USD unit price for a material, or None if unknown."""

    @property
    def source(self) -> str:
        return ""

    def get_unit_price(self, material_id: str, exchange_rate: float) -> UnitPrice:
        """Resolve a unit price; unknown or invalid prices resolve to zero."""
        price = _non_negative(self.get_price_usd(material_id))
        if price is None:
            logger.debug("No price for %s, pricing at zero", material_id)
            price = 0.0
        return UnitPrice(
            material_id=material_id,
            price_usd=price,
            price_local=price * exchange_rate,
            unit=MATERIALS.get(material_id, {}).get("unit", ""),
            source=self.source,
        )


class LocalProvider(PricingProvider):
    """Pricing from embedded seed data.  Always available."""

    def get_price_usd(self, material_id: str) -> float | None:
        return SEED_PRICES.get(material_id)

    @property
    def source(self) -> str:
        return SOURCE


class StaticProvider(PricingProvider):
    """Pricing from a caller-supplied ``{material_id: usd}`` mapping.

    Parameters
    ----------
    prices:
        Current unit prices in USD.
    fallback:
        Optional provider consulted for materials missing from ``prices``.
    """

    def __init__(
        self,
        prices: Mapping[str, Any],
        fallback: PricingProvider | None = None,
        source: str = "injected",
    ) -> None:
        self.prices = dict(prices)
        self.fallback = fallback
        self._source = source

    def get_price_usd(self, material_id: str) -> float | None:
        price = _non_negative(self.prices.get(material_id))
        if price is None and self.fallback is not None:
            return self.fallback.get_price_usd(material_id)
        return price

    @property
    def source(self) -> str:
        return self._source


def _non_negative(value: Any) -> float | None:
    if value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def scale_local_price(
    actual_usd: float,
    average_usd: float,
    average_local: float,
    exchange_rate: float,
) -> float:
    """Local price for ``actual_usd``.

    Scales the known average local price by the USD ratio when both averages
    are set, else converts at ``exchange_rate``.
    """
    if average_usd and average_local:
        return (actual_usd / average_usd) * average_local
    return actual_usd * exchange_rate


def calculate_variance(average_usd: float, actual_usd: float) -> tuple[float, float | None]:
    """Return (variance, variance percent); percent is None without an average."""
    variance = actual_usd - average_usd
    variance_pct = (variance / average_usd) * 100 if average_usd else None
    return variance, variance_pct


def apply_average_price_update(
    item: Mapping[str, Any],
    average_usd: float,
    average_local: float,
    exchange_rate: float,
) -> dict[str, float]:
    """Move an item's prices onto a new market average.

    ``item`` carries ``average_price_usd`` and ``actual_price_usd``.  An
    actual price that still equals the old average follows the new average;
    an edited actual price is kept.  The local actual price is rescaled.

    Returns dict with: average_price_usd, average_price_local,
    actual_price_usd, actual_price_local.
    """
    actual_usd = item.get("actual_price_usd", 0.0)
    if actual_usd == item.get("average_price_usd", 0.0):
        actual_usd = average_usd

    return {
        "average_price_usd": average_usd,
        "average_price_local": average_local,
        "actual_price_usd": actual_usd,
        "actual_price_local": scale_local_price(actual_usd, average_usd, average_local, exchange_rate),
    }
