"""CostEngine — main entry point for BOQ generation and stage budgeting.

Usage::

    from zimest.cost import CostEngine

    engine = CostEngine(exchange_rate=28.5)
    items = engine.generate({"floorArea": 96, "scope": ["roofing"]})
    totals = engine.totals(items)
    reach = engine.estimate_stage_reach({"budgetUsd": 12000, "floorAreaM2": 96})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from zimest.config import DEFAULT_EXCHANGE_RATE, EngineSettings, load_settings
from zimest.cost.assumptions import normalize_location_type
from zimest.cost.estimator import safe_float
from zimest.cost.generator import generate_boq
from zimest.cost.models import GeneratedBOQItem, ManualBuilderConfig
from zimest.cost.pricing import LocalProvider, PricingProvider
from zimest.cost.report import BOQTotals, calculate_totals
from zimest.cost.stages import StageReachInput, StageReachResult, estimate_stage_reach

logger = logging.getLogger(__name__)


class CostEngine:
    """BOQ and stage budget engine.

    Parameters
    ----------
    provider:
        Pricing provider.  Defaults to LocalProvider (embedded seed data).
    exchange_rate:
        Local currency units per USD.  Defaults to the configured rate.
    location_type:
        Location class used when a request omits one.  Defaults to urban.
    """

    def __init__(
        self,
        provider: PricingProvider | None = None,
        exchange_rate: float | None = None,
        location_type: Any = None,
    ) -> None:
        self.provider = provider or LocalProvider()
        self.exchange_rate = safe_float(exchange_rate, DEFAULT_EXCHANGE_RATE)
        self.location_type = normalize_location_type(location_type)

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        provider: PricingProvider | None = None,
    ) -> CostEngine:
        return cls(
            provider=provider,
            exchange_rate=settings.exchange_rate,
            location_type=settings.default_location,
        )

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, str] | None = None,
        *,
        project_path: str | Path | None = None,
        provider: PricingProvider | None = None,
    ) -> CostEngine:
        """Build an engine from a flat config mapping, or from the layered loader."""
        if config is not None:
            settings = EngineSettings.from_config(dict(config))
        else:
            settings = load_settings(project_path)
        return cls.from_settings(settings, provider=provider)

    def generate(self, config: ManualBuilderConfig | Mapping[str, Any]) -> list[GeneratedBOQItem]:
        """Generate priced BOQ items for a building."""
        return generate_boq(
            self._with_location(config),
            provider=self.provider,
            exchange_rate=self.exchange_rate,
        )

    def totals(self, items: Iterable[GeneratedBOQItem]) -> BOQTotals:
        return calculate_totals(items)

    def estimate_stage_reach(self, data: StageReachInput | Mapping[str, Any]) -> StageReachResult:
        """Estimate how far a budget reaches through the build."""
        return estimate_stage_reach(
            self._with_location(data),
            provider=self.provider,
            exchange_rate=self.exchange_rate,
        )

    def _with_location(self, data: Any) -> Any:
        """Fill in the engine's location class when the request has none."""
        if isinstance(data, BaseModel):
            if "location_type" in data.model_fields_set:
                return data
            return data.model_copy(update={"location_type": self.location_type})
        if isinstance(data, Mapping):
            if data.get("location_type") is not None or data.get("locationType") is not None:
                return data
            filled = {k: v for k, v in data.items() if k not in ("location_type", "locationType")}
            filled["location_type"] = self.location_type.value
            return filled
        return data
