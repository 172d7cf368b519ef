"""
Pricing - required hours and price for a cleaning job.

The pricing configuration comes from the backend as key/value rows and is
fetched once per PricingConfigCache. Concurrent callers share one fetch.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_MIN_HOURS = 3.0
HOUR_STEP = 0.5


@dataclass(frozen=True)
class PricingConfig:
    time_per_10m2: float = 0.0  # minutes
    time_per_toilet: float = 0.0  # minutes
    time_per_bathroom: float = 0.0  # minutes
    price_per_hour: float = 0.0
    min_hours: float = DEFAULT_MIN_HOURS

    @classmethod
    def from_rows(cls, rows: Any) -> "PricingConfig":
        """
        Parse [{"config_key": ..., "config_value": ...}] rows.

        Raises ValueError when there are no rows at all.
        """
        if not isinstance(rows, list) or not rows:
            raise ValueError("No pricing configuration rows")

        values: dict[str, float] = {}
        for row in rows:
            if not isinstance(row, dict):
                continue
            key = row.get("config_key")
            try:
                value = float(row.get("config_value"))
            except (TypeError, ValueError):
                logger.warning(f"Ignoring non-numeric pricing value for {key}: {row.get('config_value')!r}")
                continue

            if key in ("timePer10m2", "timePerM2"):
                values["time_per_10m2"] = value
            elif key == "timePerToilet":
                values["time_per_toilet"] = value
            elif key == "timePerBathroom":
                values["time_per_bathroom"] = value
            elif key == "pricePerHour":
                values["price_per_hour"] = value
            elif key == "minHours" and value > 0:
                values["min_hours"] = value

        return cls(**values)


def calculate_hours(m2: float, toilets: float, bathrooms: float, config: PricingConfig) -> float:
    """Unrounded hours of work."""
    minutes = (
        (m2 / 10) * config.time_per_10m2
        + toilets * config.time_per_toilet
        + bathrooms * config.time_per_bathroom
    )
    return minutes / 60


def round_hours(hours: float, min_hours: float = DEFAULT_MIN_HOURS) -> float:
    """Up to the next half hour, never below min_hours."""
    min_hours = min_hours or DEFAULT_MIN_HOURS
    if hours <= 0:
        return min_hours
    return max(math.ceil(hours * 2) / 2, min_hours)


def calculate_price(hours: float, config: PricingConfig) -> float:
    return round(hours * config.price_per_hour, 2)


def adjust_hours(current: float, delta: float, floor: float) -> float:
    """Apply a ± half-hour adjustment, never going below floor."""
    return max(current + delta, floor)


@dataclass(frozen=True)
class HoursQuote:
    hours: float
    rounded_hours: float
    price: float

    def to_dict(self) -> dict:
        return {"hours": self.hours, "rounded_hours": self.rounded_hours, "price": self.price}


def quote(m2: float, toilets: float, bathrooms: float, config: PricingConfig) -> HoursQuote:
    hours = calculate_hours(m2, toilets, bathrooms, config)
    rounded = round_hours(hours, config.min_hours)
    return HoursQuote(hours=hours, rounded_hours=rounded, price=calculate_price(rounded, config))


# =============================================================================
# Cache
# =============================================================================

class CacheState(Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class PricingConfigCache:
    """
    One-shot cache around an async pricing fetch.

    get_or_fetch() starts the fetch when Empty or Failed, and awaits the
    in-flight fetch when Loading. A failed fetch is retried on the next call.
    """

    def __init__(self, fetch: Callable[[], Awaitable[Any]]):
        self._fetch = fetch
        self.state = CacheState.EMPTY
        self._value: PricingConfig | None = None
        self._pending: asyncio.Future | None = None
        self.last_error: Exception | None = None

    @property
    def value(self) -> PricingConfig | None:
        return self._value

    async def get_or_fetch(self) -> PricingConfig:
        if self.state == CacheState.READY and self._value is not None:
            return self._value
        if self._pending is None:
            self.state = CacheState.LOADING
            self._pending = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._pending)

    async def _load(self) -> PricingConfig:
        try:
            payload = await self._fetch()
            rows = payload.get("pricing") if isinstance(payload, dict) else payload
            config = PricingConfig.from_rows(rows)
        except Exception as e:
            logger.error(f"Pricing configuration fetch failed: {e}")
            self.state = CacheState.FAILED
            self.last_error = e
            self._pending = None
            raise

        logger.info(f"Pricing configuration loaded: {config}")
        self._value = config
        self.state = CacheState.READY
        self.last_error = None
        self._pending = None
        return config

    def reset(self) -> None:
        self.state = CacheState.EMPTY
        self._value = None
        self._pending = None
