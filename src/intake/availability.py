"""
Availability Matcher.

Turns a provider's weekly hourly availability into per-day/per-daypart
verdicts for a required service duration.

Slots are hourly entries on an inclusive 07:00–22:00 grid. Dayparts are
half-open hour ranges: ochtend [7,12), middag [12,17), avond [17,22).
Everything here is pure; malformed entries are skipped, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

logger = logging.getLogger(__name__)


AVAILABLE = "beschikbaar"
NOT_AVAILABLE = "niet-beschikbaar"

FIRST_HOUR = 7
LAST_HOUR = 22

# Week order matters for display
DAY_CODES: dict[str, str] = {
    "maandag": "ma",
    "dinsdag": "di",
    "woensdag": "wo",
    "donderdag": "do",
    "vrijdag": "vr",
    "zaterdag": "za",
    "zondag": "zo",
}
DAYS_BY_CODE: dict[str, str] = {code: day for day, code in DAY_CODES.items()}


@dataclass(frozen=True)
class Daypart:
    code: str
    start: int
    end: int  # exclusive

    @property
    def label(self) -> str:
        return f"{self.start:02d}:00 - {self.end:02d}:00"


DAYPARTS: tuple[Daypart, ...] = (
    Daypart("ochtend", 7, 12),
    Daypart("middag", 12, 17),
    Daypart("avond", 17, 22),
)
DAYPART_CODES = tuple(dp.code for dp in DAYPARTS)


@dataclass(frozen=True)
class AvailabilitySlot:
    day: str
    hour: int
    status: str = AVAILABLE

    @classmethod
    def from_raw(cls, raw: Any) -> "AvailabilitySlot | None":
        """
        Parse one slot from API data.

        Accepts {"dag", "uur", "status"} (API shape) or {"day", "hour", "status"}.
        Hours may be "HH:MM" strings, integers or whole-number floats. Returns None when unusable.
        """
        if isinstance(raw, AvailabilitySlot):
            return raw
        if not isinstance(raw, dict):
            return None
        day = raw.get("dag", raw.get("day"))
        hour = parse_hour(raw.get("uur", raw.get("hour")))
        if not day or hour is None:
            return None
        return cls(day=str(day).lower(), hour=hour, status=str(raw.get("status", NOT_AVAILABLE)))

    @property
    def hour_label(self) -> str:
        return f"{self.hour:02d}:00"


@dataclass(frozen=True)
class HourBlock:
    """Maximal run of consecutive available hours; end is exclusive."""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlap(self, start: float, end: float) -> float:
        """Hours this block shares with [start, end); 0 when disjoint."""
        return max(0, min(self.end, end) - max(self.start, start))


def parse_hour(value: Any) -> int | None:
    """'09:00' → 9, 9 → 9, 9.0 → 9; None for anything unparsable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip().split(":")[0]
    try:
        return int(text)
    except ValueError:
        return None


def daypart_for_hour(hour: int) -> str | None:
    for dp in DAYPARTS:
        if dp.start <= hour < dp.end:
            return dp.code
    return None


# =============================================================================
# Matching
# =============================================================================

def group_available_hours(slots: Any) -> dict[str, set[int]]:
    """Available hours per day, restricted to the 7–22 grid."""
    by_day: dict[str, set[int]] = {}
    if not isinstance(slots, (list, tuple)):
        if slots is not None:
            logger.debug(f"Availability is not a list ({type(slots).__name__}), ignoring")
        return by_day

    for raw in slots:
        slot = AvailabilitySlot.from_raw(raw)
        if slot is None:
            logger.debug(f"Skipping unparsable availability entry: {raw!r}")
            continue
        if slot.status != AVAILABLE:
            continue
        if not FIRST_HOUR <= slot.hour <= LAST_HOUR:
            continue
        by_day.setdefault(slot.day, set()).add(slot.hour)
    return by_day


def contiguous_blocks(hours: Iterable[int]) -> list[HourBlock]:
    blocks: list[HourBlock] = []
    start = prev = None
    for hour in sorted(set(hours)):
        if start is None:
            start = prev = hour
            continue
        if hour == prev + 1:
            prev = hour
            continue
        blocks.append(HourBlock(start, prev + 1))
        start = prev = hour
    if start is not None:
        blocks.append(HourBlock(start, prev + 1))
    return blocks


def is_daypart_satisfied(blocks: list[HourBlock], index: int, required_hours: float) -> bool:
    """
    Whether the daypart at DAYPARTS[index] can host required_hours of work.

    A block qualifies when it
      - overlaps the daypart at all, if nothing is required;
      - overlaps the daypart by at least the required hours;
      - touches the daypart and is itself long enough; or
      - runs on into the next daypart and covers enough of both together.
    """
    dp = DAYPARTS[index]

    if required_hours <= 0:
        return any(b.overlap(dp.start, dp.end) > 0 for b in blocks)

    if any(b.overlap(dp.start, dp.end) >= required_hours for b in blocks):
        return True

    if any(b.overlap(dp.start, dp.end) > 0 and b.length >= required_hours for b in blocks):
        return True

    # Forward only; the last daypart has no successor
    if index + 1 < len(DAYPARTS):
        nxt = DAYPARTS[index + 1]
        for b in blocks:
            if b.start < dp.end and b.end > nxt.start and b.overlap(dp.start, nxt.end) >= required_hours:
                return True

    return False


def daypart_availability(slots: Any, required_hours: float) -> dict[str, bool]:
    """
    {"<daycode>-<daypart>": bool} for every day present in slots.

    Days without any available hour on the grid are absent from the result.
    """
    result: dict[str, bool] = {}
    by_day = group_available_hours(slots)

    for day in sorted(by_day, key=_week_index):
        code = DAY_CODES.get(day)
        if code is None:
            logger.debug(f"Skipping unknown day '{day}'")
            continue
        blocks = contiguous_blocks(by_day[day])
        for index, dp in enumerate(DAYPARTS):
            result[f"{code}-{dp.code}"] = is_daypart_satisfied(blocks, index, required_hours)

    return result


def matches_any(availability: dict[str, bool], selected: Iterable[str] | None = None) -> bool:
    """True if any selected daypart key (all keys when none selected) is satisfiable."""
    keys = list(selected) if selected else list(availability)
    return any(availability.get(key, False) for key in keys)


def _week_index(day: str) -> int:
    days = list(DAY_CODES)
    return days.index(day) if day in DAY_CODES else len(days)


# =============================================================================
# Daypart selections
# =============================================================================

def convert_ui_dayparts_to_db(ui_dayparts: Iterable[str] | None) -> dict[str, list[str]] | None:
    """
    ["ma-ochtend", "di-middag"] → {"maandag": ["ochtend"], "dinsdag": ["middag"]}.

    Invalid entries are skipped. Returns None when nothing valid was selected.
    """
    if not ui_dayparts:
        return None

    result: dict[str, list[str]] = {}
    for entry in ui_dayparts:
        code, _, daypart = str(entry).partition("-")
        day = DAYS_BY_CODE.get(code)
        if day is None or daypart not in DAYPART_CODES:
            logger.warning(f"Invalid daypart selection: {entry!r}")
            continue
        result.setdefault(day, []).append(daypart)

    return result or None


def parse_daypart_selection(value: str | Iterable[str] | None) -> list[str]:
    """Comma-separated form value (or list) → list of daypart keys."""
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item and item.strip()]


def is_hour_in_dayparts(day: str, hour: Any, daypart_filter: dict[str, list[str]] | None) -> bool:
    """Whether (day, hour) falls inside the selected dayparts. No filter = everything."""
    if not daypart_filter:
        return True
    if day not in daypart_filter:
        return False
    parsed = parse_hour(hour)
    daypart = daypart_for_hour(parsed) if parsed is not None else None
    if daypart is None:
        return False
    return daypart in daypart_filter[day]


def format_availability(slots: Any, daypart_filter: dict[str, list[str]] | None = None) -> list[dict]:
    """
    Week grid for display: per day every hour 07:00–22:00 with its status,
    plus per-daypart counts. Slots outside the filter stay niet-beschikbaar.
    """
    if not isinstance(slots, (list, tuple)):
        return []

    hours = list(range(FIRST_HOUR, LAST_HOUR + 1))
    grid: dict[str, dict[int, str]] = {day: {h: NOT_AVAILABLE for h in hours} for day in DAY_CODES}

    for raw in slots:
        slot = AvailabilitySlot.from_raw(raw)
        if slot is None or slot.day not in grid or slot.hour not in grid[slot.day]:
            continue
        if daypart_filter and not is_hour_in_dayparts(slot.day, slot.hour, daypart_filter):
            continue
        grid[slot.day][slot.hour] = slot.status

    week = []
    for day, statuses in grid.items():
        hour_rows = [
            {"hour": f"{h:02d}:00", "status": statuses[h], "daypart": daypart_for_hour(h)}
            for h in hours
        ]
        dayparts = {}
        for dp in DAYPARTS:
            in_part = [row for row in hour_rows if row["daypart"] == dp.code]
            available = sum(1 for row in in_part if row["status"] == AVAILABLE)
            dayparts[dp.code] = {
                "total_hours": len(in_part),
                "available_hours": available,
                "fully_available": available == len(in_part),
                "partially_available": 0 < available < len(in_part),
                "not_available": available == 0,
            }
        week.append({"day": day, "hours": hour_rows, "dayparts": dayparts})
    return week
