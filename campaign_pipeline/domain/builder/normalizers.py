"""Field normalizers used by the builder's rule tables.

Every normalizer returns a ``Normalized`` value. ``matched`` is False when
the raw value could not be interpreted and a documented fallback was used
instead, so callers can log and tag the fallback.
"""

import calendar
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from campaign_pipeline.domain.contexts.content import (
    EMOTIONAL_TRIGGERS,
    SEASONS,
    VISUAL_STYLES,
)


@dataclass(frozen=True)
class Normalized:
    value: Any
    matched: bool = True


# =============================================================================
# Text and collections
# =============================================================================

def is_blank(value: Any) -> bool:
    """None, empty/whitespace string, or empty collection."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def ensure_text(value: Any) -> Normalized:
    """Coerce to a stripped string; lists are comma-joined."""
    if value is None:
        return Normalized(None)
    if isinstance(value, str):
        text = value.strip()
        return Normalized(text or None)
    if isinstance(value, bool):
        return Normalized(str(value).lower())
    if isinstance(value, (int, float)):
        return Normalized(str(value))
    if isinstance(value, (list, tuple)):
        parts = [ensure_text(v).value for v in value]
        return Normalized(", ".join(p for p in parts if p) or None)
    if isinstance(value, dict):
        parts = [f"{k}: {ensure_text(v).value}" for k, v in value.items()]
        return Normalized("; ".join(parts) or None)
    return Normalized(str(value))


def ensure_list(value: Any) -> Normalized:
    """Wrap scalars in a list; None becomes an empty list."""
    if value is None:
        return Normalized([])
    if isinstance(value, (list, tuple)):
        return Normalized(list(value))
    return Normalized([value])


def ensure_text_list(value: Any) -> Normalized:
    items = ensure_list(value).value
    texts = [ensure_text(v).value for v in items]
    return Normalized([t for t in texts if t])


def ensure_dict_list(value: Any) -> Normalized:
    """List of dicts; bare strings become ``{"id": value}``."""
    items = []
    matched = True
    for item in ensure_list(value).value:
        if isinstance(item, dict):
            items.append(dict(item))
        elif isinstance(item, str):
            items.append({"id": item})
        else:
            matched = False
    return Normalized(items, matched)


def ensure_dict(value: Any) -> Normalized:
    if isinstance(value, dict):
        return Normalized(dict(value))
    return Normalized({}, value is None)


def to_optional_bool(value: Any) -> Normalized:
    if value is None or isinstance(value, bool):
        return Normalized(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "pass", "passed"):
            return Normalized(True)
        if lowered in ("false", "no", "0", "fail", "failed"):
            return Normalized(False)
    if isinstance(value, (int, float)):
        return Normalized(bool(value))
    return Normalized(None, False)


# =============================================================================
# Enumerations
# =============================================================================

def match_choice(value: Any, allowed: Sequence[str]) -> Optional[str]:
    """Exact (case-insensitive) match first, then substring match, else None."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    for option in allowed:
        if lowered == option.lower():
            return option
    for option in allowed:
        if option.lower() in lowered:
            return option
    return None


def normalize_choice(value: Any, allowed: Sequence[str], default: Optional[str]) -> Normalized:
    match = match_choice(value, allowed)
    if match is not None:
        return Normalized(match)
    return Normalized(default, False)


def choice(allowed: Sequence[str], default: Optional[str] = None):
    """Normalizer factory for a fixed enum domain."""
    def normalize(value: Any) -> Normalized:
        return normalize_choice(value, allowed, default)
    return normalize


DEFAULT_SEASON = "year-round"

# Checked in order; the first table entry with a matching keyword wins
SEASON_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("year-round", ("year-round", "year round", "all year", "круглый год", "круглогодич")),
    ("autumn", ("autumn", "fall", "осен")),
    ("winter", ("winter", "зим")),
    ("spring", ("spring", "весн")),
    ("summer", ("summer", "лето", "летн", "летом")),
)


def normalize_season(value: Any) -> Normalized:
    """Map free-text season descriptions onto the season enum."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in SEASONS:
            return Normalized(lowered)
        for season, keywords in SEASON_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return Normalized(season)
    return Normalized(DEFAULT_SEASON, False)


def normalize_visual_style(value: Any) -> Normalized:
    return normalize_choice(value, VISUAL_STYLES, "modern")


def normalize_emotional_trigger(value: Any) -> Normalized:
    if isinstance(value, (list, tuple)):
        for item in value:
            match = match_choice(item, EMOTIONAL_TRIGGERS)
            if match:
                return Normalized(match)
        return Normalized("excitement", False)
    return normalize_choice(value, EMOTIONAL_TRIGGERS, "excitement")


# =============================================================================
# Numbers
# =============================================================================

_NON_NUMERIC = re.compile(r"[^\d.]")


def parse_price(value: Any) -> Normalized:
    """Numbers pass through; strings are stripped to digits and dots.

    Anything unparsable (or negative) becomes 0.0 with ``matched=False``.
    """
    if isinstance(value, bool) or value is None:
        return Normalized(0.0, False)
    if isinstance(value, (int, float)):
        if math.isfinite(value) and value >= 0:
            return Normalized(float(value))
        return Normalized(0.0, False)
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned:
            return Normalized(0.0, False)
        try:
            return Normalized(float(cleaned))
        except ValueError:
            return Normalized(0.0, False)
    return Normalized(0.0, False)


def parse_count(value: Any) -> Normalized:
    price = parse_price(value)
    return Normalized(int(price.value), price.matched)


def parse_score(value: Any) -> Normalized:
    """0-100 score; out-of-range or unparsable values are unmatched (None)."""
    parsed = parse_price(value)
    if not parsed.matched or parsed.value > 100:
        return Normalized(None, False)
    score = parsed.value
    return Normalized(int(score) if score == int(score) else score)


# =============================================================================
# Dates
# =============================================================================

def _month_start(today: date, months_ahead: int) -> date:
    years, month_index = divmod(today.month - 1 + months_ahead, 12)
    return date(today.year + years, month_index + 1, 1)


def candidate_dates(now: datetime, months: int = 3) -> List[str]:
    """The 1st and 15th of each of the next ``months`` months (ISO dates)."""
    dates = []
    for offset in range(1, months + 1):
        start = _month_start(now.date(), offset)
        dates.append(start.isoformat())
        dates.append(start.replace(day=15).isoformat())
    return dates


def pricing_windows(now: datetime, months: int = 2) -> List[str]:
    """First-half and second-half windows for each of the next ``months`` months."""
    windows = []
    for offset in range(1, months + 1):
        start = _month_start(now.date(), offset)
        last_day = calendar.monthrange(start.year, start.month)[1]
        windows.append(f"{start.isoformat()}/{start.replace(day=15).isoformat()}")
        windows.append(
            f"{start.replace(day=16).isoformat()}/{start.replace(day=last_day).isoformat()}"
        )
    return windows


def parse_iso_date(value: Any) -> Optional[date]:
    """Leading ``YYYY-MM-DD`` of a string, or None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def future_dates(values: Iterable[Any], today: date) -> List[date]:
    return [d for d in (parse_iso_date(v) for v in values) if d is not None and d > today]
