from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from aggregation import month_bounds, week_bounds
from config import get_settings

REPORT_MODES = ("weekly", "monthly", "analysis")


@dataclass(frozen=True)
class Window:
    slug: str
    start: date
    end: date


def today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


def resolve_window(
    mode: Optional[str],
    ref: Optional[date] = None,
    *,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Window:
    ref = ref or today()
    if not mode or mode == "dashboard":
        first, last = month_bounds(ref)
        return Window("dashboard", first, last)
    if mode == "weekly":
        first, last = week_bounds(ref)
        return Window("weekly", first, last)
    if mode in ("monthly", "analysis"):
        first, last = month_bounds(ref)
        return Window(mode, first, last)
    if mode == "custom":
        if not start or not end:
            raise ValueError("Custom window requires start and end dates")
        start_date = date.fromisoformat(start)
        end_date = date.fromisoformat(end)
        if start_date > end_date:
            raise ValueError("Start date must be before end date")
        return Window("custom", start_date, end_date)
    raise ValueError(f"Unknown report mode: {mode}")


def month_options(ref: Optional[date] = None, count: int = 12) -> list[dict[str, str]]:
    """First day of each of the last ``count`` months, newest first."""
    ref = ref or today()
    index = ref.year * 12 + (ref.month - 1)
    options = []
    for offset in range(count):
        year, month = divmod(index - offset, 12)
        first = date(year, month + 1, 1)
        options.append({"value": first.isoformat(), "label": first.strftime("%Y-%m")})
    return options
