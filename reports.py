from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aggregation import (
    daily_series,
    expense_breakdown,
    period_totals,
    recent_activity,
    revenue_breakdown,
    series_totals,
    weekly_series,
)
from config import get_settings
from periods import REPORT_MODES, resolve_window, today
from store import Dataset, RecordStore

logger = logging.getLogger(__name__)


class ReportService:
    """Dashboard and report payloads, recomputed from the full dataset."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = RecordStore(session)

    def _load(self) -> tuple[Dataset, bool]:
        try:
            return self.store.load_dataset(), False
        except SQLAlchemyError:
            logger.exception("Error fetching report data")
            self.session.rollback()
            return Dataset(), True

    def dashboard(
        self, ref: Optional[date] = None, *, limit: Optional[int] = None
    ) -> dict[str, object]:
        ref = ref or today()
        window = resolve_window("dashboard", ref)
        limit = limit if limit is not None else get_settings().recent_limit
        dataset, failed = self._load()
        totals = period_totals(dataset, window.start, window.end)
        return {
            "window": window,
            "error": failed,
            "totals": totals.as_dict(),
            "recent": recent_activity(dataset, window.start, window.end, limit=limit),
            "revenue_trend": [
                {"date": p["date"], "label": p["label"], "revenue": p["revenue"]}
                for p in weekly_series(dataset, ref)
            ],
            "expense_breakdown": expense_breakdown(dataset, window.start, window.end),
            "revenue_breakdown": revenue_breakdown(dataset, window.start, window.end),
        }

    def report(self, mode: str, ref: Optional[date] = None) -> dict[str, object]:
        if mode not in REPORT_MODES:
            raise ValueError(f"Unknown report mode: {mode}")
        window = resolve_window(mode, ref)
        dataset, failed = self._load()
        data: dict[str, object] = {"window": window, "mode": mode, "error": failed}

        if mode == "analysis":
            data["breakdown"] = expense_breakdown(
                dataset, window.start, window.end, sort_desc=True
            )
            data["totals"] = period_totals(dataset, window.start, window.end).as_dict()
            return data

        if mode == "weekly":
            points = weekly_series(dataset, window.start)
        else:
            points = daily_series(dataset, window.start, window.end)
        data["series"] = points
        data["totals"] = series_totals(points).as_dict()
        return data
