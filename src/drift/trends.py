"""Trend analysis over a history of snapshots and drift events."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from contract.models import TrendDataPoint, TrendSummary

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contract.models import DriftEvent, Snapshot, TrendDirection

WINDOW_DAYS: dict[str, int] = {"1mo": 30, "3mo": 90, "6mo": 180, "12mo": 365}
DEFAULT_WINDOW = "3mo"
SLOPE_THRESHOLD = 0.05
TOP_EVENT_LIMIT = 10


def window_start(window: str, now: datetime) -> datetime:
    """Start of a trend window; unknown window names fall back to three months."""
    days = WINDOW_DAYS.get(window, WINDOW_DAYS[DEFAULT_WINDOW])
    return now - timedelta(days=days)


def trend_direction(values: Sequence[float]) -> TrendDirection:
    """Classify the least-squares slope of ``values`` over their index.

    A rising series is "degrading" since both drift and coupling are
    better when low.
    """
    n = len(values)
    if n < 2:
        return "stable"
    x_mean = (n - 1) / 2
    y_mean = sum(values) / n
    numerator = sum((i - x_mean) * (v - y_mean) for i, v in enumerate(values))
    denominator = sum((i - x_mean) ** 2 for i in range(n))
    slope = numerator / denominator if denominator else 0.0
    if slope > SLOPE_THRESHOLD:
        return "degrading"
    if slope < -SLOPE_THRESHOLD:
        return "improving"
    return "stable"


def decision_stability(snapshots: Sequence[Snapshot]) -> float:
    """1.0 when consecutive snapshots keep the same decision titles.

    Each consecutive pair contributes ``(added + removed) / max size``;
    the result is one minus the mean change rate, floored at zero.
    """
    if len(snapshots) < 2:
        return 1.0
    rates: list[float] = []
    for before, after in zip(snapshots, snapshots[1:]):
        prev = {d.title for d in before.decisions}
        curr = {d.title for d in after.decisions}
        changed = len(curr - prev) + len(prev - curr)
        rates.append(changed / max(len(prev), len(curr), 1))
    return max(0.0, 1 - sum(rates) / len(rates))


def analyze_trends(
    snapshots: Iterable[Snapshot],
    events: Iterable[DriftEvent] = (),
    window: str = DEFAULT_WINDOW,
    now: datetime | None = None,
) -> TrendSummary:
    """Summarize drift, coupling and decision stability inside a time window."""
    now = now or datetime.now(timezone.utc)
    start = window_start(window, now)

    in_window = sorted(
        (s for s in snapshots if s.created_at >= start), key=lambda s: s.created_at
    )
    recent_events = sorted(
        (e for e in events if e.detected_at >= start),
        key=lambda e: e.detected_at,
        reverse=True,
    )

    points = tuple(
        TrendDataPoint(
            date=s.created_at,
            drift_score=s.drift_score,
            decision_count=len(s.decisions),
            circular_deps=s.stats.circular_deps,
            avg_coupling=s.stats.avg_coupling,
        )
        for s in in_window
    )
    avg_score = sum(p.drift_score for p in points) / len(points) if points else 0.0

    return TrendSummary(
        time_window=window,
        start_date=start,
        end_date=now,
        data_points=points,
        drift_trend=trend_direction([p.drift_score for p in points]),
        avg_drift_score=avg_score,
        decision_stability=decision_stability(in_window),
        coupling_trend=trend_direction([p.avg_coupling for p in points]),
        top_drift_events=tuple(recent_events[:TOP_EVENT_LIMIT]),
    )


__all__ = [
    "WINDOW_DAYS",
    "analyze_trends",
    "decision_stability",
    "trend_direction",
    "window_start",
]
