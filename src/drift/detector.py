"""Architectural drift detection against the last persisted snapshot."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import orjson

from contract.models import DriftEvent, DriftResult, Snapshot, new_id
from logs import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contract.models import (
        Decision,
        DependencyGraph,
        DriftEventType,
        DriftSeverity,
        LayerViolation,
    )

logger = get_logger("drift.detector")

SEVERITY_WEIGHTS: dict[str, int] = {"high": 15, "medium": 8, "low": 3}
LOST_DECISION_PENALTY = 30
MAX_DRIFT_SCORE = 100

WEAKENED_THRESHOLD = 0.15
WEAKENED_HIGH_THRESHOLD = 0.30
LOST_HIGH_CONFIDENCE = 0.7
TREND_THRESHOLD = 0.10
TREND_HIGH_THRESHOLD = 0.20

# Differences are compared at this precision so float noise cannot push an
# exact threshold value over the line.
_COMPARE_DIGITS = 10


def _delta(current: float, previous: float) -> float:
    return round(current - previous, _COMPARE_DIGITS)


def _trend_severity(increase: float) -> DriftSeverity:
    return "high" if increase > TREND_HIGH_THRESHOLD else "medium"


class _EventLog:
    """Collects events that share one snapshot id and detection time."""

    def __init__(self, snapshot_id: str, detected_at: datetime) -> None:
        self.snapshot_id = snapshot_id
        self.detected_at = detected_at
        self.events: list[DriftEvent] = []

    def add(
        self,
        event_type: DriftEventType,
        severity: DriftSeverity,
        description: str,
        decision: str | None = None,
    ) -> None:
        self.events.append(
            DriftEvent(
                type=event_type,
                severity=severity,
                description=description,
                snapshot_id=self.snapshot_id,
                decision=decision,
                detected_at=self.detected_at,
            )
        )


def _compare_decisions(
    log: _EventLog, previous: Sequence[Decision], current: Sequence[Decision]
) -> None:
    prev_by_title = {d.title: d for d in previous}
    curr_by_title = {d.title: d for d in current}

    for title, decision in prev_by_title.items():
        if title not in curr_by_title:
            log.add(
                "decision_lost",
                "high" if decision.confidence > LOST_HIGH_CONFIDENCE else "medium",
                f'Architectural decision "{title}" is no longer detected. '
                "This may indicate architectural drift.",
                decision=title,
            )

    for title in curr_by_title:
        if title not in prev_by_title:
            log.add(
                "decision_emerged",
                "low",
                f'New architectural pattern detected: "{title}". Review whether '
                "this aligns with intended architecture.",
                decision=title,
            )

    for title, decision in curr_by_title.items():
        before = prev_by_title.get(title)
        if before is None:
            continue
        drop = _delta(before.confidence, decision.confidence)
        if drop > WEAKENED_THRESHOLD:
            log.add(
                "decision_weakened",
                "high" if drop > WEAKENED_HIGH_THRESHOLD else "medium",
                f'Confidence in "{title}" dropped from {before.confidence * 100:.0f}% '
                f"to {decision.confidence * 100:.0f}%. The pattern may be eroding.",
                decision=title,
            )


def _compare_graph(log: _EventLog, previous: Snapshot, graph: DependencyGraph) -> None:
    prev_stats = previous.stats

    new_cycles = len(graph.cycles) - prev_stats.circular_deps
    if new_cycles > 0:
        log.add(
            "circular_dep_introduced",
            "high" if new_cycles > 2 else "medium",
            f"{new_cycles} new circular dependency group(s) detected "
            f"(total: {len(graph.cycles)}).",
        )

    coupling_increase = _delta(graph.avg_coupling, prev_stats.avg_coupling)
    if coupling_increase > TREND_THRESHOLD:
        log.add(
            "new_violation_trend",
            _trend_severity(coupling_increase),
            f"Average module coupling increased by {coupling_increase * 100:.1f}% "
            f"({prev_stats.avg_coupling:.2f} -> {graph.avg_coupling:.2f}).",
        )

    instability_increase = _delta(graph.avg_instability, prev_stats.avg_instability)
    if instability_increase > TREND_THRESHOLD:
        log.add(
            "new_violation_trend",
            _trend_severity(instability_increase),
            f"Average module instability increased by "
            f"{instability_increase * 100:.1f}% ({prev_stats.avg_instability:.2f} -> "
            f"{graph.avg_instability:.2f}). Modules are becoming less stable.",
        )


def _summarize_layer_violations(
    log: _EventLog, violations: Sequence[LayerViolation]
) -> None:
    count = len(violations)
    pairs = ", ".join(f"{v.source_layer} -> {v.target_layer}" for v in violations[:3])
    more = f" and {count - 3} more" if count > 3 else ""
    if count > 5:
        severity: DriftSeverity = "high"
    elif count > 2:
        severity = "medium"
    else:
        severity = "low"
    log.add(
        "layer_violation_introduced",
        severity,
        f"{count} layer boundary violation(s) detected. {pairs}{more}.",
    )


def drift_score(events: Iterable[DriftEvent], previous_decision_count: int) -> int:
    """Weighted event score plus a penalty for the share of lost decisions.

    Rounded half-up and capped at 100.
    """
    events = list(events)
    score: float = sum(SEVERITY_WEIGHTS.get(e.severity, 0) for e in events)
    if previous_decision_count > 0:
        lost = sum(1 for e in events if e.type == "decision_lost")
        score += lost / previous_decision_count * LOST_DECISION_PENALTY
    return min(int(score + 0.5), MAX_DRIFT_SCORE)


def detect_drift(
    decisions: Iterable[Decision],
    graph: DependencyGraph,
    previous: Snapshot | None = None,
    *,
    layer_violations: Sequence[LayerViolation] | None = None,
    repo_id: str = "",
    commit: str = "",
    snapshot_id: str | None = None,
    now: datetime | None = None,
) -> DriftResult:
    """Compare the current analysis against the previous snapshot.

    Without a previous snapshot this is a baseline run: score 0, no events,
    and the returned snapshot records the current state.

    Args:
        decisions: Decisions detected in the current run (keyed by title)
        graph: The current dependency graph
        previous: Last persisted snapshot, if any
        layer_violations: Layer violations found in the current run
        repo_id: Repository identifier stored on the new snapshot
        commit: Commit identifier stored on the new snapshot
        snapshot_id: Id for the new snapshot (generated when omitted)
        now: Timestamp for the snapshot and events (current UTC time when omitted)

    Returns:
        DriftResult with the score, ordered events and the new snapshot.
    """
    decisions = tuple(decisions)
    snapshot_id = snapshot_id or new_id()
    now = now or datetime.now(timezone.utc)
    log = _EventLog(snapshot_id, now)

    score = 0
    if previous is not None:
        _compare_decisions(log, previous.decisions, decisions)
        _compare_graph(log, previous, graph)
        if layer_violations:
            _summarize_layer_violations(log, layer_violations)
        score = drift_score(log.events, len(previous.decisions))
    else:
        logger.debug("No previous snapshot for %r: recording baseline", repo_id)

    snapshot = Snapshot(
        id=snapshot_id,
        repo_id=repo_id,
        commit=commit,
        decisions=decisions,
        drift_score=score,
        stats=graph.stats,
        created_at=now,
    )
    logger.debug("Drift score %d with %d events", score, len(log.events))
    return DriftResult(score=score, events=tuple(log.events), snapshot=snapshot)


def dump_snapshot(snapshot: Snapshot) -> bytes:
    """Serialize a snapshot to canonical JSON bytes (sorted keys)."""
    return orjson.dumps(snapshot.model_dump(mode="json"), option=orjson.OPT_SORT_KEYS)


def load_snapshot(data: bytes | str) -> Snapshot:
    """Parse a snapshot previously written by :func:`dump_snapshot`."""
    return Snapshot.model_validate(orjson.loads(data))


__all__ = [
    "SEVERITY_WEIGHTS",
    "detect_drift",
    "drift_score",
    "dump_snapshot",
    "load_snapshot",
]
