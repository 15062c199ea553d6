"""Stateless training analytics over a list of sessions.

Days and weeks are UTC calendar days; weeks start on Monday.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum

from ..models.base import utc_now
from ..models.exercises import ExerciseType
from ..models.program import ProgressionRecommendation, ProgressionSuggestion
from ..models.session import Session, SessionExercise

DEFAULT_WEEKLY_VOLUME_WEEKS = 10
DEFAULT_WINDOW_DAYS = 28
DEFAULT_RECENT_PR_LIMIT = 5
E1RM_MIN_REPS = 1
E1RM_MAX_REPS = 12
PR_TOLERANCE = 0.1
DEFAULT_DECISION_CONFIDENCE = 0.56
MIN_DECISIONS_FOR_ALERTS = 4
LOW_ACCEPTANCE_THRESHOLD = 0.45
HIGH_REGRESS_THRESHOLD = 0.40
HIGH_OVERRIDE_THRESHOLD = 0.60

_TOLERANCE = 0.0001


def _day(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _strength_exercises(session: Session) -> list[SessionExercise]:
    return [e for e in session.performed_exercises if e.exercise_type == ExerciseType.STRENGTH]


def brzycki_e1rm(weight: float, reps: int) -> float | None:
    """Estimated one-rep max, ``weight * 36 / (37 - reps)``.

    Only defined for positive weights and 1 to 12 reps; higher rep sets are
    too unreliable to estimate from.
    """
    if weight is None or weight <= 0 or reps is None:
        return None
    if not E1RM_MIN_REPS <= reps <= E1RM_MAX_REPS:
        return None
    return weight * 36.0 / (37.0 - reps)


@dataclass(frozen=True)
class TopSet:
    weight: float
    reps: int

    @property
    def estimated_one_rep_max(self) -> float:
        return brzycki_e1rm(self.weight, self.reps) or self.weight

    def beats(self, other: "TopSet") -> bool:
        """Higher e1RM, then heavier, then fewer reps."""
        if self.estimated_one_rep_max != other.estimated_one_rep_max:
            return self.estimated_one_rep_max > other.estimated_one_rep_max
        if self.weight != other.weight:
            return self.weight > other.weight
        return self.reps < other.reps

    def to_dict(self) -> dict:
        return {
            "weight": self.weight,
            "reps": self.reps,
            "estimated_one_rep_max": round(self.estimated_one_rep_max, 2),
        }


@dataclass
class _StrengthMetrics:
    top_set: TopSet | None = None  # heaviest completed set
    top_e1rm_set: TopSet | None = None  # best set within the e1RM rep range


def _analyze(exercise: SessionExercise) -> _StrengthMetrics:
    """Top sets over completed sets with a positive weight."""
    metrics = _StrengthMetrics()
    for s in exercise.completed_sets:
        if s.weight is None or s.weight <= 0:
            continue
        reps = s.reps or 0
        candidate = TopSet(weight=s.weight, reps=max(1, reps))
        top = metrics.top_set
        if (
            top is None
            or s.weight > top.weight + _TOLERANCE
            or (abs(s.weight - top.weight) <= _TOLERANCE and reps > top.reps)
        ):
            metrics.top_set = candidate
        if E1RM_MIN_REPS <= reps <= E1RM_MAX_REPS:
            if metrics.top_e1rm_set is None or candidate.beats(metrics.top_e1rm_set):
                metrics.top_e1rm_set = candidate
    return metrics


def current_streak(sessions: list[Session], now: datetime | None = None) -> int:
    """Consecutive days with at least one session.

    Counts back from today, or from yesterday when today has no session
    yet; any other gap ends the streak.
    """
    days = {_day(s.date) for s in sessions}
    if not days:
        return 0
    check = _day(now or utc_now())
    if check not in days:
        check -= timedelta(days=1)
        if check not in days:
            return 0
    streak = 0
    while check in days:
        streak += 1
        check -= timedelta(days=1)
    return streak


def workouts_this_week(sessions: list[Session], now: datetime | None = None) -> int:
    start = _week_start(_day(now or utc_now()))
    end = start + timedelta(days=7)
    return sum(1 for s in sessions if start <= _day(s.date) < end)


@dataclass
class WeeklyVolumePoint:
    week_start: date
    total_volume: float = 0.0
    session_count: int = 0

    def to_dict(self) -> dict:
        return {
            "week_start": self.week_start.isoformat(),
            "total_volume": self.total_volume,
            "session_count": self.session_count,
        }


def weekly_volume_trend(
    sessions: list[Session],
    weeks: int = DEFAULT_WEEKLY_VOLUME_WEEKS,
    now: datetime | None = None,
) -> list[WeeklyVolumePoint]:
    """Strength volume per week for the last ``weeks`` weeks, oldest first.

    Weeks without sessions are included with zero volume.
    """
    if weeks <= 0:
        return []
    current = _week_start(_day(now or utc_now()))
    points = {
        current - timedelta(weeks=offset): WeeklyVolumePoint(current - timedelta(weeks=offset))
        for offset in range(weeks - 1, -1, -1)
    }
    for session in sessions:
        point = points.get(_week_start(_day(session.date)))
        if point is None:
            continue
        point.total_volume += session.total_volume
        point.session_count += 1
    return [points[k] for k in sorted(points)]


@dataclass
class ProgressionBreakdown:
    progress: int = 0
    stay: int = 0
    regress: int = 0

    @property
    def total(self) -> int:
        return self.progress + self.stay + self.regress

    def to_dict(self) -> dict:
        return {"progress": self.progress, "stay": self.stay, "regress": self.regress}


def _in_window(session: Session, days: int, now: datetime | None) -> bool:
    if days <= 0:
        return True
    return session.date >= (now or utc_now()) - timedelta(days=days)


def progression_breakdown(
    sessions: list[Session], days: int = DEFAULT_WINDOW_DAYS, now: datetime | None = None
) -> ProgressionBreakdown:
    """Count applied recommendations within the last ``days`` days."""
    breakdown = ProgressionBreakdown()
    for session in sessions:
        if not _in_window(session, days, now):
            continue
        for exercise in session.performed_exercises:
            recommendation = exercise.progression_recommendation
            if recommendation == ProgressionRecommendation.PROGRESS:
                breakdown.progress += 1
            elif recommendation == ProgressionRecommendation.STAY:
                breakdown.stay += 1
            elif recommendation == ProgressionRecommendation.REGRESS:
                breakdown.regress += 1
    return breakdown


@dataclass
class PersonalRecord:
    exercise_name: str
    date: datetime
    previous_best: float
    new_best: float
    top_set: TopSet

    def to_dict(self) -> dict:
        return {
            "exercise_name": self.exercise_name,
            "date": self.date.isoformat(),
            "previous_best": round(self.previous_best, 2),
            "new_best": round(self.new_best, 2),
            "top_set": self.top_set.to_dict(),
        }


def recent_prs(sessions: list[Session], limit: int = DEFAULT_RECENT_PR_LIMIT) -> list[PersonalRecord]:
    """Estimated-1RM records, newest first.

    Sessions are replayed oldest first; the first appearance of an exercise
    sets its baseline and a later top set is a record when it beats the
    running best by more than the tolerance.
    """
    if limit <= 0:
        return []
    best: dict[str, float] = {}
    events: list[PersonalRecord] = []
    for session in sorted(sessions, key=lambda s: s.date):
        for exercise in _strength_exercises(session):
            top = _analyze(exercise).top_e1rm_set
            if top is None:
                continue
            name = exercise.exercise_name
            e1rm = top.estimated_one_rep_max
            if name not in best:
                best[name] = e1rm
                continue
            if e1rm > best[name] + PR_TOLERANCE:
                events.append(PersonalRecord(name, session.date, best[name], e1rm, top))
            best[name] = max(best[name], e1rm)
    events.sort(key=lambda e: e.date, reverse=True)
    return events[:limit]


@dataclass
class E1RMPoint:
    day: date
    top_set: TopSet

    @property
    def estimated_one_rep_max(self) -> float:
        return self.top_set.estimated_one_rep_max

    def to_dict(self) -> dict:
        return {"day": self.day.isoformat(), **self.top_set.to_dict()}


def e1rm_progress(exercise_name: str, sessions: list[Session]) -> list[E1RMPoint]:
    """Best estimated 1RM per day for one exercise, oldest first."""
    by_day: dict[date, E1RMPoint] = {}
    for session in sessions:
        day = _day(session.date)
        for exercise in _strength_exercises(session):
            if exercise.exercise_name != exercise_name:
                continue
            top = _analyze(exercise).top_e1rm_set
            if top is None:
                continue
            existing = by_day.get(day)
            if existing is None or top.beats(existing.top_set):
                by_day[day] = E1RMPoint(day, top)
    return [by_day[d] for d in sorted(by_day)]


@dataclass
class LiftTrend:
    exercise_name: str
    session_count: int
    latest_date: datetime
    latest_top_set: TopSet
    previous_top_set: TopSet | None = None

    def to_dict(self) -> dict:
        return {
            "exercise_name": self.exercise_name,
            "session_count": self.session_count,
            "latest_date": self.latest_date.isoformat(),
            "latest_top_set": self.latest_top_set.to_dict(),
            "previous_top_set": self.previous_top_set.to_dict() if self.previous_top_set else None,
        }


def most_trained_lifts(sessions: list[Session], limit: int = 3) -> list[LiftTrend]:
    """Lifts with the most sessions, ties broken by the latest session."""
    history: dict[str, list[tuple[datetime, TopSet]]] = defaultdict(list)
    for session in sorted(sessions, key=lambda s: s.date, reverse=True):
        for exercise in _strength_exercises(session):
            top = _analyze(exercise).top_set
            if top is not None:
                history[exercise.exercise_name].append((session.date, top))
    trends = [
        LiftTrend(
            exercise_name=name,
            session_count=len(entries),
            latest_date=entries[0][0],
            latest_top_set=entries[0][1],
            previous_top_set=entries[1][1] if len(entries) > 1 else None,
        )
        for name, entries in history.items()
    ]
    trends.sort(key=lambda t: (t.session_count, t.latest_date), reverse=True)
    return trends[: max(0, limit)]


@dataclass
class DecisionRecord:
    """A persisted suggestion paired with what the lifter actually did."""

    date: datetime
    exercise_name: str
    decision_code: str | None
    expected: ProgressionRecommendation
    actual: ProgressionRecommendation | None
    confidence: float

    @property
    def accepted(self) -> bool:
        return self.actual == self.expected


def expected_recommendation(suggestion: ProgressionSuggestion) -> ProgressionRecommendation:
    """The outcome a suggestion implied."""
    if suggestion.applied_outcome is not None:
        return suggestion.applied_outcome
    if suggestion.suggested_value > suggestion.base_value + _TOLERANCE:
        return ProgressionRecommendation.PROGRESS
    if suggestion.suggested_value < suggestion.base_value - _TOLERANCE:
        return ProgressionRecommendation.REGRESS
    return ProgressionRecommendation.STAY


def decision_records(
    sessions: list[Session], days: int = DEFAULT_WINDOW_DAYS, now: datetime | None = None
) -> list[DecisionRecord]:
    """Decision records in the window, newest first."""
    records = []
    for session in sessions:
        if not _in_window(session, days, now):
            continue
        for exercise in session.performed_exercises:
            suggestion = exercise.progression_suggestion
            if suggestion is None:
                continue
            records.append(
                DecisionRecord(
                    date=session.date,
                    exercise_name=exercise.exercise_name,
                    decision_code=suggestion.decision_code,
                    expected=expected_recommendation(suggestion),
                    actual=exercise.progression_recommendation,
                    confidence=(
                        suggestion.confidence
                        if suggestion.confidence is not None
                        else DEFAULT_DECISION_CONFIDENCE
                    ),
                )
            )
    records.sort(key=lambda r: r.date, reverse=True)
    return records


@dataclass
class EngineHealth:
    total_decisions: int = 0
    accepted_count: int = 0
    overridden_count: int = 0
    regress_count: int = 0
    average_confidence: float | None = None

    def _rate(self, count: int) -> float:
        return count / self.total_decisions if self.total_decisions else 0.0

    @property
    def acceptance_rate(self) -> float:
        return self._rate(self.accepted_count)

    @property
    def override_rate(self) -> float:
        return self._rate(self.overridden_count)

    @property
    def regress_rate(self) -> float:
        return self._rate(self.regress_count)

    def to_dict(self) -> dict:
        return {
            "total_decisions": self.total_decisions,
            "accepted_count": self.accepted_count,
            "overridden_count": self.overridden_count,
            "regress_count": self.regress_count,
            "acceptance_rate": round(self.acceptance_rate, 3),
            "override_rate": round(self.override_rate, 3),
            "regress_rate": round(self.regress_rate, 3),
            "average_confidence": self.average_confidence,
        }


def engine_health(
    sessions: list[Session], days: int = DEFAULT_WINDOW_DAYS, now: datetime | None = None
) -> EngineHealth:
    """How often suggestions were followed, over decisions with a known outcome."""
    records = [r for r in decision_records(sessions, days, now) if r.actual is not None]
    if not records:
        return EngineHealth()
    accepted = sum(1 for r in records if r.accepted)
    return EngineHealth(
        total_decisions=len(records),
        accepted_count=accepted,
        overridden_count=len(records) - accepted,
        regress_count=sum(1 for r in records if r.actual == ProgressionRecommendation.REGRESS),
        average_confidence=round(sum(r.confidence for r in records) / len(records), 3),
    )


class AlertType(str, Enum):
    LOW_ACCEPTANCE = "low_acceptance"
    HIGH_REGRESS = "high_regress"
    HIGH_OVERRIDE = "high_override"


_ALERT_RANK = {AlertType.LOW_ACCEPTANCE: 0, AlertType.HIGH_REGRESS: 1, AlertType.HIGH_OVERRIDE: 2}


@dataclass
class ProgressionAlert:
    exercise_name: str
    type: AlertType
    message: str

    def to_dict(self) -> dict:
        return {"exercise_name": self.exercise_name, "type": self.type.value, "message": self.message}


def progression_alerts(
    sessions: list[Session], days: int = DEFAULT_WINDOW_DAYS, now: datetime | None = None
) -> list[ProgressionAlert]:
    """Per-exercise warnings once an exercise has enough decisions."""
    by_exercise: dict[str, list[DecisionRecord]] = defaultdict(list)
    for record in decision_records(sessions, days, now):
        if record.actual is not None:
            by_exercise[record.exercise_name].append(record)

    alerts = []
    for name, records in by_exercise.items():
        total = len(records)
        if total < MIN_DECISIONS_FOR_ALERTS:
            continue
        acceptance = sum(1 for r in records if r.accepted) / total
        regress = sum(1 for r in records if r.actual == ProgressionRecommendation.REGRESS) / total
        if acceptance < LOW_ACCEPTANCE_THRESHOLD:
            alerts.append(
                ProgressionAlert(
                    name,
                    AlertType.LOW_ACCEPTANCE,
                    f"Only {round(acceptance * 100)}% of suggestions accepted ({total} decisions)",
                )
            )
        if regress > HIGH_REGRESS_THRESHOLD:
            alerts.append(
                ProgressionAlert(
                    name,
                    AlertType.HIGH_REGRESS,
                    f"Regress chosen {round(regress * 100)}% of the time",
                )
            )
        if 1 - acceptance > HIGH_OVERRIDE_THRESHOLD:
            alerts.append(
                ProgressionAlert(
                    name,
                    AlertType.HIGH_OVERRIDE,
                    f"Suggestions overridden {round((1 - acceptance) * 100)}% of the time",
                )
            )
    alerts.sort(key=lambda a: (_ALERT_RANK[a.type], a.exercise_name))
    return alerts


def summary(sessions: list[Session], now: datetime | None = None) -> dict:
    """Dashboard payload combining every read-model."""
    now = now or utc_now()
    return {
        "analyzed_sessions": len(sessions),
        "current_streak": current_streak(sessions, now),
        "workouts_this_week": workouts_this_week(sessions, now),
        "weekly_volume": [p.to_dict() for p in weekly_volume_trend(sessions, now=now)],
        "progression_breakdown": progression_breakdown(sessions, now=now).to_dict(),
        "most_trained_lifts": [t.to_dict() for t in most_trained_lifts(sessions)],
        "recent_prs": [pr.to_dict() for pr in recent_prs(sessions)],
        "engine_health": engine_health(sessions, now=now).to_dict(),
        "alerts": [a.to_dict() for a in progression_alerts(sessions, now=now)],
    }
