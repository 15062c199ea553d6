"""Next-session weight and rep suggestions from workout history.

Two policies:

- fixed: the program's default rule applied to every strength exercise
  that has history in the same workout.
- adaptive: per-exercise rules and a per-exercise state machine
  (success/fail streaks, confidence) decide whether to progress, hold or
  back off.

All functions here are synchronous and leave their inputs untouched,
except ``apply_session_outcomes`` which updates the program and session it
is given.
"""

import dataclasses
import math
from datetime import datetime
from enum import Enum

from ..models.base import utc_now
from ..models.exercises import ExerciseType
from ..models.module import Module
from ..models.program import (
    ExerciseProgressionState,
    Program,
    ProgressionMetric,
    ProgressionPolicy,
    ProgressionRecommendation,
    ProgressionRule,
    ProgressionStrategy,
    ProgressionSuggestion,
)
from ..models.session import CompletedSetGroup, Session, SessionExercise, SetData
from ..models.workout import Workout

DEFAULT_CONFIDENCE = 0.5
DEFAULT_HISTORY_SIZE = 8
DEFAULT_LEARNING_RATE = 0.25
STREAK_THRESHOLD = 2

_EPSILON = 1e-9

_CONFIDENCE_TARGETS = {
    ProgressionRecommendation.PROGRESS: 1.0,
    ProgressionRecommendation.STAY: 0.5,
    ProgressionRecommendation.REGRESS: 0.0,
}


class DecisionCode(str, Enum):
    """Why a suggestion came out the way it did."""

    BASELINE_RULE = "BASELINE_RULE"
    DOUBLE_PROGRESSION_GATE = "DOUBLE_PROGRESSION_GATE"
    STREAK_REGRESS = "STREAK_REGRESS"
    STREAK_PROGRESS = "STREAK_PROGRESS"
    MANUAL_OVERRIDE = "MANUAL_OVERRIDE"
    ADAPTIVE_HOLD = "ADAPTIVE_HOLD"


def round_to_increment(value: float, increment: float) -> float:
    """Round to the nearest multiple of ``increment``, ties up."""
    return math.floor(value / increment + 0.5 + _EPSILON) * increment


def round_down_to_increment(value: float, increment: float) -> float:
    return math.floor(value / increment + _EPSILON) * increment


def _has_completed_strength_data(exercise: SessionExercise) -> bool:
    return any(s.weight is not None and s.reps is not None for s in exercise.completed_sets)


def find_last_exercise(
    history: list[Session],
    workout_id: str,
    exercise_name: str,
    instance_id: str | None = None,
) -> SessionExercise | None:
    """Most recent performance of an exercise in the same workout.

    Sessions are scanned newest first and skipped modules are ignored.
    Within a session a match on the source instance id beats a name match.
    Only performances with at least one completed weighted set count.
    """
    for session in sorted(history, key=lambda s: s.date, reverse=True):
        if session.workout_id != workout_id:
            continue
        candidates = [e for e in session.performed_exercises if _has_completed_strength_data(e)]
        if instance_id:
            for exercise in candidates:
                if exercise.source_exercise_instance_id == instance_id:
                    return exercise
        for exercise in candidates:
            if exercise.exercise_name == exercise_name:
                return exercise
    return None


def _baseline(last: SessionExercise, metric: ProgressionMetric) -> float | None:
    """Max completed weight (or reps). Incomplete sets never count."""
    if metric == ProgressionMetric.REPS:
        values = [s.reps for s in last.completed_sets if s.reps is not None]
    else:
        values = [s.weight for s in last.completed_sets if s.weight is not None]
    if not values:
        return None
    base = float(max(values))
    return base if base > 0 else None


def _progressed_value(base: float, rule: ProgressionRule) -> float:
    raw = base * (1 + rule.percentage_increase / 100)
    if rule.target_metric == ProgressionMetric.REPS:
        floor = base + 1
    else:
        floor = base + rule.rounding_increment
    bumped = max(raw, base + (rule.minimum_increase or 0))
    return max(round_to_increment(bumped, rule.rounding_increment), floor)


def _regressed_value(base: float, rule: ProgressionRule) -> float:
    raw = base * (1 - rule.percentage_increase / 100)
    lowest = 1.0 if rule.target_metric == ProgressionMetric.REPS else 0.0
    return max(round_down_to_increment(raw, rule.rounding_increment), lowest)


def _build(
    base: float,
    suggested: float,
    rule: ProgressionRule,
    outcome: ProgressionRecommendation | None,
    code: DecisionCode,
    adjusted: bool,
    confidence: float | None,
) -> ProgressionSuggestion:
    return ProgressionSuggestion(
        base_value=base,
        suggested_value=suggested,
        metric=rule.target_metric,
        percentage_applied=(suggested - base) / base * 100 if base > 0 else 0.0,
        applied_outcome=outcome,
        is_outcome_adjusted=adjusted,
        decision_code=code.value,
        confidence=confidence,
    )


def _outcome_value(
    outcome: ProgressionRecommendation, base: float, rule: ProgressionRule
) -> float:
    if outcome == ProgressionRecommendation.PROGRESS:
        return _progressed_value(base, rule)
    if outcome == ProgressionRecommendation.REGRESS:
        return _regressed_value(base, rule)
    return base


def double_progression_gate(
    current: SessionExercise, last: SessionExercise, rule: ProgressionRule
) -> ProgressionRecommendation | None:
    """Progress only once last session's reps reached the current rep target.

    The target is the highest rep count prescribed for the current
    exercise; achieved reps count only completed sets at a working weight.
    Returns None when the rule is not a double-progression weight rule or
    there is no rep target.
    """
    if (
        rule.target_metric != ProgressionMetric.WEIGHT
        or rule.strategy != ProgressionStrategy.DOUBLE_PROGRESSION
    ):
        return None
    targets = [s.reps for s in current.all_sets if s.reps]
    if not targets:
        return None
    achieved = [s.reps for s in last.completed_sets if s.reps and (s.weight or 0) > 0]
    if max(achieved, default=0) >= max(targets):
        return ProgressionRecommendation.PROGRESS
    return ProgressionRecommendation.STAY


def _fixed_suggestion(
    current: SessionExercise, last: SessionExercise, rule: ProgressionRule
) -> ProgressionSuggestion | None:
    base = _baseline(last, rule.target_metric)
    if base is None:
        return None
    if double_progression_gate(current, last, rule) == ProgressionRecommendation.STAY:
        return _build(
            base,
            base,
            rule,
            ProgressionRecommendation.STAY,
            DecisionCode.DOUBLE_PROGRESSION_GATE,
            adjusted=False,
            confidence=None,
        )
    return _build(
        base,
        _progressed_value(base, rule),
        rule,
        None,
        DecisionCode.BASELINE_RULE,
        adjusted=False,
        confidence=None,
    )


def _adaptive_suggestion(
    current: SessionExercise,
    last: SessionExercise,
    rule: ProgressionRule,
    state: ExerciseProgressionState | None,
) -> ProgressionSuggestion | None:
    base = _baseline(last, rule.target_metric)
    if base is None:
        return None
    confidence = state.confidence if state else DEFAULT_CONFIDENCE

    gate = double_progression_gate(current, last, rule)
    if state and state.fail_streak >= STREAK_THRESHOLD:
        outcome, code = ProgressionRecommendation.REGRESS, DecisionCode.STREAK_REGRESS
    elif state and state.success_streak >= STREAK_THRESHOLD:
        outcome, code = ProgressionRecommendation.PROGRESS, DecisionCode.STREAK_PROGRESS
    elif last.progression_recommendation is not None:
        outcome, code = last.progression_recommendation, DecisionCode.MANUAL_OVERRIDE
    elif gate is not None:
        outcome, code = gate, DecisionCode.DOUBLE_PROGRESSION_GATE
    else:
        outcome, code = ProgressionRecommendation.STAY, DecisionCode.ADAPTIVE_HOLD

    return _build(
        base,
        _outcome_value(outcome, base, rule),
        rule,
        outcome,
        code,
        adjusted=True,
        confidence=confidence,
    )


def planned_exercises(
    workout: Workout, modules: list[Module], names: dict[str, str] | None = None
) -> list[SessionExercise]:
    """Fresh session exercises for a workout, prescriptions filled in as targets.

    Modules are taken in reference order, then standalone exercises.
    ``names`` maps template ids to names for instances that only reference
    the exercise library.
    """
    names = names or {}
    by_id = {m.id: m for m in modules}
    instances = [
        instance
        for module_id in workout.module_ids
        if module_id in by_id
        for instance in by_id[module_id].sorted_exercises
    ]
    instances += [
        entry.exercise for entry in sorted(workout.standalone_exercises, key=lambda e: e.order)
    ]

    planned = []
    for instance in instances:
        groups = [
            CompletedSetGroup(
                set_group_id=group.id,
                rest_period=group.rest_period,
                sets=[
                    SetData(set_number=n, weight=group.target_weight, reps=group.target_reps)
                    for n in range(1, group.sets + 1)
                ],
            )
            for group in instance.set_groups
        ]
        planned.append(
            SessionExercise(
                exercise_name=instance.name or names.get(instance.template_id or "", ""),
                exercise_id=instance.template_id,
                exercise_type=instance.exercise_type,
                completed_set_groups=groups,
                superset_group_id=instance.superset_group_id,
                source_exercise_instance_id=instance.id,
            )
        )
    return planned


def calculate_suggestions(
    current_exercises: list[SessionExercise],
    workout_id: str,
    program: Program | None,
    session_history: list[Session],
) -> dict[str, ProgressionSuggestion]:
    """Suggestions for the exercises of a session being started.

    Keyed by session exercise id. Exercises without a suggestion (not
    strength, no history in this workout, progression off for them) are
    simply absent.
    """
    suggestions: dict[str, ProgressionSuggestion] = {}
    if program is None or not program.progression_enabled:
        return suggestions

    adaptive = program.progression_policy == ProgressionPolicy.ADAPTIVE
    for exercise in current_exercises:
        if exercise.exercise_type != ExerciseType.STRENGTH:
            continue
        instance_id = exercise.source_exercise_instance_id

        if adaptive:
            if not instance_id or not program.is_progression_enabled_for(instance_id):
                continue
            rule = program.progression_rule_for(instance_id)
        else:
            rule = program.default_progression_rule
        if rule is None:
            continue

        last = find_last_exercise(
            session_history, workout_id, exercise.exercise_name, instance_id
        )
        if last is None:
            continue

        if adaptive:
            state = program.exercise_progression_states.get(instance_id)
            suggestion = _adaptive_suggestion(exercise, last, rule, state)
        else:
            suggestion = _fixed_suggestion(exercise, last, rule)
        if suggestion is not None:
            suggestions[exercise.id] = suggestion
    return suggestions


def infer_progression_outcome(
    exercise: SessionExercise,
    suggestion: ProgressionSuggestion,
    target_reps: int | None = None,
) -> ProgressionRecommendation | None:
    """Compare what was done against what was suggested.

    Weight suggestions: a completed set at or above the suggested weight
    (with at least ``target_reps`` reps when a target is known) is
    progress; reaching the weight but missing the reps is stay; never
    reaching the weight is regress. Rep suggestions compare the best rep
    count against the suggested and base counts. Returns None when the
    exercise has no completed sets.
    """
    sets = exercise.completed_sets
    if not sets:
        return None

    if suggestion.metric == ProgressionMetric.REPS:
        best = max((s.reps for s in sets if s.reps is not None), default=None)
        if best is None:
            return None
        if best >= suggestion.suggested_value - _EPSILON:
            return ProgressionRecommendation.PROGRESS
        if best >= suggestion.base_value - _EPSILON:
            return ProgressionRecommendation.STAY
        return ProgressionRecommendation.REGRESS

    at_weight = [
        s
        for s in sets
        if s.weight is not None and s.weight >= suggestion.suggested_value - _EPSILON
    ]
    if not at_weight:
        return ProgressionRecommendation.REGRESS
    if target_reps is None or any((s.reps or 0) >= target_reps for s in at_weight):
        return ProgressionRecommendation.PROGRESS
    return ProgressionRecommendation.STAY


def update_progression_state(
    state: ExerciseProgressionState | None,
    outcome: ProgressionRecommendation,
    prescribed_weight: float | None,
    prescribed_reps: int | None,
    now: datetime | None = None,
    history_size: int = DEFAULT_HISTORY_SIZE,
    learning_rate: float = DEFAULT_LEARNING_RATE,
) -> ExerciseProgressionState:
    """Fold one outcome into an exercise's adaptive state.

    Progress extends the success streak, regress the fail streak; each
    resets the other, and stay resets both. Confidence moves a fixed
    fraction (``learning_rate``) of the way toward 1, 0.5 or 0 for
    progress, stay and regress, so it stays within [0, 1].
    """
    state = state or ExerciseProgressionState()
    if outcome == ProgressionRecommendation.PROGRESS:
        success, fail = state.success_streak + 1, 0
    elif outcome == ProgressionRecommendation.REGRESS:
        success, fail = 0, state.fail_streak + 1
    else:
        success, fail = 0, 0

    target = _CONFIDENCE_TARGETS[outcome]
    confidence = state.confidence + learning_rate * (target - state.confidence)

    return dataclasses.replace(
        state,
        success_streak=success,
        fail_streak=fail,
        confidence=min(1.0, max(0.0, confidence)),
        recent_outcomes=([outcome] + list(state.recent_outcomes))[:history_size],
        last_prescribed_weight=prescribed_weight,
        last_prescribed_reps=prescribed_reps,
        last_updated_at=now or utc_now(),
    )


def _performed_load(exercise: SessionExercise) -> tuple[float | None, int | None]:
    """Top completed weight and the best reps achieved at it."""
    weighted = [s for s in exercise.completed_sets if s.weight is not None]
    if not weighted:
        reps = [s.reps for s in exercise.completed_sets if s.reps is not None]
        return None, max(reps, default=None)
    top = max(s.weight for s in weighted)
    reps = [s.reps for s in weighted if s.weight == top and s.reps is not None]
    return top, max(reps, default=None)


def apply_session_outcomes(
    program: Program,
    session: Session,
    now: datetime | None = None,
    history_size: int = DEFAULT_HISTORY_SIZE,
    learning_rate: float = DEFAULT_LEARNING_RATE,
) -> dict[str, ProgressionRecommendation]:
    """Update the program's adaptive state from a finished session.

    Every exercise that carries a persisted suggestion and a source
    instance id gets its outcome inferred; the outcome is also stored as
    the exercise's recommendation unless one was set by hand. Returns the
    inferred outcomes keyed by instance id.
    """
    outcomes: dict[str, ProgressionRecommendation] = {}
    for exercise in session.performed_exercises:
        instance_id = exercise.source_exercise_instance_id
        if exercise.progression_suggestion is None or not instance_id:
            continue
        previous = program.exercise_progression_states.get(instance_id)
        outcome = infer_progression_outcome(
            exercise,
            exercise.progression_suggestion,
            target_reps=previous.last_prescribed_reps if previous else None,
        )
        if outcome is None:
            continue
        weight, reps = _performed_load(exercise)
        program.set_progression_state(
            instance_id,
            update_progression_state(
                previous,
                outcome,
                weight,
                reps,
                now=now,
                history_size=history_size,
                learning_rate=learning_rate,
            ),
        )
        if exercise.progression_recommendation is None:
            exercise.progression_recommendation = outcome
        outcomes[instance_id] = outcome
    return outcomes
