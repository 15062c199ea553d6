"""Sentinel encoding for optional set metrics at the storage edge.

Stored documents never hold ``null`` for optional numeric set metrics: an
absent value is written as ``0`` and any non-positive stored value reads back
as ``None``. In memory every metric is a proper optional.

Caveat: a legitimate zero does not survive the round trip. A bodyweight
movement saved with ``target_weight == 0`` loads with ``target_weight is
None``. Callers treat both as "no external load".
"""

# Metrics where zero or below is never a real measurement. Temperature is
# stored as-is since it can legitimately be zero or negative.
SET_DATA_SENTINEL_FIELDS = (
    "weight",
    "reps",
    "rpe",
    "duration",
    "distance",
    "pace",
    "avg_heart_rate",
    "hold_time",
    "intensity",
    "height",
    "quality",
    "rest_after",
)

SET_GROUP_SENTINEL_FIELDS = (
    "target_reps",
    "target_weight",
    "target_rpe",
    "target_duration",
    "target_distance",
    "target_hold_time",
    "rest_period",
)


def encode_optional_number(value: float | int | None) -> float | int:
    """None becomes 0 for storage."""
    return 0 if value is None else value


def decode_optional_number(value: float | int | None) -> float | int | None:
    """Any non-positive stored value means absent."""
    if value is None or value <= 0:
        return None
    return value


def _map_fields(data: dict, fields: tuple[str, ...], fn) -> dict:
    out = dict(data)
    for name in fields:
        out[name] = fn(out.get(name))
    return out


def encode_set_group(data: dict) -> dict:
    return _map_fields(data, SET_GROUP_SENTINEL_FIELDS, encode_optional_number)


def decode_set_group(data: dict) -> dict:
    return _map_fields(data, SET_GROUP_SENTINEL_FIELDS, decode_optional_number)


def encode_set_data(data: dict) -> dict:
    return _map_fields(data, SET_DATA_SENTINEL_FIELDS, encode_optional_number)


def decode_set_data(data: dict) -> dict:
    return _map_fields(data, SET_DATA_SENTINEL_FIELDS, decode_optional_number)


def _map_exercise(data: dict, group_fn) -> dict:
    out = dict(data)
    out["set_groups"] = [group_fn(g) for g in data.get("set_groups", [])]
    return out


def encode_module(data: dict) -> dict:
    """Apply sentinels to every set group of a module document."""
    out = dict(data)
    out["exercises"] = [_map_exercise(e, encode_set_group) for e in data.get("exercises", [])]
    return out


def decode_module(data: dict) -> dict:
    out = dict(data)
    out["exercises"] = [_map_exercise(e, decode_set_group) for e in data.get("exercises", [])]
    return out


def encode_workout(data: dict) -> dict:
    """Apply sentinels to the set groups of standalone exercises."""
    out = dict(data)
    out["standalone_exercises"] = [
        {**entry, "exercise": _map_exercise(entry["exercise"], encode_set_group)}
        for entry in data.get("standalone_exercises", [])
    ]
    return out


def decode_workout(data: dict) -> dict:
    out = dict(data)
    out["standalone_exercises"] = [
        {**entry, "exercise": _map_exercise(entry["exercise"], decode_set_group)}
        for entry in data.get("standalone_exercises", [])
    ]
    return out


def _map_session(data: dict, set_fn) -> dict:
    out = dict(data)
    modules = []
    for module in data.get("completed_modules", []):
        exercises = []
        for exercise in module.get("completed_exercises", []):
            groups = [
                {**group, "sets": [set_fn(s) for s in group.get("sets", [])]}
                for group in exercise.get("completed_set_groups", [])
            ]
            exercises.append({**exercise, "completed_set_groups": groups})
        modules.append({**module, "completed_exercises": exercises})
    out["completed_modules"] = modules
    return out


def encode_session(data: dict) -> dict:
    """Apply sentinels to every logged set of a session document."""
    return _map_session(data, encode_set_data)


def decode_session(data: dict) -> dict:
    return _map_session(data, decode_set_data)
