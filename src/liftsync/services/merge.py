"""Content hashing and local/remote merge for modules and workouts.

Everything here is synchronous and side-effect free over its inputs.

Children (module exercises, workout standalone exercises) are merged by id,
last write wins on the child's own ``updated_at``. Parent scalar fields come
from whichever parent is newer overall; they are not merged field by field.
"""

import copy
import hashlib
import json
from datetime import datetime
from typing import Any, TypeVar

from ..models.base import SyncStatus
from ..models.module import Module
from ..models.workout import Workout

# Sync bookkeeping, not content
_METADATA_KEYS = frozenset({"updated_at", "sync_status", "created_at"})

C = TypeVar("C")


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _canonical(v) for k, v in value.items() if k not in _METADATA_KEYS}
    if isinstance(value, list):
        items = [_canonical(v) for v in value]
        if items and all(isinstance(v, dict) and "order" in v for v in items):
            items.sort(key=lambda v: (v["order"], str(v.get("id") or "")))
        return items
    return value


def content_hash(entity) -> str:
    """SHA-256 of the entity's semantic content.

    Timestamps and sync status are dropped at every level, and ordered
    children are sorted by ``order`` so list position does not matter.
    """
    payload = json.dumps(_canonical(entity.to_dict()), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode()).hexdigest()


def needs_sync(entity, other) -> bool:
    """Whether two versions differ in content."""
    return content_hash(entity) != content_hash(other)


def merge_children(
    local: list[C],
    remote: list[C],
    child_tombstones: dict[str, datetime] | None = None,
) -> list[C]:
    """Merge two child lists by id, last write wins per child.

    Exact timestamp ties go to the child with the larger content hash, so
    the result does not depend on argument order. Children without an id
    are always new and appended. A child whose winning version is older
    than its tombstone in ``child_tombstones`` is dropped. The result is
    ordered by ``(order, id)``.
    """
    tombstones = child_tombstones or {}
    remote_by_id = {child.id: child for child in remote if child.id}
    merged: list[C] = []
    seen: set[str] = set()

    def keep(child) -> None:
        deleted_at = tombstones.get(child.id) if child.id else None
        if deleted_at is not None and deleted_at > child.updated_at:
            return
        merged.append(copy.deepcopy(child))

    for child in local:
        if not child.id:
            keep(child)
            continue
        seen.add(child.id)
        other = remote_by_id.get(child.id)
        keep(child if other is None else _later_child(child, other))

    for child in remote:
        if child.id and child.id in seen:
            continue
        if child.id:
            seen.add(child.id)
        keep(child)

    return sorted(merged, key=lambda c: (c.order, c.id or ""))


def _later_child(a, b):
    if a.updated_at != b.updated_at:
        return a if a.updated_at > b.updated_at else b
    return a if content_hash(a) >= content_hash(b) else b


def _newer(local, remote):
    # Ties go to the remote copy so a cloud refresh wins over a stale local read
    return remote if remote.updated_at >= local.updated_at else local


def merge_modules(
    local: Module,
    remote: Module,
    child_tombstones: dict[str, datetime] | None = None,
) -> Module:
    """Merge two versions of the same module."""
    newer = _newer(local, remote)
    return Module(
        id=local.id,
        name=newer.name,
        type=newer.type,
        exercises=merge_children(local.exercises, remote.exercises, child_tombstones),
        notes=newer.notes,
        estimated_duration=newer.estimated_duration,
        created_at=min(local.created_at, remote.created_at),
        updated_at=max(local.updated_at, remote.updated_at),
        sync_status=SyncStatus.SYNCED,
    )


def merge_workouts(
    local: Workout,
    remote: Workout,
    child_tombstones: dict[str, datetime] | None = None,
) -> Workout:
    """Merge two versions of the same workout.

    Standalone exercises are compared on the embedded exercise's
    ``updated_at``; module references travel with the newer parent.
    """
    newer = _newer(local, remote)
    return Workout(
        id=local.id,
        name=newer.name,
        module_references=copy.deepcopy(newer.module_references),
        standalone_exercises=merge_children(
            local.standalone_exercises, remote.standalone_exercises, child_tombstones
        ),
        notes=newer.notes,
        estimated_duration=newer.estimated_duration,
        archived=newer.archived,
        created_at=min(local.created_at, remote.created_at),
        updated_at=max(local.updated_at, remote.updated_at),
        sync_status=SyncStatus.SYNCED,
    )
