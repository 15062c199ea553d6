"""Dict-backed remote store for tests and embedders."""

import copy

from ..exceptions import RemoteUnavailable
from .base import BaseRemoteStore


class InMemoryRemoteStore(BaseRemoteStore):
    """Remote store holding documents in nested dicts.

    ``fail_on`` names operations (``"fetch"``, ``"save_workout"``,
    ``"save_deletions"``...) that raise ``RemoteUnavailable``; it can be
    changed between calls. Every attempted operation is appended to
    ``calls``.
    """

    def __init__(self, fail_on: set[str] | None = None):
        self.collections: dict[str, dict[str, dict]] = {}
        self.fail_on: set[str] = set(fail_on or ())
        self.calls: list[str] = []

    async def _guard(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise RemoteUnavailable(operation, f"Injected failure for {operation}")

    async def _list(self, collection: str) -> list[dict]:
        docs = self.collections.get(collection, {})
        return [copy.deepcopy(doc) for doc in docs.values()]

    async def _put(self, collection: str, doc_id: str, doc: dict) -> None:
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(doc)

    async def _remove(self, collection: str, doc_id: str) -> bool:
        return self.collections.get(collection, {}).pop(doc_id, None) is not None

    def document(self, collection: str, doc_id: str) -> dict | None:
        """Raw stored document, for assertions."""
        doc = self.collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def put_document(self, collection: str, doc: dict) -> None:
        """Seed a raw document as if another device had written it."""
        self.collections.setdefault(collection, {})[doc["id"]] = copy.deepcopy(doc)
