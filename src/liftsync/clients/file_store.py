"""Remote store backed by a directory of JSON documents."""

import asyncio
import json
from pathlib import Path

from ..exceptions import RemoteUnavailable
from ..utils.logging import get_logger
from .base import BaseRemoteStore

logger = get_logger(__name__)


class JsonDirectoryRemoteStore(BaseRemoteStore):
    """Documents stored as ``<root>/<collection>/<id>.json``.

    Stands in for a cloud document store: point several local databases at
    the same directory (a synced folder, a network share) to sync between
    them. The root must exist; ``create()`` makes one.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @classmethod
    def create(cls, root: Path) -> "JsonDirectoryRemoteStore":
        """Create the root directory if needed and return a store on it."""
        Path(root).mkdir(parents=True, exist_ok=True)
        return cls(root)

    async def _guard(self, operation: str) -> None:
        if not self.root.is_dir():
            raise RemoteUnavailable(operation, f"Remote directory not found: {self.root}")

    def _doc_path(self, collection: str, doc_id: str) -> Path:
        return self.root / collection / f"{doc_id}.json"

    def _read_collection(self, collection: str) -> list[dict]:
        directory = self.root / collection
        if not directory.is_dir():
            return []
        docs = []
        for path in sorted(directory.glob("*.json")):
            try:
                docs.append(json.loads(path.read_text()))
            except (OSError, json.JSONDecodeError) as e:
                raise RemoteUnavailable(
                    "fetch",
                    f"Unreadable remote document {path.name}: {e}",
                    {"collection": collection, "path": str(path)},
                ) from e
        return docs

    def _write_doc(self, collection: str, doc_id: str, doc: dict) -> None:
        path = self._doc_path(collection, doc_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(doc, indent=2, sort_keys=True))
        tmp.replace(path)

    def _remove_doc(self, collection: str, doc_id: str) -> bool:
        path = self._doc_path(collection, doc_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    async def _list(self, collection: str) -> list[dict]:
        return await asyncio.to_thread(self._read_collection, collection)

    async def _put(self, collection: str, doc_id: str, doc: dict) -> None:
        try:
            await asyncio.to_thread(self._write_doc, collection, doc_id, doc)
        except OSError as e:
            raise RemoteUnavailable("save", f"Failed to write {collection}/{doc_id}: {e}") from e
        logger.debug("remote document written", collection=collection, doc_id=doc_id)

    async def _remove(self, collection: str, doc_id: str) -> bool:
        try:
            return await asyncio.to_thread(self._remove_doc, collection, doc_id)
        except OSError as e:
            raise RemoteUnavailable("delete", f"Failed to remove {collection}/{doc_id}: {e}") from e
