"""Infrastructure layer for gallery persistence."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from svgforge.core.errors import StorageError
from svgforge.core.schema import GalleryItem, gallery_items_adapter
from svgforge.domain import GalleryItemType

logger = logging.getLogger(__name__)

GALLERY_STORAGE_KEY = "textoimagetosvg_gallery"
GALLERY_CAPACITY = 50


class KeyValueStore(Protocol):
    """Persistence contract for the gallery's backing medium.

    Any exception raised by ``set`` is reported to callers as ``StorageError``.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Simple in-memory medium for fast iteration and tests."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """Stores each key as a JSON document under a root directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def _path(self, key: str) -> Path:
        return self._root / f"{Path(key).name}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class GalleryStore:
    """Capacity-bounded history of pipeline outputs, newest first."""

    def __init__(
        self,
        medium: KeyValueStore,
        *,
        key: str = GALLERY_STORAGE_KEY,
        capacity: int = GALLERY_CAPACITY,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._medium = medium
        self._key = key
        self._capacity = capacity
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_id
        self._items: list[GalleryItem] | None = None

    @property
    def capacity(self) -> int:
        return self._capacity

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _load(self) -> list[GalleryItem]:
        if self._items is not None:
            return self._items

        try:
            raw = self._medium.get(self._key)
        except (OSError, UnicodeDecodeError):
            logger.exception("Error reading gallery items")
            raw = None

        items: list[GalleryItem] = []
        if raw:
            try:
                items = gallery_items_adapter.validate_json(raw)
            except ValidationError:
                logger.warning("Discarding unreadable gallery data under %r", self._key)
                items = []
        self._items = items[: self._capacity]
        return self._items

    def _persist(self, items: list[GalleryItem]) -> None:
        payload = gallery_items_adapter.dump_json(items).decode("utf-8")
        try:
            self._medium.set(self._key, payload)
        except Exception as exc:
            raise StorageError(f"Gallery write rejected: {exc}") from exc
        self._items = items

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def list(self) -> list[GalleryItem]:
        return list(self._load())

    def get(self, item_id: str) -> GalleryItem | None:
        return next((item for item in self._load() if item.id == item_id), None)

    def save(self, item_type: GalleryItemType | str, url: str, prompt: str) -> GalleryItem:
        item = GalleryItem(
            id=self._id_factory(),
            type=GalleryItemType(item_type),
            url=url,
            prompt=prompt,
            created_at=self._clock(),
        )
        updated = [item, *self._load()][: self._capacity]
        self._persist(updated)
        logger.info("Saved %s %s to gallery (%d items)", item.type.value, item.id, len(updated))
        return item

    def remove(self, item_id: str) -> None:
        existing = self._load()
        remaining = [item for item in existing if item.id != item_id]
        if len(remaining) == len(existing):
            return
        try:
            self._persist(remaining)
        except StorageError:
            logger.exception("Error removing gallery item %s", item_id)

    def clear(self) -> None:
        try:
            self._medium.remove(self._key)
        except OSError:
            logger.exception("Error clearing gallery")
            return
        self._items = []
