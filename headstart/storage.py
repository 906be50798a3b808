from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional

from headstart.models import BookSummary, SchemaError

SAVED_BOOKS_KEY = "headstart_saved"
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(RuntimeError):
    """Raised when stored data cannot be read back."""


class LocalStorage:
    """Durable key-value slots, one JSON text file per key."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _slot_path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key '{key}'.")
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._slot_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._slot_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")


def load_saved_books(storage: LocalStorage) -> list[BookSummary]:
    raw = storage.get_item(SAVED_BOOKS_KEY)
    if raw is None:
        return []
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Saved books slot is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise StorageError("Saved books slot must hold a JSON array.")
    try:
        return [BookSummary.from_dict(item) for item in payload]
    except SchemaError as exc:
        raise StorageError(f"Saved book entry is invalid: {exc}") from exc


def persist_saved_books(storage: LocalStorage, books: Iterable[BookSummary]) -> None:
    payload = [book.to_dict() for book in books]
    storage.set_item(SAVED_BOOKS_KEY, json.dumps(payload, ensure_ascii=False, indent=2) + "\n")


class SavedBooks:
    """User-curated book summaries keyed by id, persisted on every mutation."""

    def __init__(self, storage: LocalStorage, books: Iterable[BookSummary] = ()) -> None:
        self.storage = storage
        self._books: dict[str, BookSummary] = {}
        for book in books:
            self._books[book.id] = book

    @classmethod
    def load(cls, storage: LocalStorage) -> "SavedBooks":
        return cls(storage, load_saved_books(storage))

    def _persist(self) -> None:
        persist_saved_books(self.storage, self._books.values())

    def add(self, book: BookSummary) -> None:
        self._books[book.id] = book
        self._persist()

    def remove(self, book_id: str) -> bool:
        if book_id not in self._books:
            return False
        del self._books[book_id]
        self._persist()
        return True

    def toggle(self, book: BookSummary) -> bool:
        """Add the book if absent, remove it otherwise. Returns True when saved."""
        if book.id in self._books:
            self.remove(book.id)
            return False
        self.add(book)
        return True

    def get(self, book_id: str) -> Optional[BookSummary]:
        return self._books.get(book_id)

    def to_list(self) -> list[BookSummary]:
        return list(self._books.values())

    def __contains__(self, book_id: object) -> bool:
        return book_id in self._books

    def __iter__(self) -> Iterator[BookSummary]:
        return iter(list(self._books.values()))

    def __len__(self) -> int:
        return len(self._books)


__all__ = [
    "LocalStorage",
    "SAVED_BOOKS_KEY",
    "SavedBooks",
    "StorageError",
    "load_saved_books",
    "persist_saved_books",
]
