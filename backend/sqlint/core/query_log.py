"""
Append-only log of executed queries.

Every query run through a session gets one ``QueryLogEntry``. Entries are
frozen; the executor fills them in step by step with ``QueryLog.patch`` so the
log keeps a stable index for each query, also when execution fails halfway.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from sqlint.core.errors import LastError


@dataclass(frozen=True)
class QueryLogEntry:
    query: str
    original_query: str
    database: str | None
    settings: dict[str, Any]
    parameters: tuple[Any, ...] = ()
    types: str = ""
    error: LastError | None = None
    affected_rows: int | None = None
    rows: int | None = None
    result: Any = None
    last_insert_id: int | None = None
    last_insert_ids: tuple[int, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


class QueryLog:
    """Ordered entries; indices stay valid until an entry is discarded."""

    def __init__(self) -> None:
        self._entries: list[QueryLogEntry] = []

    def append(self, entry: QueryLogEntry) -> int:
        """Add *entry* and return its index."""
        self._entries.append(entry)
        return len(self._entries) - 1

    def patch(self, index: int, **changes: Any) -> QueryLogEntry:
        """Replace the entry at *index* with a copy carrying *changes*."""
        entry = dataclasses.replace(self._entries[index], **changes)
        self._entries[index] = entry
        return entry

    def discard(self, index: int = -1) -> QueryLogEntry:
        """Remove an internal bookkeeping query from the visible log."""
        return self._entries.pop(index)

    @property
    def entries(self) -> list[QueryLogEntry]:
        return list(self._entries)

    def __getitem__(self, index: int) -> QueryLogEntry:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QueryLogEntry]:
        return iter(list(self._entries))
