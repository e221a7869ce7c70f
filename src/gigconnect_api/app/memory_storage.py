"""In-memory document store for tests and local demos."""

from __future__ import annotations

import copy
from typing import Any

from .storage import ASCENDING, SortSpec, UpdateResult, new_document_id


class InMemoryCollection:
    """Dict-backed collection with the same semantics as PostgresCollection."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._documents: dict[str, dict[str, Any]] = {}

    async def insert_one(self, document: dict[str, Any]) -> str:
        doc_id = new_document_id()
        self._documents[doc_id] = copy.deepcopy(document)
        return doc_id

    async def find_one(self, doc_id: str) -> dict[str, Any] | None:
        document = self._documents.get(doc_id)
        if document is None:
            return None
        return {"_id": doc_id, **copy.deepcopy(document)}

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        matches = [
            {"_id": doc_id, **copy.deepcopy(document)}
            for doc_id, document in self._documents.items()
            if _matches(document, filter)
        ]
        if sort is not None:
            field, direction = sort
            # Stable tie-break on id, then order by the field's text form like the SQL backend.
            matches.sort(key=lambda item: item["_id"])
            matches.sort(
                key=lambda item: _sort_text(item.get(field)),
                reverse=direction != ASCENDING,
            )
        matches = matches[skip:]
        if limit is not None:
            matches = matches[:limit]
        return matches

    async def count(self, filter: dict[str, Any] | None = None) -> int:
        return sum(1 for document in self._documents.values() if _matches(document, filter))

    async def update_one(
        self,
        doc_id: str,
        changes: dict[str, Any],
        *,
        stamp: dict[str, Any] | None = None,
    ) -> UpdateResult:
        current = self._documents.get(doc_id)
        if current is None:
            return UpdateResult(matched_count=0, modified_count=0)
        merged = {**current, **copy.deepcopy(changes)}
        if merged == current:
            return UpdateResult(matched_count=1, modified_count=0)
        merged.update(stamp or {})
        self._documents[doc_id] = merged
        return UpdateResult(matched_count=1, modified_count=1)

    async def delete_one(self, doc_id: str) -> int:
        if self._documents.pop(doc_id, None) is None:
            return 0
        return 1


class InMemoryDocumentStore:
    """Simple in-memory implementation for unit tests."""

    backend_name = "in-memory"

    def __init__(self) -> None:
        self.tasks = InMemoryCollection("tasks")
        self.bids = InMemoryCollection("bids")
        self.is_open = False

    async def open(self) -> None:
        self.is_open = True

    async def close(self) -> None:
        self.is_open = False

    async def migrate(self) -> None:
        return None


def _matches(document: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(key in document and document[key] == value for key, value in filter.items())


def _sort_text(value: Any) -> tuple[int, str]:
    # SQL sorts NULL last in ascending order; mirror that for missing fields.
    if value is None:
        return (1, "")
    return (0, str(value))
