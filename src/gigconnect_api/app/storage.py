"""Document storage for tasks and bids.

Beginner terms:
- Collection: a named set of JSON documents (here "tasks" and "bids").
- JSONB: PostgreSQL JSON type; each collection is a table of JSONB documents.
- Connection pool: a set of open connections shared by all requests, opened
  once when the app starts and closed when it stops.
- Containment (``@>``): JSONB operator used for "field equals value" filters.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

ASCENDING = 1
DESCENDING = -1

SortSpec = tuple[str, Literal[1, -1]]

COLLECTION_NAMES = ("tasks", "bids")

# Indexed JSONB fields per collection, matching the filters/sorts the handlers use.
_INDEXED_FIELDS: dict[str, tuple[str, ...]] = {
    "tasks": ("deadline", "creatorEmail", "createdAt"),
    "bids": ("taskId", "bidderEmail", "bidPlacedAt"),
}


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int


def new_document_id() -> str:
    return str(uuid.uuid4())


def parse_document_id(raw: str) -> str | None:
    """Return the canonical form of ``raw`` or None when it is not an identifier."""
    try:
        return str(uuid.UUID(raw))
    except (TypeError, ValueError, AttributeError):
        return None


class Collection(Protocol):
    async def insert_one(self, document: dict[str, Any]) -> str: ...

    async def find_one(self, doc_id: str) -> dict[str, Any] | None: ...

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def count(self, filter: dict[str, Any] | None = None) -> int: ...

    async def update_one(
        self,
        doc_id: str,
        changes: dict[str, Any],
        *,
        stamp: dict[str, Any] | None = None,
    ) -> UpdateResult: ...

    async def delete_one(self, doc_id: str) -> int: ...


class DocumentStore(Protocol):
    backend_name: str
    tasks: Collection
    bids: Collection

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def migrate(self) -> None: ...


class PostgresCollection:
    """One collection stored as ``(id UUID, document JSONB)`` rows."""

    def __init__(self, store: PostgresDocumentStore, name: str) -> None:
        if name not in COLLECTION_NAMES:
            raise ValueError(f"Unknown collection: {name}")
        self.name = name
        self._store = store
        self._table = store._sql.Identifier(name)

    async def insert_one(self, document: dict[str, Any]) -> str:
        doc_id = new_document_id()
        query = self._store._sql.SQL("INSERT INTO {} (id, document) VALUES (%s, %s)").format(
            self._table
        )
        async with self._store.connection() as conn:
            await conn.execute(query, (uuid.UUID(doc_id), self._store._json_wrapper(document)))
        return doc_id

    async def find_one(self, doc_id: str) -> dict[str, Any] | None:
        query = self._store._sql.SQL("SELECT id, document FROM {} WHERE id = %s").format(
            self._table
        )
        async with self._store.connection() as conn:
            cursor = await conn.execute(query, (uuid.UUID(doc_id),))
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_document(row)

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        sql = self._store._sql
        parts = [sql.SQL("SELECT id, document FROM {}").format(self._table)]
        params: list[Any] = []
        if filter:
            parts.append(sql.SQL("WHERE document @> %s"))
            params.append(self._store._json_wrapper(filter))
        if sort is not None:
            field, direction = sort
            parts.append(
                sql.SQL("ORDER BY document->>{} {}, id").format(
                    sql.Literal(field),
                    sql.SQL("ASC" if direction == ASCENDING else "DESC"),
                )
            )
        if limit is not None:
            parts.append(sql.SQL("LIMIT %s"))
            params.append(limit)
        if skip:
            parts.append(sql.SQL("OFFSET %s"))
            params.append(skip)
        async with self._store.connection() as conn:
            cursor = await conn.execute(sql.SQL(" ").join(parts), params)
            rows = await cursor.fetchall()
        return [_row_to_document(row) for row in rows]

    async def count(self, filter: dict[str, Any] | None = None) -> int:
        sql = self._store._sql
        query = sql.SQL("SELECT COUNT(*) AS total FROM {}").format(self._table)
        params: list[Any] = []
        if filter:
            query = sql.SQL("{} WHERE document @> %s").format(query)
            params.append(self._store._json_wrapper(filter))
        async with self._store.connection() as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
        return int(row["total"]) if row else 0

    async def update_one(
        self,
        doc_id: str,
        changes: dict[str, Any],
        *,
        stamp: dict[str, Any] | None = None,
    ) -> UpdateResult:
        sql = self._store._sql
        select = sql.SQL("SELECT document FROM {} WHERE id = %s FOR UPDATE").format(self._table)
        update = sql.SQL("UPDATE {} SET document = %s WHERE id = %s").format(self._table)
        async with self._store.connection() as conn:
            async with conn.transaction():
                cursor = await conn.execute(select, (uuid.UUID(doc_id),))
                row = await cursor.fetchone()
                if row is None:
                    return UpdateResult(matched_count=0, modified_count=0)
                current = dict(row["document"])
                merged = {**current, **changes}
                if merged == current:
                    return UpdateResult(matched_count=1, modified_count=0)
                merged.update(stamp or {})
                await conn.execute(update, (self._store._json_wrapper(merged), uuid.UUID(doc_id)))
        return UpdateResult(matched_count=1, modified_count=1)

    async def delete_one(self, doc_id: str) -> int:
        query = self._store._sql.SQL("DELETE FROM {} WHERE id = %s").format(self._table)
        async with self._store.connection() as conn:
            cursor = await conn.execute(query, (uuid.UUID(doc_id),))
            return cursor.rowcount


class PostgresDocumentStore:
    """PostgreSQL-backed document store with one pool for the process lifetime."""

    backend_name = "PostgreSQL"

    def __init__(self, database_url: str, *, min_size: int = 1, max_size: int = 10) -> None:
        if not database_url:
            raise ValueError("GIGCONNECT_DATABASE_URL is required")
        self.database_url = database_url
        self.min_size = min_size
        self.max_size = max_size
        # Lazy import helper keeps error message clear if psycopg is missing.
        (
            self._pool_class,
            self._dict_row,
            self._json_wrapper,
            self._sql,
        ) = self._load_psycopg()
        self._pool: Any = None
        self.tasks = PostgresCollection(self, "tasks")
        self.bids = PostgresCollection(self, "bids")

    async def open(self) -> None:
        if self._pool is not None:
            return
        self._pool = self._pool_class(
            self.database_url,
            min_size=self.min_size,
            max_size=self.max_size,
            kwargs={"row_factory": self._dict_row},
            open=False,
        )
        await self._pool.open(wait=True)
        logger.info(
            "document_store event=opened backend=postgres min_size=%s max_size=%s",
            self.min_size,
            self.max_size,
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("document_store event=closed backend=postgres")

    async def migrate(self) -> None:
        """Create collection tables and expression indexes if they do not exist."""
        sql = self._sql
        async with self.connection() as conn:
            for name in COLLECTION_NAMES:
                await conn.execute(
                    sql.SQL(
                        """
                        CREATE TABLE IF NOT EXISTS {} (
                            id UUID PRIMARY KEY,
                            document JSONB NOT NULL
                        )
                        """
                    ).format(sql.Identifier(name))
                )
                for field in _INDEXED_FIELDS[name]:
                    await conn.execute(
                        sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} ((document->>{}))").format(
                            sql.Identifier(f"idx_{name}_{field.lower()}"),
                            sql.Identifier(name),
                            sql.Literal(field),
                        )
                    )
        logger.info("document_store event=migrated collections=%s", ",".join(COLLECTION_NAMES))

    def connection(self) -> Any:
        """Borrow a pooled connection; commits on clean exit, rolls back on error."""
        if self._pool is None:
            raise RuntimeError("Document store is not open")
        return self._pool.connection()

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any, Any]:
        """Import psycopg and helpers with a friendly install hint on failure."""
        try:
            from psycopg import sql
            from psycopg.rows import dict_row
            from psycopg.types.json import Jsonb
            from psycopg_pool import AsyncConnectionPool
        except ImportError as exc:  # pragma: no cover - exercised only without dependency
            raise RuntimeError(
                "PostgreSQL storage requires psycopg with the pool extra. Install with: "
                'python -m pip install "psycopg[binary,pool]>=3.2,<4.0"'
            ) from exc
        return AsyncConnectionPool, dict_row, Jsonb, sql


def _row_to_document(row: Any) -> dict[str, Any]:
    """Map one ``(id, document)`` row to the API shape with ``_id`` first."""
    document = row["document"]
    return {"_id": str(row["id"]), **{k: v for k, v in document.items() if k != "_id"}}
