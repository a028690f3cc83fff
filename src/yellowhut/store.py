"""
Document store primitives.

Documents are JSON-shaped dicts addressed by a collection path and a
document id. Sub-collections are plain paths such as
``customers/ABC-1234/jobs``. Datetimes are written as UTC ISO 8601 strings
and ``SERVER_TIMESTAMP`` is replaced by the store's clock at write time.

Two implementations share these semantics: ``PgDocumentStore`` keeps one
JSONB row per document in PostgreSQL, ``MemoryDocumentStore`` keeps a dict.
"""
from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

import psycopg
from psycopg import Connection, sql
from psycopg.types.json import Jsonb

from .errors import AlreadyExists, StoreUnavailable


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def encode_value(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now.isoformat()
    if isinstance(value, datetime):
        # naive datetimes are taken as local time
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): encode_value(v, now) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v, now) for v in value]
    return value


def encode_document(data: dict[str, Any]) -> dict[str, Any]:
    return encode_value(data, utcnow())


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


class DocumentStore:
    """Interface shared by the store backends."""

    def get(self, collection: str, doc_id: str) -> Document | None:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
        raise NotImplementedError

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Insert-only write. Raises ``AlreadyExists`` when the id is taken."""
        raise NotImplementedError

    def query(self, collection: str, *, order_by: str | None = None, descending: bool = False) -> list[Document]:
        raise NotImplementedError

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        self.create(collection, doc_id, data)
        return doc_id


def _sort_key(value: Any) -> tuple:
    # missing values sort after present ones in both directions
    return (value is None, "" if value is None else str(value))


class MemoryDocumentStore(DocumentStore):
    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self.collections = collections if collections is not None else {}

    def get(self, collection: str, doc_id: str) -> Document | None:
        data = self.collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
        docs = self.collections.setdefault(collection, {})
        encoded = encode_document(data)
        if merge and doc_id in docs:
            docs[doc_id].update(encoded)
        else:
            docs[doc_id] = encoded

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        docs = self.collections.setdefault(collection, {})
        if doc_id in docs:
            raise AlreadyExists(f"Document {collection}/{doc_id} already exists")
        docs[doc_id] = encode_document(data)

    def query(self, collection: str, *, order_by: str | None = None, descending: bool = False) -> list[Document]:
        docs = [Document(id=k, data=copy.deepcopy(v)) for k, v in self.collections.get(collection, {}).items()]
        if order_by:
            present = [d for d in docs if d.data.get(order_by) is not None]
            missing = [d for d in docs if d.data.get(order_by) is None]
            present.sort(key=lambda d: _sort_key(d.data.get(order_by)), reverse=descending)
            docs = present + missing
        return docs


class PgDocumentStore(DocumentStore):
    """Documents in the ``document`` table, bound to one open connection."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def _execute(self, query, params: tuple):
        try:
            return self.conn.execute(query, params)
        except psycopg.Error as e:
            raise StoreUnavailable(f"Record store error: {e}") from e

    def get(self, collection: str, doc_id: str) -> Document | None:
        cur = self._execute(
            "SELECT doc_id, data FROM document WHERE collection = %s AND doc_id = %s;",
            (collection, doc_id),
        )
        row = cur.fetchone()
        if not row:
            return None
        return Document(id=row[0], data=dict(row[1]))

    def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
        on_conflict = "document.data || EXCLUDED.data" if merge else "EXCLUDED.data"
        self._execute(
            f"""
            INSERT INTO document(collection, doc_id, data)
            VALUES (%s, %s, %s)
            ON CONFLICT (collection, doc_id) DO UPDATE SET data = {on_conflict};
            """,
            (collection, doc_id, Jsonb(encode_document(data))),
        )

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        cur = self._execute(
            """
            INSERT INTO document(collection, doc_id, data)
            VALUES (%s, %s, %s)
            ON CONFLICT (collection, doc_id) DO NOTHING
            RETURNING doc_id;
            """,
            (collection, doc_id, Jsonb(encode_document(data))),
        )
        if cur.fetchone() is None:
            raise AlreadyExists(f"Document {collection}/{doc_id} already exists")

    def query(self, collection: str, *, order_by: str | None = None, descending: bool = False) -> list[Document]:
        if order_by:
            stmt = sql.SQL(
                "SELECT doc_id, data FROM document WHERE collection = %s "
                "ORDER BY data->>{field} {direction} NULLS LAST, doc_id;"
            ).format(
                field=sql.Literal(order_by),
                direction=sql.SQL("DESC" if descending else "ASC"),
            )
        else:
            stmt = "SELECT doc_id, data FROM document WHERE collection = %s;"
        cur = self._execute(stmt, (collection,))
        return [Document(id=row[0], data=dict(row[1])) for row in cur.fetchall()]
