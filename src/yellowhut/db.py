from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

import psycopg
from psycopg import Connection

from .config import AppConfig, ConfigError, DbConfig
from .errors import StoreUnavailable
from .store import DocumentStore, MemoryDocumentStore, PgDocumentStore

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS document (
    collection  TEXT        NOT NULL,
    doc_id      TEXT        NOT NULL,
    data        JSONB       NOT NULL DEFAULT '{}'::jsonb,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (collection, doc_id)
);
"""


@dataclass(frozen=True)
class Db:
    cfg: DbConfig

    def connect(self) -> Connection:
        try:
            return psycopg.connect(
                host=self.cfg.host,
                port=self.cfg.port,
                dbname=self.cfg.name,
                user=self.cfg.user,
                password=self.cfg.password,
                sslmode=self.cfg.sslmode,
                autocommit=True,
            )
        except Exception as e:
            raise StoreUnavailable(
                "Cannot connect to database. Check config.toml [db] and that PostgreSQL is running."
            ) from e

    def init_schema(self) -> None:
        conn = self.connect()
        try:
            conn.execute(SCHEMA_SQL)
        except psycopg.Error as e:
            raise StoreUnavailable(f"Failed to create schema: {e}") from e
        finally:
            conn.close()
        logger.info("Document table ready on %s/%s", self.cfg.host, self.cfg.name)

    @contextmanager
    def session(self) -> Iterator[DocumentStore]:
        conn = self.connect()
        try:
            yield PgDocumentStore(conn)
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[DocumentStore]:
        conn = self.connect()
        try:
            conn.execute("BEGIN;")
            yield PgDocumentStore(conn)
            conn.execute("COMMIT;")
        except psycopg.Error as e:
            _rollback(conn)
            raise StoreUnavailable(f"Transaction failed: {e}") from e
        except Exception:
            _rollback(conn)
            raise
        finally:
            conn.close()


def _rollback(conn: Connection) -> None:
    try:
        conn.execute("ROLLBACK;")
    except psycopg.Error as e:
        logger.warning("Rollback failed, connection is probably gone: %s", e)


@dataclass
class MemoryDb:
    """Process-local backend used for demos and tests."""

    collections: dict = field(default_factory=dict)

    def init_schema(self) -> None:
        pass

    @contextmanager
    def session(self) -> Iterator[DocumentStore]:
        yield MemoryDocumentStore(self.collections)

    @contextmanager
    def transaction(self) -> Iterator[DocumentStore]:
        snapshot = copy.deepcopy(self.collections)
        try:
            yield MemoryDocumentStore(self.collections)
        except Exception:
            self.collections.clear()
            self.collections.update(snapshot)
            raise


def open_db(cfg: AppConfig) -> Db | MemoryDb:
    if cfg.store.backend == "memory":
        logger.warning("Using the in-memory store; records are lost on exit")
        return MemoryDb()
    if cfg.db is None:
        raise ConfigError("Missing [db] section for the postgres backend")
    return Db(cfg.db)
