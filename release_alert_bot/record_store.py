#!/usr/bin/env python3
"""
Record Store
Key/value persistence for release records with get/put/scan and
read-modify-write transactions.

SqliteRecordStore is the production backend. InMemoryRecordStore offers the
same semantics without a database file.
"""

import copy
import json
import logging
import sqlite3
import threading
from contextlib import closing, contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import StoreError


# Database configuration
DEFAULT_DB_PATH = "releases.db"

# Database schema
CREATE_RELEASES_TABLE = """
    CREATE TABLE IF NOT EXISTS movie_releases (
        key TEXT PRIMARY KEY,
        record TEXT NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
"""


class RecordStore:
    """
    Base class for record backends

    Subclasses implement transaction() and scan_all(); single-record
    operations run as one-statement transactions.
    """

    def transaction(self):
        raise NotImplementedError

    def scan_all(self) -> List[Tuple[str, Dict]]:
        raise NotImplementedError

    def get(self, key: str) -> Optional[Dict]:
        with self.transaction() as tx:
            return tx.get(key)

    def put(self, key: str, record: Dict):
        with self.transaction() as tx:
            tx.put(key, record)

    def delete(self, key: str) -> bool:
        with self.transaction() as tx:
            return tx.delete(key)


class SqliteTransaction:
    """Reads and writes bound to one open SQLite transaction"""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, key: str) -> Optional[Dict]:
        row = self.conn.execute(
            "SELECT record FROM movie_releases WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def put(self, key: str, record: Dict):
        self.conn.execute(
            """
            INSERT OR REPLACE INTO movie_releases (key, record, updated_at)
            VALUES (?, ?, ?)
        """,
            (key, json.dumps(record, ensure_ascii=False), datetime.now().isoformat()),
        )

    def delete(self, key: str) -> bool:
        cursor = self.conn.execute("DELETE FROM movie_releases WHERE key = ?", (key,))
        return cursor.rowcount > 0


class SqliteRecordStore(RecordStore):
    """Stores each release record as a JSON document in SQLite"""

    def __init__(self, db_path: str = DEFAULT_DB_PATH, timeout: float = 10.0):
        """
        Initialize the SQLite record store

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a competing writer's lock
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.logger = logging.getLogger("SqliteRecordStore")
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode, transactions are opened explicitly
        return sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)

    def _init_database(self):
        """Initialize database schema if not exists"""
        try:
            with closing(self._connect()) as conn:
                conn.execute(CREATE_RELEASES_TABLE)
                self.logger.info(f"Database initialized at {self.db_path}")

        except sqlite3.Error as e:
            self.logger.error(f"Database initialization error: {e}")
            raise StoreError(f"Failed to initialize database: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[SqliteTransaction]:
        """
        Open a write-locked transaction

        BEGIN IMMEDIATE takes the write lock before the first read, so two
        read-modify-write cycles on the same database never interleave.
        Commits on clean exit, rolls back when the block raises.
        """
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open database: {e}") from e

        with closing(conn):
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield SqliteTransaction(conn)
                conn.execute("COMMIT")
            except (sqlite3.Error, json.JSONDecodeError) as e:
                self._rollback(conn)
                self.logger.error(f"Database transaction error: {e}")
                raise StoreError(f"Transaction failed: {e}") from e
            except BaseException:
                self._rollback(conn)
                raise

    def _rollback(self, conn: sqlite3.Connection):
        if conn.in_transaction:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                self.logger.error(f"Rollback failed: {e}")

    def scan_all(self) -> List[Tuple[str, Dict]]:
        """Return every (key, record) pair, skipping rows that are not valid JSON"""
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    "SELECT key, record FROM movie_releases ORDER BY key"
                ).fetchall()

        except sqlite3.Error as e:
            self.logger.error(f"Database error scanning records: {e}")
            raise StoreError(f"Failed to scan records: {e}") from e

        records = []
        for key, record in rows:
            try:
                records.append((key, json.loads(record)))
            except json.JSONDecodeError as e:
                self.logger.error(f"Skipping undecodable record {key}: {e}")
        return records


class InMemoryTransaction:
    """Staged view of the in-memory records, applied on commit"""

    def __init__(self, records: Dict[str, Dict]):
        self.staged = copy.deepcopy(records)

    def get(self, key: str) -> Optional[Dict]:
        record = self.staged.get(key)
        return copy.deepcopy(record) if record is not None else None

    def put(self, key: str, record: Dict):
        self.staged[key] = copy.deepcopy(record)

    def delete(self, key: str) -> bool:
        return self.staged.pop(key, None) is not None


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed record store guarded by a lock"""

    def __init__(self):
        self.records: Dict[str, Dict] = {}
        self._lock = threading.Lock()

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        with self._lock:
            tx = InMemoryTransaction(self.records)
            yield tx
            self.records = tx.staged

    def scan_all(self) -> List[Tuple[str, Dict]]:
        with self._lock:
            return [
                (key, copy.deepcopy(record))
                for key, record in sorted(self.records.items())
            ]
