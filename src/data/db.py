"""
Second Brain — Entry Database.

A single SQLite table of polymorphic entries. Every statement filters on
user_id, so an entry owned by someone else is indistinguishable from one
that does not exist.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from src.core.errors import BadRequest, PersistenceFailure
from src.data.models import (
    Category,
    Entry,
    carry_over_payload,
    needs_review_for,
    parse_category,
    validate_payload,
)

logger = logging.getLogger(__name__)

# Top-level fields a partial update may touch
UPDATABLE_FIELDS = ("data", "category", "needs_review", "archived", "linked_entries")

ARCHIVED_EXCLUDE = "exclude"
ARCHIVED_INCLUDE = "include"
ARCHIVED_ONLY = "only"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class EntryDB:
    """SQLite-backed storage for entries."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("SQLite error on %s: %s", self._db_path, exc)
            raise PersistenceFailure("Database operation failed") from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Create the entries table if it doesn't exist, and migrate schema."""
        with self._session() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    id              TEXT    PRIMARY KEY,
                    user_id         TEXT    NOT NULL,
                    category        TEXT    NOT NULL,
                    data            TEXT    NOT NULL,
                    confidence      REAL    NOT NULL DEFAULT 1.0,
                    needs_review    INTEGER NOT NULL DEFAULT 0,
                    archived        INTEGER NOT NULL DEFAULT 0,
                    linked_entries  TEXT    NOT NULL DEFAULT '[]',
                    created_at      TEXT    NOT NULL,
                    updated_at      TEXT    NOT NULL
                )
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(entries)").fetchall()
            }
            if "linked_entries" not in existing_cols:
                conn.execute(
                    "ALTER TABLE entries ADD COLUMN linked_entries TEXT NOT NULL DEFAULT '[]'"
                )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_user_created "
                "ON entries (user_id, created_at)"
            )
        logger.debug("Entries table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> Entry:
        return Entry(
            id=row["id"],
            user_id=row["user_id"],
            category=Category(row["category"]),
            data=json.loads(row["data"]),
            confidence=row["confidence"],
            needs_review=bool(row["needs_review"]),
            archived=bool(row["archived"]),
            linked_entries=json.loads(row["linked_entries"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def create(
        self,
        user_id: str,
        category: Category | str,
        data: dict[str, Any],
        confidence: float = 1.0,
        needs_review: bool | None = None,
        linked_entries: list[str] | None = None,
    ) -> Entry:
        """Insert a new entry. needs_review defaults to confidence < 0.6."""
        category = parse_category(category)
        validate_payload(category, data)
        if needs_review is None:
            needs_review = needs_review_for(confidence)

        now = _now()
        entry = Entry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            category=category,
            data=data,
            confidence=float(confidence),
            needs_review=needs_review,
            archived=False,
            linked_entries=list(linked_entries or []),
            created_at=now,
            updated_at=now,
        )
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO entries
                    (id, user_id, category, data, confidence, needs_review,
                     archived, linked_entries, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?, ?)
                """,
                (
                    entry.id, user_id, category.value, json.dumps(data),
                    entry.confidence, int(needs_review),
                    json.dumps(entry.linked_entries), now, now,
                ),
            )
        logger.info(
            "Entry created: %s (%s, confidence=%.2f, review=%s)",
            entry.id, category.value, entry.confidence, needs_review,
        )
        return entry

    def get(self, user_id: str, entry_id: str) -> Entry | None:
        """Fetch a single entry owned by user_id."""
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM entries WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def list_entries(
        self,
        user_id: str,
        category: Category | str | None = None,
        archived: str = ARCHIVED_EXCLUDE,
        needs_review: bool | None = None,
        limit: int | None = None,
        exclude_id: str | None = None,
    ) -> list[Entry]:
        """List a user's entries, newest first.

        archived: "exclude" (default) hides archived entries, "only" returns
        nothing but archived entries, "include" returns both.
        """
        conditions = ["user_id = ?"]
        params: list[Any] = [user_id]
        if category is not None:
            conditions.append("category = ?")
            params.append(parse_category(category).value)
        if archived == ARCHIVED_EXCLUDE:
            conditions.append("archived = 0")
        elif archived == ARCHIVED_ONLY:
            conditions.append("archived = 1")
        elif archived != ARCHIVED_INCLUDE:
            raise BadRequest(f"Unknown archived filter: {archived!r}")
        if needs_review is not None:
            conditions.append("needs_review = ?")
            params.append(int(needs_review))
        if exclude_id is not None:
            conditions.append("id != ?")
            params.append(exclude_id)

        query = "SELECT * FROM entries WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC, rowid DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._session() as conn:
            rows = conn.execute(query, params).fetchall()

        return [self._row_to_entry(r) for r in rows]

    def update(self, user_id: str, entry_id: str, changes: dict[str, Any]) -> Entry | None:
        """Apply a partial update of top-level fields. Returns None if not found.

        Only the fields in UPDATABLE_FIELDS are honoured. A category change
        without new data carries the old payload over to the new category.
        """
        current = self.get(user_id, entry_id)
        if current is None:
            return None

        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        category = current.category
        if "category" in changes:
            category = parse_category(changes["category"])

        if "data" in changes:
            data = changes["data"]
        elif category is not current.category:
            data = carry_over_payload(current.data, category)
        else:
            data = current.data
        validate_payload(category, data)

        linked = changes.get("linked_entries", current.linked_entries)
        if not isinstance(linked, list):
            raise BadRequest("linked_entries must be a list")

        updated = Entry(
            id=current.id,
            user_id=current.user_id,
            category=category,
            data=data,
            confidence=current.confidence,
            needs_review=bool(changes.get("needs_review", current.needs_review)),
            archived=bool(changes.get("archived", current.archived)),
            linked_entries=list(linked),
            created_at=current.created_at,
            updated_at=_now(),
        )
        with self._session() as conn:
            cursor = conn.execute(
                """
                UPDATE entries
                   SET category = ?, data = ?, needs_review = ?, archived = ?,
                       linked_entries = ?, updated_at = ?
                 WHERE id = ? AND user_id = ?
                """,
                (
                    category.value, json.dumps(data), int(updated.needs_review),
                    int(updated.archived), json.dumps(updated.linked_entries),
                    updated.updated_at, entry_id, user_id,
                ),
            )
            rows_changed = cursor.rowcount
        if rows_changed == 0:
            # Deleted between the read and the write
            return None
        logger.info("Entry %s updated (%s)", entry_id, ", ".join(sorted(changes)) or "touch")
        return updated

    def update_data(self, user_id: str, entry_id: str, data: dict[str, Any]) -> Entry | None:
        """Replace an entry's payload, keeping its category."""
        return self.update(user_id, entry_id, {"data": data})

    def delete(self, user_id: str, entry_id: str) -> bool:
        """Permanently delete an entry."""
        with self._session() as conn:
            cursor = conn.execute(
                "DELETE FROM entries WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Entry %s deleted", entry_id)
        return deleted
