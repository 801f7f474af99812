"""Tests for src.data.db — EntryDB (SQLite storage)."""

import sqlite3

import pytest

from src.core.errors import BadRequest, PersistenceFailure
from src.data.db import ARCHIVED_INCLUDE, ARCHIVED_ONLY, EntryDB
from src.data.models import Category


TASK = {"task": "Call the plumber", "deadline": "none", "priority": "high"}
IDEA = {"insight": "Solar-powered bike lock", "category": "Tech", "date": "2026-03-05"}


class TestCreateAndGet:
    def test_create_returns_entry(self, entry_db):
        entry = entry_db.create("alice", "task", TASK, confidence=0.9)
        assert entry.id
        assert entry.category is Category.TASK
        assert entry.confidence == 0.9
        assert entry.needs_review is False
        assert entry.archived is False
        assert entry.linked_entries == []
        assert entry.created_at == entry.updated_at

    def test_payload_reads_back_verbatim(self, entry_db):
        data = {
            "goal": "Ship the garden app",
            "status": "on-hold",
            "nextAction": "Email the designer",
            "extra": {"nested": [1, 2, 3]},
        }
        created = entry_db.create("alice", Category.PROJECT, data)
        fetched = entry_db.get("alice", created.id)
        assert fetched is not None
        assert fetched.data == data
        assert fetched.category is Category.PROJECT

    def test_defaults_are_not_written_into_payload(self, entry_db):
        created = entry_db.create("alice", "person", {"name": "Dana"})
        assert entry_db.get("alice", created.id).data == {"name": "Dana"}

    def test_get_unknown_id_returns_none(self, entry_db):
        assert entry_db.get("alice", "does-not-exist") is None

    def test_unknown_category_rejected(self, entry_db):
        with pytest.raises(BadRequest):
            entry_db.create("alice", "people", {"name": "Dana"})

    def test_invalid_payload_rejected(self, entry_db):
        with pytest.raises(BadRequest):
            entry_db.create("alice", "task", {"task": "x", "priority": "urgent"})

    def test_missing_primary_field_rejected(self, entry_db):
        with pytest.raises(BadRequest):
            entry_db.create("alice", "idea", {"category": "Tech"})

    def test_linked_entries_round_trip(self, entry_db):
        person = entry_db.create("alice", "person", {"name": "Dana"})
        task = entry_db.create("alice", "task", TASK, linked_entries=[person.id])
        assert entry_db.get("alice", task.id).linked_entries == [person.id]


class TestNeedsReview:
    @pytest.mark.parametrize("confidence, expected", [
        (0.0, True),
        (0.59, True),
        (0.6, False),
        (0.95, False),
        (1.0, False),
    ])
    def test_default_follows_confidence_threshold(self, entry_db, confidence, expected):
        entry = entry_db.create("alice", "idea", IDEA, confidence=confidence)
        assert entry.needs_review is expected
        assert entry_db.get("alice", entry.id).needs_review is expected

    def test_explicit_value_wins(self, entry_db):
        entry = entry_db.create("alice", "idea", IDEA, confidence=0.2, needs_review=False)
        assert entry.needs_review is False

    def test_filter_by_needs_review(self, entry_db):
        low = entry_db.create("alice", "idea", IDEA, confidence=0.3)
        high = entry_db.create("alice", "idea", IDEA, confidence=0.9)
        assert [e.id for e in entry_db.list_entries("alice", needs_review=True)] == [low.id]
        assert [e.id for e in entry_db.list_entries("alice", needs_review=False)] == [high.id]
        assert len(entry_db.list_entries("alice")) == 2


class TestListing:
    def test_newest_first(self, entry_db):
        first = entry_db.create("alice", "task", TASK)
        second = entry_db.create("alice", "task", TASK)
        third = entry_db.create("alice", "task", TASK)
        ids = [e.id for e in entry_db.list_entries("alice")]
        assert ids == [third.id, second.id, first.id]

    def test_filter_by_category(self, entry_db):
        entry_db.create("alice", "task", TASK)
        idea = entry_db.create("alice", "idea", IDEA)
        ideas = entry_db.list_entries("alice", category="idea")
        assert [e.id for e in ideas] == [idea.id]

    def test_archived_partition(self, entry_db):
        entries = [entry_db.create("alice", "task", TASK) for _ in range(4)]
        for e in entries[:2]:
            entry_db.update("alice", e.id, {"archived": True})

        active = {e.id for e in entry_db.list_entries("alice")}
        archived = {e.id for e in entry_db.list_entries("alice", archived=ARCHIVED_ONLY)}
        everything = {e.id for e in entry_db.list_entries("alice", archived=ARCHIVED_INCLUDE)}

        assert active.isdisjoint(archived)
        assert active | archived == everything
        assert archived == {e.id for e in entries[:2]}

    def test_unknown_archived_filter_rejected(self, entry_db):
        with pytest.raises(BadRequest):
            entry_db.list_entries("alice", archived="sometimes")

    def test_limit_and_exclude(self, entry_db):
        tasks = [entry_db.create("alice", "task", TASK) for _ in range(3)]
        listed = entry_db.list_entries("alice", exclude_id=tasks[2].id, limit=1)
        assert [e.id for e in listed] == [tasks[1].id]


class TestTenantIsolation:
    def test_other_user_sees_nothing(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        assert entry_db.get("bob", entry.id) is None
        assert entry_db.list_entries("bob") == []

    def test_other_user_cannot_update(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        assert entry_db.update("bob", entry.id, {"archived": True}) is None
        assert entry_db.get("alice", entry.id).archived is False

    def test_other_user_cannot_delete(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        assert entry_db.delete("bob", entry.id) is False
        assert entry_db.get("alice", entry.id) is not None


class TestUpdate:
    def test_partial_update_keeps_other_fields(self, entry_db):
        entry = entry_db.create("alice", "task", TASK, confidence=0.4)
        updated = entry_db.update("alice", entry.id, {"needs_review": False})
        assert updated.needs_review is False
        assert updated.data == TASK
        assert updated.confidence == 0.4

    def test_update_stamps_updated_at(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        updated = entry_db.update("alice", entry.id, {"archived": True})
        assert updated.updated_at >= entry.updated_at
        assert updated.created_at == entry.created_at

    def test_non_updatable_fields_ignored(self, entry_db):
        entry = entry_db.create("alice", "task", TASK, confidence=0.8)
        updated = entry_db.update(
            "alice", entry.id, {"confidence": 0.1, "user_id": "bob", "id": "x"},
        )
        assert updated.confidence == 0.8
        assert updated.user_id == "alice"
        assert updated.id == entry.id

    def test_data_replaced_and_validated(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        with pytest.raises(BadRequest):
            entry_db.update("alice", entry.id, {"data": {"task": "x", "status": "done"}})
        assert entry_db.get("alice", entry.id).data == TASK

    def test_recategorize_carries_payload_over(self, entry_db):
        entry = entry_db.create("alice", "idea", IDEA, confidence=0.4)
        updated = entry_db.update("alice", entry.id, {"category": "task"})
        assert updated.category is Category.TASK
        assert updated.data["task"] == "Solar-powered bike lock"
        assert updated.data["date"] == "2026-03-05"

    def test_recategorize_with_new_data(self, entry_db):
        entry = entry_db.create("alice", "idea", IDEA)
        new_data = {"name": "Dana", "context": "Met at the fair"}
        updated = entry_db.update("alice", entry.id, {"category": "person", "data": new_data})
        assert updated.category is Category.PERSON
        assert entry_db.get("alice", entry.id).data == new_data

    def test_linked_entries_must_be_list(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        with pytest.raises(BadRequest):
            entry_db.update("alice", entry.id, {"linked_entries": "abc"})

    def test_update_unknown_returns_none(self, entry_db):
        assert entry_db.update("alice", "missing", {"archived": True}) is None

    def test_update_data_helper(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        new_data = {**TASK, "priority": "low"}
        assert entry_db.update_data("alice", entry.id, new_data).data == new_data


class TestDelete:
    def test_delete_is_permanent(self, entry_db):
        entry = entry_db.create("alice", "task", TASK)
        assert entry_db.delete("alice", entry.id) is True
        assert entry_db.get("alice", entry.id) is None
        assert entry_db.delete("alice", entry.id) is False


class TestPersistence:
    def test_data_survives_reopen(self, tmp_db_path):
        db = EntryDB(tmp_db_path)
        entry = db.create("alice", "idea", IDEA)
        reopened = EntryDB(tmp_db_path)
        assert reopened.get("alice", entry.id).data == IDEA

    def test_sqlite_error_becomes_persistence_failure(self, entry_db, tmp_db_path):
        conn = sqlite3.connect(tmp_db_path)
        conn.execute("DROP TABLE entries")
        conn.commit()
        conn.close()
        with pytest.raises(PersistenceFailure):
            entry_db.list_entries("alice")
