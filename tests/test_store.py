"""
Tests for the SQLite job store.

Covers: seeding, aggregate stats, status transitions, resume work-lists,
persistence across reopen and error wrapping.
"""

from pathlib import Path

import pytest

from easy_translator.errors import StoreError
from easy_translator.store import ChunkStatus, JobStats, StateDB, default_db_path


@pytest.fixture
def seeded(store: StateDB) -> StateDB:
    store.seed(["one", "two", "three", "four"], "auto", "English", 100)
    return store


class TestSeed:
    def test_seed_creates_pending_records_in_order(self, seeded: StateDB) -> None:
        records = seeded.all_in_sequence_order()
        assert [r.sequence_number for r in records] == [0, 1, 2, 3]
        assert [r.source_text for r in records] == ["one", "two", "three", "four"]
        assert all(r.status == ChunkStatus.PENDING for r in records)
        assert all(r.translated_text is None for r in records)
        assert all((r.source_lang, r.target_lang, r.chunk_size) == ("auto", "English", 100) for r in records)

    def test_reseed_replaces_all_records(self, seeded: StateDB) -> None:
        first = seeded.all_in_sequence_order()[0]
        seeded.record_success(first.id, "uno")

        seeded.seed(["alpha", "beta"], "German", "French", 50)

        records = seeded.all_in_sequence_order()
        assert [r.source_text for r in records] == ["alpha", "beta"]
        assert seeded.stats() == JobStats(total=2, success=0, failure=0, pending=2)
        assert seeded.job_settings() == ("German", "French", 50)

    def test_seed_empty_chunk_list(self, store: StateDB) -> None:
        store.seed([], "auto", "English", 100)
        assert store.stats() == JobStats()
        assert store.job_settings() is None


class TestStats:
    def test_empty_store_has_zero_counts(self, store: StateDB) -> None:
        stats = store.stats()
        assert stats == JobStats(total=0, success=0, failure=0, pending=0)
        assert stats.is_complete
        assert not stats.needs_work()

    def test_counts_follow_transitions(self, seeded: StateDB) -> None:
        records = seeded.all_in_sequence_order()
        seeded.record_success(records[0].id, "uno")
        seeded.record_failure(records[1].id, "boom")

        stats = seeded.stats()
        assert stats == JobStats(total=4, success=1, failure=1, pending=2)
        assert not stats.is_complete

    def test_needs_work_respects_retry_failed(self) -> None:
        stats = JobStats(total=2, success=1, failure=1, pending=0)
        assert stats.is_complete
        assert stats.needs_work(retry_failed=True)
        assert not stats.needs_work(retry_failed=False)


class TestTransitions:
    def test_record_success_stores_text_and_clears_error(self, seeded: StateDB) -> None:
        record = seeded.all_in_sequence_order()[2]
        seeded.record_failure(record.id, "first attempt failed")
        seeded.record_success(record.id, "drei")

        updated = seeded.all_in_sequence_order()[2]
        assert updated.status == ChunkStatus.SUCCESS
        assert updated.translated_text == "drei"
        assert updated.error_message is None
        assert updated.timestamp is not None

    def test_record_failure_stores_message(self, seeded: StateDB) -> None:
        record = seeded.all_in_sequence_order()[1]
        seeded.record_failure(record.id, "rate limited")

        updated = seeded.all_in_sequence_order()[1]
        assert updated.status == ChunkStatus.FAILURE
        assert updated.error_message == "rate limited"
        assert updated.translated_text is None


class TestWorkLists:
    def test_pending_and_failed_in_sequence_order(self, seeded: StateDB) -> None:
        records = seeded.all_in_sequence_order()
        seeded.record_failure(records[3].id, "boom")
        seeded.record_success(records[1].id, "zwei")

        work = seeded.pending_and_failed()
        assert [r.sequence_number for r in work] == [0, 2, 3]

    def test_pending_excludes_failures(self, seeded: StateDB) -> None:
        records = seeded.all_in_sequence_order()
        seeded.record_failure(records[0].id, "boom")

        assert [r.sequence_number for r in seeded.pending()] == [1, 2, 3]


class TestPersistence:
    def test_reopen_keeps_progress(self, db_path: Path) -> None:
        with StateDB(db_path) as db:
            db.seed(["a", "b"], "auto", "English", 10)
            db.record_success(db.all_in_sequence_order()[0].id, "A")

        with StateDB(db_path) as db:
            assert db.stats() == JobStats(total=2, success=1, failure=0, pending=1)
            assert db.all_in_sequence_order()[0].translated_text == "A"

    def test_default_db_path_replaces_suffix(self) -> None:
        assert default_db_path("/data/book.txt") == Path("/data/book.db")
        assert default_db_path(Path("notes")) == Path("notes.db")


class TestErrors:
    def test_unopenable_path_raises_store_error(self, tmp_path: Path) -> None:
        with pytest.raises(StoreError):
            StateDB(tmp_path)

    def test_use_after_close_raises_store_error(self, db_path: Path) -> None:
        db = StateDB(db_path)
        db.close()
        with pytest.raises(StoreError):
            db.stats()
