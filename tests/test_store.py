"""
Tests for the DuckDB submission store.
"""

from datetime import datetime
from pathlib import Path

import pytest

from srasubmit.exceptions import StateStoreError
from srasubmit.models import Submission, SubmissionStatus
from srasubmit.store import DuckDBSubmissionStore, _escape_sql_string, _sql_value


def _submission(code="EXP1", **kwargs) -> Submission:
    return Submission(
        project_id=kwargs.pop("project_id", 7),
        expedition_code=code,
        user=kwargs.pop("user", "alice"),
        submission_dir=Path(f"/staging/{code}_1"),
        **kwargs,
    )


class TestSQLHelpers:
    """Tests for SQL helper functions."""

    def test_escape_sql_string(self):
        assert _escape_sql_string("it's") == "it''s"

    def test_sql_value(self):
        assert _sql_value(None) == "NULL"
        assert _sql_value(True) == "1"
        assert _sql_value(42) == "42"
        assert _sql_value("o'neil") == "'o''neil'"
        assert _sql_value(SubmissionStatus.FAILED) == "'FAILED'"
        assert _sql_value(datetime(2024, 1, 15, 10, 30)).startswith("TIMESTAMP '2024-01-15")


class TestRecords:
    """Insert, update and lookup."""

    def test_insert_assigns_id(self, store):
        sub = _submission()
        sub_id = store.insert(sub)

        assert sub_id == sub.id
        assert sub.created_at is not None

        stored = store.get(sub_id)
        assert stored.expedition_code == "EXP1"
        assert stored.user == "alice"
        assert stored.project_id == 7
        assert stored.submission_dir == Path("/staging/EXP1_1")
        assert stored.status is SubmissionStatus.READY
        assert stored.last_error is None

    def test_get_missing(self, store):
        assert store.get("nope") is None

    def test_quotes_survive(self, store):
        sub_id = store.insert(_submission(code="O'Brien"))
        assert store.get(sub_id).expedition_code == "O'Brien"

    def test_update_status(self, store):
        sub = _submission()
        store.insert(sub)
        sub.status = SubmissionStatus.FAILED
        sub.last_error = "connect failed: timed out"
        store.update(sub)

        stored = store.get(sub.id)
        assert stored.status is SubmissionStatus.FAILED
        assert stored.last_error == "connect failed: timed out"

    def test_update_missing_raises(self, store):
        sub = _submission(id="ghost")
        with pytest.raises(StateStoreError):
            store.update(sub)

    def test_update_never_inserted_raises(self, store):
        with pytest.raises(StateStoreError):
            store.update(_submission())

    def test_find_by_status(self, store):
        ready = _submission(code="A")
        done = _submission(code="B", status=SubmissionStatus.SUBMITTED)
        store.insert(ready)
        store.insert(done)

        assert [s.id for s in store.find_by_status(SubmissionStatus.READY)] == [ready.id]
        assert [s.id for s in store.find_by_status(SubmissionStatus.SUBMITTED)] == [done.id]
        assert store.find_by_status(SubmissionStatus.FAILED) == []
        assert {s.id for s in store.list_all()} == {ready.id, done.id}

    def test_file_backed_store_persists(self, tmp_path):
        path = tmp_path / "state" / "state.duckdb"
        first = DuckDBSubmissionStore(path)
        sub_id = first.insert(_submission())
        first.close()

        second = DuckDBSubmissionStore(path)
        try:
            assert second.get(sub_id) is not None
        finally:
            second.close()


class TestClaim:
    """Claims make one dispatch attempt the owner of a READY record."""

    def test_claim_once(self, store):
        sub_id = store.insert(_submission())
        assert store.claim(sub_id)
        assert not store.claim(sub_id)

    def test_update_releases_claim(self, store):
        sub = _submission()
        store.insert(sub)
        assert store.claim(sub.id)
        store.update(sub)
        assert store.claim(sub.id)

    def test_claim_requires_ready(self, store):
        sub_id = store.insert(_submission(status=SubmissionStatus.SUBMITTED))
        assert not store.claim(sub_id)

    def test_claim_missing(self, store):
        assert not store.claim("nope")

    def test_stale_claim_taken_over(self, store):
        sub_id = store.insert(_submission())
        assert store.claim(sub_id)
        assert store.claim(sub_id, ttl_s=-1)


class TestReset:
    """Operator reset of FAILED submissions."""

    def test_reset_failed(self, store):
        sub = _submission(status=SubmissionStatus.FAILED, last_error="boom")
        store.insert(sub)

        reset = store.reset(sub.id)

        assert reset.status is SubmissionStatus.READY
        stored = store.get(sub.id)
        assert stored.status is SubmissionStatus.READY
        assert stored.last_error is None

    def test_reset_ready_raises(self, store):
        sub_id = store.insert(_submission())
        with pytest.raises(StateStoreError, match="Only FAILED"):
            store.reset(sub_id)

    def test_reset_missing_raises(self, store):
        with pytest.raises(StateStoreError, match="not found"):
            store.reset("nope")
