"""
Submission record store.

Keeps one row per submission in a DuckDB database (via ibis). The schema and
table are created on first use.
"""

from __future__ import annotations

import threading
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Protocol

import ibis

from srasubmit.exceptions import StateStoreError
from srasubmit.models import Submission, SubmissionStatus
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.store")

SCHEMA_NAME = "srasubmit"
SUBMISSIONS_TABLE = f"{SCHEMA_NAME}.submissions"
# Claims older than this belong to an attempt that died without persisting
CLAIM_TTL_S = 6 * 60 * 60

_COLUMNS = (
    "id",
    "project_id",
    "expedition_code",
    "user_name",
    "submission_dir",
    "status",
    "last_error",
    "created_at",
    "updated_at",
)


def _escape_sql_string(value: str) -> str:
    """Escape single quotes for SQL strings."""
    return value.replace("'", "''")


def _sql_value(value: Any) -> str:
    """Convert Python value to SQL string representation."""
    if value is None:
        return "NULL"
    # bool before int: bool is a subclass of int
    elif isinstance(value, bool):
        return "1" if value else "0"
    elif isinstance(value, (int, float)):
        return str(value)
    elif isinstance(value, datetime):
        return f"TIMESTAMP '{value.isoformat()}'"
    elif isinstance(value, SubmissionStatus):
        return f"'{value.value}'"
    else:
        return f"'{_escape_sql_string(str(value))}'"


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class SubmissionStore(Protocol):
    """Keyed store of submission records."""

    def insert(self, submission: Submission) -> str: ...

    def update(self, submission: Submission) -> None: ...

    def find_by_status(self, status: SubmissionStatus) -> list[Submission]: ...

    def get(self, submission_id: str) -> Submission | None: ...

    def claim(self, submission_id: str, ttl_s: float = CLAIM_TTL_S) -> bool: ...


class DuckDBSubmissionStore:
    """Submission store backed by DuckDB through ibis."""

    def __init__(self, path: str | Path = ":memory:", *, connection: ibis.BaseBackend | None = None):
        """
        Initialize the store.

        Args:
            path: DuckDB database file, or ":memory:"
            connection: Existing ibis DuckDB backend to use instead of ``path``
        """
        self.path = str(path)
        self._connection: ibis.BaseBackend | None = connection
        self._initialized = False
        # DuckDB connections aren't safe to share across threads without this
        self._lock = threading.RLock()

    def _get_connection(self) -> ibis.BaseBackend:
        if self._connection is None:
            try:
                if self.path == ":memory:":
                    self._connection = ibis.duckdb.connect()
                else:
                    Path(self.path).parent.mkdir(parents=True, exist_ok=True)
                    self._connection = ibis.duckdb.connect(self.path)
            except Exception as e:
                raise StateStoreError(f"Cannot open submission store '{self.path}': {e}") from e
        if not self._initialized:
            self._initialize_schema(self._connection)
        return self._connection

    def _initialize_schema(self, conn: ibis.BaseBackend) -> None:
        """Create the schema and submissions table if they don't exist."""
        try:
            conn.raw_sql(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA_NAME}")
            conn.raw_sql(
                f"""
                CREATE TABLE IF NOT EXISTS {SUBMISSIONS_TABLE} (
                    id VARCHAR PRIMARY KEY,
                    project_id INTEGER,
                    expedition_code VARCHAR NOT NULL,
                    user_name VARCHAR,
                    submission_dir VARCHAR NOT NULL,
                    status VARCHAR NOT NULL,
                    last_error TEXT,
                    claim_token VARCHAR,
                    claimed_at TIMESTAMP,
                    created_at TIMESTAMP,
                    updated_at TIMESTAMP
                )
                """
            )
        except Exception as e:
            raise StateStoreError(f"Could not create {SUBMISSIONS_TABLE}: {e}") from e
        self._initialized = True
        logger.debug(f"Submission store initialized at '{self.path}'")

    def _execute(self, query: str) -> list[tuple]:
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.raw_sql(query)
                if query.lstrip().upper().startswith("SELECT"):
                    return cursor.fetchall()
                return []
            except Exception as e:
                raise StateStoreError(f"Submission store query failed: {e}") from e

    @staticmethod
    def _row_to_submission(row: tuple) -> Submission:
        values = dict(zip(_COLUMNS, row, strict=True))
        return Submission(
            id=values["id"],
            project_id=values["project_id"],
            expedition_code=values["expedition_code"],
            user=values["user_name"],
            submission_dir=Path(values["submission_dir"]),
            status=SubmissionStatus(values["status"]),
            last_error=values["last_error"],
            created_at=values["created_at"],
            updated_at=values["updated_at"],
        )

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def insert(self, submission: Submission) -> str:
        """Insert a new submission and return its id."""
        now = _utcnow()
        submission.id = submission.id or uuid.uuid4().hex
        submission.created_at = submission.created_at or now
        submission.updated_at = now
        values = ", ".join(
            _sql_value(v)
            for v in (
                submission.id,
                submission.project_id,
                submission.expedition_code,
                submission.user,
                str(submission.submission_dir),
                submission.status,
                submission.last_error,
                submission.created_at,
                submission.updated_at,
            )
        )
        self._execute(f"INSERT INTO {SUBMISSIONS_TABLE} ({', '.join(_COLUMNS)}) VALUES ({values})")
        logger.debug(f"Inserted submission {submission.id} ({submission.status.value})")
        return submission.id

    def update(self, submission: Submission) -> None:
        """
        Persist the status of an existing submission and release its claim.

        Raises:
            StateStoreError: If the submission doesn't exist
        """
        if submission.id is None:
            raise StateStoreError("Cannot update a submission that was never inserted")
        submission.updated_at = _utcnow()
        with self._lock:
            if self.get(submission.id) is None:
                raise StateStoreError(f"Submission not found: {submission.id}", details={"id": submission.id})
            self._execute(
                f"UPDATE {SUBMISSIONS_TABLE} SET "
                f"status = {_sql_value(submission.status)}, "
                f"last_error = {_sql_value(submission.last_error)}, "
                f"claim_token = NULL, claimed_at = NULL, "
                f"updated_at = {_sql_value(submission.updated_at)} "
                f"WHERE id = {_sql_value(submission.id)}"
            )

    def get(self, submission_id: str) -> Submission | None:
        rows = self._execute(
            f"SELECT {', '.join(_COLUMNS)} FROM {SUBMISSIONS_TABLE} WHERE id = {_sql_value(submission_id)}"
        )
        return self._row_to_submission(rows[0]) if rows else None

    def find_by_status(self, status: SubmissionStatus) -> list[Submission]:
        rows = self._execute(
            f"SELECT {', '.join(_COLUMNS)} FROM {SUBMISSIONS_TABLE} "
            f"WHERE status = {_sql_value(SubmissionStatus(status))} ORDER BY created_at, id"
        )
        return [self._row_to_submission(row) for row in rows]

    def list_all(self) -> list[Submission]:
        rows = self._execute(f"SELECT {', '.join(_COLUMNS)} FROM {SUBMISSIONS_TABLE} ORDER BY created_at, id")
        return [self._row_to_submission(row) for row in rows]

    def claim(self, submission_id: str, ttl_s: float = CLAIM_TTL_S) -> bool:
        """
        Mark a READY submission as owned by one transfer attempt.

        Returns False if the submission isn't READY or is already claimed.
        The claim is released by ``update``; a claim older than ``ttl_s`` may
        be taken over.
        """
        token = uuid.uuid4().hex
        now = _utcnow()
        expired = now - timedelta(seconds=ttl_s)
        with self._lock:
            self._execute(
                f"UPDATE {SUBMISSIONS_TABLE} SET claim_token = {_sql_value(token)}, "
                f"claimed_at = {_sql_value(now)} "
                f"WHERE id = {_sql_value(submission_id)} "
                f"AND status = {_sql_value(SubmissionStatus.READY)} "
                f"AND (claim_token IS NULL OR claimed_at < {_sql_value(expired)})"
            )
            rows = self._execute(
                f"SELECT claim_token FROM {SUBMISSIONS_TABLE} WHERE id = {_sql_value(submission_id)}"
            )
        return bool(rows) and rows[0][0] == token

    def reset(self, submission_id: str) -> Submission:
        """
        Operator action: put a FAILED submission back to READY.

        Raises:
            StateStoreError: If the submission doesn't exist or isn't FAILED
        """
        with self._lock:
            submission = self.get(submission_id)
            if submission is None:
                raise StateStoreError(f"Submission not found: {submission_id}", details={"id": submission_id})
            if submission.status is not SubmissionStatus.FAILED:
                raise StateStoreError(
                    f"Only FAILED submissions can be reset, {submission_id} is {submission.status.value}",
                    details={"id": submission_id, "status": submission.status.value},
                )
            submission.status = SubmissionStatus.READY
            submission.last_error = None
            self.update(submission)
        logger.info(f"Submission {submission_id} reset to READY")
        return submission

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                disconnect = getattr(self._connection, "disconnect", None)
                if disconnect is not None:
                    disconnect()
            self._connection = None
            self._initialized = False
