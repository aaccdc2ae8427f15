"""
Transfer driver.

Delivers one staged submission to the remote archive:

    CONNECT -> AUTHENTICATE -> CREATE_REMOTE_DIR -> UPLOAD_ALL
            -> SIGNAL_COMPLETE -> DISCONNECT

Any failing step jumps straight to DISCONNECT. The terminal status is
persisted once, after the connection has been released.
"""

from __future__ import annotations

import io
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from srasubmit.exceptions import TransferConnectError, TransferError, TransferUploadError
from srasubmit.models import Submission, SubmissionStatus
from srasubmit.store import SubmissionStore
from srasubmit.transfer import RemoteEndpoint, TransferSettings, build_endpoint
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.dispatch.driver")


class TransferState(StrEnum):
    CONNECT = "connect"
    AUTHENTICATE = "authenticate"
    CREATE_REMOTE_DIR = "create_remote_dir"
    UPLOAD_ALL = "upload_all"
    SIGNAL_COMPLETE = "signal_complete"
    DISCONNECT = "disconnect"
    # Terminal
    DONE = "done"
    FAILED = "failed"


_NEXT_STATE = {
    TransferState.CONNECT: TransferState.AUTHENTICATE,
    TransferState.AUTHENTICATE: TransferState.CREATE_REMOTE_DIR,
    TransferState.CREATE_REMOTE_DIR: TransferState.UPLOAD_ALL,
    TransferState.UPLOAD_ALL: TransferState.SIGNAL_COMPLETE,
    TransferState.SIGNAL_COMPLETE: TransferState.DISCONNECT,
}

_CONNECT_STATES = frozenset({TransferState.CONNECT, TransferState.AUTHENTICATE})


@dataclass
class TransferResult:
    submission_id: str | None
    status: SubmissionStatus
    remote_dir: str
    final_state: TransferState = TransferState.DONE
    failed_state: TransferState | None = None
    error: TransferError | None = None
    uploaded: list[str] = field(default_factory=list)
    duration_s: float = 0.0

    @property
    def success(self) -> bool:
        return self.status is SubmissionStatus.SUBMITTED


@dataclass
class _Attempt:
    submission: Submission
    endpoint: RemoteEndpoint
    remote_dir: str
    connected: bool = False
    authenticated: bool = False
    uploaded: list[str] = field(default_factory=list)


class TransferDriver:
    """Runs the delivery protocol for one submission at a time."""

    def __init__(
        self,
        store: SubmissionStore,
        settings: TransferSettings,
        *,
        endpoint_factory: Callable[[TransferSettings], RemoteEndpoint] = build_endpoint,
    ):
        self.store = store
        self.settings = settings
        self.endpoint_factory = endpoint_factory
        self._handlers = {
            TransferState.CONNECT: self._connect,
            TransferState.AUTHENTICATE: self._authenticate,
            TransferState.CREATE_REMOTE_DIR: self._create_remote_dir,
            TransferState.UPLOAD_ALL: self._upload_all,
            TransferState.SIGNAL_COMPLETE: self._signal_complete,
        }

    def submit(self, submission: Submission) -> TransferResult:
        """
        Deliver ``submission`` and persist SUBMITTED or FAILED.

        Returns:
            TransferResult for the attempt

        Raises:
            StateStoreError: If the terminal status can't be persisted
        """
        started = time.monotonic()
        attempt = _Attempt(
            submission=submission,
            endpoint=self.endpoint_factory(self.settings),
            remote_dir=self.settings.remote_dir_for(submission.dir_name),
        )
        failed_state: TransferState | None = None
        error: TransferError | None = None

        state = TransferState.CONNECT
        try:
            while state is not TransferState.DISCONNECT:
                try:
                    self._handlers[state](attempt)
                except Exception as e:
                    failed_state = state
                    error_cls = TransferConnectError if state in _CONNECT_STATES else TransferUploadError
                    error = error_cls(f"{state.value} failed: {e}", state=state.value, cause=e)
                    break
                state = _NEXT_STATE[state]
        finally:
            self._disconnect(attempt)

        if error is None:
            submission.status = SubmissionStatus.SUBMITTED
            submission.last_error = None
            logger.info(f"Submission {submission.id} delivered to {attempt.remote_dir} ({len(attempt.uploaded)} files)")
        else:
            submission.status = SubmissionStatus.FAILED
            submission.last_error = error.message
            logger.error(f"Failed to submit {submission.id} to {self.settings.host}: {error.message}")

        self.store.update(submission)

        return TransferResult(
            submission_id=submission.id,
            status=submission.status,
            remote_dir=attempt.remote_dir,
            final_state=TransferState.DONE if error is None else TransferState.FAILED,
            failed_state=failed_state,
            error=error,
            uploaded=list(attempt.uploaded),
            duration_s=time.monotonic() - started,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _connect(self, attempt: _Attempt) -> None:
        # The endpoint may hold a half-open socket even if connect() raises
        attempt.connected = True
        attempt.endpoint.connect()

    def _authenticate(self, attempt: _Attempt) -> None:
        attempt.endpoint.login()
        attempt.authenticated = True

    def _create_remote_dir(self, attempt: _Attempt) -> None:
        attempt.endpoint.make_directory(attempt.remote_dir)
        attempt.endpoint.change_directory(attempt.remote_dir)

    def _upload_all(self, attempt: _Attempt) -> None:
        staging_dir = Path(attempt.submission.submission_dir)
        files = sorted(p for p in staging_dir.iterdir() if p.is_file())
        if not files:
            raise FileNotFoundError(f"No staged files in {staging_dir}")

        for path in files:
            with open(path, "rb") as stream:
                attempt.endpoint.store_file(path.name, stream)
            attempt.uploaded.append(path.name)
            logger.debug(f"Uploaded {path.name} to {attempt.remote_dir}")

    def _signal_complete(self, attempt: _Attempt) -> None:
        attempt.endpoint.store_file(self.settings.sentinel_name, io.BytesIO(b""))

    def _disconnect(self, attempt: _Attempt) -> None:
        if not attempt.connected:
            return
        endpoint = attempt.endpoint
        try:
            if attempt.authenticated:
                endpoint.logout()
        except Exception as e:
            logger.warning(f"Error logging out from {self.settings.host}: {e}")
        try:
            endpoint.disconnect()
        except Exception as e:
            logger.warning(f"Error closing connection to {self.settings.host}: {e}")
