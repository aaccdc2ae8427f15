"""
srasubmit exception hierarchy.

All domain-specific exceptions inherit from SubmitError, making it easy
to catch any pipeline error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    SubmitError
    ├── ConfigurationError          - config loading, parsing, validation
    ├── InitializationError         - startup orchestration failures
    ├── IngestError                 - a single ingest attempt failed
    │   ├── InvalidSampleSetError   - requested samples do not resolve
    │   ├── CorruptArchiveError     - archive stream unreadable
    │   ├── EntryExtractionError    - one archive entry could not be staged
    │   ├── MissingRequiredFilesError - referenced files absent from archive
    │   ├── ManifestWriteError      - submission manifest could not be written
    │   └── PersistenceError        - submission record could not be saved
    ├── TransferError               - remote delivery failed
    │   ├── TransferConnectError    - connect / login failures
    │   └── TransferUploadError     - mkdir / upload / sentinel failures
    └── StateStoreError             - submission store read/write
"""

from __future__ import annotations


class SubmitError(Exception):
    """Base exception for all srasubmit errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(SubmitError):
    """Raised when configuration loading, parsing, or validation fails."""


# --- Initialization ----------------------------------------------------------


class InitializationError(SubmitError):
    """Raised during startup when a required component fails to initialize.

    Exception chaining is suppressed (``from None``) by callers to keep CLI
    output clean.
    """


# --- Ingest ------------------------------------------------------------------


class IngestError(SubmitError):
    """Raised when an ingest attempt cannot complete."""


class InvalidSampleSetError(IngestError):
    """Raised when the requested samples don't match the resolvable samples."""

    def __init__(self, requested: int, resolved: int) -> None:
        super().__init__(
            f"Invalid sample reference: requested {requested} samples, resolved {resolved}",
            details={"requested": requested, "resolved": resolved},
        )
        self.requested = requested
        self.resolved = resolved


class CorruptArchiveError(IngestError):
    """Raised when the archive stream itself is unreadable."""


class EntryExtractionError(IngestError):
    """Raised for a single archive entry that could not be written.

    Never escapes the extractor: the entry is recorded as invalid and
    extraction moves on.
    """

    def __init__(self, entry_name: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Entry '{entry_name}': {message}", details={"entry": entry_name})
        self.entry_name = entry_name
        if cause is not None:
            self.__cause__ = cause


class MissingRequiredFilesError(IngestError):
    """Raised when metadata references files the archive did not provide."""

    def __init__(self, missing_files: list[str]) -> None:
        super().__init__(
            f"Missing required files: {', '.join(missing_files)}",
            details={"missing_files": list(missing_files)},
        )
        self.missing_files = list(missing_files)


class ManifestWriteError(IngestError):
    """Raised when the submission manifest cannot be written."""


class PersistenceError(IngestError):
    """Raised when the submission record cannot be saved."""


# --- Transfer ----------------------------------------------------------------


class TransferError(SubmitError):
    """Raised when a remote delivery step fails."""

    def __init__(self, message: str, *, state: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message, details={"state": state} if state is not None else None)
        self.state = state
        if cause is not None:
            self.__cause__ = cause


class TransferConnectError(TransferError):
    """Raised when the remote endpoint can't be reached or rejects the login."""


class TransferUploadError(TransferError):
    """Raised when creating the remote directory or storing a file fails."""


# --- State store -------------------------------------------------------------


class StateStoreError(SubmitError):
    """Raised when the submission store cannot be read or written."""
