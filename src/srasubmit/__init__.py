"""
srasubmit - stage sequencing-read uploads and deliver them to the SRA.

Ingest unpacks an uploaded archive into a staging directory and records a
READY submission; dispatch periodically transfers READY submissions to the
archive's upload area.
"""

__version__ = "0.1.0"

from srasubmit.exceptions import (
    ConfigurationError,
    CorruptArchiveError,
    EntryExtractionError,
    IngestError,
    InitializationError,
    InvalidSampleSetError,
    ManifestWriteError,
    MissingRequiredFilesError,
    PersistenceError,
    StateStoreError,
    SubmitError,
    TransferConnectError,
    TransferError,
    TransferUploadError,
)
from srasubmit.initialization import initialize
from srasubmit.models import Submission, SubmissionData, SubmissionStatus, UploadMetadata

__all__ = [
    "__version__",
    "initialize",
    "Submission",
    "SubmissionData",
    "SubmissionStatus",
    "UploadMetadata",
    "SubmitError",
    "ConfigurationError",
    "InitializationError",
    "IngestError",
    "InvalidSampleSetError",
    "CorruptArchiveError",
    "EntryExtractionError",
    "MissingRequiredFilesError",
    "ManifestWriteError",
    "PersistenceError",
    "TransferError",
    "TransferConnectError",
    "TransferUploadError",
    "StateStoreError",
]
