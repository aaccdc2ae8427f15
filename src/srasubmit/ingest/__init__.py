"""
Ingest stage: unpack an uploaded archive, check it against the requested
samples, write the manifest and record the submission as READY.
"""

from srasubmit.ingest.coordinator import IngestCoordinator, IngestFailure, IngestOutcome, IngestStage
from srasubmit.ingest.extractor import ArchiveExtractor, ExtractionResult
from srasubmit.ingest.manifest import MANIFEST_FILENAME, ManifestContext, SubmissionXmlWriter

__all__ = [
    "ArchiveExtractor",
    "ExtractionResult",
    "IngestCoordinator",
    "IngestFailure",
    "IngestOutcome",
    "IngestStage",
    "MANIFEST_FILENAME",
    "ManifestContext",
    "SubmissionXmlWriter",
]
