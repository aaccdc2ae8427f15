"""
Ingest coordinator.

Runs one upload through validation, extraction, manifest writing and
persistence. Any failure removes the staging directory before returning, so
a later dispatch run never sees partial state.
"""

from __future__ import annotations

import re
import shutil
import time
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import IO

from srasubmit.exceptions import (
    CorruptArchiveError,
    InvalidSampleSetError,
    ManifestWriteError,
    MissingRequiredFilesError,
    PersistenceError,
    StateStoreError,
)
from srasubmit.ingest.extractor import ArchiveExtractor, ExtractionResult
from srasubmit.ingest.manifest import ManifestContext, ManifestWriter, SubmissionXmlWriter
from srasubmit.ingest.validator import check_required_files, filter_submission_data, validate_sample_set
from srasubmit.models import Submission, SubmissionData, SubmissionStatus, UploadMetadata
from srasubmit.store import SubmissionStore
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.ingest")


class IngestStage(StrEnum):
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    MANIFEST_WRITING = "manifest_writing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class IngestFailure(StrEnum):
    INVALID_SAMPLE_SET = "invalid_sample_set"
    CORRUPT_ARCHIVE = "corrupt_archive"
    MISSING_FILES = "missing_files"
    MANIFEST_WRITE_ERROR = "manifest_write_error"
    PERSISTENCE_ERROR = "persistence_error"
    INTERNAL_ERROR = "internal_error"


def missing_files_message(missing: list[str]) -> str:
    return (
        'The following required files are missing: "'
        + '", "'.join(missing)
        + '".\n'
        + "Either submit these files, or remove the bioSamples that require these files from this submission."
    )


FAILURE_MESSAGES = {
    IngestFailure.INVALID_SAMPLE_SET: "Invalid bioSamples provided",
    IngestFailure.CORRUPT_ARCHIVE: "Invalid/corrupt zip file.",
    IngestFailure.MANIFEST_WRITE_ERROR: "Error creating submission.xml file",
    IngestFailure.PERSISTENCE_ERROR: "Error saving SRA submission",
    IngestFailure.INTERNAL_ERROR: "Internal error while staging the upload",
}


@dataclass
class IngestOutcome:
    """Caller-facing result of one ingest attempt."""

    success: bool
    message: str | None = None
    reason: IngestFailure | None = None
    stage: IngestStage = IngestStage.DONE
    failed_at: IngestStage | None = None
    missing_files: list[str] = field(default_factory=list)
    invalid_files: list[str] = field(default_factory=list)
    submission: Submission | None = None

    @classmethod
    def failed(cls, reason: IngestFailure, **kwargs) -> IngestOutcome:
        message = kwargs.pop("message", None) or FAILURE_MESSAGES[reason]
        return cls(success=False, message=message, reason=reason, stage=IngestStage.FAILED, **kwargs)


class IngestCoordinator:
    """Stages uploaded archives and records them as READY submissions."""

    def __init__(
        self,
        store: SubmissionStore,
        staging_root: Path,
        *,
        extractor: ArchiveExtractor | None = None,
        manifest_writer: ManifestWriter | None = None,
        app_url: str = "",
    ):
        self.store = store
        self.staging_root = Path(staging_root)
        self.extractor = extractor or ArchiveExtractor()
        self.manifest_writer = manifest_writer or SubmissionXmlWriter()
        self.app_url = app_url

    def upload(
        self,
        metadata: UploadMetadata,
        archive: IO[bytes] | str | Path,
        submission_data: SubmissionData,
        user: str,
    ) -> IngestOutcome:
        """
        Ingest one archive for the requested samples.

        Args:
            metadata: Request context, including the requested sample names
            archive: Archive stream or path
            submission_data: All samples and SRA metadata of the expedition
            user: Owning identity

        Returns:
            IngestOutcome describing success or the first failure
        """
        stage = IngestStage.VALIDATING
        staging_dir: Path | None = None
        extraction: ExtractionResult | None = None

        try:
            filtered = filter_submission_data(submission_data, metadata.requested_samples)
            validate_sample_set(filtered, metadata.requested_samples)

            stage = IngestStage.EXTRACTING
            staging_dir = self._create_staging_dir(metadata.expedition_code)
            extraction = self.extractor.extract(archive, staging_dir)
            check_required_files(filtered, extraction)

            stage = IngestStage.MANIFEST_WRITING
            self.manifest_writer.write(
                filtered, ManifestContext(metadata=metadata, user=user, app_url=self.app_url), staging_dir
            )

            stage = IngestStage.PERSISTING
            submission = Submission(
                project_id=metadata.project_id,
                expedition_code=metadata.expedition_code,
                user=user,
                submission_dir=staging_dir,
                status=SubmissionStatus.READY,
            )
            try:
                self.store.insert(submission)
            except StateStoreError as e:
                raise PersistenceError(f"Error saving submission: {e.message}") from e

        except InvalidSampleSetError as e:
            logger.info(f"Rejected upload for {metadata.expedition_code}: {e.message}")
            return self._fail(IngestFailure.INVALID_SAMPLE_SET, stage, staging_dir, extraction)
        except CorruptArchiveError as e:
            logger.info(f"Rejected upload for {metadata.expedition_code}: {e.message}")
            return self._fail(IngestFailure.CORRUPT_ARCHIVE, stage, staging_dir, extraction)
        except MissingRequiredFilesError as e:
            logger.info(f"Rejected upload for {metadata.expedition_code}: {e.message}")
            return self._fail(
                IngestFailure.MISSING_FILES,
                stage,
                staging_dir,
                extraction,
                message=missing_files_message(e.missing_files),
                missing_files=e.missing_files,
            )
        except ManifestWriteError:
            logger.exception("Error creating submission manifest")
            return self._fail(IngestFailure.MANIFEST_WRITE_ERROR, stage, staging_dir, extraction)
        except PersistenceError:
            logger.exception("Error saving submission")
            return self._fail(IngestFailure.PERSISTENCE_ERROR, stage, staging_dir, extraction)
        except Exception:
            logger.exception(f"Unexpected error during {stage.value} for {metadata.expedition_code}")
            return self._fail(IngestFailure.INTERNAL_ERROR, stage, staging_dir, extraction)
        except BaseException:
            # No half-staged directory survives, whatever the error
            self._delete_staging_dir(staging_dir)
            raise

        logger.info(
            f"Staged submission {submission.id} for {metadata.expedition_code} "
            f"({len(extraction.files)} files) in {staging_dir}"
        )
        return IngestOutcome(
            success=True,
            stage=IngestStage.DONE,
            invalid_files=list(extraction.invalid_files),
            submission=submission,
        )

    def _fail(
        self,
        reason: IngestFailure,
        stage: IngestStage,
        staging_dir: Path | None,
        extraction: ExtractionResult | None,
        **kwargs,
    ) -> IngestOutcome:
        self._delete_staging_dir(staging_dir)
        invalid = list(extraction.invalid_files) if extraction else []
        logger.debug(f"Ingest failed during {stage.value}: {reason.value}")
        return IngestOutcome.failed(reason, failed_at=stage, invalid_files=invalid, **kwargs)

    def _create_staging_dir(self, expedition_code: str) -> Path:
        """Create a fresh directory named <expedition>_<millis>_<random>."""
        self.staging_root.mkdir(parents=True, exist_ok=True)
        safe_code = re.sub(r"[^A-Za-z0-9_.-]", "_", expedition_code) or "submission"
        name = f"{safe_code}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        path = self.staging_root / name
        path.mkdir(exist_ok=False)
        return path

    def _delete_staging_dir(self, staging_dir: Path | None) -> None:
        if staging_dir is None or not staging_dir.exists():
            return
        shutil.rmtree(staging_dir)
        logger.debug(f"Removed staging directory {staging_dir}")
