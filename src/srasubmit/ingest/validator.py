"""
Submission validation against the requested sample set and extracted files.
"""

from __future__ import annotations

from collections.abc import Iterable

from srasubmit.exceptions import InvalidSampleSetError, MissingRequiredFilesError
from srasubmit.ingest.extractor import ExtractionResult
from srasubmit.models import SAMPLE_NAME_FIELD, SubmissionData


def filter_submission_data(data: SubmissionData, requested: Iterable[str]) -> SubmissionData:
    """Keep only the samples and metadata rows for the requested sample names."""
    wanted = set(requested)
    return SubmissionData(
        bio_samples=[b for b in data.bio_samples if b.sample_name in wanted],
        sra_metadata=[m for m in data.sra_metadata if m.get(SAMPLE_NAME_FIELD) in wanted],
    )


def validate_sample_set(filtered: SubmissionData, requested: Iterable[str]) -> None:
    """
    Check every requested sample resolved to a sample record.

    Raises:
        InvalidSampleSetError: If the counts differ
    """
    requested_count = len(set(requested))
    resolved_count = len(filtered.sample_names())
    if requested_count != resolved_count:
        raise InvalidSampleSetError(requested=requested_count, resolved=resolved_count)


def find_missing_files(filtered: SubmissionData, extraction: ExtractionResult) -> list[str]:
    """Return the sorted file names referenced by metadata but not extracted."""
    return sorted(name for name in filtered.required_filenames() if name not in extraction)


def check_required_files(filtered: SubmissionData, extraction: ExtractionResult) -> None:
    """
    Raises:
        MissingRequiredFilesError: If any referenced file is absent
    """
    missing = find_missing_files(filtered, extraction)
    if missing:
        raise MissingRequiredFilesError(missing)
