"""
Domain types for submissions.

Samples and metadata come from an external model; they're carried here as
plain mappings wrapped in small dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

# Metadata fields that reference raw files (paired-end reads use both)
FILENAME_FIELDS = ("filename", "filename2")
SAMPLE_NAME_FIELD = "sample_name"


def record_filenames(record: dict[str, Any]) -> list[str]:
    """File names referenced by one metadata row, stripped, blanks dropped."""
    names = []
    for key in FILENAME_FIELDS:
        value = record.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            names.append(value)
    return names


class SubmissionStatus(StrEnum):
    """Lifecycle status of a submission."""

    READY = "READY"
    SUBMITTED = "SUBMITTED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.READY


@dataclass
class Submission:
    """One durable record of a staged delivery attempt."""

    project_id: int
    expedition_code: str
    user: str
    submission_dir: Path
    status: SubmissionStatus = SubmissionStatus.READY
    id: str | None = None
    last_error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def dir_name(self) -> str:
        return Path(self.submission_dir).name


@dataclass(frozen=True)
class BioSample:
    """A sample record resolvable from the project's metadata."""

    sample_name: str
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class SubmissionData:
    """Sample records plus their SRA metadata rows."""

    bio_samples: list[BioSample] = field(default_factory=list)
    sra_metadata: list[dict[str, Any]] = field(default_factory=list)

    def sample_names(self) -> set[str]:
        return {b.sample_name for b in self.bio_samples}

    def required_filenames(self) -> set[str]:
        """Collect every file name referenced by the metadata rows."""
        return {name for record in self.sra_metadata for name in record_filenames(record)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubmissionData:
        bio_samples = []
        for sample in data.get("bio_samples") or data.get("bioSamples") or []:
            attrs = dict(sample)
            name = attrs.pop(SAMPLE_NAME_FIELD, None) or attrs.pop("sampleName", None)
            if name is None:
                raise ValueError(f"bio sample without '{SAMPLE_NAME_FIELD}': {sample}")
            bio_samples.append(BioSample(sample_name=str(name), attributes=attrs))
        sra_metadata = [dict(m) for m in (data.get("sra_metadata") or data.get("sraMetadata") or [])]
        return cls(bio_samples=bio_samples, sra_metadata=sra_metadata)


@dataclass(frozen=True)
class Contact:
    first_name: str = ""
    last_name: str = ""
    email: str = ""


@dataclass(frozen=True)
class UploadMetadata:
    """
    Request context for one ingest.

    ``bio_samples`` holds the sample names the caller wants submitted; the
    remaining fields only feed the manifest.
    """

    project_id: int
    expedition_code: str
    bio_samples: tuple[str, ...]
    bioproject_title: str = ""
    bioproject_description: str = ""
    bioproject_accession: str | None = None
    release_date: str | None = None
    contact: Contact = field(default_factory=Contact)

    @property
    def requested_samples(self) -> set[str]:
        return set(self.bio_samples)
