"""
Shared fixtures and archive builders.
"""

import io
import tarfile
import zipfile

import pytest

from srasubmit.models import BioSample, SubmissionData, UploadMetadata
from srasubmit.store import DuckDBSubmissionStore


def make_zip(entries: dict[str, bytes | None]) -> io.BytesIO:
    """Build an in-memory zip; a ``None`` value makes a directory entry."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries.items():
            if content is None:
                zf.writestr(zipfile.ZipInfo(name if name.endswith("/") else name + "/"), b"")
            else:
                zf.writestr(name, content)
    buf.seek(0)
    return buf


def make_tar(entries: dict[str, bytes | None], mode: str = "w:gz") -> io.BytesIO:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tf:
        for name, content in entries.items():
            info = tarfile.TarInfo(name.rstrip("/"))
            if content is None:
                info.type = tarfile.DIRTYPE
                tf.addfile(info)
            else:
                info.size = len(content)
                tf.addfile(info, io.BytesIO(content))
    buf.seek(0)
    return buf


@pytest.fixture
def store():
    s = DuckDBSubmissionStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def submission_data() -> SubmissionData:
    return SubmissionData(
        bio_samples=[
            BioSample("sample1", {"organism": "Danio rerio"}),
            BioSample("sample2", {"organism": "Danio rerio"}),
            BioSample("sample3", {"organism": "Homo sapiens"}),
        ],
        sra_metadata=[
            {"sample_name": "sample1", "filename": "sample1.fastq", "filename2": "sample1_2.fastq"},
            {"sample_name": "sample2", "filename": "sample2.fastq", "filename2": ""},
            {"sample_name": "sample3", "filename": "sample3.fq.gz"},
        ],
    )


@pytest.fixture
def metadata() -> UploadMetadata:
    return UploadMetadata(
        project_id=7,
        expedition_code="EXP1",
        bio_samples=("sample1", "sample2"),
        bioproject_title="Reef survey",
        bioproject_description="Reads from the reef survey",
    )
