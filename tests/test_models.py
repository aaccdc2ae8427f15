"""
Tests for submission models.
"""

from pathlib import Path

import pytest

from srasubmit.models import Submission, SubmissionData, SubmissionStatus, UploadMetadata, record_filenames


class TestSubmissionStatus:
    def test_terminal(self):
        assert not SubmissionStatus.READY.is_terminal
        assert SubmissionStatus.SUBMITTED.is_terminal
        assert SubmissionStatus.FAILED.is_terminal

    def test_string_value(self):
        assert SubmissionStatus("READY") is SubmissionStatus.READY


class TestSubmission:
    def test_dir_name(self):
        sub = Submission(project_id=1, expedition_code="E", user="u", submission_dir=Path("/data/E_123"))
        assert sub.dir_name == "E_123"
        assert sub.status is SubmissionStatus.READY


class TestSubmissionData:
    """Tests for SubmissionData parsing and file references."""

    def test_from_dict_snake_case(self):
        data = SubmissionData.from_dict(
            {
                "bio_samples": [{"sample_name": "s1", "organism": "x"}],
                "sra_metadata": [{"sample_name": "s1", "filename": "a.fastq"}],
            }
        )
        assert data.sample_names() == {"s1"}
        assert data.bio_samples[0].attributes == {"organism": "x"}
        assert data.required_filenames() == {"a.fastq"}

    def test_record_filenames_keeps_pair_order(self):
        record = {"sample_name": "s1", "filename2": "b.fastq", "filename": " a.fastq"}
        assert record_filenames(record) == ["a.fastq", "b.fastq"]
        assert record_filenames({"sample_name": "s2"}) == []

    def test_from_dict_camel_case(self):
        data = SubmissionData.from_dict(
            {
                "bioSamples": [{"sampleName": "s1"}],
                "sraMetadata": [{"sample_name": "s1", "filename": "a.fastq", "filename2": "b.fastq"}],
            }
        )
        assert data.sample_names() == {"s1"}
        assert data.required_filenames() == {"a.fastq", "b.fastq"}

    def test_from_dict_requires_sample_name(self):
        with pytest.raises(ValueError, match="sample_name"):
            SubmissionData.from_dict({"bio_samples": [{"organism": "x"}]})

    def test_required_filenames_skips_blank(self):
        data = SubmissionData(
            sra_metadata=[
                {"sample_name": "s1", "filename": " a.fastq ", "filename2": "  "},
                {"sample_name": "s2", "filename": None},
                {"sample_name": "s3", "filename": "a.fastq"},
            ]
        )
        assert data.required_filenames() == {"a.fastq"}


class TestUploadMetadata:
    def test_requested_samples(self):
        meta = UploadMetadata(project_id=1, expedition_code="E", bio_samples=("a", "b", "a"))
        assert meta.requested_samples == {"a", "b"}
