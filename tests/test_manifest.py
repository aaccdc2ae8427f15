"""
Tests for the submission.xml manifest writer.
"""

import xml.etree.ElementTree as ET
from dataclasses import replace

import pytest

from srasubmit.exceptions import ManifestWriteError
from srasubmit.ingest.manifest import MANIFEST_FILENAME, ManifestContext, SubmissionXmlWriter
from srasubmit.ingest.validator import filter_submission_data
from srasubmit.models import Contact


@pytest.fixture
def filtered(submission_data):
    return filter_submission_data(submission_data, {"sample1", "sample2"})


def _write(tmp_path, data, metadata, **kwargs):
    path = SubmissionXmlWriter().write(data, ManifestContext(metadata=metadata, user="alice", **kwargs), tmp_path)
    return path, ET.parse(path).getroot()


class TestSubmissionXml:
    """Tests for the generated document."""

    def test_written_to_directory(self, tmp_path, filtered, metadata):
        path, root = _write(tmp_path, filtered, metadata)

        assert path == tmp_path / MANIFEST_FILENAME
        assert root.tag == "Submission"
        assert path.read_text(encoding="utf-8").startswith("<?xml")

    def test_comment_names_user_and_app(self, tmp_path, filtered, metadata):
        _, root = _write(tmp_path, filtered, metadata, app_url="https://example.org")
        assert root.findtext("Description/Comment") == "Submitted by alice via https://example.org"

    def test_contact(self, tmp_path, filtered, metadata):
        meta = replace(metadata, contact=Contact("Ada", "Lovelace", "ada@example.org"))
        _, root = _write(tmp_path, filtered, meta)

        contact = root.find("Description/Organization/Contact")
        assert contact.get("email") == "ada@example.org"
        assert contact.findtext("Name/First") == "Ada"
        assert contact.findtext("Name/Last") == "Lovelace"

    def test_new_bioproject(self, tmp_path, filtered, metadata):
        _, root = _write(tmp_path, filtered, metadata)

        projects = root.findall("Action/AddData[@target_db='BioProject']")
        assert len(projects) == 1
        assert projects[0].findtext("Data/XmlContent/Project/Descriptor/Title") == "Reef survey"
        refs = [el.findtext("RefId/SPUID") for el in root.iter("AttributeRefId") if el.get("name") == "BioProject"]
        assert refs == ["EXP1_bioproject", "EXP1_bioproject"]

    def test_existing_bioproject_accession(self, tmp_path, filtered, metadata):
        meta = replace(metadata, bioproject_accession="PRJNA000001")
        _, root = _write(tmp_path, filtered, meta)

        assert root.findall("Action/AddData[@target_db='BioProject']") == []
        primary_ids = [
            el.findtext("RefId/PrimaryId") for el in root.iter("AttributeRefId") if el.get("name") == "BioProject"
        ]
        assert primary_ids == ["PRJNA000001", "PRJNA000001"]

    def test_biosamples_and_attributes(self, tmp_path, filtered, metadata):
        _, root = _write(tmp_path, filtered, metadata)

        samples = root.findall("Action/AddData[@target_db='BioSample']")
        assert [s.findtext("Identifier/SPUID") for s in samples] == ["sample1", "sample2"]
        attrs = samples[0].findall("Data/XmlContent/BioSample/Attributes/Attribute")
        assert [(a.get("attribute_name"), a.text) for a in attrs] == [("organism", "Danio rerio")]

    def test_file_paths(self, tmp_path, filtered, metadata):
        _, root = _write(tmp_path, filtered, metadata)

        paths = [f.get("file_path") for f in root.findall("Action/AddFiles/File")]
        assert paths == ["sample1.fastq", "sample1_2.fastq", "sample2.fastq"]

    def test_file_paths_match_required_names(self, tmp_path, filtered, metadata):
        padded = replace(
            filtered, sra_metadata=[{"sample_name": "sample1", "filename": " sample1.fastq ", "filename2": "  "}]
        )
        _, root = _write(tmp_path, padded, metadata)

        paths = [f.get("file_path") for f in root.findall("Action/AddFiles/File")]
        assert paths == ["sample1.fastq"]
        assert set(paths) == padded.required_filenames()

    def test_hold_only_with_release_date(self, tmp_path, filtered, metadata):
        _, root = _write(tmp_path, filtered, metadata)
        assert root.find("Description/Hold") is None

        _, root = _write(tmp_path, filtered, replace(metadata, release_date="2027-01-01"))
        assert root.find("Description/Hold").get("release_date") == "2027-01-01"


class TestWriteErrors:
    def test_unwritable_directory(self, tmp_path, filtered, metadata):
        with pytest.raises(ManifestWriteError):
            SubmissionXmlWriter().write(
                filtered, ManifestContext(metadata=metadata, user="alice"), tmp_path / "does-not-exist"
            )
