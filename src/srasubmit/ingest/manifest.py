"""
Submission manifest writer.

Serializes the filtered submission data into the ``submission.xml`` document
the archive reads from the submission directory.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from srasubmit.exceptions import ManifestWriteError
from srasubmit.models import FILENAME_FIELDS, SAMPLE_NAME_FIELD, SubmissionData, UploadMetadata, record_filenames
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.ingest.manifest")

MANIFEST_FILENAME = "submission.xml"
SPUID_NAMESPACE = "GEOME"


@dataclass(frozen=True)
class ManifestContext:
    """Who is submitting what, for the manifest header."""

    metadata: UploadMetadata
    user: str
    app_url: str = ""


class ManifestWriter(Protocol):
    """Writes the manifest for a submission into its staging directory."""

    def write(self, data: SubmissionData, context: ManifestContext, directory: Path) -> Path: ...


class SubmissionXmlWriter:
    """Default writer producing an SRA-style ``submission.xml``."""

    def __init__(self, filename: str = MANIFEST_FILENAME, spuid_namespace: str = SPUID_NAMESPACE):
        self.filename = filename
        self.spuid_namespace = spuid_namespace

    def write(self, data: SubmissionData, context: ManifestContext, directory: Path) -> Path:
        """
        Write the manifest.

        Raises:
            ManifestWriteError: If the document can't be built or written
        """
        path = Path(directory) / self.filename
        try:
            root = self._build(data, context)
            ET.indent(root)
            ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=True)
        except (OSError, TypeError, ValueError) as e:
            raise ManifestWriteError(f"Error creating {self.filename}: {e}") from e
        logger.debug(f"Wrote manifest {path}")
        return path

    def _build(self, data: SubmissionData, context: ManifestContext) -> ET.Element:
        meta = context.metadata
        root = ET.Element("Submission")

        description = ET.SubElement(root, "Description")
        comment = f"Submitted by {context.user}"
        if context.app_url:
            comment += f" via {context.app_url}"
        ET.SubElement(description, "Comment").text = comment
        organization = ET.SubElement(description, "Organization", type="institute", role="owner")
        ET.SubElement(organization, "Name").text = self.spuid_namespace
        contact = ET.SubElement(organization, "Contact", email=meta.contact.email)
        contact_name = ET.SubElement(contact, "Name")
        ET.SubElement(contact_name, "First").text = meta.contact.first_name
        ET.SubElement(contact_name, "Last").text = meta.contact.last_name
        if meta.release_date:
            ET.SubElement(description, "Hold", release_date=meta.release_date)

        bioproject_ref = self._add_bioproject(root, meta)

        for sample in data.bio_samples:
            self._add_biosample(root, sample.sample_name, sample.attributes)

        for record in data.sra_metadata:
            self._add_files(root, record, bioproject_ref, meta)

        return root

    def _spuid(self, parent: ET.Element, value: str) -> ET.Element:
        el = ET.SubElement(parent, "SPUID", spuid_namespace=self.spuid_namespace)
        el.text = value
        return el

    def _add_bioproject(self, root: ET.Element, meta: UploadMetadata) -> tuple[str, str]:
        if meta.bioproject_accession:
            return "PrimaryId", meta.bioproject_accession

        spuid = f"{meta.expedition_code}_bioproject"
        add_data = ET.SubElement(ET.SubElement(root, "Action"), "AddData", target_db="BioProject")
        xml_content = ET.SubElement(ET.SubElement(add_data, "Data", content_type="xml"), "XmlContent")
        project = ET.SubElement(xml_content, "Project", schema_version="2.0")
        self._spuid(ET.SubElement(project, "ProjectID"), spuid)
        descriptor = ET.SubElement(project, "Descriptor")
        ET.SubElement(descriptor, "Title").text = meta.bioproject_title
        ET.SubElement(ET.SubElement(descriptor, "Description"), "p").text = meta.bioproject_description
        self._spuid(ET.SubElement(add_data, "Identifier"), spuid)
        return "SPUID", spuid

    def _add_biosample(self, root: ET.Element, name: str, attributes: dict[str, Any]) -> None:
        add_data = ET.SubElement(ET.SubElement(root, "Action"), "AddData", target_db="BioSample")
        xml_content = ET.SubElement(ET.SubElement(add_data, "Data", content_type="xml"), "XmlContent")
        biosample = ET.SubElement(xml_content, "BioSample", schema_version="2.0")
        self._spuid(ET.SubElement(biosample, "SampleId"), name)
        attrs_el = ET.SubElement(biosample, "Attributes")
        for key, value in attributes.items():
            if value is None or value == "":
                continue
            ET.SubElement(attrs_el, "Attribute", attribute_name=str(key)).text = str(value)
        self._spuid(ET.SubElement(add_data, "Identifier"), name)

    def _add_files(
        self, root: ET.Element, record: dict[str, Any], bioproject_ref: tuple[str, str], meta: UploadMetadata
    ) -> None:
        sample_name = str(record.get(SAMPLE_NAME_FIELD, ""))
        add_files = ET.SubElement(ET.SubElement(root, "Action"), "AddFiles", target_db="SRA")
        for filename in record_filenames(record):
            file_el = ET.SubElement(add_files, "File", file_path=filename)
            ET.SubElement(file_el, "DataType").text = "generic-data"

        for key, value in record.items():
            if key in FILENAME_FIELDS or key == SAMPLE_NAME_FIELD or value is None or value == "":
                continue
            ET.SubElement(add_files, "Attribute", name=str(key)).text = str(value)

        ref_kind, ref_value = bioproject_ref
        project_ref = ET.SubElement(ET.SubElement(add_files, "AttributeRefId", name="BioProject"), "RefId")
        if ref_kind == "PrimaryId":
            ET.SubElement(project_ref, "PrimaryId").text = ref_value
        else:
            self._spuid(project_ref, ref_value)
        self._spuid(ET.SubElement(ET.SubElement(add_files, "AttributeRefId", name="BioSample"), "RefId"), sample_name)
        self._spuid(ET.SubElement(add_files, "Identifier"), f"{meta.expedition_code}_{sample_name}")
