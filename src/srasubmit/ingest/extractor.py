"""
Archive extraction into a staging directory.

Walks an uploaded archive entry by entry and writes the raw sequence files it
accepts into a flat staging directory. Entries are filtered by suffix; nested
directories, traversal attempts and unsupported files are reported back to
the caller instead of being written.
"""

from __future__ import annotations

import shutil
import tarfile
import tempfile
import zipfile
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from srasubmit.config.loader import DEFAULT_ACCEPTED_SUFFIXES
from srasubmit.exceptions import CorruptArchiveError, EntryExtractionError
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.ingest.extractor")

# Hidden files created by macOS archive tools
NOISE_DIR_PREFIX = "__MACOSX"
NOISE_FILE_SUFFIX = ".DS_Store"

_SEPARATORS = ("/", "\\")
_COPY_CHUNK = 64 * 1024
_SPOOL_MAX = 16 * 1024 * 1024


@dataclass(frozen=True)
class ArchiveEntry:
    """One entry of an archive, in stream order."""

    name: str
    is_dir: bool
    is_file: bool
    opener: Callable[[], IO[bytes]]

    def open(self) -> IO[bytes]:
        return self.opener()


@dataclass
class ExtractionResult:
    """Files staged from one archive plus the entries that were rejected."""

    staging_dir: Path
    files: dict[str, Path] = field(default_factory=dict)
    invalid_files: list[str] = field(default_factory=list)
    root_dir: str = ""

    def __contains__(self, name: str) -> bool:
        return name in self.files


def iter_archive_entries(source: IO[bytes]) -> Iterator[ArchiveEntry]:
    """
    Enumerate entries of a zip or tar archive.

    The source must be seekable; see ``_ensure_seekable``.

    Raises:
        CorruptArchiveError: If the stream is not a readable archive
    """
    if zipfile.is_zipfile(source):
        source.seek(0)
        yield from _iter_zip_entries(source)
        return

    source.seek(0)
    yield from _iter_tar_entries(source)


def _iter_zip_entries(source: IO[bytes]) -> Iterator[ArchiveEntry]:
    try:
        archive = zipfile.ZipFile(source)
    except (zipfile.BadZipFile, OSError, EOFError) as e:
        raise CorruptArchiveError(f"Unreadable zip archive: {e}") from e

    with archive:
        for info in archive.infolist():
            yield ArchiveEntry(
                name=info.filename,
                is_dir=info.is_dir(),
                is_file=not info.is_dir(),
                opener=lambda info=info: archive.open(info),
            )


def _iter_tar_entries(source: IO[bytes]) -> Iterator[ArchiveEntry]:
    try:
        archive = tarfile.open(fileobj=source, mode="r:*")
    except (tarfile.TarError, OSError, EOFError) as e:
        raise CorruptArchiveError(f"Unrecognized or corrupt archive: {e}") from e

    with archive:
        members = iter(archive)
        while True:
            try:
                member = next(members)
            except StopIteration:
                return
            except (tarfile.TarError, OSError, EOFError) as e:
                raise CorruptArchiveError(f"Corrupt tar archive: {e}") from e

            yield ArchiveEntry(
                name=member.name + "/" if member.isdir() and not member.name.endswith("/") else member.name,
                is_dir=member.isdir(),
                is_file=member.isfile(),
                opener=lambda member=member: _open_tar_member(archive, member),
            )


def _open_tar_member(archive: tarfile.TarFile, member: tarfile.TarInfo) -> IO[bytes]:
    stream = archive.extractfile(member)
    if stream is None:
        raise OSError(f"no data for tar member {member.name}")
    return stream


def _ensure_seekable(stream: IO[bytes]) -> IO[bytes]:
    """Spool a forward-only upload stream so the archive readers can seek."""
    try:
        if stream.seekable():
            return stream
    except (AttributeError, ValueError):
        pass

    spooled = tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX)
    try:
        shutil.copyfileobj(stream, spooled, _COPY_CHUNK)
    except OSError as e:
        spooled.close()
        raise CorruptArchiveError(f"Failed to read archive stream: {e}") from e
    spooled.seek(0)
    return spooled


def _is_noise(name: str) -> bool:
    base = name.rstrip("/")
    return base.startswith(NOISE_DIR_PREFIX) or base.endswith(NOISE_FILE_SUFFIX)


def _has_unsafe_segment(name: str) -> bool:
    """True for absolute names or names containing a parent-directory segment."""
    if name.startswith(_SEPARATORS) or (len(name) > 1 and name[1] == ":"):
        return True
    segments = name.replace("\\", "/").split("/")
    return ".." in segments


def _extension(name: str) -> str:
    return name.rsplit(".", 1)[1] if "." in name else ""


class ArchiveExtractor:
    """
    Extracts accepted raw-file entries from an archive into a staging directory.

    An optional single leading directory entry is treated as the archive root
    and stripped from the following entry names.
    """

    def __init__(self, accepted_suffixes: Any = DEFAULT_ACCEPTED_SUFFIXES):
        self.accepted_suffixes = frozenset(str(s).lower().lstrip(".") for s in accepted_suffixes)

    def extract(self, source: IO[bytes] | str | Path, staging_dir: Path) -> ExtractionResult:
        """
        Extract ``source`` into ``staging_dir``.

        Per-entry failures are collected in ``invalid_files``; only an
        unreadable archive aborts the extraction.

        Raises:
            CorruptArchiveError: If the archive itself cannot be read
        """
        staging_dir = Path(staging_dir)
        if isinstance(source, (str, Path)):
            try:
                f = open(source, "rb")
            except OSError as e:
                raise CorruptArchiveError(f"Cannot open archive {source}: {e}") from e
            with f:
                return self._extract_stream(f, staging_dir)
        return self._extract_stream(source, staging_dir)

    def _extract_stream(self, stream: IO[bytes], staging_dir: Path) -> ExtractionResult:
        result = ExtractionResult(staging_dir=staging_dir)
        staging_root = staging_dir.resolve()

        seekable = _ensure_seekable(stream)
        try:
            entries = iter_archive_entries(seekable)
            root_decided = False
            skip_prefix: str | None = None

            for entry in entries:
                if skip_prefix is not None:
                    if entry.name.startswith(skip_prefix):
                        continue
                    skip_prefix = None

                if not root_decided and not _is_noise(entry.name):
                    root_decided = True
                    if entry.is_dir and not _has_unsafe_segment(entry.name):
                        result.root_dir = entry.name
                        logger.debug(f"Using archive root directory '{entry.name}'")
                        continue

                name = entry.name
                if result.root_dir and name.startswith(result.root_dir):
                    name = name[len(result.root_dir) :]
                if not name:
                    continue

                if self._is_rejected(entry, name):
                    logger.info(f"Ignoring dir/unsupported file: {entry.name}")
                    if not _is_noise(entry.name) and not _is_noise(name):
                        result.invalid_files.append(entry.name)
                    if entry.is_dir:
                        # The whole subtree goes with its directory
                        skip_prefix = entry.name
                    continue

                if name in result.files:
                    logger.warning(f"Archive contains '{name}' more than once, keeping the last copy")
                try:
                    result.files[name] = self._write_entry(entry, name, staging_root)
                except EntryExtractionError as e:
                    logger.debug(f"Failed to extract file: {e.message}", exc_info=e.__cause__)
                    result.files.pop(name, None)
                    result.invalid_files.append(entry.name)
        finally:
            if seekable is not stream:
                seekable.close()

        logger.info(
            f"Extracted {len(result.files)} files into {staging_dir} " f"({len(result.invalid_files)} rejected)"
        )
        return result

    def _is_rejected(self, entry: ArchiveEntry, name: str) -> bool:
        if entry.is_dir or not entry.is_file:
            return True
        if any(sep in name for sep in _SEPARATORS):
            return True
        if _has_unsafe_segment(entry.name) or _has_unsafe_segment(name):
            return True
        return _extension(name).lower() not in self.accepted_suffixes

    def _write_entry(self, entry: ArchiveEntry, name: str, staging_root: Path) -> Path:
        target = (staging_root / name).resolve()
        if target.parent != staging_root:
            raise EntryExtractionError(entry.name, "resolves outside the staging directory")

        logger.debug(f"Unzipping file: {name} to: {target}")
        try:
            with entry.open() as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst, _COPY_CHUNK)
        except Exception as e:
            target.unlink(missing_ok=True)
            raise EntryExtractionError(entry.name, str(e), cause=e) from e

        return target
