"""
Batch ingestion of a stats folder.

Finds every stats file in a directory, parses them all, encodes the sessions
into one payload, hands it to an uploader and finally moves the source files
into a ``processed/`` folder next to them.

The batch is all-or-nothing at the file level: a file that cannot be parsed
at all (wrong section count, unreadable filename timestamp) aborts the run
before anything is uploaded or moved.
"""

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from aimlog.core.config import AimlogConfig
from aimlog.core.constants import PROCESSED_DIR_NAME, STATS_FILE_SUFFIX
from aimlog.core.models import Session
from aimlog.core.parser import ParseReport, SessionParser
from aimlog.export import encode_sessions
from aimlog.storage import Uploader

logger = logging.getLogger(__name__)


@dataclass
class IngestBatch:
    """Parsed files of one run and the payload built from them."""

    paths: list[Path] = field(default_factory=list)
    reports: list[ParseReport] = field(default_factory=list)
    payload: bytes = b""

    @property
    def sessions(self) -> list[Session]:
        return [report.session for report in self.reports]

    @property
    def dropped_section_count(self) -> int:
        return sum(len(report.section_errors) for report in self.reports)

    def __len__(self) -> int:
        return len(self.reports)


@dataclass
class IngestResult:
    """Outcome of a full ingest run."""

    batch: IngestBatch
    object_name: Optional[str] = None
    archived: list[Path] = field(default_factory=list)


def find_session_files(directory: Path, suffix: str = STATS_FILE_SUFFIX) -> list[Path]:
    """
    List the stats files directly inside a directory.

    Args:
        directory: Folder to scan (not recursive)
        suffix: Filename suffix of stats files

    Returns:
        Regular files ending with the suffix, sorted by name
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    return sorted(p for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix))


def parse_session_files(paths: Iterable[Path], parser: SessionParser) -> list[ParseReport]:
    """
    Parse files in order.

    Raises:
        SessionParseError: On the first file that cannot be parsed; no
            reports are returned in that case
    """
    reports = []
    for path in paths:
        report = parser.parse_file_report(path)
        if not report.ok:
            logger.info(f"{path.name}: parsed without {', '.join(report.dropped_sections)}")
        reports.append(report)
    return reports


def build_batch(paths: Iterable[Path], parser: SessionParser) -> IngestBatch:
    """Parse files and encode them into one payload."""
    paths = list(paths)
    reports = parse_session_files(paths, parser)
    payload = encode_sessions(report.session for report in reports)
    logger.info(f"{len(payload)} bytes buffered from {len(reports)} session(s)")
    return IngestBatch(paths=paths, reports=reports, payload=payload)


def archive_files(paths: Iterable[Path], processed_dir: str = PROCESSED_DIR_NAME) -> list[Path]:
    """
    Move files into a ``processed`` folder beside each of them.

    The folder is created when missing. Any filesystem error propagates;
    files moved before the error stay moved.

    Returns:
        New locations of the files
    """
    moved = []
    for path in paths:
        path = Path(path)
        target_dir = path.parent / processed_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        target = target_dir / path.name
        shutil.move(str(path), str(target))
        logger.debug(f"Archived {path.name} to {target_dir}")
        moved.append(target)

    return moved


def run_ingest(
    config: AimlogConfig,
    uploader: Optional[Uploader],
    source_dir: Optional[Path] = None,
    parser: Optional[SessionParser] = None,
) -> IngestResult:
    """
    Run one ingest pass over a stats folder.

    Order: enumerate, parse, encode, upload, archive. Files are archived only
    after the upload succeeded, so without an uploader nothing is moved.

    Args:
        config: Application configuration
        uploader: Destination for the payload; None skips upload and archive
        source_dir: Folder to scan (defaults to config.ingest.source_dir)
        parser: Parser to use (built from config.parser when omitted)

    Returns:
        IngestResult with the batch, object name and archived paths
    """
    source_dir = Path(source_dir or config.ingest.source_dir)
    parser = parser or SessionParser.from_config(config.parser)

    paths = find_session_files(source_dir, config.ingest.file_suffix)
    if not paths:
        logger.info(f"No stats files found in {source_dir}")
        return IngestResult(batch=IngestBatch())

    logger.info(f"Found {len(paths)} stats file(s) in {source_dir}")
    return _deliver(build_batch(paths, parser), config, uploader)


def ingest_file(
    path: Path,
    config: AimlogConfig,
    uploader: Optional[Uploader],
    parser: Optional[SessionParser] = None,
) -> IngestResult:
    """Parse, upload and archive a single stats file (used by the watcher)."""
    parser = parser or SessionParser.from_config(config.parser)
    return _deliver(build_batch([Path(path)], parser), config, uploader)


def _deliver(batch: IngestBatch, config: AimlogConfig, uploader: Optional[Uploader]) -> IngestResult:
    result = IngestResult(batch=batch)

    if uploader is None:
        logger.info("No upload destination; leaving source files in place")
        return result

    result.object_name = uploader.upload(batch.payload)

    if config.ingest.archive:
        result.archived = archive_files(batch.paths, config.ingest.processed_dir)
        logger.info(f"Archived {len(result.archived)} file(s)")

    return result
