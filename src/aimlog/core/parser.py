"""
Stats File Parser

Assembles one Session from one stats file:

1. split the content into its four sections
2. derive the session hash and timestamp from the filename
3. decode kills, weapon settings, statistics and general settings

Only the first two steps can fail the file. Each section decode is
best-effort: a section that cannot be decoded is dropped from the Session
(None, or an empty kill log) and reported in the ParseReport, so partially
corrupt logs still produce a record.
"""

import hashlib
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, Optional, TextIO, TypeVar, Union

from aimlog.core.constants import DEFAULT_CHUNK_SIZE, SECTION_DELIMITER, Section
from aimlog.core.decoders import (
    decode_general_settings,
    decode_kills,
    decode_statistics,
    decode_weapon_settings,
)
from aimlog.core.errors import EncodingError, SessionParseError
from aimlog.core.models import Session
from aimlog.core.sections import iter_sections, require_sections
from aimlog.core.timestamp import DEFAULT_GRAMMAR, TimestampGrammar, extract_timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")

Content = Union[str, bytes, TextIO]


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding one section: a value or the error that stopped it."""

    section: Section
    value: Optional[T] = None
    error: Optional[SessionParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_absent(self, absent: Any = None) -> Any:
        """The decoded value, or ``absent`` when the decode failed."""
        return self.value if self.error is None else absent


@dataclass(frozen=True)
class ParseReport:
    """A parsed Session plus the sections that were dropped while building it."""

    session: Session
    section_errors: dict[Section, SessionParseError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.section_errors

    @property
    def dropped_sections(self) -> list[str]:
        return [section.name.lower() for section in sorted(self.section_errors)]


def session_hash(filename: str) -> str:
    """
    Hex SHA-1 of the filename.

    Only the name is hashed, not the content: two files with the same name
    get the same hash regardless of what they contain.
    """
    return hashlib.sha1(filename.encode("utf-8")).hexdigest()


def decode_section(
    section: Section,
    decoder: Callable[[str], T],
    block: str,
) -> DecodeResult[T]:
    """Run a section decoder, capturing its parse error instead of raising."""
    try:
        return DecodeResult(section=section, value=decoder(block))
    except SessionParseError as e:
        return DecodeResult(section=section, error=e)


class SessionParser:
    """
    Parser for aim trainer stats files.

    Holds no per-file state, so one instance can parse any number of files,
    from any number of threads.
    """

    def __init__(
        self,
        strict: bool = False,
        delimiter: str = SECTION_DELIMITER,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: str = "utf-8",
        encoding_errors: str = "replace",
        grammar: TimestampGrammar = DEFAULT_GRAMMAR,
    ):
        """
        Initialize the parser.

        Args:
            strict: Raise section decode errors instead of dropping the section
            delimiter: Literal separator between sections
            chunk_size: Characters read at a time when streaming a file
            encoding: Text encoding of stats files and byte content
            encoding_errors: Codec error handler for undecodable bytes; the
                default "replace" confines bad bytes to the field holding them
            grammar: Filename timestamp layout
        """
        self.strict = strict
        self.delimiter = delimiter
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.encoding_errors = encoding_errors
        self.grammar = grammar

    @classmethod
    def from_config(cls, config: Any) -> "SessionParser":
        """Build a parser from a ParserConfig."""
        return cls(
            strict=config.strict_sections,
            delimiter=config.section_delimiter,
            chunk_size=config.chunk_size,
            encoding=config.encoding,
            encoding_errors=config.encoding_errors,
        )

    def _blocks(self, filename: str, content: Content) -> list[str]:
        try:
            if isinstance(content, bytes):
                content = content.decode(self.encoding, errors=self.encoding_errors)
            if isinstance(content, str):
                content = io.StringIO(content, newline="")
            return list(iter_sections(content, self.delimiter, self.chunk_size))
        except UnicodeDecodeError as e:
            raise EncodingError(filename, str(e)) from e

    def parse_report(self, filename: str, content: Content) -> ParseReport:
        """
        Parse stats file content into a Session, reporting dropped sections.

        Args:
            filename: Base name of the file (hash and timestamp come from it)
            content: Raw bytes, decoded text, or a text stream opened with
                newline=""

        Returns:
            ParseReport with the Session and any section errors

        Raises:
            StructuralError: If the content does not have exactly four sections
            EncodingError: If encoding_errors is "strict" and the bytes do not decode
            TimestampError: If the filename has no readable timestamp
            SessionParseError: In strict mode, the first section decode error
        """
        blocks = require_sections(self._blocks(filename, content), filename)
        identifier = session_hash(filename)
        timestamp = extract_timestamp(filename, self.grammar)

        kills = decode_section(Section.KILLS, decode_kills, blocks[Section.KILLS])
        weapon = decode_section(Section.WEAPON_SETTINGS, decode_weapon_settings, blocks[Section.WEAPON_SETTINGS])
        statistics = decode_section(Section.STATISTICS, decode_statistics, blocks[Section.STATISTICS])
        general = decode_section(Section.GENERAL_SETTINGS, decode_general_settings, blocks[Section.GENERAL_SETTINGS])

        section_errors: dict[Section, SessionParseError] = {}
        for result in (kills, weapon, statistics, general):
            if result.error is None:
                continue
            result.error.filename = filename
            section_errors[result.section] = result.error

        if section_errors and self.strict:
            raise section_errors[min(section_errors)]

        for section, error in section_errors.items():
            logger.warning(f"{filename}: dropping {section.name.lower()} section: {error}")

        session = Session(
            session_hash=identifier,
            time=timestamp,
            general_settings=general.or_absent(),
            weapon_settings=weapon.or_absent(),
            statistics=statistics.or_absent(),
            kills=kills.or_absent(()),
        )
        logger.debug(f"{filename}: parsed session {identifier} with {session.kill_count} kills")
        return ParseReport(session=session, section_errors=section_errors)

    def parse(self, filename: str, content: Content) -> Session:
        """Parse stats file content into a Session (see parse_report)."""
        return self.parse_report(filename, content).session

    def parse_file_report(self, path: Union[str, Path]) -> ParseReport:
        """Stream a stats file from disk; its base name is used as the filename."""
        path = Path(path)
        with open(path, encoding=self.encoding, errors=self.encoding_errors, newline="") as f:
            return self.parse_report(path.name, f)

    def parse_file(self, path: Union[str, Path]) -> Session:
        """Stream a stats file from disk into a Session."""
        return self.parse_file_report(path).session


_default_parser = SessionParser()


def parse_session(filename: str, content: Content) -> Session:
    """
    Convenience function to parse stats file content.

    Args:
        filename: Base name of the stats file
        content: Raw bytes, text, or a text stream

    Returns:
        The parsed Session
    """
    return _default_parser.parse(filename, content)


def parse_session_report(filename: str, content: Content) -> ParseReport:
    """Parse content and return the Session with any dropped-section errors."""
    return _default_parser.parse_report(filename, content)


def parse_session_file(path: Union[str, Path]) -> Session:
    """Convenience function to parse a stats file on disk."""
    return _default_parser.parse_file(path)
