"""
aimlog Core - Stats file parsing.

This module contains the fundamental components:
- constants: File layout constants and enums
- config: Application configuration management
- errors: Parse error hierarchy
- models: Session records
- sections: Section splitting
- timestamp: Filename timestamp extraction
- decoders: Key/value and tabular section decoders
- parser: Session assembly
"""

from aimlog.core.constants import SECTION_DELIMITER, FieldKind, Section
from aimlog.core.errors import (
    EncodingError,
    FieldError,
    MalformedSectionError,
    SessionParseError,
    StructuralError,
    TimestampError,
)
from aimlog.core.models import GeneralSettings, Kill, Session, Statistics, WeaponSettings
from aimlog.core.parser import (
    DecodeResult,
    ParseReport,
    SessionParser,
    parse_session,
    parse_session_file,
    parse_session_report,
    session_hash,
)
from aimlog.core.sections import iter_sections, split_sections
from aimlog.core.timestamp import TimestampGrammar, extract_timestamp

__all__ = [
    # Enums / constants
    "FieldKind",
    "Section",
    "SECTION_DELIMITER",
    # Errors
    "SessionParseError",
    "EncodingError",
    "StructuralError",
    "TimestampError",
    "FieldError",
    "MalformedSectionError",
    # Models
    "Session",
    "GeneralSettings",
    "WeaponSettings",
    "Statistics",
    "Kill",
    # Parsing
    "DecodeResult",
    "ParseReport",
    "SessionParser",
    "parse_session",
    "parse_session_file",
    "parse_session_report",
    "session_hash",
    "iter_sections",
    "split_sections",
    "TimestampGrammar",
    "extract_timestamp",
]
