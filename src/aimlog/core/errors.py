"""
Parse errors raised while reading stats files.

All of them derive from ValueError so callers that only care about "bad
input" can keep catching that.
"""

from typing import Optional


class SessionParseError(ValueError):
    """Base class for every failure while parsing a stats file."""

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.filename = filename


class StructuralError(SessionParseError):
    """The file does not split into the expected number of sections."""

    def __init__(self, filename: str, block_count: int, expected: int = 4):
        super().__init__(
            f"invalid file {filename!r}: expected {expected} sections, found {block_count}",
            filename=filename,
        )
        self.block_count = block_count
        self.expected = expected


class TimestampError(SessionParseError):
    """The filename does not carry a readable date-time token."""

    def __init__(self, filename: str, reason: str = ""):
        message = f"unable to parse timestamp from filename {filename!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, filename=filename)
        self.reason = reason


class FieldError(SessionParseError):
    """A required column is missing or cannot be coerced to its type."""

    def __init__(self, column: str, raw: Optional[str], expected: str, row: Optional[int] = None):
        if raw is None:
            message = f"missing required column {column!r}"
        else:
            message = f"cannot parse {raw!r} as {expected} for column {column!r}"
        if row is not None:
            message = f"{message} (row {row})"
        super().__init__(message)
        self.column = column
        self.raw = raw
        self.expected = expected
        self.row = row


class MalformedSectionError(SessionParseError):
    """A tabular section could not be tokenized as CSV."""

    def __init__(self, section: str, detail: str):
        super().__init__(f"malformed {section} section: {detail}")
        self.section = section
        self.detail = detail


class EncodingError(SessionParseError):
    """The file content cannot be decoded with the configured encoding."""

    def __init__(self, filename: str, detail: str):
        super().__init__(f"cannot decode {filename!r}: {detail}", filename=filename)
        self.detail = detail
