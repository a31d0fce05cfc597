"""
aimlog - Constants

Section layout, headings and column positions of the stats files written by
the aim trainer. The file format is not documented upstream; everything here
is taken from the files the game writes.
"""

from enum import IntEnum, StrEnum


class Section(IntEnum):
    """
    Position of each section inside a stats file.

    The order is fixed by the game and never changes between versions.
    """

    KILLS = 0
    WEAPON_SETTINGS = 1
    STATISTICS = 2
    GENERAL_SETTINGS = 3


class FieldKind(StrEnum):
    """Target type of a decoded column."""

    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    TEXT = "text"


# Sections are separated by a blank line written with Windows line endings
SECTION_DELIMITER = "\r\n\r\n"
SECTION_COUNT = len(Section)

# Key/value sections ("Kills:,30")
LINE_SEPARATOR = "\r\n"
HEADING_SEPARATOR = ":,"

# Filename timestamp: "<scenario> - Challenge - 2023.01.15-14.05.30 Stats.csv"
TIMESTAMP_MARKER = " - "
TIMESTAMP_WIDTH = 19
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Files are only picked up with this suffix
STATS_FILE_SUFFIX = ".csv"
PROCESSED_DIR_NAME = "processed"

# Payload framing for the upload collaborator
PAYLOAD_LINE_TERMINATOR = "\r\n"

# Weapon settings rows carry the optional columns only from this width on
WEAPON_OPTIONAL_MIN_FIELDS = 7

# Lexical booleans accepted by the game ("Hide Gun:,true", "Cheated" column)
TRUE_TOKENS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_TOKENS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

# Default chunk size when streaming a file through the section splitter
DEFAULT_CHUNK_SIZE = 64 * 1024
