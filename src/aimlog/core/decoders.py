"""
Section decoders for stats files.

Two layouts occur in a stats file:

- key/value blocks, one ``Heading:,value`` per line (statistics, general
  settings)
- CSV tables with a header row (kill log, weapon settings)

Both are decoded through the same typed schema: an ordered tuple of
FieldSpec entries, each naming where the raw string lives (a heading or a
column index), what type it becomes, and whether a failure aborts the block
or falls back to the zero value of the type.
"""

import csv
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional, Union

from aimlog.core.constants import (
    FALSE_TOKENS,
    HEADING_SEPARATOR,
    LINE_SEPARATOR,
    TRUE_TOKENS,
    WEAPON_OPTIONAL_MIN_FIELDS,
    FieldKind,
)
from aimlog.core.errors import FieldError, MalformedSectionError
from aimlog.core.models import GeneralSettings, Kill, Statistics, WeaponSettings

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

ZERO_VALUES: dict[FieldKind, Any] = {
    FieldKind.FLOAT: 0.0,
    FieldKind.INT: 0,
    FieldKind.BOOL: False,
    FieldKind.TEXT: "",
}


# ============================================================================
# Coercion
# ============================================================================


def parse_float(raw: str) -> float:
    """Parse a float, rejecting padded or empty strings."""
    if raw != raw.strip():
        raise ValueError(f"unexpected whitespace in {raw!r}")
    return float(raw)


def parse_int(raw: str) -> int:
    """Parse a 64-bit integer; 0x/0o/0b prefixes are honoured."""
    if raw != raw.strip():
        raise ValueError(f"unexpected whitespace in {raw!r}")
    value = int(raw, 0)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"{raw!r} is out of range for a 64-bit integer")
    return value


def parse_bool(raw: str) -> bool:
    """Parse one of the lexical truth tokens (1/t/true/..., 0/f/false/...)."""
    if raw in TRUE_TOKENS:
        return True
    if raw in FALSE_TOKENS:
        return False
    raise ValueError(f"{raw!r} is not a boolean")


COERCERS: dict[FieldKind, Callable[[str], Any]] = {
    FieldKind.FLOAT: parse_float,
    FieldKind.INT: parse_int,
    FieldKind.BOOL: parse_bool,
    FieldKind.TEXT: str,
}


# ============================================================================
# Schema
# ============================================================================


@dataclass(frozen=True)
class FieldSpec:
    """Where one record attribute comes from and how it is decoded."""

    attr: str
    key: Union[str, int]  # heading for key/value blocks, index for tables
    kind: FieldKind
    required: bool = True
    label: str = ""  # column name used in error messages

    @property
    def column(self) -> str:
        return self.label or str(self.key)


@dataclass(frozen=True)
class RecordSchema:
    """Ordered field specs for one record type."""

    record_type: type
    fields: tuple[FieldSpec, ...]
    # rows narrower than this skip every optional field
    optional_min_fields: int = 0


def decode_fields(
    schema: RecordSchema,
    lookup: Callable[[Union[str, int]], Optional[str]],
    available: int = -1,
    row: Optional[int] = None,
) -> Any:
    """
    Build one record from raw strings.

    Text fields pass through untouched (absent becomes ""). Required fields
    raise FieldError on a missing or unparsable value. Optional fields fall
    back to the zero value of their type and never raise.

    Args:
        schema: Record schema to decode
        lookup: Returns the raw string for a key, or None when absent
        available: Number of fields in the source row (-1 for key/value blocks)
        row: Row number for error messages

    Returns:
        An instance of schema.record_type
    """
    values: dict[str, Any] = {}
    optional_allowed = available < 0 or available >= schema.optional_min_fields

    for spec in schema.fields:
        if not spec.required and not optional_allowed:
            values[spec.attr] = ZERO_VALUES[spec.kind]
            continue

        raw = lookup(spec.key)

        if spec.kind is FieldKind.TEXT:
            values[spec.attr] = raw if raw is not None else ""
            continue

        if raw is None:
            if spec.required:
                raise FieldError(spec.column, None, spec.kind.value, row=row)
            values[spec.attr] = ZERO_VALUES[spec.kind]
            continue

        try:
            values[spec.attr] = COERCERS[spec.kind](raw)
        except ValueError:
            if spec.required:
                raise FieldError(spec.column, raw, spec.kind.value, row=row) from None
            logger.debug(f"Defaulting optional column {spec.column!r}: unreadable value {raw!r}")
            values[spec.attr] = ZERO_VALUES[spec.kind]

    return schema.record_type(**values)


# ============================================================================
# Key/value blocks
# ============================================================================


def parse_key_values(block: str) -> dict[str, str]:
    """
    Turn ``Heading:,value`` lines into a mapping.

    Empty lines are skipped, as are lines without the separator. When a
    heading repeats, the last value wins.
    """
    table: dict[str, str] = {}

    for line in block.split(LINE_SEPARATOR):
        if not line:
            continue

        parts = line.split(HEADING_SEPARATOR)
        if len(parts) < 2:
            logger.debug(f"Skipping line without {HEADING_SEPARATOR!r} separator: {line!r}")
            continue

        table[parts[0]] = parts[1]

    return table


def decode_key_value_block(block: str, schema: RecordSchema) -> Any:
    """Decode a key/value block; any required-field failure aborts it."""
    table = parse_key_values(block)
    return decode_fields(schema, table.get)


# ============================================================================
# Tabular blocks
# ============================================================================


def read_rows(block: str, section: str) -> list[list[str]]:
    """
    Tokenize a CSV block, allowing rows of different widths.

    Blank lines do not produce rows.

    Raises:
        MalformedSectionError: If the quoting is broken
    """
    reader = csv.reader(io.StringIO(block, newline=""), strict=True)
    try:
        return [record for record in reader if record]
    except csv.Error as e:
        raise MalformedSectionError(section, str(e)) from e


def _row_lookup(record: list[str]) -> Callable[[Union[str, int]], Optional[str]]:
    def lookup(index: Union[str, int]) -> Optional[str]:
        if isinstance(index, int) and 0 <= index < len(record):
            return record[index]
        return None

    return lookup


def decode_table(block: str, schema: RecordSchema, section: str) -> list[Any]:
    """
    Decode every data row of a CSV block.

    Row 0 is the header and is skipped unconditionally, so a header-only or
    empty block yields no records. A required-column failure on any row
    aborts the whole block.
    """
    rows = read_rows(block, section)
    records = []

    for number, record in enumerate(rows[1:], start=1):
        records.append(
            decode_fields(schema, _row_lookup(record), available=len(record), row=number)
        )

    return records


# ============================================================================
# Section schemas
# ============================================================================

GENERAL_SETTINGS_SCHEMA = RecordSchema(
    record_type=GeneralSettings,
    fields=(
        FieldSpec("input_lag", "Input Lag", FieldKind.FLOAT),
        FieldSpec("max_fps", "Max FPS (config)", FieldKind.FLOAT),
        FieldSpec("sens_scale", "Sens Scale", FieldKind.TEXT),
        FieldSpec("horiz_sens", "Horiz Sens", FieldKind.FLOAT),
        FieldSpec("vert_sens", "Vert Sens", FieldKind.FLOAT),
        FieldSpec("fov", "FOV", FieldKind.FLOAT),
        FieldSpec("hide_gun", "Hide Gun", FieldKind.BOOL),
        FieldSpec("crosshair", "Crosshair", FieldKind.TEXT),
        FieldSpec("crosshair_scale", "Crosshair Scale", FieldKind.FLOAT),
        FieldSpec("crosshair_color", "Crosshair Color", FieldKind.TEXT),
    ),
)

STATISTICS_SCHEMA = RecordSchema(
    record_type=Statistics,
    fields=(
        FieldSpec("kills", "Kills", FieldKind.FLOAT),
        FieldSpec("deaths", "Deaths", FieldKind.FLOAT),
        FieldSpec("fight_time", "Fight Time", FieldKind.FLOAT),
        FieldSpec("avg_ttk", "Avg TTK", FieldKind.FLOAT),
        FieldSpec("damage_done", "Damage Done", FieldKind.FLOAT),
        FieldSpec("damage_taken", "Damage Taken", FieldKind.FLOAT),
        FieldSpec("midairs", "Midairs", FieldKind.FLOAT),
        FieldSpec("midaired", "Midaired", FieldKind.FLOAT),
        FieldSpec("directs", "Directs", FieldKind.FLOAT),
        FieldSpec("directed", "Directed", FieldKind.FLOAT),
        FieldSpec("distance_traveled", "Distance Traveled", FieldKind.FLOAT),
        FieldSpec("scenario", "Scenario", FieldKind.TEXT),
        FieldSpec("score", "Score", FieldKind.FLOAT),
        FieldSpec("hash", "Hash", FieldKind.TEXT),
        FieldSpec("game_version", "Game Version", FieldKind.TEXT),
    ),
)

# Weapon,Shots,Hits,Damage Done,Damage Possible,,Sens Scale,Horiz Sens,...
WEAPON_SETTINGS_SCHEMA = RecordSchema(
    record_type=WeaponSettings,
    fields=(
        FieldSpec("weapon", 0, FieldKind.TEXT, label="Weapon"),
        FieldSpec("shots", 1, FieldKind.INT, label="Shots"),
        FieldSpec("hits", 2, FieldKind.INT, label="Hits"),
        FieldSpec("damage_done", 3, FieldKind.FLOAT, label="Damage Done"),
        FieldSpec("damage_possible", 4, FieldKind.FLOAT, label="Damage Possible"),
        FieldSpec("sens_scale", 6, FieldKind.TEXT, required=False, label="Sens Scale"),
        FieldSpec("horiz_sens", 7, FieldKind.FLOAT, required=False, label="Horiz Sens"),
        FieldSpec("vert_sens", 8, FieldKind.FLOAT, required=False, label="Vert Sens"),
        FieldSpec("fov", 9, FieldKind.FLOAT, required=False, label="FOV"),
        FieldSpec("hide_gun", 10, FieldKind.BOOL, required=False, label="Hide Gun"),
        FieldSpec("crosshair", 11, FieldKind.TEXT, required=False, label="Crosshair"),
        FieldSpec("crosshair_scale", 12, FieldKind.FLOAT, required=False, label="Crosshair Scale"),
        FieldSpec("crosshair_color", 13, FieldKind.TEXT, required=False, label="Crosshair Color"),
        FieldSpec("ads_sens", 14, FieldKind.FLOAT, required=False, label="ADS Sens"),
        FieldSpec("ads_zoom_scale", 15, FieldKind.FLOAT, required=False, label="ADS Zoom Scale"),
    ),
    optional_min_fields=WEAPON_OPTIONAL_MIN_FIELDS,
)

KILL_SCHEMA = RecordSchema(
    record_type=Kill,
    fields=(
        FieldSpec("kill_number", 0, FieldKind.FLOAT, label="Kill #"),
        FieldSpec("timestamp", 1, FieldKind.TEXT, label="Timestamp"),
        FieldSpec("bot", 2, FieldKind.TEXT, label="Bot"),
        FieldSpec("weapon", 3, FieldKind.TEXT, label="Weapon"),
        FieldSpec("ttk", 4, FieldKind.TEXT, label="TTK"),
        FieldSpec("shots", 5, FieldKind.FLOAT, label="Shots"),
        FieldSpec("hits", 6, FieldKind.FLOAT, label="Hits"),
        FieldSpec("accuracy", 7, FieldKind.FLOAT, label="Accuracy"),
        FieldSpec("damage_done", 8, FieldKind.FLOAT, label="Damage Done"),
        FieldSpec("damage_possible", 9, FieldKind.FLOAT, label="Damage Possible"),
        FieldSpec("efficiency", 10, FieldKind.FLOAT, label="Efficiency"),
        FieldSpec("cheated", 11, FieldKind.BOOL, label="Cheated"),
    ),
)


# ============================================================================
# Section decoders
# ============================================================================


def decode_general_settings(block: str) -> GeneralSettings:
    """Decode the general settings section (all-or-nothing)."""
    return decode_key_value_block(block, GENERAL_SETTINGS_SCHEMA)


def decode_statistics(block: str) -> Statistics:
    """Decode the session statistics section (all-or-nothing)."""
    return decode_key_value_block(block, STATISTICS_SCHEMA)


def decode_weapon_settings(block: str) -> Optional[WeaponSettings]:
    """
    Decode the weapon settings table.

    Returns the record of the last data row, or None when the table has no
    data rows.
    """
    records = decode_table(block, WEAPON_SETTINGS_SCHEMA, "weapon settings")
    return records[-1] if records else None


def decode_kills(block: str) -> tuple[Kill, ...]:
    """Decode the kill log; one Kill per data row."""
    return tuple(decode_table(block, KILL_SCHEMA, "kills"))
