"""
Export Functionality for aimlog

Provides the output formats for parsed sessions:
- Line-delimited JSON (the upload payload)
- pandas DataFrames (one row per session, or per kill)
- CSV summaries built from those frames

The JSON payload is one session object per line, each line terminated by
CRLF, with no enclosing array.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from aimlog.core.constants import PAYLOAD_LINE_TERMINATOR
from aimlog.core.models import Session

logger = logging.getLogger(__name__)


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def format_time(value: datetime) -> str:
    """RFC 3339 with a Z suffix for UTC, e.g. 2023-01-15T14:05:30Z."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat() + "Z"
    return value.isoformat()


def session_to_dict(session: Session) -> dict[str, Any]:
    """Convert a Session to JSON-ready primitives (snake_case keys)."""
    data = asdict(session)
    data["time"] = format_time(session.time)
    data["kills"] = list(data["kills"])
    return data


def flatten_dict(d: dict, parent_key: str = "", sep: str = "_") -> dict:
    """Flatten a nested dictionary."""
    items: list[tuple[str, Any]] = []
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k
        if isinstance(v, dict):
            items.extend(flatten_dict(v, new_key, sep).items())
        else:
            items.append((new_key, v))
    return dict(items)


# ============================================================================
# JSON Export
# ============================================================================


def encode_session(session: Session) -> str:
    """Encode one Session as a single compact JSON line (no terminator)."""
    return json.dumps(
        session_to_dict(session),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode_sessions(sessions: Iterable[Session]) -> bytes:
    """
    Encode sessions as the upload payload.

    Args:
        sessions: Sessions in the order they should appear

    Returns:
        UTF-8 bytes, one JSON object per CRLF-terminated line

    Raises:
        ValueError: If a session holds a non-finite float (NaN/Infinity)
    """
    payload = "".join(encode_session(s) + PAYLOAD_LINE_TERMINATOR for s in sessions)
    return payload.encode("utf-8")


def decode_payload(payload: bytes) -> list[dict[str, Any]]:
    """Split a payload back into per-session dictionaries."""
    text = payload.decode("utf-8")
    return [json.loads(line) for line in text.split(PAYLOAD_LINE_TERMINATOR) if line]


# ============================================================================
# DataFrame Export
# ============================================================================


def sessions_to_dataframe(sessions: Iterable[Session]) -> pd.DataFrame:
    """
    One row per session with flattened section columns.

    Columns are prefixed by section (``statistics_score``,
    ``weapon_settings_shots``...). Sections that were dropped leave NaN.
    """
    rows = []
    for session in sessions:
        data = session_to_dict(session)
        data.pop("kills")
        row = flatten_dict({k: v for k, v in data.items() if v is not None})
        row["kill_count"] = session.kill_count
        rows.append(row)

    df = pd.DataFrame(rows)
    if not df.empty:
        df["time"] = pd.to_datetime(df["time"], utc=True)
    return df


def kills_to_dataframe(sessions: Iterable[Session]) -> pd.DataFrame:
    """One row per kill across all sessions, keyed by session_hash."""
    columns = ["session_hash", "scenario", "time"]
    rows = []
    for session in sessions:
        for kill in session.kills:
            rows.append({
                "session_hash": session.session_hash,
                "scenario": session.scenario,
                "time": session.time,
                **asdict(kill),
            })

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)


def export_sessions_to_csv(
    sessions: Iterable[Session],
    output_path: Optional[Path] = None,
) -> str:
    """
    Export a per-session summary to CSV.

    Args:
        sessions: Parsed sessions
        output_path: Optional path to write the file

    Returns:
        CSV string (empty when there are no sessions)
    """
    df = sessions_to_dataframe(sessions)
    if df.empty:
        return ""

    csv_str = df.to_csv(index=False)

    if output_path:
        output_path.write_text(csv_str)
        logger.info(f"Exported CSV to: {output_path}")

    return csv_str
