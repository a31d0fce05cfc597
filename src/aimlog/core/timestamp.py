"""
Timestamp extraction from stats filenames.

The game never writes the session time inside the file; it only appears in
the filename, e.g.::

    Tile Frenzy - Challenge - 2023.01.15-14.05.30 Stats.csv

The token is the fixed-width window that follows the last " - " marker.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from aimlog.core.constants import TIMESTAMP_FORMAT, TIMESTAMP_MARKER, TIMESTAMP_WIDTH
from aimlog.core.errors import TimestampError

logger = logging.getLogger(__name__)

NORMALIZED_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


@dataclass(frozen=True)
class TimestampGrammar:
    """
    A delimiter-anchored fixed-width token.

    The token starts right after the last ``marker`` and is exactly ``width``
    characters long. Inside it, the first ``date_clock_separator`` splits the
    date from the clock; dots are rewritten to dashes in the date and to
    colons in the clock.
    """

    marker: str = TIMESTAMP_MARKER
    width: int = TIMESTAMP_WIDTH
    date_clock_separator: str = "-"
    source_separator: str = "."

    def token(self, filename: str) -> str:
        index = filename.rfind(self.marker)
        if index < 0:
            raise TimestampError(filename, f"no {self.marker!r} marker")

        start = index + len(self.marker)
        token = filename[start:start + self.width]
        if len(token) != self.width:
            raise TimestampError(filename, f"expected {self.width} characters after marker, got {len(token)}")
        return token

    def normalize(self, filename: str, token: str) -> str:
        fields = token.replace(self.date_clock_separator, " ", 1).split(" ")
        if len(fields) != 2:
            raise TimestampError(filename, f"token {token!r} does not split into date and time")

        date, clock = fields
        date = date.replace(self.source_separator, "-")
        clock = clock.replace(self.source_separator, ":")
        return f"{date} {clock}"

    def parse(self, filename: str) -> datetime:
        token = self.token(filename)
        normalized = self.normalize(filename, token)

        if not NORMALIZED_PATTERN.match(normalized):
            raise TimestampError(filename, f"{normalized!r} is not YYYY-MM-DD HH:MM:SS")

        try:
            parsed = datetime.strptime(normalized, TIMESTAMP_FORMAT)
        except ValueError as e:
            raise TimestampError(filename, str(e)) from e

        return parsed.replace(tzinfo=timezone.utc)


DEFAULT_GRAMMAR = TimestampGrammar()


def extract_timestamp(filename: str, grammar: TimestampGrammar = DEFAULT_GRAMMAR) -> datetime:
    """
    Read the session time embedded in a stats filename.

    Args:
        filename: Base name of the stats file
        grammar: Token layout, defaults to the game's naming convention

    Returns:
        Timezone-aware UTC datetime (the filename carries no zone)

    Raises:
        TimestampError: If the marker is missing or the token is malformed
    """
    timestamp = grammar.parse(filename)
    logger.debug(f"{filename}: session time {timestamp.isoformat()}")
    return timestamp
