"""
Section splitting for stats files.

A stats file is four blocks of text separated by a blank CRLF line. The
splitter works on a stream so large kill logs never need to be held twice.
"""

import io
import logging
from collections.abc import Iterator
from typing import TextIO

from aimlog.core.constants import DEFAULT_CHUNK_SIZE, SECTION_COUNT, SECTION_DELIMITER
from aimlog.core.errors import StructuralError

logger = logging.getLogger(__name__)


def iter_sections(
    stream: TextIO,
    delimiter: str = SECTION_DELIMITER,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[str]:
    """
    Yield the blocks of a text stream split on a literal delimiter.

    Occurrences are matched left to right without overlap. The remainder
    after the last delimiter is always yielded, even when empty, so the
    number of blocks is the number of delimiters plus one.

    Args:
        stream: Text stream opened with newline translation disabled
        delimiter: Literal separator between blocks
        chunk_size: Characters read per call to stream.read()

    Yields:
        Each block, in file order
    """
    if not delimiter:
        raise ValueError("delimiter must not be empty")
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    buffer = ""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        buffer += chunk

        start = 0
        index = buffer.find(delimiter, start)
        while index >= 0:
            yield buffer[start:index]
            start = index + len(delimiter)
            index = buffer.find(delimiter, start)
        # keep the tail; it may hold the first half of a delimiter
        buffer = buffer[start:]

    yield buffer


def split_sections(content: str, delimiter: str = SECTION_DELIMITER) -> list[str]:
    """Split in-memory content into blocks (see iter_sections)."""
    return list(iter_sections(io.StringIO(content, newline=""), delimiter))


def require_sections(
    blocks: list[str],
    filename: str,
    expected: int = SECTION_COUNT,
) -> list[str]:
    """
    Check that a file produced exactly the expected number of sections.

    Raises:
        StructuralError: If the block count differs
    """
    if len(blocks) != expected:
        raise StructuralError(filename, len(blocks), expected)
    logger.debug(f"{filename}: split into {len(blocks)} sections")
    return blocks
