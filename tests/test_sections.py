"""Tests for section splitting."""

import io

import pytest

from aimlog.core.constants import SECTION_DELIMITER
from aimlog.core.errors import StructuralError
from aimlog.core.sections import iter_sections, require_sections, split_sections


class TestSplitSections:
    """Tests for split_sections."""

    def test_four_sections(self):
        """Test a well-formed file splits into four blocks."""
        content = "a\r\n\r\nb\r\n\r\nc\r\n\r\nd"
        assert split_sections(content) == ["a", "b", "c", "d"]

    def test_trailing_delimiter_adds_empty_block(self):
        """Test the remainder after a trailing delimiter is kept."""
        content = "a\r\n\r\nb\r\n\r\nc\r\n\r\nd\r\n\r\n"
        blocks = split_sections(content)
        assert len(blocks) == 5
        assert blocks[-1] == ""

    def test_empty_content(self):
        """Test empty content is a single empty block."""
        assert split_sections("") == [""]

    def test_no_delimiter(self):
        """Test content without a delimiter is one block."""
        assert split_sections("Kills:,1\r\nDeaths:,0") == ["Kills:,1\r\nDeaths:,0"]

    def test_lf_only_blank_line_is_not_a_delimiter(self):
        """Test Unix blank lines do not split sections."""
        assert split_sections("a\n\nb") == ["a\n\nb"]

    def test_custom_delimiter(self):
        """Test splitting on another literal delimiter."""
        assert split_sections("a||b||c", delimiter="||") == ["a", "b", "c"]


class TestIterSections:
    """Tests for the streaming splitter."""

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 1024])
    @pytest.mark.parametrize(
        "content",
        [
            "a\r\n\r\nb\r\n\r\nc\r\n\r\nd",
            "\r\n\r\n\r\n",
            "header\r\nrow\r\n\r\n\r\n\r\ntail\r\n",
            "",
        ],
    )
    def test_matches_str_split(self, content, chunk_size):
        """Test chunked splitting agrees with str.split for any chunk size."""
        stream = io.StringIO(content, newline="")
        blocks = list(iter_sections(stream, SECTION_DELIMITER, chunk_size))
        assert blocks == content.split(SECTION_DELIMITER)

    def test_delimiter_across_chunk_boundary(self):
        """Test a delimiter split between two reads is still found."""
        stream = io.StringIO("abc\r\n\r\ndef", newline="")
        assert list(iter_sections(stream, chunk_size=4)) == ["abc", "def"]

    def test_empty_delimiter_rejected(self):
        """Test an empty delimiter raises ValueError."""
        with pytest.raises(ValueError, match="delimiter"):
            list(iter_sections(io.StringIO("abc"), delimiter=""))

    def test_invalid_chunk_size_rejected(self):
        """Test a non-positive chunk size raises ValueError."""
        with pytest.raises(ValueError, match="chunk_size"):
            list(iter_sections(io.StringIO("abc"), chunk_size=0))


class TestRequireSections:
    """Tests for require_sections."""

    def test_exact_count_passes(self):
        """Test four blocks are returned unchanged."""
        blocks = ["a", "b", "c", "d"]
        assert require_sections(blocks, "x.csv") is blocks

    @pytest.mark.parametrize("count", [1, 3, 5])
    def test_wrong_count_raises(self, count):
        """Test any other block count raises StructuralError."""
        with pytest.raises(StructuralError) as exc_info:
            require_sections(["x"] * count, "broken.csv")

        error = exc_info.value
        assert error.block_count == count
        assert error.expected == 4
        assert error.filename == "broken.csv"
        assert "broken.csv" in str(error)

    def test_structural_error_is_value_error(self):
        """Test parse errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            require_sections([], "empty.csv")


class TestBlockCount:
    """Tests for the relation between delimiters and blocks."""

    @pytest.mark.parametrize("occurrences", [0, 1, 2, 3, 4])
    def test_count_is_occurrences_plus_one(self, occurrences):
        """Test block count is always delimiter occurrences plus one."""
        content = SECTION_DELIMITER.join(f"block{i}" for i in range(occurrences + 1))
        assert len(split_sections(content)) == occurrences + 1
