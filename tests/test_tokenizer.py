"""
Tests for TokenCursor.

Tests token handling across line breaks, typed reads and resynchronization.
"""

import io

import pytest

from domain.errors import EndOfInput, FileAccessFailure, FormatViolation
from services.parsing.tokenizer import TokenCursor


def cursor_for(text: str) -> TokenCursor:
    return TokenCursor(io.StringIO(text), source="test.dat")


class TestTokenCursor:
    """Tests for TokenCursor."""

    def test_tokens_cross_line_breaks(self):
        """Test that tokens are read left to right regardless of line breaks."""
        cursor = cursor_for("a b\nc\n\n  d   e\n")
        assert cursor.take(5) == ["a", "b", "c", "d", "e"]

    def test_at_end_skips_blank_lines(self):
        """Test that trailing blank lines count as end of input."""
        cursor = cursor_for("x\n\n   \n")
        assert not cursor.at_end()
        cursor.next_token()
        assert cursor.at_end()

    def test_next_token_at_end_raises(self):
        """Test that reading past the end raises EndOfInput."""
        cursor = cursor_for("only\n")
        cursor.next_token()
        with pytest.raises(EndOfInput):
            cursor.next_token()

    def test_typed_reads(self):
        """Test integer and real conversions."""
        cursor = cursor_for("42 -7 3.5 1e-3\n")
        assert cursor.next_int() == 42
        assert cursor.next_int() == -7
        assert cursor.next_float() == 3.5
        assert cursor.next_float() == pytest.approx(1e-3)

    def test_non_numeric_token_raises_format_violation(self):
        """Test that a word where a number is expected is a FormatViolation."""
        cursor = cursor_for("1\nabc\n")
        cursor.next_int()
        with pytest.raises(FormatViolation) as exc_info:
            cursor.next_float()
        assert exc_info.value.token == "abc"
        assert exc_info.value.line_number == 2
        assert "test.dat:2" in str(exc_info.value)

    def test_real_is_not_an_integer(self):
        """Test that a real token is rejected by next_int."""
        cursor = cursor_for("2.5\n")
        with pytest.raises(FormatViolation):
            cursor.next_int()

    def test_skip_discards_tokens(self):
        """Test that skip consumes the requested number of tokens."""
        cursor = cursor_for("a b c\nd\n")
        cursor.skip(3)
        assert cursor.next_token() == "d"

    def test_seek_line_drops_rest_of_current_line(self):
        """Test that seek_line buffers the first matching line only."""
        cursor = cursor_for("P 1 2 3\njunk line\nE 5 6 7\nP 8\n")
        cursor.next_token()
        found = cursor.seek_line(lambda tokens: tokens[0] == "E")
        assert found
        assert cursor.take(4) == ["E", "5", "6", "7"]
        assert cursor.line_number == 3

    def test_seek_line_returns_false_at_end(self):
        """Test that seek_line reports when no line matches."""
        cursor = cursor_for("a\nb\n")
        assert cursor.seek_line(lambda tokens: tokens[0] == "E") is False
        assert cursor.at_end()

    def test_open_missing_file_raises_file_access_failure(self, tmp_path):
        """Test that an unopenable path raises FileAccessFailure."""
        missing = tmp_path / "missing.dat"
        with pytest.raises(FileAccessFailure) as exc_info:
            TokenCursor.open(str(missing))
        assert exc_info.value.path == str(missing)

    def test_open_and_close(self, tmp_path):
        """Test opening a real file as a context manager."""
        path = tmp_path / "input.dat"
        path.write_text("1 2\n")
        with TokenCursor.open(str(path)) as cursor:
            assert cursor.source == str(path)
            assert cursor.next_int() == 1
        assert cursor._stream.closed


class TestUndecodableInput:
    """Tests for bytes that are not valid UTF-8."""

    def test_bad_line_raises_format_violation(self):
        """Test that an undecodable line is reported with its line number."""
        cursor = TokenCursor(io.BytesIO(b"1 2\n\xff\xfe garbage\n3\n"), source="bad.dat")
        assert cursor.take(2) == ["1", "2"]

        with pytest.raises(FormatViolation) as exc_info:
            cursor.next_token()

        assert exc_info.value.source == "bad.dat"
        assert exc_info.value.line_number == 2

    def test_lines_before_bad_bytes_are_read(self, tmp_path):
        """Test that a file opened from disk only fails at the bad line."""
        path = tmp_path / "input.dat"
        path.write_bytes(b"a b\nc\n\xff\n")
        with TokenCursor.open(str(path)) as cursor:
            assert cursor.take(3) == ["a", "b", "c"]
            with pytest.raises(FormatViolation):
                cursor.at_end()

    def test_seek_line_passes_over_bad_lines(self):
        """Test that resynchronization steps over undecodable lines."""
        cursor = TokenCursor(io.BytesIO(b"x\n\xff E\nE 1 2 3\n"))
        cursor.next_token()

        assert cursor.seek_line(lambda tokens: tokens[0] == "E")
        assert cursor.take(4) == ["E", "1", "2", "3"]
        assert cursor.line_number == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
