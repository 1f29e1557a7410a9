"""
TokenCursor - Whitespace token stream over a text file.

Single responsibility: hand out tokens strictly left to right, across line
breaks, with typed accessors. Nothing is ever pushed back.
"""

import logging
from collections import deque
from typing import BinaryIO, Callable, Optional, TextIO, Union

from domain.errors import EndOfInput, FileAccessFailure, FormatViolation


class TokenCursor:
    """
    Cursor over the whitespace-separated tokens of a text stream.

    Lines are read lazily; blank lines are skipped. Files are read as bytes and
    decoded one line at a time, so an undecodable line is a FormatViolation on
    that line only. Event boundaries in both
    supported formats may fall anywhere relative to line breaks, so at_end()
    looks for any further token, not just the end of the current line.
    """

    def __init__(self, stream: Union[TextIO, BinaryIO], source: str = "<stream>", echo: bool = False):
        """
        Initialize cursor.

        Args:
            stream: Open text or binary stream to read from
            source: Name used in error messages
            echo: Log every line read at DEBUG level
        """
        self._stream = stream
        self._tokens: deque[str] = deque()
        self._line_number = 0
        self.source = source
        self.echo = echo
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def open(cls, path: str, echo: bool = False) -> 'TokenCursor':
        """
        Open a file and wrap it in a cursor.

        Raises:
            FileAccessFailure: If the file cannot be opened
        """
        try:
            stream = open(path, "rb")
        except OSError as e:
            raise FileAccessFailure(path, e.strerror or str(e)) from e
        return cls(stream, source=path, echo=echo)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if not self._stream.closed:
            self._stream.close()

    @property
    def line_number(self) -> int:
        """1-based number of the last line read."""
        return self._line_number

    def _read_line(self) -> Optional[list[str]]:
        """
        Read and split the next line. Returns None at end of input.

        Raises:
            FormatViolation: If the line is not valid UTF-8
            EndOfInput: If the stream fails mid-read
        """
        try:
            line = self._stream.readline()
        except OSError as e:
            raise EndOfInput(
                f"{self.source}: read failed after line {self._line_number}: {e}"
            ) from e
        if not line:
            return None
        self._line_number += 1
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                raise FormatViolation(
                    f"line is not valid UTF-8 ({e.reason} at byte {e.start})",
                    source=self.source, line_number=self._line_number
                ) from None
        if self.echo:
            self.logger.debug(f"{self.source}:{self._line_number}: {line.rstrip()}")
        return line.split()

    def _fill(self) -> bool:
        """Make sure at least one token is buffered. Returns False at end of input."""
        while not self._tokens:
            tokens = self._read_line()
            if tokens is None:
                return False
            self._tokens.extend(tokens)
        return True

    def at_end(self) -> bool:
        """True if no further token exists anywhere in the stream."""
        return not self._fill()

    def next_token(self) -> str:
        """
        Consume and return the next token.

        Raises:
            EndOfInput: If the stream is exhausted
        """
        if not self._fill():
            raise EndOfInput(f"{self.source}: end of input after line {self._line_number}")
        return self._tokens.popleft()

    def next_int(self) -> int:
        """Consume the next token as an integer."""
        token = self.next_token()
        try:
            return int(token)
        except ValueError:
            raise FormatViolation(
                f"expected an integer, got '{token}'",
                source=self.source, line_number=self._line_number, token=token
            ) from None

    def next_float(self) -> float:
        """Consume the next token as a real number."""
        token = self.next_token()
        try:
            return float(token)
        except ValueError:
            raise FormatViolation(
                f"expected a number, got '{token}'",
                source=self.source, line_number=self._line_number, token=token
            ) from None

    def take(self, count: int) -> list[str]:
        """Consume count tokens and return them as text."""
        return [self.next_token() for _ in range(count)]

    def skip(self, count: int):
        """Consume and discard count tokens."""
        for _ in range(count):
            self.next_token()

    def seek_line(self, predicate: Callable[[list[str]], bool]) -> bool:
        """
        Drop the rest of the current line and advance to the next line whose
        tokens satisfy predicate. That line is left fully buffered. Lines that
        cannot be decoded are passed over.

        Returns:
            True if such a line was found, False if the stream ran out first
        """
        self._tokens.clear()
        while True:
            try:
                tokens = self._read_line()
            except FormatViolation as e:
                self.logger.debug(f"Skipping line while seeking: {e}")
                continue
            except EndOfInput:
                return False
            if tokens is None:
                return False
            if tokens and predicate(tokens):
                self._tokens.extend(tokens)
                return True
