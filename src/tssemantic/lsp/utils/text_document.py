"""
Offset and position mapping over a document's text.

tsserver reports spans as offsets into the file and LSP addresses text by
(line, character). Both count UTF-16 code units, so all lengths here are
measured in UTF-16 code units rather than Python code points.
"""

import re
from bisect import bisect_right
from typing import List

from lsprotocol import types


_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def utf16_length(text: str) -> int:
    """Number of UTF-16 code units needed to encode text."""
    return len(text.encode("utf-16-le")) // 2


class DocumentTextModel:
    """
    Read-only view of a document's text for position conversions.

    Lines are split on ``\\r\\n``, ``\\r`` and ``\\n``; line lengths exclude the
    terminator.

    Example:
        For text "class A {}\\nfunction f() {}\\n", offset 11 is the 'f' of
        ``function`` and maps to Position(line=1, character=0).
    """

    def __init__(self, source: str):
        self._line_starts: List[int] = [0]
        self._line_lengths: List[int] = []

        offset = 0
        last_end = 0
        for match in _LINE_BREAK.finditer(source):
            line_length = utf16_length(source[last_end:match.start()])
            self._line_lengths.append(line_length)
            offset += line_length + (match.end() - match.start())
            self._line_starts.append(offset)
            last_end = match.end()

        last_line_length = utf16_length(source[last_end:])
        self._line_lengths.append(last_line_length)
        self._length = offset + last_line_length

    @classmethod
    def from_document(cls, document) -> "DocumentTextModel":
        """Create a model from a pygls TextDocument."""
        return cls(document.source)

    @property
    def length(self) -> int:
        """Total length of the text in UTF-16 code units."""
        return self._length

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_length(self, line: int) -> int:
        """
        Length of a line, excluding its terminator.

        Raises:
            IndexError: If line is outside the document
        """
        if line < 0 or line >= len(self._line_lengths):
            raise IndexError(f"Line {line} is outside document range [0, {len(self._line_lengths)})")
        return self._line_lengths[line]

    def position_at(self, offset: int) -> types.Position:
        """
        Convert an offset to a Position.

        Offsets outside the text are clamped to its bounds, and offsets that
        fall inside a line terminator map to the end of that line.
        """
        offset = max(0, min(offset, self._length))
        line = bisect_right(self._line_starts, offset) - 1
        character = min(offset - self._line_starts[line], self._line_lengths[line])
        return types.Position(line=line, character=character)

    def offset_at(self, position: types.Position) -> int:
        """
        Convert a Position to an offset.

        Lines past the end clamp to the end of the text and characters past
        the end of a line clamp to the end of that line.
        """
        if position.line >= len(self._line_starts):
            return self._length
        line = max(0, position.line)
        character = max(0, min(position.character, self._line_lengths[line]))
        return self._line_starts[line] + character
