"""
UniPen Lexer - Statement Blocks and Tokens

Splits UniPen text into keyword blocks and scans the tokens of each block.
A block starts at a line beginning with '.' and an upper-case letter and runs
until the next such line. Offsets are absolute so every token maps back to a
line and column of the source file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .errors import GrammarError


# =============================================================================
# PATTERNS
# =============================================================================

class Patterns:
    """Lexical patterns of the UniPen statement format."""

    STATEMENT = re.compile(r'^\.([A-Z][A-Z0-9_]*)', re.M)
    WHITESPACE = re.compile(r'\s+')
    ESCAPE = re.compile(r'\\(.)', re.S)

    INTEGER = re.compile(r'[+-]?\d+')
    DECIMAL = re.compile(r'[+-]?(?:\d+\.\d*|\.\d+|\d+(?=[eE]))(?:[eE][+-]?\d+)?')
    NUMERAL_START = re.compile(r'[+-]?\.?\d')

    # 3  3:7  3:ALL  1:2-4:0  1..4  0,2,5
    POINT = r'\d+(?::(?:\d+|ALL))?'
    COMPONENT_LIST = re.compile(rf'{POINT}(?:(?:-|\.\.){POINT})?(?:,{POINT}(?:(?:-|\.\.){POINT})?)*')
    RANGE_SEPARATOR = re.compile(r'-|\.\.')

    @classmethod
    def is_numeral_like(cls, text: str) -> bool:
        return cls.NUMERAL_START.match(text) is not None


# =============================================================================
# TOKENS
# =============================================================================

@dataclass(frozen=True)
class Token:
    """A whitespace-delimited or quoted piece of a statement body."""
    text: str          # quotes included when quoted
    quoted: bool
    offset: int

    @property
    def inner(self) -> str:
        """Text without enclosing quotes."""
        return self.text[1:-1] if self.quoted else self.text


@dataclass(frozen=True)
class Block:
    """One keyword and the raw text of its arguments."""
    name: str
    offset: int        # position of the leading '.'
    body_start: int
    body_end: int


# =============================================================================
# SOURCE
# =============================================================================

class Source:
    """Text of one file with offset-to-position mapping."""

    def __init__(self, text: str, path: Optional[str] = None):
        self.text = text
        self.path = path
        self._line_starts = [0] + [m.end() for m in re.finditer(r'\n', text)]

    def position(self, offset: int) -> tuple:
        """1-based (line, column) of an offset."""
        lo, hi = 0, len(self._line_starts) - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self._line_starts[mid] <= offset:
                lo = mid
            else:
                hi = mid - 1
        return lo + 1, offset - self._line_starts[lo] + 1

    def error(self, message: str, offset: int) -> GrammarError:
        line, column = self.position(offset)
        return GrammarError(message, self.path, line, column)


# =============================================================================
# LEXER
# =============================================================================

class Lexer:
    """Splits a source into keyword blocks."""

    def blocks(self, source: Source) -> List[Block]:
        text = source.text
        matches = list(Patterns.STATEMENT.finditer(text))

        head_end = matches[0].start() if matches else len(text)
        stray = re.search(r'\S', text[:head_end])
        if stray:
            raise source.error("Text outside of a statement", stray.start())

        blocks = []
        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            blocks.append(Block(
                name=match.group(1),
                offset=match.start(),
                body_start=match.end(),
                body_end=end,
            ))
        return blocks


class Cursor:
    """Token scanner over one block body."""

    def __init__(self, source: Source, start: int, end: int):
        self.source = source
        self.pos = start
        self.end = end
        self._peeked: Optional[Token] = None

    def _skip_whitespace(self) -> None:
        text = self.source.text
        while self.pos < self.end and text[self.pos].isspace():
            self.pos += 1

    def _scan(self) -> Optional[Token]:
        self._skip_whitespace()
        if self.pos >= self.end:
            return None

        text = self.source.text
        start = self.pos
        if text[start] == '"':
            i = start + 1
            while i < self.end:
                if text[i] == '\\':
                    i += 2
                    continue
                if text[i] == '"':
                    self.pos = i + 1
                    return Token(text[start:self.pos], True, start)
                i += 1
            raise self.source.error("Unterminated quoted text", start)

        i = start
        while i < self.end and not text[i].isspace():
            i += 1
        self.pos = i
        return Token(text[start:i], False, start)

    def peek(self) -> Optional[Token]:
        if self._peeked is None:
            self._peeked = self._scan()
        return self._peeked

    def next(self) -> Optional[Token]:
        token = self.peek()
        self._peeked = None
        return token

    def at_end(self) -> bool:
        return self.peek() is None

    def rest(self) -> str:
        """Consume and return the remaining body, stripped."""
        if self._peeked is not None:
            self.pos = self._peeked.offset
            self._peeked = None
        text = self.source.text[self.pos:self.end].strip()
        self.pos = self.end
        return text

    def rest_offset(self) -> int:
        """Offset of the first non-blank character left in the body."""
        token = self.peek()
        return token.offset if token else self.end

    def remaining_tokens(self) -> List[Token]:
        """Scan the rest of the body without consuming it."""
        saved_pos, saved_peek = self.pos, self._peeked
        tokens = []
        while not self.at_end():
            tokens.append(self.next())
        self.pos, self._peeked = saved_pos, saved_peek
        return tokens


# =============================================================================
# LABELS
# =============================================================================

_ESCAPES = {"n": "\n", "t": "\t"}


def decode_label(raw: str) -> str:
    """
    Decode a quoted label.

    Whitespace runs collapse to one space, then escapes are decoded
    (\\n, \\t, any other \\X yields X), then the enclosing quotes are dropped.
    """
    normalized = Patterns.WHITESPACE.sub(" ", raw)
    escaped = Patterns.ESCAPE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), normalized)
    return escaped[1:-1]
