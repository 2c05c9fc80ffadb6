"""
UniPen Parser - Statement Decoding

Turns keyword blocks into typed Statements. Each keyword has a rule: an
ordered list of argument slots. Slots say which lexical class they accept
and whether they are optional or repeated.

Rule notation used in GRAMMAR:
    N  number          S  string         F  free text (rest of statement)
    R  reserved word   L  quoted label   C  component list
    ?  optional        +  one or more    *  zero or more
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple

from .errors import GrammarError, NumeralError
from .lexer import Block, Cursor, Lexer, Patterns, Source, Token, decode_label
from .statements import (
    ArgumentKind,
    CHANNEL_WORDS,
    ComponentList,
    ComponentPoint,
    ComponentRange,
    HAND_WORDS,
    Keyword,
    Location,
    Reserved,
    SEX_WORDS,
    SKILL_WORDS,
    STYLE_WORDS,
    Statement,
    StatementArgument,
)

logger = logging.getLogger(__name__)


# =============================================================================
# GRAMMAR
# =============================================================================

@dataclass(frozen=True)
class Slot:
    """One argument position of a keyword rule."""
    kind: ArgumentKind
    optional: bool = False
    repeated: bool = False
    vocabulary: FrozenSet[Reserved] = frozenset()


_LETTERS = {
    "N": ArgumentKind.NUMBER,
    "S": ArgumentKind.STRING,
    "F": ArgumentKind.FREE_TEXT,
    "R": ArgumentKind.RESERVED,
    "L": ArgumentKind.LABEL,
    "C": ArgumentKind.LIST,
}


def rule(pattern: str, *vocabularies: FrozenSet[Reserved]) -> Tuple[Slot, ...]:
    """
    Build a rule from its notation, e.g. rule("S C R? L?", SKILL_WORDS).

    Vocabularies are handed out to the R slots in order.
    """
    vocab = iter(vocabularies)
    slots = []
    for part in pattern.split():
        kind = _LETTERS[part[0]]
        suffix = part[1:]
        slots.append(Slot(
            kind=kind,
            optional=suffix in ("?", "*"),
            repeated=suffix in ("+", "*"),
            vocabulary=next(vocab) if kind is ArgumentKind.RESERVED else frozenset(),
        ))
    return tuple(slots)


GRAMMAR: Dict[Keyword, Tuple[Slot, ...]] = {
    Keyword.KEYWORD: rule("S S? F?"),
    Keyword.RESERVE: rule("S F?"),
    Keyword.COMMENT: rule("F?"),
    Keyword.INCLUDE: rule("S"),

    Keyword.VERSION: rule("N"),
    Keyword.DATA_SOURCE: rule("F"),
    Keyword.DATA_ID: rule("S"),
    Keyword.COORD: rule("R+", CHANNEL_WORDS),
    Keyword.HIERARCHY: rule("S+"),
    Keyword.DATA_CONTACT: rule("F"),
    Keyword.DATA_INFO: rule("F"),
    Keyword.SETUP: rule("F"),
    Keyword.PAD: rule("F"),

    Keyword.ALPHABET: rule("S+"),
    Keyword.ALPHABET_FREQ: rule("N+"),
    Keyword.LEXICON_SOURCE: rule("F"),
    Keyword.LEXICON_ID: rule("S"),
    Keyword.LEXICON_CONTACT: rule("F"),
    Keyword.LEXICON_INFO: rule("F"),
    Keyword.LEXICON: rule("S+"),
    Keyword.LEXICON_FREQ: rule("N+"),

    Keyword.X_DIM: rule("N"),
    Keyword.Y_DIM: rule("N"),
    Keyword.H_LINE: rule("N+"),
    Keyword.V_LINE: rule("N+"),

    Keyword.X_POINTS_PER_INCH: rule("N"),
    Keyword.Y_POINTS_PER_INCH: rule("N"),
    Keyword.Z_POINTS_PER_INCH: rule("N"),
    Keyword.X_POINTS_PER_MM: rule("N"),
    Keyword.Y_POINTS_PER_MM: rule("N"),
    Keyword.Z_POINTS_PER_MM: rule("N"),
    Keyword.POINTS_PER_GRAM: rule("N"),
    Keyword.POINTS_PER_SECOND: rule("N"),

    Keyword.PEN_DOWN: rule("N*"),
    Keyword.PEN_UP: rule("N*"),
    Keyword.DT: rule("N"),
    Keyword.DATE: rule("F"),

    Keyword.STYLE: rule("R", STYLE_WORDS),
    Keyword.WRITER_ID: rule("S"),
    Keyword.COUNTRY: rule("F"),
    Keyword.HAND: rule("R", HAND_WORDS),
    Keyword.AGE: rule("N"),
    Keyword.SEX: rule("R", SEX_WORDS),
    Keyword.SKILL: rule("R", SKILL_WORDS),
    Keyword.WRITER_INFO: rule("F"),

    Keyword.SEGMENT: rule("S C R? L?", SKILL_WORDS),
    Keyword.START_SET: rule("S"),
    Keyword.START_BOX: rule("F?"),

    Keyword.REC_SOURCE: rule("F"),
    Keyword.REC_ID: rule("S"),
    Keyword.REC_CONTACT: rule("F"),
    Keyword.REC_INFO: rule("F"),
    Keyword.IMPLEMENT: rule("F"),
    Keyword.TRAINING_SET: rule("F"),
    Keyword.TEST_SET: rule("F"),
    Keyword.ADAPT_SET: rule("F"),
    Keyword.LEXICON_SET: rule("F"),
    Keyword.REC_TIME: rule("N"),
    Keyword.REC_LABELS: rule("L*"),
    Keyword.REC_SCORES: rule("N*"),
}

_UNKNOWN_WORD = Reserved.UNKNOWN.value

# Metadata keywords whose sole argument may be '?', clearing the value
CLEARABLE: FrozenSet[Keyword] = frozenset({
    Keyword.VERSION, Keyword.DATA_SOURCE, Keyword.DATA_ID, Keyword.COORD, Keyword.HIERARCHY,
    Keyword.DATA_CONTACT, Keyword.DATA_INFO, Keyword.SETUP, Keyword.PAD,
    Keyword.ALPHABET, Keyword.ALPHABET_FREQ,
    Keyword.LEXICON_SOURCE, Keyword.LEXICON_ID, Keyword.LEXICON_CONTACT, Keyword.LEXICON_INFO,
    Keyword.LEXICON, Keyword.LEXICON_FREQ,
    Keyword.X_DIM, Keyword.Y_DIM, Keyword.H_LINE, Keyword.V_LINE,
    Keyword.X_POINTS_PER_INCH, Keyword.Y_POINTS_PER_INCH, Keyword.Z_POINTS_PER_INCH,
    Keyword.X_POINTS_PER_MM, Keyword.Y_POINTS_PER_MM, Keyword.Z_POINTS_PER_MM,
    Keyword.POINTS_PER_GRAM, Keyword.POINTS_PER_SECOND,
    Keyword.STYLE, Keyword.WRITER_ID, Keyword.COUNTRY, Keyword.HAND, Keyword.AGE,
    Keyword.SEX, Keyword.SKILL, Keyword.WRITER_INFO,
})


# =============================================================================
# DECODER
# =============================================================================

class Decoder:
    """
    Decodes UniPen text into Statements.

    Keyword names declared with .KEYWORD are remembered, so one Decoder
    should be used for a file and everything it includes.
    """

    def __init__(self):
        self.lexer = Lexer()
        self.declared: Set[str] = set()

    def decode(self, text: str, path: Optional[str] = None) -> List[Statement]:
        """Decode a whole file. The result ends with an END_OF_INPUT marker."""
        return list(self.statements(text, path))

    def statements(self, text: str, path: Optional[str] = None) -> Iterator[Statement]:
        """
        Decode block by block.

        A block is decoded only when the previous statement has been consumed,
        so declarations made by files the caller splices in between are seen
        by the blocks that follow.
        """
        source = Source(text, path)
        count = 0
        for block in self.lexer.blocks(source):
            count += 1
            yield self._statement(source, block)
        line, column = source.position(len(text))
        logger.debug("Decoded %d statements from %s", count + 1, path or "<text>")
        yield Statement.end_of_input(Location(path, line, column))

    def _statement(self, source: Source, block: Block) -> Statement:
        line, column = source.position(block.offset)
        location = Location(source.path, line, column)
        cursor = Cursor(source, block.body_start, block.body_end)

        keyword = Keyword.lookup(block.name)
        if keyword is None:
            if block.name not in self.declared:
                raise source.error(f"Unknown keyword .{block.name}", block.offset)
            arguments = [StatementArgument.string(block.name)]
            body = cursor.rest()
            if body:
                arguments.append(StatementArgument.free_text(body))
            return Statement(Keyword.USER_DEFINED, tuple(arguments), location)

        arguments = self._arguments(source, keyword, cursor)
        if keyword is Keyword.KEYWORD:
            self.declared.add(arguments[0].value)
        return Statement(keyword, tuple(arguments), location)

    # -------------------------------------------------------------------------
    # Arguments
    # -------------------------------------------------------------------------

    def _arguments(self, source: Source, keyword: Keyword, cursor: Cursor) -> List[StatementArgument]:
        slots = GRAMMAR[keyword]

        # A lone '?' stands for "unknown" in metadata statements
        if keyword in CLEARABLE:
            tokens = cursor.remaining_tokens()
            if len(tokens) == 1 and not tokens[0].quoted and tokens[0].text == _UNKNOWN_WORD:
                cursor.next()
                return [StatementArgument.reserved(Reserved.UNKNOWN)]

        arguments: List[StatementArgument] = []
        for slot in slots:
            if slot.kind is ArgumentKind.FREE_TEXT:
                offset = cursor.rest_offset()
                text = cursor.rest()
                if not text:
                    if slot.optional:
                        continue
                    raise source.error(f".{keyword.value} expects free text", offset)
                if text == _UNKNOWN_WORD:
                    arguments.append(StatementArgument.reserved(Reserved.UNKNOWN))
                else:
                    arguments.append(StatementArgument.free_text(text))
                continue

            if slot.repeated:
                count = 0
                while not cursor.at_end() and self._accepts(slot, cursor.peek()):
                    arguments.append(self._argument(source, slot, cursor.next()))
                    count += 1
                if count == 0 and not slot.optional:
                    raise source.error(
                        f".{keyword.value} expects at least one {slot.kind.name.lower()}",
                        cursor.rest_offset(),
                    )
                continue

            token = cursor.peek()
            if token is None or (slot.optional and not self._accepts(slot, token)):
                if slot.optional:
                    continue
                raise source.error(
                    f".{keyword.value} expects {slot.kind.name.lower()}",
                    cursor.rest_offset(),
                )
            if token.text == _UNKNOWN_WORD and not token.quoted:
                if slot.kind is not ArgumentKind.RESERVED:
                    raise source.error(f"Unknown value '?' is not allowed in .{keyword.value}", token.offset)
                cursor.next()
                arguments.append(StatementArgument.reserved(Reserved.UNKNOWN))
                continue
            arguments.append(self._argument(source, slot, cursor.next()))

        leftover = cursor.peek()
        if leftover is not None:
            raise source.error(
                f"Unexpected argument {leftover.text!r} for .{keyword.value}", leftover.offset
            )
        return arguments

    def _accepts(self, slot: Slot, token: Token) -> bool:
        """Whether `token` can start an argument of the slot's class."""
        kind = slot.kind
        if kind is ArgumentKind.NUMBER:
            return not token.quoted and Patterns.is_numeral_like(token.text)
        if kind is ArgumentKind.STRING:
            return True
        if kind is ArgumentKind.LABEL:
            return token.quoted
        if kind is ArgumentKind.RESERVED:
            word = Reserved.lookup(token.text)
            if token.quoted or word is None:
                return False
            return word in slot.vocabulary or (word is Reserved.UNKNOWN and not slot.repeated)
        if kind is ArgumentKind.LIST:
            return not token.quoted and Patterns.COMPONENT_LIST.fullmatch(token.text) is not None
        return False

    def _argument(self, source: Source, slot: Slot, token: Token) -> StatementArgument:
        kind = slot.kind
        if kind is ArgumentKind.NUMBER:
            return StatementArgument.number(self._number(source, token))
        if kind is ArgumentKind.STRING:
            return StatementArgument.string(token.inner)
        if kind is ArgumentKind.LABEL:
            if not token.quoted:
                raise source.error(f"Expected quoted label, got {token.text!r}", token.offset)
            return StatementArgument.label(decode_label(token.text))
        if kind is ArgumentKind.RESERVED:
            word = None if token.quoted else Reserved.lookup(token.text)
            if word is None or (word not in slot.vocabulary and word is not Reserved.UNKNOWN):
                raise source.error(f"Unexpected word {token.text!r}", token.offset)
            return StatementArgument.reserved(word)
        if kind is ArgumentKind.LIST:
            return StatementArgument.component_list(self._component_list(source, token))
        raise source.error(f"Unsupported argument {token.text!r}", token.offset)

    def _number(self, source: Source, token: Token):
        text = token.text
        line, column = source.position(token.offset)
        if not Patterns.is_numeral_like(text):
            raise GrammarError(f"Expected number, got {text!r}", source.path, line, column)
        try:
            if Patterns.INTEGER.fullmatch(text):
                return int(text)
            if Patterns.DECIMAL.fullmatch(text):
                return float(text)
        except ValueError as e:
            raise NumeralError(text, source.path, line, column) from e
        raise NumeralError(text, source.path, line, column)

    def _component_list(self, source: Source, token: Token) -> ComponentList:
        if Patterns.COMPONENT_LIST.fullmatch(token.text) is None:
            raise source.error(f"Malformed component list {token.text!r}", token.offset)
        items = []
        for entry in token.text.split(","):
            ends = Patterns.RANGE_SEPARATOR.split(entry)
            if len(ends) == 1:
                items.append(self._component_point(ends[0]))
            else:
                items.append(ComponentRange(
                    start=self._component_point(ends[0]),
                    end=self._component_point(ends[1]),
                ))
        return ComponentList(tuple(items))

    @staticmethod
    def _component_point(text: str) -> ComponentPoint:
        component, _, point = text.partition(":")
        if not point or point == "ALL":
            return ComponentPoint(int(component))
        return ComponentPoint(int(component), int(point))


# =============================================================================
# CONVENIENCE
# =============================================================================

def decode(text: str, path: Optional[str] = None) -> List[Statement]:
    """Decode text without expanding includes."""
    return Decoder().decode(text, path)
