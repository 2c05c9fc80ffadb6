"""
UniPen Statements - The Decoded Stream

Immutable values produced by the decoder: one Statement per keyword block,
each with typed arguments. Include markers and end-of-input markers are
ordinary statements so the stream can be folded without re-parsing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional, Tuple, Union


# =============================================================================
# KEYWORDS
# =============================================================================

class Keyword(Enum):
    """UniPen keywords. Values are the spellings used in the files."""
    # Declarations
    KEYWORD = "KEYWORD"
    RESERVE = "RESERVE"
    COMMENT = "COMMENT"
    INCLUDE = "INCLUDE"

    # Data documentation
    VERSION = "VERSION"
    DATA_SOURCE = "DATA_SOURCE"
    DATA_ID = "DATA_ID"
    COORD = "COORD"
    HIERARCHY = "HIERARCHY"
    DATA_CONTACT = "DATA_CONTACT"
    DATA_INFO = "DATA_INFO"
    SETUP = "SETUP"
    PAD = "PAD"

    # Alphabet and lexicon
    ALPHABET = "ALPHABET"
    ALPHABET_FREQ = "ALPHABET_FREQ"
    LEXICON_SOURCE = "LEXICON_SOURCE"
    LEXICON_ID = "LEXICON_ID"
    LEXICON_CONTACT = "LEXICON_CONTACT"
    LEXICON_INFO = "LEXICON_INFO"
    LEXICON = "LEXICON"
    LEXICON_FREQ = "LEXICON_FREQ"

    # Layout
    X_DIM = "X_DIM"
    Y_DIM = "Y_DIM"
    H_LINE = "H_LINE"
    V_LINE = "V_LINE"

    # Units
    X_POINTS_PER_INCH = "X_POINTS_PER_INCH"
    Y_POINTS_PER_INCH = "Y_POINTS_PER_INCH"
    Z_POINTS_PER_INCH = "Z_POINTS_PER_INCH"
    X_POINTS_PER_MM = "X_POINTS_PER_MM"
    Y_POINTS_PER_MM = "Y_POINTS_PER_MM"
    Z_POINTS_PER_MM = "Z_POINTS_PER_MM"
    POINTS_PER_GRAM = "POINTS_PER_GRAM"
    POINTS_PER_SECOND = "POINTS_PER_SECOND"

    # Pen data
    PEN_DOWN = "PEN_DOWN"
    PEN_UP = "PEN_UP"
    DT = "DT"
    DATE = "DATE"

    # Writer
    STYLE = "STYLE"
    WRITER_ID = "WRITER_ID"
    COUNTRY = "COUNTRY"
    HAND = "HAND"
    AGE = "AGE"
    SEX = "SEX"
    SKILL = "SKILL"
    WRITER_INFO = "WRITER_INFO"

    # Segmentation
    SEGMENT = "SEGMENT"
    START_SET = "START_SET"
    START_BOX = "START_BOX"

    # Recognizer documentation and results
    REC_SOURCE = "REC_SOURCE"
    REC_ID = "REC_ID"
    REC_CONTACT = "REC_CONTACT"
    REC_INFO = "REC_INFO"
    IMPLEMENT = "IMPLEMENT"
    TRAINING_SET = "TRAINING_SET"
    TEST_SET = "TEST_SET"
    ADAPT_SET = "ADAPT_SET"
    LEXICON_SET = "LEXICON_SET"
    REC_TIME = "REC_TIME"
    REC_LABELS = "REC_LABELS"
    REC_SCORES = "REC_SCORES"

    # Synthetic, never matched from text
    END_OF_INPUT = "END_OF_INPUT"
    USER_DEFINED = "USER_DEFINED"

    @classmethod
    def lookup(cls, name: str) -> Optional["Keyword"]:
        """Find the keyword spelled `name` in a file, or None."""
        try:
            keyword = cls(name)
        except ValueError:
            return None
        if keyword in SYNTHETIC_KEYWORDS:
            return None
        return keyword


SYNTHETIC_KEYWORDS = frozenset({Keyword.END_OF_INPUT, Keyword.USER_DEFINED})


# =============================================================================
# RESERVED WORDS
# =============================================================================

class Reserved(Enum):
    """Closed vocabulary of reserved argument words."""
    # Coordinate channels
    X = "X"
    Y = "Y"
    TIME = "T"
    PRESSURE = "P"
    Z = "Z"
    BUTTON = "B"
    RHO = "RHO"
    THETA = "THETA"
    PHI = "PHI"

    # Writer
    LEFT_HAND = "L"
    RIGHT_HAND = "R"
    MALE = "M"
    FEMALE = "F"

    # Skill and segment quality
    BAD = "BAD"
    OK = "OK"
    GOOD = "GOOD"

    # Style
    PRINTED = "PRINTED"
    CURSIVE = "CURSIVE"
    MIXED = "MIXED"

    # Recognition
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"

    UNKNOWN = "?"

    @classmethod
    def lookup(cls, word: str) -> Optional["Reserved"]:
        try:
            return cls(word)
        except ValueError:
            return None


CHANNEL_WORDS = frozenset({
    Reserved.X, Reserved.Y, Reserved.TIME, Reserved.PRESSURE, Reserved.Z,
    Reserved.BUTTON, Reserved.RHO, Reserved.THETA, Reserved.PHI,
})
HAND_WORDS = frozenset({Reserved.LEFT_HAND, Reserved.RIGHT_HAND})
SEX_WORDS = frozenset({Reserved.MALE, Reserved.FEMALE})
SKILL_WORDS = frozenset({Reserved.BAD, Reserved.OK, Reserved.GOOD})
STYLE_WORDS = frozenset({Reserved.PRINTED, Reserved.CURSIVE, Reserved.MIXED})


# =============================================================================
# COMPONENT LISTS
# =============================================================================

@dataclass(frozen=True)
class ComponentPoint:
    """
    Reference to a run, or to one coordinate inside it.

    `index` None means the whole run (All).
    """
    component: int
    index: Optional[int] = None

    @property
    def is_all(self) -> bool:
        return self.index is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "point": "All" if self.index is None else {"Index": self.index},
        }


@dataclass(frozen=True)
class ComponentRange:
    """Contiguous span between two component points, inclusive."""
    start: ComponentPoint
    end: ComponentPoint

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


ComponentItem = Union[ComponentPoint, ComponentRange]


@dataclass(frozen=True)
class ComponentList:
    """Ordered component items of a .SEGMENT statement."""
    items: Tuple[ComponentItem, ...]

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> list:
        out = []
        for item in self.items:
            if isinstance(item, ComponentRange):
                out.append({"Range": item.to_dict()})
            else:
                out.append({"Single": item.to_dict()})
        return out


# =============================================================================
# ARGUMENTS
# =============================================================================

class ArgumentKind(Enum):
    """Lexical class of a statement argument."""
    NUMBER = auto()
    STRING = auto()
    FREE_TEXT = auto()
    RESERVED = auto()
    LABEL = auto()
    LIST = auto()


_KIND_NAMES = {
    ArgumentKind.NUMBER: "Number",
    ArgumentKind.STRING: "String",
    ArgumentKind.FREE_TEXT: "FreeText",
    ArgumentKind.RESERVED: "Reserved",
    ArgumentKind.LABEL: "Label",
    ArgumentKind.LIST: "List",
}


@dataclass(frozen=True)
class StatementArgument:
    """
    One typed argument.

    NUMBER holds an int (integer numeral) or a float (decimal numeral),
    RESERVED holds a Reserved member, LIST holds a ComponentList, every other
    kind holds a str.
    """
    kind: ArgumentKind
    value: Any

    @classmethod
    def number(cls, value: Union[int, float]) -> "StatementArgument":
        return cls(ArgumentKind.NUMBER, value)

    @classmethod
    def string(cls, value: str) -> "StatementArgument":
        return cls(ArgumentKind.STRING, value)

    @classmethod
    def free_text(cls, value: str) -> "StatementArgument":
        return cls(ArgumentKind.FREE_TEXT, value)

    @classmethod
    def reserved(cls, value: Reserved) -> "StatementArgument":
        return cls(ArgumentKind.RESERVED, value)

    @classmethod
    def label(cls, value: str) -> "StatementArgument":
        return cls(ArgumentKind.LABEL, value)

    @classmethod
    def component_list(cls, value: ComponentList) -> "StatementArgument":
        return cls(ArgumentKind.LIST, value)

    @property
    def is_unknown(self) -> bool:
        return self.kind is ArgumentKind.RESERVED and self.value is Reserved.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        name = _KIND_NAMES[self.kind]
        if self.kind is ArgumentKind.NUMBER:
            number_type = "Integer" if isinstance(self.value, int) else "Decimal"
            return {name: {number_type: self.value}}
        if self.kind is ArgumentKind.RESERVED:
            return {name: self.value.name}
        if self.kind is ArgumentKind.LIST:
            return {name: self.value.to_dict()}
        return {name: self.value}


# =============================================================================
# STATEMENT
# =============================================================================

@dataclass(frozen=True)
class Location:
    """Where a statement starts in its source file."""
    path: Optional[str]
    line: int
    column: int = 1

    def __str__(self) -> str:
        return f"{self.path or '<text>'}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Statement:
    """A keyword with its ordered arguments."""
    keyword: Keyword
    arguments: Tuple[StatementArgument, ...] = ()
    location: Optional[Location] = field(default=None, compare=False)

    @classmethod
    def include(cls, path: str) -> "Statement":
        """Marker opening the statements of one file."""
        return cls(Keyword.INCLUDE, (StatementArgument.string(path),))

    @classmethod
    def end_of_input(cls, location: Optional[Location] = None) -> "Statement":
        """Marker closing the statements of one file."""
        return cls(Keyword.END_OF_INPUT, (), location)

    def describe(self) -> str:
        """Short human form for error messages."""
        where = f" at {self.location}" if self.location else ""
        return f".{self.keyword.value}{where}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword.name,
            "arguments": [arg.to_dict() for arg in self.arguments],
        }
