"""
UniPen Builder - Statements to Document

Folds a flat statement stream (includes already expanded) into a UniPen
document. The builder owns document metadata, the stack of open files and
the sample currently being filled; pen and segment statements are handed
to a ComponentSetBuilder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .component_set import ComponentSetBuilder, RawCoordinate
from .errors import TranslationError, ValidationError
from .model import (
    Alphabet,
    CoordinateType,
    DataDocumentation,
    Hand,
    Layout,
    Lexicon,
    Quality,
    Sex,
    Skill,
    Style,
    UniPen,
    Units,
    Writer,
)
from .statements import ArgumentKind, Keyword, Statement, StatementArgument

logger = logging.getLogger(__name__)


# =============================================================================
# METADATA FIELDS
# =============================================================================

@dataclass(frozen=True)
class Field:
    """Where a metadata keyword's argument goes and how it is converted."""
    name: str                    # "<group>.<attribute>" or a top-level attribute
    kind: ArgumentKind
    convert: Callable[[Any], Any]
    many: bool = False


def _text(value: str) -> str:
    return value


def _float(value) -> float:
    return float(value)


def _int(value) -> int:
    # Decimal values are truncated
    return int(value)


FIELDS: Dict[Keyword, Field] = {
    Keyword.VERSION: Field("version", ArgumentKind.NUMBER, _float),
    Keyword.DATA_SOURCE: Field("data_source", ArgumentKind.FREE_TEXT, _text),
    Keyword.DATA_ID: Field("data_id", ArgumentKind.STRING, _text),
    Keyword.COORD: Field("coordinate_order", ArgumentKind.RESERVED, CoordinateType.from_reserved, many=True),
    Keyword.HIERARCHY: Field("hierarchy", ArgumentKind.STRING, _text, many=True),

    Keyword.DATA_CONTACT: Field("documentation.contact", ArgumentKind.FREE_TEXT, _text),
    Keyword.DATA_INFO: Field("documentation.info", ArgumentKind.FREE_TEXT, _text),
    Keyword.SETUP: Field("documentation.setup", ArgumentKind.FREE_TEXT, _text),
    Keyword.PAD: Field("documentation.pad", ArgumentKind.FREE_TEXT, _text),

    Keyword.ALPHABET: Field("alphabet.symbols", ArgumentKind.STRING, _text, many=True),
    Keyword.ALPHABET_FREQ: Field("alphabet.frequencies", ArgumentKind.NUMBER, _int, many=True),

    Keyword.LEXICON_SOURCE: Field("lexicon.source", ArgumentKind.FREE_TEXT, _text),
    Keyword.LEXICON_ID: Field("lexicon.id", ArgumentKind.STRING, _text),
    Keyword.LEXICON_CONTACT: Field("lexicon.contact", ArgumentKind.FREE_TEXT, _text),
    Keyword.LEXICON_INFO: Field("lexicon.info", ArgumentKind.FREE_TEXT, _text),
    Keyword.LEXICON: Field("lexicon.entries", ArgumentKind.STRING, _text, many=True),
    Keyword.LEXICON_FREQ: Field("lexicon.frequencies", ArgumentKind.NUMBER, _int, many=True),

    Keyword.X_DIM: Field("layout.x_dimension", ArgumentKind.NUMBER, _int),
    Keyword.Y_DIM: Field("layout.y_dimension", ArgumentKind.NUMBER, _int),
    Keyword.H_LINE: Field("layout.h_lines", ArgumentKind.NUMBER, _int, many=True),
    Keyword.V_LINE: Field("layout.v_lines", ArgumentKind.NUMBER, _int, many=True),

    Keyword.X_POINTS_PER_INCH: Field("units.x_points_per_inch", ArgumentKind.NUMBER, _float),
    Keyword.Y_POINTS_PER_INCH: Field("units.y_points_per_inch", ArgumentKind.NUMBER, _float),
    Keyword.Z_POINTS_PER_INCH: Field("units.z_points_per_inch", ArgumentKind.NUMBER, _float),
    Keyword.X_POINTS_PER_MM: Field("units.x_points_per_mm", ArgumentKind.NUMBER, _float),
    Keyword.Y_POINTS_PER_MM: Field("units.y_points_per_mm", ArgumentKind.NUMBER, _float),
    Keyword.Z_POINTS_PER_MM: Field("units.z_points_per_mm", ArgumentKind.NUMBER, _float),
    Keyword.POINTS_PER_GRAM: Field("units.points_per_gram", ArgumentKind.NUMBER, _float),
    Keyword.POINTS_PER_SECOND: Field("units.points_per_second", ArgumentKind.NUMBER, _float),

    Keyword.STYLE: Field("writer.style", ArgumentKind.RESERVED, Style.from_reserved),
    Keyword.WRITER_ID: Field("writer.writer_id", ArgumentKind.STRING, _text),
    Keyword.COUNTRY: Field("writer.country", ArgumentKind.FREE_TEXT, _text),
    Keyword.HAND: Field("writer.hand", ArgumentKind.RESERVED, Hand.from_reserved),
    Keyword.AGE: Field("writer.age", ArgumentKind.NUMBER, _int),
    Keyword.SEX: Field("writer.sex", ArgumentKind.RESERVED, Sex.from_reserved),
    Keyword.SKILL: Field("writer.skill", ArgumentKind.RESERVED, Skill.from_reserved),
    Keyword.WRITER_INFO: Field("writer.info", ArgumentKind.FREE_TEXT, _text),
}

# Accepted and deliberately not modeled
IGNORED = frozenset({
    Keyword.KEYWORD,
    Keyword.RESERVE,
    Keyword.COMMENT,
    Keyword.DATE,
    Keyword.START_BOX,
    Keyword.REC_SOURCE,
    Keyword.REC_ID,
    Keyword.REC_CONTACT,
    Keyword.REC_INFO,
    Keyword.IMPLEMENT,
    Keyword.TRAINING_SET,
    Keyword.TEST_SET,
    Keyword.ADAPT_SET,
    Keyword.LEXICON_SET,
    Keyword.REC_TIME,
    Keyword.REC_LABELS,
    Keyword.REC_SCORES,
    Keyword.USER_DEFINED,
})

GROUPS = {
    "documentation": DataDocumentation,
    "alphabet": Alphabet,
    "lexicon": Lexicon,
    "layout": Layout,
    "units": Units,
    "writer": Writer,
}


# =============================================================================
# COORDINATE DECODING
# =============================================================================

_CHANNEL_ATTRIBUTES = {
    CoordinateType.X_POSITION: "x",
    CoordinateType.Y_POSITION: "y",
    CoordinateType.TIME: "time",
    CoordinateType.PRESSURE: "pressure",
    CoordinateType.Z_POSITION: "z",
    CoordinateType.BUTTON: "button",
    CoordinateType.RHO: "rho",
    CoordinateType.THETA: "theta",
    CoordinateType.PHI: "phi",
}


def decode_coordinates(
    order: Sequence[CoordinateType],
    numbers: Sequence[float],
    points_per_second: Optional[float] = None,
) -> List[RawCoordinate]:
    """
    Split a flat numeral list into samples using the channel order.

    Numerals are consumed in groups of len(order), each assigned to its
    channel by position. Every group needs x and y, and a time source: either
    a T channel or a points-per-second rate to reconstruct it from.
    """
    if not numbers:
        return []
    if not order:
        raise ValidationError("Coordinate order is empty")
    if CoordinateType.TIME not in order and points_per_second is None:
        raise ValidationError(
            "Missing time: coordinate order has no T channel and .POINTS_PER_SECOND is not declared"
        )

    width = len(order)
    if len(numbers) % width:
        raise ValidationError(
            f"Not enough numbers for coordinate order: {len(numbers)} values "
            f"do not form groups of {width}"
        )

    coordinates = []
    for start in range(0, len(numbers), width):
        values = {
            _CHANNEL_ATTRIBUTES[channel]: number
            for channel, number in zip(order, numbers[start:start + width])
        }
        if "x" not in values:
            raise ValidationError("Missing X coordinate")
        if "y" not in values:
            raise ValidationError("Missing Y coordinate")
        coordinates.append(RawCoordinate(**values))
    return coordinates


# =============================================================================
# BUILDER
# =============================================================================

class UniPenBuilder:
    """
    Mutable accumulator folding statements into a UniPen document.

    Usage:
        builder = UniPenBuilder()
        for statement in statements:
            builder.statement(statement)
        document = builder.build()
    """

    def __init__(self):
        # Names of the files whose statements are being read, innermost last
        self._file_stack: List[str] = []
        self._current = ComponentSetBuilder()
        self._completed: List[ComponentSetBuilder] = []

        # Metadata fields that have been assigned, keyed by Field.name
        self._metadata: Dict[str, Any] = {}

        self._handlers: Dict[Keyword, Callable[[Statement], None]] = {
            Keyword.INCLUDE: self._include,
            Keyword.END_OF_INPUT: self._end_of_input,
            Keyword.START_SET: self._start_set,
            Keyword.PEN_DOWN: self._pen_down,
            Keyword.PEN_UP: self._pen_up,
            Keyword.DT: self._dt,
            Keyword.SEGMENT: self._segment,
        }

    @property
    def depth(self) -> int:
        """Number of files currently open."""
        return len(self._file_stack)

    @property
    def coordinate_order(self) -> Optional[tuple]:
        return self._metadata.get("coordinate_order")

    def statement(self, statement: Statement) -> None:
        """Apply one statement."""
        handler = self._handlers.get(statement.keyword)
        if handler is not None:
            handler(statement)
        elif statement.keyword in FIELDS:
            self._assign(statement, FIELDS[statement.keyword])
        elif statement.keyword not in IGNORED:
            raise TranslationError(f"No handler for {statement.describe()}")

    def statements(self, statements: Iterable[Statement]) -> "UniPenBuilder":
        for statement in statements:
            self.statement(statement)
        return self

    def build(self) -> UniPen:
        """Finalize every sample and assemble the document."""
        if self._file_stack:
            raise ValidationError(
                f"Unbalanced include: {self._file_stack[-1]!r} was never closed by an end of input"
            )

        builders = list(self._completed)
        if not self._current.is_empty():
            builders.append(self._current)
        component_sets = tuple(b.build() for b in builders)

        top: Dict[str, Any] = {}
        grouped: Dict[str, Dict[str, Any]] = {name: {} for name in GROUPS}
        for name, value in self._metadata.items():
            group, _, attribute = name.partition(".")
            if attribute:
                grouped[group][attribute] = value
            else:
                top[name] = value

        logger.debug("Built document with %d component sets", len(component_sets))
        return UniPen(
            **top,
            **{name: GROUPS[name](**values) for name, values in grouped.items()},
            component_sets=component_sets,
        )

    # =========================================================================
    # FILE NESTING AND SAMPLE BOUNDARIES
    # =========================================================================

    def _retire(self) -> None:
        logger.debug("Retiring component set %r", self._current.name)
        self._completed.append(self._current)

    def _include(self, statement: Statement) -> None:
        path = self._single(statement, ArgumentKind.STRING)
        self._file_stack.append(path)
        if not self._current.is_empty():
            self._retire()
            self._current = ComponentSetBuilder(path)
        elif not self._current.explicit:
            self._current.name = path

    def _end_of_input(self, statement: Statement) -> None:
        if not self._file_stack:
            raise TranslationError(f"End of input without matching include ({statement.describe()})")
        self._file_stack.pop()
        if not self._current.is_empty():
            self._retire()
            self._current = ComponentSetBuilder(self._file_stack[-1] if self._file_stack else "")

    def _start_set(self, statement: Statement) -> None:
        name = self._single(statement, ArgumentKind.STRING)
        if not self._current.is_empty():
            self._retire()
        self._current = ComponentSetBuilder(name, explicit=True)

    # =========================================================================
    # PEN DATA
    # =========================================================================

    def _decode_pen(self, statement: Statement):
        order = self.coordinate_order
        if order is None:
            raise ValidationError(
                f"Pen statement before coordinate order: {statement.describe()} "
                "appears before any .COORD declaration"
            )

        numbers = []
        for argument in statement.arguments:
            if argument.kind is not ArgumentKind.NUMBER:
                raise TranslationError(f"{statement.describe()} has non-number argument")
            numbers.append(float(argument.value))

        points_per_second = self._metadata.get("units.points_per_second")
        if CoordinateType.TIME in order or not numbers:
            period = None
        elif points_per_second is None or points_per_second <= 0:
            raise ValidationError(
                f"Missing time: {statement.describe()} has no T channel and "
                ".POINTS_PER_SECOND is not a positive rate"
            )
        else:
            period = 1.0 / points_per_second

        return decode_coordinates(order, numbers, points_per_second), period

    def _pen_down(self, statement: Statement) -> None:
        coordinates, period = self._decode_pen(statement)
        self._current.pen_down(coordinates, period)

    def _pen_up(self, statement: Statement) -> None:
        coordinates, period = self._decode_pen(statement)
        self._current.pen_up(coordinates, period)

    def _dt(self, statement: Statement) -> None:
        milliseconds = self._single(statement, ArgumentKind.NUMBER)
        order = self.coordinate_order or ()
        # An explicit T channel wins over elapsed-time reconstruction
        self._current.dt(milliseconds / 1000.0, advance=CoordinateType.TIME not in order)

    def _segment(self, statement: Statement) -> None:
        arguments = statement.arguments
        if len(arguments) < 2:
            raise TranslationError(f"{statement.describe()} needs a hierarchy and a component list")
        hierarchy = self._expect(statement, arguments[0], ArgumentKind.STRING)
        component_list = self._expect(statement, arguments[1], ArgumentKind.LIST)

        quality: Optional[Quality] = None
        label: Optional[str] = None
        for argument in arguments[2:]:
            if argument.kind is ArgumentKind.RESERVED:
                quality = None if argument.is_unknown else Quality.from_reserved(argument.value)
            elif argument.kind is ArgumentKind.LABEL:
                label = argument.value
            else:
                raise TranslationError(f"{statement.describe()} has invalid argument {argument.kind.name}")

        declared = self._metadata.get("hierarchy")
        if declared is not None and hierarchy not in declared:
            raise ValidationError(
                f"{statement.describe()} uses hierarchy {hierarchy!r}, "
                f"which .HIERARCHY does not declare ({' '.join(declared)})"
            )

        self._current.segment(hierarchy, component_list, quality, label)

    # =========================================================================
    # METADATA
    # =========================================================================

    def _assign(self, statement: Statement, field: Field) -> None:
        arguments = statement.arguments
        if len(arguments) == 1 and arguments[0].is_unknown:
            self._metadata.pop(field.name, None)
            return

        if field.many:
            if not arguments:
                raise TranslationError(f"{statement.describe()} has no arguments")
            value = tuple(field.convert(self._expect(statement, a, field.kind)) for a in arguments)
        else:
            value = field.convert(self._single(statement, field.kind))
        self._metadata[field.name] = value

    def _single(self, statement: Statement, kind: ArgumentKind) -> Any:
        if len(statement.arguments) != 1:
            raise TranslationError(
                f"{statement.describe()} expects one argument, got {len(statement.arguments)}"
            )
        return self._expect(statement, statement.arguments[0], kind)

    @staticmethod
    def _expect(statement: Statement, argument: StatementArgument, kind: ArgumentKind) -> Any:
        if argument.kind is not kind:
            raise TranslationError(
                f"Statement of {statement.describe()} has invalid argument: "
                f"expected {kind.name}, got {argument.kind.name}"
            )
        return argument.value


# =============================================================================
# CONVENIENCE
# =============================================================================

def build(statements: Iterable[Statement]) -> UniPen:
    """Fold a statement stream into a UniPen document."""
    return UniPenBuilder().statements(statements).build()
