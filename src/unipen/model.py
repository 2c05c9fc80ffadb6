"""
UniPen Model - The Built Document

Immutable values produced by the builder. Coordinate indices refer to
positions in ComponentSet.coordinates; ranges are inclusive at both ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional, Tuple

from .errors import TranslationError
from .statements import Reserved


# =============================================================================
# ENUMS
# =============================================================================

class CoordinateType(Enum):
    """Channels a .COORD declaration can list."""
    X_POSITION = "x"
    Y_POSITION = "y"
    TIME = "time"
    PRESSURE = "pressure"
    Z_POSITION = "z"
    BUTTON = "button"
    RHO = "rho"
    THETA = "theta"
    PHI = "phi"

    @classmethod
    def from_reserved(cls, word: Reserved) -> "CoordinateType":
        return _from_reserved(cls, word, _COORDINATE_WORDS)


class Style(Enum):
    PRINTED = auto()
    CURSIVE = auto()
    MIXED = auto()

    @classmethod
    def from_reserved(cls, word: Reserved) -> "Style":
        return _from_reserved(cls, word, {
            Reserved.PRINTED: cls.PRINTED,
            Reserved.CURSIVE: cls.CURSIVE,
            Reserved.MIXED: cls.MIXED,
        })


class Hand(Enum):
    LEFT = auto()
    RIGHT = auto()

    @classmethod
    def from_reserved(cls, word: Reserved) -> "Hand":
        return _from_reserved(cls, word, {
            Reserved.LEFT_HAND: cls.LEFT,
            Reserved.RIGHT_HAND: cls.RIGHT,
        })


class Sex(Enum):
    MALE = auto()
    FEMALE = auto()

    @classmethod
    def from_reserved(cls, word: Reserved) -> "Sex":
        return _from_reserved(cls, word, {
            Reserved.MALE: cls.MALE,
            Reserved.FEMALE: cls.FEMALE,
        })


class Skill(Enum):
    BAD = auto()
    OK = auto()
    GOOD = auto()

    @classmethod
    def from_reserved(cls, word: Reserved) -> "Skill":
        return _from_reserved(cls, word, {
            Reserved.BAD: cls.BAD,
            Reserved.OK: cls.OK,
            Reserved.GOOD: cls.GOOD,
        })


class Quality(Enum):
    """Segment quality."""
    BAD = auto()
    OK = auto()
    GOOD = auto()

    @classmethod
    def from_reserved(cls, word: Reserved) -> "Quality":
        return _from_reserved(cls, word, {
            Reserved.BAD: cls.BAD,
            Reserved.OK: cls.OK,
            Reserved.GOOD: cls.GOOD,
        })


_COORDINATE_WORDS = {
    Reserved.X: CoordinateType.X_POSITION,
    Reserved.Y: CoordinateType.Y_POSITION,
    Reserved.TIME: CoordinateType.TIME,
    Reserved.PRESSURE: CoordinateType.PRESSURE,
    Reserved.Z: CoordinateType.Z_POSITION,
    Reserved.BUTTON: CoordinateType.BUTTON,
    Reserved.RHO: CoordinateType.RHO,
    Reserved.THETA: CoordinateType.THETA,
    Reserved.PHI: CoordinateType.PHI,
}


def _from_reserved(enum_cls, word: Reserved, table: Dict[Reserved, Any]):
    try:
        return table[word]
    except KeyError:
        raise TranslationError(f"{word.name} is not a {enum_cls.__name__} word") from None


# =============================================================================
# PEN DATA
# =============================================================================

@dataclass(frozen=True)
class CoordinateRange:
    """Inclusive range of coordinate indices."""
    first: int
    last: int

    def __post_init__(self):
        if self.first < 0 or self.last < self.first:
            raise ValueError(f"Invalid coordinate range {self.first}..={self.last}")

    def __len__(self) -> int:
        return self.last - self.first + 1

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.first, self.last + 1))

    def __contains__(self, index: int) -> bool:
        return self.first <= index <= self.last

    def to_list(self) -> list:
        return [self.first, self.last]


@dataclass(frozen=True)
class Coordinate:
    """One pen sample. `time` is seconds since the start of its sample."""
    x: float
    y: float
    time: float = 0.0
    pressure: Optional[float] = None
    z: Optional[float] = None
    button: Optional[float] = None
    rho: Optional[float] = None
    theta: Optional[float] = None
    phi: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"x": self.x, "y": self.y, "time": self.time}
        for name in ("pressure", "z", "button", "rho", "theta", "phi"):
            value = getattr(self, name)
            if value is not None:
                d[name] = value
        return d


class ComponentKind(Enum):
    PEN_DOWN = auto()
    PEN_UP = auto()
    DT = auto()


@dataclass(frozen=True)
class Component:
    """A pen-down run, a pen-up run, or a timing gap without coordinates."""
    kind: ComponentKind
    coordinates: Optional[CoordinateRange] = None
    duration: Optional[float] = None

    @classmethod
    def pen_down(cls, coordinates: CoordinateRange) -> "Component":
        return cls(ComponentKind.PEN_DOWN, coordinates=coordinates)

    @classmethod
    def pen_up(cls, coordinates: CoordinateRange) -> "Component":
        return cls(ComponentKind.PEN_UP, coordinates=coordinates)

    @classmethod
    def dt(cls, duration: float) -> "Component":
        return cls(ComponentKind.DT, duration=duration)

    @property
    def is_run(self) -> bool:
        return self.kind is not ComponentKind.DT

    def to_dict(self) -> Dict[str, Any]:
        if self.kind is ComponentKind.DT:
            return {"type": "Dt", "duration": self.duration}
        kind = "PenDown" if self.kind is ComponentKind.PEN_DOWN else "PenUp"
        return {"type": kind, "coordinates": self.coordinates.to_list()}


@dataclass(frozen=True)
class Segment:
    """A hierarchy label over coordinate ranges."""
    hierarchy: str
    coordinates: Tuple[CoordinateRange, ...]
    quality: Optional[Quality] = None
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "hierarchy": self.hierarchy,
            "coordinates": [r.to_list() for r in self.coordinates],
        }
        if self.quality is not None:
            d["quality"] = self.quality.name
        if self.label is not None:
            d["label"] = self.label
        return d


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned extent of the coordinates in `coordinates`."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    coordinates: Tuple[CoordinateRange, ...] = ()

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x_min": self.x_min,
            "y_min": self.y_min,
            "x_max": self.x_max,
            "y_max": self.y_max,
            "coordinates": [r.to_list() for r in self.coordinates],
        }


@dataclass(frozen=True)
class ComponentSet:
    """One named handwriting sample."""
    name: str
    coordinates: Tuple[Coordinate, ...] = ()
    components: Tuple[Component, ...] = ()
    segments: Tuple[Segment, ...] = ()
    bounding_boxes: Tuple[BoundingBox, ...] = ()

    @property
    def runs(self) -> Tuple[Component, ...]:
        """Pen-down and pen-up runs, in the order segment lists number them."""
        return tuple(c for c in self.components if c.is_run)

    def strokes(self) -> Iterator[Tuple[Coordinate, ...]]:
        """Coordinates of each pen-down run."""
        for component in self.components:
            if component.kind is ComponentKind.PEN_DOWN:
                r = component.coordinates
                yield self.coordinates[r.first:r.last + 1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "coordinates": [c.to_dict() for c in self.coordinates],
            "components": [c.to_dict() for c in self.components],
            "segments": [s.to_dict() for s in self.segments],
            "bounding_boxes": [b.to_dict() for b in self.bounding_boxes],
        }


# =============================================================================
# METADATA
# =============================================================================

@dataclass(frozen=True)
class DataDocumentation:
    contact: Optional[str] = None
    info: Optional[str] = None
    setup: Optional[str] = None
    pad: Optional[str] = None


@dataclass(frozen=True)
class Alphabet:
    symbols: Optional[Tuple[str, ...]] = None
    frequencies: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class Lexicon:
    source: Optional[str] = None
    id: Optional[str] = None
    contact: Optional[str] = None
    info: Optional[str] = None
    entries: Optional[Tuple[str, ...]] = None
    frequencies: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class Layout:
    x_dimension: Optional[int] = None
    y_dimension: Optional[int] = None
    h_lines: Optional[Tuple[int, ...]] = None
    v_lines: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class Units:
    x_points_per_inch: Optional[float] = None
    y_points_per_inch: Optional[float] = None
    z_points_per_inch: Optional[float] = None
    x_points_per_mm: Optional[float] = None
    y_points_per_mm: Optional[float] = None
    z_points_per_mm: Optional[float] = None
    points_per_gram: Optional[float] = None
    points_per_second: Optional[float] = None


@dataclass(frozen=True)
class Writer:
    writer_id: Optional[str] = None
    country: Optional[str] = None
    hand: Optional[Hand] = None
    age: Optional[int] = None
    sex: Optional[Sex] = None
    skill: Optional[Skill] = None
    style: Optional[Style] = None
    info: Optional[str] = None


def _plain(group) -> Dict[str, Any]:
    """Set fields of a metadata group as JSON-compatible values."""
    d = {}
    for name, value in vars(group).items():
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.name
        elif isinstance(value, tuple):
            value = list(value)
        d[name] = value
    return d


# =============================================================================
# DOCUMENT
# =============================================================================

@dataclass(frozen=True)
class UniPen:
    """A built UniPen document."""
    version: Optional[float] = None
    data_source: Optional[str] = None
    data_id: Optional[str] = None
    coordinate_order: Optional[Tuple[CoordinateType, ...]] = None
    hierarchy: Optional[Tuple[str, ...]] = None
    documentation: DataDocumentation = field(default_factory=DataDocumentation)
    alphabet: Alphabet = field(default_factory=Alphabet)
    lexicon: Lexicon = field(default_factory=Lexicon)
    layout: Layout = field(default_factory=Layout)
    units: Units = field(default_factory=Units)
    writer: Writer = field(default_factory=Writer)
    component_sets: Tuple[ComponentSet, ...] = ()

    def component_set(self, name: str) -> Optional[ComponentSet]:
        """First component set called `name`."""
        for component_set in self.component_sets:
            if component_set.name == name:
                return component_set
        return None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.version is not None:
            d["version"] = self.version
        if self.data_source is not None:
            d["data_source"] = self.data_source
        if self.data_id is not None:
            d["data_id"] = self.data_id
        if self.coordinate_order is not None:
            d["coordinate_order"] = [c.name for c in self.coordinate_order]
        if self.hierarchy is not None:
            d["hierarchy"] = list(self.hierarchy)
        for name in ("documentation", "alphabet", "lexicon", "layout", "units", "writer"):
            group = _plain(getattr(self, name))
            if group:
                d[name] = group
        d["component_sets"] = [s.to_dict() for s in self.component_sets]
        return d
