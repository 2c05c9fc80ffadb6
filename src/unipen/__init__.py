"""
UniPen - Handwriting Corpus Reader (v0.1.0)

Reads UniPen statement files, following .INCLUDE directives, into typed
statements and then into a validated document of handwriting samples.

Quick start:
    from unipen import load

    document = load("session.unipen", include_dir="data/")
    for sample in document.component_sets:
        for stroke in sample.strokes():
            print(sample.name, len(stroke))

Two layers:
    from unipen import parse, build

    statements = parse("session.unipen", include_dir="data/")
    document = build(statements)
"""

__version__ = "0.1.0"

from .errors import (
    UniPenError,
    FileReadError,
    GrammarError,
    NumeralError,
    TranslationError,
    ValidationError,
    MissingIncludeError,
    IncludeRecursionError,
)

from .statements import (
    Keyword,
    Reserved,
    ArgumentKind,
    StatementArgument,
    ComponentPoint,
    ComponentRange,
    ComponentList,
    Location,
    Statement,
)

from .parser import (
    Decoder,
    decode,
)

from .model import (
    CoordinateType,
    Style,
    Hand,
    Sex,
    Skill,
    Quality,
    CoordinateRange,
    Coordinate,
    ComponentKind,
    Component,
    Segment,
    BoundingBox,
    ComponentSet,
    DataDocumentation,
    Alphabet,
    Lexicon,
    Layout,
    Units,
    Writer,
    UniPen,
)

from .component_set import (
    ComponentSetBuilder,
    RawCoordinate,
)

from .builder import (
    UniPenBuilder,
    decode_coordinates,
    build,
)

from .reader import (
    Config,
    Reader,
    parse,
    load,
)

__all__ = [
    # Errors
    "UniPenError",
    "FileReadError",
    "GrammarError",
    "NumeralError",
    "TranslationError",
    "ValidationError",
    "MissingIncludeError",
    "IncludeRecursionError",
    # Statements
    "Keyword",
    "Reserved",
    "ArgumentKind",
    "StatementArgument",
    "ComponentPoint",
    "ComponentRange",
    "ComponentList",
    "Location",
    "Statement",
    # Decoding
    "Decoder",
    "decode",
    # Model
    "CoordinateType",
    "Style",
    "Hand",
    "Sex",
    "Skill",
    "Quality",
    "CoordinateRange",
    "Coordinate",
    "ComponentKind",
    "Component",
    "Segment",
    "BoundingBox",
    "ComponentSet",
    "DataDocumentation",
    "Alphabet",
    "Lexicon",
    "Layout",
    "Units",
    "Writer",
    "UniPen",
    # Building
    "ComponentSetBuilder",
    "RawCoordinate",
    "UniPenBuilder",
    "decode_coordinates",
    "build",
    # Reading
    "Config",
    "Reader",
    "parse",
    "load",
]
