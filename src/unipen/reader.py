"""
UniPen Reader - Files, Includes and the Full Pipeline

parse() reads a file, decodes it, and splices every .INCLUDE'd file in
place of its directive. Each file's statements are bracketed by an INCLUDE
marker carrying its path and the END_OF_INPUT marker the decoder emits, so
the flat result still records how files nest.

load() runs parse() and then the builder.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .builder import build
from .errors import (
    FileReadError,
    IncludeRecursionError,
    MissingIncludeError,
    TranslationError,
)
from .model import UniPen
from .parser import Decoder
from .statements import ArgumentKind, Keyword, Statement

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


# =============================================================================
# LIMITS
# =============================================================================

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB default
MAX_INCLUDE_DEPTH = 32
DEFAULT_ENCODING = "latin-1"


# =============================================================================
# CONFIG
# =============================================================================

@dataclass
class Config:
    """
    Reader configuration.

    max_include_depth counts nested includes below the top-level file, so
    the default admits a chain of 33 files.
    """
    max_include_depth: int = MAX_INCLUDE_DEPTH
    max_file_size: int = MAX_FILE_SIZE
    encoding: str = DEFAULT_ENCODING

    @classmethod
    def default(cls) -> "Config":
        return cls()


# =============================================================================
# READER
# =============================================================================

class Reader:
    """Parses one top-level file and everything it includes."""

    def __init__(self, include_dir: Optional[PathLike] = None, config: Optional[Config] = None):
        self.include_dir = Path(include_dir) if include_dir is not None else None
        self.config = config or Config.default()
        self.decoder = Decoder()

    def parse(self, path: PathLike) -> List[Statement]:
        return self._parse(Path(path), ())

    def _parse(self, path: Path, chain: Tuple[Path, ...]) -> List[Statement]:
        resolved = path.resolve()
        if resolved in chain:
            names = " -> ".join(str(p) for p in chain + (resolved,))
            raise IncludeRecursionError(f"Include cycle: {names}", chain + (resolved,))
        if len(chain) > self.config.max_include_depth:
            raise IncludeRecursionError(
                f"Includes nested deeper than {self.config.max_include_depth} at {path}", chain
            )
        chain = chain + (resolved,)

        name = str(path)
        logger.debug("Parsing statements from %s", name)
        content = self._read(path)
        logger.debug("Finished reading %d characters from %s", len(content), name)

        statements = [Statement.include(name)]
        for statement in self.decoder.statements(content, name):
            if statement.keyword is Keyword.INCLUDE:
                statements.extend(self._parse(self._include_path(statement, name), chain))
            else:
                statements.append(statement)

        logger.debug("Finished parsing %d statements from %s", len(statements), name)
        return statements

    def _include_path(self, directive: Statement, parent: str) -> Path:
        arguments = directive.arguments
        if len(arguments) != 1 or arguments[0].kind is not ArgumentKind.STRING:
            raise TranslationError(f"{directive.describe()} needs one file name argument")
        target = arguments[0].value
        if self.include_dir is None:
            raise MissingIncludeError(parent, target)
        return self.include_dir / target

    def _read(self, path: Path) -> str:
        try:
            size = path.stat().st_size
            if size > self.config.max_file_size:
                raise FileReadError(
                    str(path), f"file is {size} bytes, limit is {self.config.max_file_size}"
                )
            with open(path, encoding=self.config.encoding) as f:
                return f.read()
        except OSError as e:
            raise FileReadError(str(path), e.strerror or str(e)) from e
        except UnicodeDecodeError as e:
            raise FileReadError(str(path), f"not valid {self.config.encoding} text: {e.reason}") from e


# =============================================================================
# CONVENIENCE
# =============================================================================

def parse(
    path: PathLike,
    include_dir: Optional[PathLike] = None,
    config: Optional[Config] = None,
) -> List[Statement]:
    """
    Parse a UniPen file into a flat statement list, expanding includes.

    Raises:
        FileReadError: a file could not be read
        GrammarError / NumeralError: a file does not follow the grammar
        MissingIncludeError: .INCLUDE found but include_dir is None
        IncludeRecursionError: includes form a cycle or nest too deep
    """
    return Reader(include_dir, config).parse(path)


def load(
    path: PathLike,
    include_dir: Optional[PathLike] = None,
    config: Optional[Config] = None,
) -> UniPen:
    """Parse a UniPen file and build the document."""
    return build(parse(path, include_dir, config))
