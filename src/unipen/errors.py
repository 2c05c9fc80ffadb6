"""
UniPen Errors - Exception Taxonomy

Every failure raised by the reader or the builder derives from UniPenError,
so callers can catch one class and report the message.
"""

from __future__ import annotations

from typing import Optional


class UniPenError(Exception):
    """Base class for all UniPen failures."""


class FileReadError(UniPenError):
    """A UniPen file could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class GrammarError(UniPenError):
    """Input text violates the statement grammar."""

    def __init__(self, message: str, path: Optional[str] = None,
                 line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.path or "<text>"
        if self.line is not None:
            where = f"{where}:{self.line}"
            if self.column is not None:
                where = f"{where}:{self.column}"
        return f"{where}: {self.message}"


class NumeralError(GrammarError):
    """A token tagged as a number failed to parse."""

    def __init__(self, token: str, path: Optional[str] = None,
                 line: Optional[int] = None, column: Optional[int] = None):
        self.token = token
        super().__init__(f"Invalid number: {token!r}", path, line, column)


class TranslationError(UniPenError):
    """
    A decoded statement has a shape its consumer does not expect.

    The grammar should already have rejected such input, so this points at a
    defect rather than at bad data.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(
            f"Translation error: {message}\n"
            "This is most likely a bug. Invalid input should be caught by the grammar."
        )


class ValidationError(UniPenError):
    """Well-formed statements are semantically invalid in context."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Validation error: {message}")


class MissingIncludeError(UniPenError):
    """An .INCLUDE directive was found but no include directory was given."""

    def __init__(self, path: Optional[str] = None, target: Optional[str] = None):
        self.path = path
        self.target = target
        detail = f" ({path} includes {target!r})" if path and target else ""
        super().__init__(f"Include path not provided, but file contains .INCLUDE{detail}")


class IncludeRecursionError(UniPenError):
    """Include directives form a cycle or nest deeper than allowed."""

    def __init__(self, message: str, chain: tuple = ()):
        self.chain = tuple(chain)
        super().__init__(message)
