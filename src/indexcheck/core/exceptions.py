from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .ir import SourceLocation


class IndexCheckError(Exception):
    """Base class for indexcheck-specific exceptions."""

    def __init__(self, message: str, *, location: Optional["SourceLocation"] = None):
        super().__init__(f"{message}{_format_location(location)}")
        self.message = message
        self.location = location


class ParseError(IndexCheckError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        line_text: Optional[str] = None,
    ):
        super().__init__(f"{message}{_format_position(line, column, line_text)}")
        self.message = message
        self.line = line
        self.column = column
        self.line_text = line_text


class ConsistencyError(IndexCheckError, ValueError):
    """Analysis-time disagreement between two uses of one tensor."""


class ArityMismatch(ConsistencyError):
    def __init__(
        self,
        message: str,
        *,
        location: Optional["SourceLocation"] = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        super().__init__(message, location=location)
        self.expected = expected
        self.actual = actual


class LabelDrift(ConsistencyError):
    def __init__(
        self,
        message: str,
        *,
        location: Optional["SourceLocation"] = None,
        new: Any = None,
        old: Any = None,
        position: Optional[int] = None,
    ):
        super().__init__(message, location=location)
        self.new = new
        self.old = old
        self.position = position


class SizeCheckError(IndexCheckError, ValueError):
    """Run-time disagreement between an array and recorded extents."""


class RankMismatch(SizeCheckError):
    def __init__(
        self,
        message: str,
        *,
        location: Optional["SourceLocation"] = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        super().__init__(message, location=location)
        self.expected = expected
        self.actual = actual


class SizeMismatch(SizeCheckError):
    def __init__(
        self,
        message: str,
        *,
        location: Optional["SourceLocation"] = None,
        label: Any = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        super().__init__(message, location=location)
        self.label = label
        self.expected = expected
        self.actual = actual


class UnrecognizedDirective(IndexCheckError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        location: Optional["SourceLocation"] = None,
        directive: Any = None,
    ):
        super().__init__(message, location=location)
        self.directive = directive


class MalformedReference(IndexCheckError, TypeError):
    pass


class BackendError(IndexCheckError, RuntimeError):
    pass


def _format_location(location: Optional["SourceLocation"]) -> str:
    if location is None:
        return ""
    text = location.describe()
    return f" ({text})" if text else ""


def _format_position(
    line: Optional[int],
    column: Optional[int],
    line_text: Optional[str],
) -> str:
    if line is None and column is None:
        return ""
    position = []
    if line is not None:
        position.append(f"line {line}")
    if column is not None:
        position.append(f"col {column}")
    position_str = f" ({', '.join(position)})"
    if line_text is None or column is None or column < 1:
        return position_str
    caret = " " * (column - 1) + "^"
    return f"{position_str}\n  {line_text}\n  {caret}"
