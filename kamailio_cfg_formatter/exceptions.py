"""Package-specific exception types."""

from __future__ import annotations

from .models import ValidationErrorKind


class ValidationError(ValueError):
    """Base class for structural validation failures.

    Attributes:
        kind: Category of the defect.
        line_number: One-based line of the defect, or None when the defect is
            only detectable at the end of the document.
    """

    kind: ValidationErrorKind

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        super().__init__(message)


class UnexpectedEndifError(ValidationError):
    """Raised when ``#!endif`` appears without an open ``#!ifdef``/``#!ifndef``.

    Args:
        line_number: One-based index of the offending line.
    """

    kind = ValidationErrorKind.UNEXPECTED_ENDIF

    def __init__(self, line_number: int):
        super().__init__(f"Unexpected #!endif at line {line_number}", line_number)


class UnexpectedClosingBracketError(ValidationError):
    """Raised when a ``}`` has no matching ``{``.

    Args:
        line_number: One-based index of the offending line.
    """

    kind = ValidationErrorKind.UNEXPECTED_CLOSING_BRACKET

    def __init__(self, line_number: int):
        super().__init__(f"Unexpected closing bracket at line {line_number}", line_number)


class UnmatchedStructureError(ValidationError):
    """Raised when blocks remain open at the end of the document.

    Args:
        structure: ``"brackets"`` or ``"preprocessor"``.
        count: Residual balance at the end of the document.
    """

    kind = ValidationErrorKind.UNMATCHED_STRUCTURE

    def __init__(self, structure: str, count: int):
        self.structure = structure
        self.count = count
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.structure == "brackets":
            return f"Unmatched brackets ({self.count} left open)"
        return f"Unmatched preprocessor directives ({self.count} left open)"


class LineTooLongError(ValueError):
    """Raised when a configuration file holds a line longer than the read limit.

    Attributes:
        line_number: One-based index of the line.
        length: Length of the line in characters.
        max_line_length: Configured limit.
    """

    def __init__(self, line_number: int, length: int, max_line_length: int):
        self.line_number = line_number
        self.length = length
        self.max_line_length = max_line_length
        super().__init__(
            f"Line {line_number} is {length} characters long (limit: {max_line_length})"
        )
