"""Data models for kamailio-cfg-formatter."""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from enum import Enum, auto


class LineKind(Enum):
    """Categories assigned to a trimmed configuration line.

    Members are listed in the order the classifier tries them; the first
    matching category wins.

    Attributes:
        BLANK: Empty line.
        DIALECT: The ``#!KAMAILIO`` dialect marker.
        DEFINE: A ``#!define`` directive.
        IF_DIRECTIVE: ``#!ifdef`` or ``#!ifndef``.
        ELSE_DIRECTIVE: ``#!else``.
        ENDIF_DIRECTIVE: ``#!endif``.
        OTHER_DIRECTIVE: Any other ``#!`` directive.
        BANNER: Section banner made of five or more ``#`` characters.
        COMMENT: Regular ``#`` or ``//`` comment.
        LISTEN: Top-level ``listen=`` binding.
        ROUTE: Route block declaration.
        CLOSE_REOPEN: Line that closes a block and opens another (``} else {``).
        OPENER: Line that opens more blocks than it closes.
        CLOSER: Line that closes more blocks than it opens.
        MODULE: ``loadmodule`` or ``modparam`` directive.
        ASSIGNMENT: Line containing a lone ``=``.
        FUNCTION_CALL: Call to a known routing function.
        CONDITIONAL: ``if`` or ``else`` statement.
        STATEMENT: Anything else.
    """

    BLANK = auto()
    DIALECT = auto()
    DEFINE = auto()
    IF_DIRECTIVE = auto()
    ELSE_DIRECTIVE = auto()
    ENDIF_DIRECTIVE = auto()
    OTHER_DIRECTIVE = auto()
    BANNER = auto()
    COMMENT = auto()
    LISTEN = auto()
    ROUTE = auto()
    CLOSE_REOPEN = auto()
    OPENER = auto()
    CLOSER = auto()
    MODULE = auto()
    ASSIGNMENT = auto()
    FUNCTION_CALL = auto()
    CONDITIONAL = auto()
    STATEMENT = auto()


@dataclass(frozen=True)
class ClassifiedLine:
    """A trimmed line together with its category and brace counts.

    Attributes:
        kind: Category selected by the classifier.
        text: The line with surrounding whitespace removed.
        opens: Number of ``{`` outside quoted strings and trailing ``#`` comments.
        closes: Number of ``}`` outside quoted strings and trailing ``#`` comments.
        leading_closes: Number of ``}`` before the first other character.
    """

    kind: LineKind
    text: str
    opens: int = 0
    closes: int = 0
    leading_closes: int = 0

    @property
    def net_braces(self) -> int:
        return self.opens - self.closes


@dataclass(frozen=True)
class FormatterState:
    """State threaded through a single formatting pass.

    Attributes:
        depth: Current nesting level, never negative.
        in_preprocessor_block: True between ``#!ifdef``/``#!ifndef`` and ``#!endif``.
        pending_indent: Extra levels applied to the next statement only, set by
            a conditional written without braces.
    """

    depth: int = 0
    in_preprocessor_block: bool = False
    pending_indent: int = 0


@dataclass
class FormatResult:
    """Outcome of formatting a document.

    Attributes:
        original: Text as received.
        formatted: Re-indented text.
    """

    original: str
    formatted: str

    @property
    def changed(self) -> bool:
        return self.original != self.formatted

    def diff(self, filename: str = "kamailio.cfg") -> str:
        """Render a unified diff from `original` to `formatted`.

        Args:
            filename: Name shown in the diff headers.

        Returns:
            str: Unified diff text, empty when nothing changed.

        Examples:
            print(format_cfg(text).diff("kamailio.cfg"))
        """
        return "".join(
            difflib.unified_diff(
                self.original.splitlines(keepends=True),
                self.formatted.splitlines(keepends=True),
                fromfile=f"a/{filename}",
                tofile=f"b/{filename}",
            )
        )


class ValidationErrorKind(Enum):
    """Kinds of structural defects reported by the validator."""

    UNEXPECTED_ENDIF = auto()
    UNEXPECTED_CLOSING_BRACKET = auto()
    UNMATCHED_STRUCTURE = auto()


@dataclass
class ValidationCounters:
    """Running balances kept while validating a document.

    Attributes:
        block_count: Net number of open ``{`` blocks.
        preprocessor_block_count: Net number of open ``#!ifdef``/``#!ifndef`` blocks.
    """

    block_count: int = 0
    preprocessor_block_count: int = 0
