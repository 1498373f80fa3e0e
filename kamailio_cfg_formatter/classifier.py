"""Line classification for Kamailio configuration text."""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

from .constants import (
    ASSIGNMENT_PATTERN,
    BANNER_PATTERN,
    COMMENT_PREFIXES,
    CONDITIONAL_PATTERN,
    DEFINE_DIRECTIVE,
    DIALECT_DIRECTIVE,
    DIRECTIVE_PREFIX,
    ELSE_DIRECTIVE,
    ENDIF_DIRECTIVE,
    FUNCTION_PREFIXES,
    IF_DIRECTIVES,
    LISTEN_PATTERN,
    MODULE_PREFIXES,
    ROUTE_PREFIXES,
    ROUTE_WORDS,
)
from .models import ClassifiedLine, LineKind


class BraceCounts(NamedTuple):
    opens: int
    closes: int
    leading_closes: int


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_document(text: str) -> list[str]:
    """Split a document into lines after trimming surrounding blank runs.

    Args:
        text: Raw document text.

    Returns:
        list[str]: Document lines without line terminators. Empty when the
            document holds only whitespace.

    Examples:
        split_document("\\n\\nroute {\\n}\\n\\n")  # ["route {", "}"]
    """
    stripped = normalize_newlines(text).strip()
    if not stripped:
        return []
    return stripped.split("\n")


def count_braces(text: str) -> BraceCounts:
    """Count block braces that appear outside quoted strings and comments.

    Backslash escapes are honoured inside strings. A ``#`` outside a string
    starts a comment that runs to the end of the line. Leading closes are the
    ``}`` characters found before any other non-whitespace character.

    Args:
        text: A single line of configuration.

    Returns:
        BraceCounts: Number of ``{``, number of ``}`` and number of leading ``}``.

    Examples:
        count_braces('} else {')  # BraceCounts(1, 1, 1)
        count_braces('xlog("{");')  # BraceCounts(0, 0, 0)
    """
    opens = closes = leading_closes = 0
    quote: str | None = None
    leading = True
    i = 0
    while i < len(text):
        character = text[i]
        if quote is not None:
            if character == "\\":
                i += 2
                continue
            if character == quote:
                quote = None
        elif character in "\"'":
            quote = character
        elif character == "#":
            break
        elif character == "{":
            opens += 1
        elif character == "}":
            closes += 1
            if leading:
                leading_closes += 1
        if leading and not (character == "}" or character.isspace()):
            leading = False
        i += 1
    return BraceCounts(opens, closes, leading_closes)


def is_comment(text: str) -> bool:
    return text.startswith(COMMENT_PREFIXES) and not text.startswith(DIRECTIVE_PREFIX)


def directive_name(text: str) -> str:
    """Return the first word of a ``#!`` directive line."""
    return text.split(maxsplit=1)[0] if text else ""


def _is_directive(text: str, counts: BraceCounts) -> bool:
    return text.startswith(DIRECTIVE_PREFIX)


def _is_route(text: str, counts: BraceCounts) -> bool:
    if text.startswith(ROUTE_PREFIXES):
        return True
    word = text.split("{", 1)[0].strip()
    return word in ROUTE_WORDS


def _is_close_reopen(text: str, counts: BraceCounts) -> bool:
    return counts.leading_closes > 0 and counts.opens > 0


def _is_opener(text: str, counts: BraceCounts) -> bool:
    return counts.opens > counts.closes


def _is_closer(text: str, counts: BraceCounts) -> bool:
    return counts.closes > counts.opens


# Tried in order; the first predicate that accepts the line decides its kind.
_RULES: tuple[tuple[LineKind, Callable[[str, BraceCounts], bool]], ...] = (
    (LineKind.BLANK, lambda text, counts: not text),
    (LineKind.OTHER_DIRECTIVE, _is_directive),
    (LineKind.BANNER, lambda text, counts: BANNER_PATTERN.match(text) is not None),
    (LineKind.COMMENT, lambda text, counts: is_comment(text)),
    (LineKind.LISTEN, lambda text, counts: LISTEN_PATTERN.match(text) is not None),
    (LineKind.ROUTE, _is_route),
    (LineKind.CLOSE_REOPEN, _is_close_reopen),
    (LineKind.OPENER, _is_opener),
    (LineKind.CLOSER, _is_closer),
    (LineKind.MODULE, lambda text, counts: text.startswith(MODULE_PREFIXES)),
    (LineKind.ASSIGNMENT, lambda text, counts: ASSIGNMENT_PATTERN.search(text) is not None),
    (LineKind.FUNCTION_CALL, lambda text, counts: text.startswith(FUNCTION_PREFIXES)),
    (LineKind.CONDITIONAL, lambda text, counts: CONDITIONAL_PATTERN.match(text) is not None),
)

_DIRECTIVE_KINDS = {
    DIALECT_DIRECTIVE: LineKind.DIALECT,
    DEFINE_DIRECTIVE: LineKind.DEFINE,
    ELSE_DIRECTIVE: LineKind.ELSE_DIRECTIVE,
    ENDIF_DIRECTIVE: LineKind.ENDIF_DIRECTIVE,
    **{name: LineKind.IF_DIRECTIVE for name in IF_DIRECTIVES},
}


def classify_line(text: str) -> ClassifiedLine:
    """Classify a configuration line.

    The line is trimmed before matching. Preprocessor directives are refined
    by their name (``#!ifdef``, ``#!endif``, ...); everything else is decided by
    the first matching rule in the priority table, falling back to
    `LineKind.STATEMENT`.

    Args:
        text: A single line, with or without surrounding whitespace.

    Returns:
        ClassifiedLine: Trimmed text, kind and brace counts.

    Examples:
        classify_line("route[RELAY] {").kind  # LineKind.ROUTE
        classify_line("} else {").kind  # LineKind.CLOSE_REOPEN
        classify_line("#!ifdef WITH_TLS").kind  # LineKind.IF_DIRECTIVE
    """
    text = text.strip()
    counts = count_braces(text)
    kind = LineKind.STATEMENT
    for candidate, matches in _RULES:
        if matches(text, counts):
            kind = candidate
            break

    if kind is LineKind.OTHER_DIRECTIVE:
        kind = _DIRECTIVE_KINDS.get(directive_name(text), LineKind.OTHER_DIRECTIVE)

    return ClassifiedLine(
        kind=kind,
        text=text,
        opens=counts.opens,
        closes=counts.closes,
        leading_closes=counts.leading_closes,
    )
