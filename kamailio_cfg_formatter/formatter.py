"""Re-indentation of Kamailio configuration documents."""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from .classifier import classify_line, count_braces, is_comment, split_document
from .constants import (
    BODYLESS_CONDITIONAL_ENDINGS,
    CLOSE_ELSE_PATTERN,
    INDENT_UNIT,
    PAREN_BRACE_PATTERN,
)
from .models import ClassifiedLine, FormatResult, FormatterState, LineKind

logger = logging.getLogger(__name__)

Step = tuple[FormatterState, list[str]]
Transition = Callable[[FormatterState, ClassifiedLine], Step]


def indent(depth: int, text: str) -> str:
    return f"{INDENT_UNIT * max(depth, 0)}{text}"


def _shift_depth(state: FormatterState, line: ClassifiedLine) -> int:
    depth = state.depth + line.net_braces
    if depth < 0:
        logger.debug("Nesting depth clamped at zero on %r", line.text)
        return 0
    return depth


def _blank(state: FormatterState, line: ClassifiedLine) -> Step:
    return state, [""]


def _verbatim(state: FormatterState, line: ClassifiedLine) -> Step:
    return state, [line.text]


def _dialect(state: FormatterState, line: ClassifiedLine) -> Step:
    return state, [line.text, ""]


def _if_directive(state: FormatterState, line: ClassifiedLine) -> Step:
    emitted = ["", indent(state.depth, line.text)]
    return replace(state, depth=state.depth + 1, in_preprocessor_block=True), emitted


def _else_directive(state: FormatterState, line: ClassifiedLine) -> Step:
    parent = max(state.depth - 1, 0)
    return replace(state, depth=parent + 1), [indent(parent, line.text)]


def _endif_directive(state: FormatterState, line: ClassifiedLine) -> Step:
    depth = max(state.depth - 1, 0)
    emitted = [indent(depth, line.text), ""]
    return replace(state, depth=depth, in_preprocessor_block=False), emitted


def _banner(state: FormatterState, line: ClassifiedLine) -> Step:
    return state, ["", line.text, ""]


def _comment(state: FormatterState, line: ClassifiedLine) -> Step:
    if state.in_preprocessor_block or state.depth > 0:
        return state, [indent(state.depth + state.pending_indent, line.text)]
    return state, [line.text]


def _route(state: FormatterState, line: ClassifiedLine) -> Step:
    emitted = ["", indent(state.depth, line.text)]
    return replace(state, depth=_shift_depth(state, line), pending_indent=0), emitted


def _opener(state: FormatterState, line: ClassifiedLine) -> Step:
    emitted = [indent(state.depth - line.leading_closes, line.text)]
    return replace(state, depth=_shift_depth(state, line), pending_indent=0), emitted


def _closer(state: FormatterState, line: ClassifiedLine) -> Step:
    depth = _shift_depth(state, line)
    return replace(state, depth=depth, pending_indent=0), [indent(depth, line.text)]


def _statement(state: FormatterState, line: ClassifiedLine) -> Step:
    emitted = [indent(state.depth + state.pending_indent, line.text)]
    return replace(state, pending_indent=0), emitted


def _conditional(state: FormatterState, line: ClassifiedLine) -> Step:
    emitted = [indent(state.depth + state.pending_indent, line.text)]
    if line.text.endswith(BODYLESS_CONDITIONAL_ENDINGS):
        return replace(state, pending_indent=0), emitted
    # Braceless header: only the next statement is indented one extra level.
    return replace(state, pending_indent=state.pending_indent + 1), emitted


_TRANSITIONS: dict[LineKind, Transition] = {
    LineKind.BLANK: _blank,
    LineKind.DIALECT: _dialect,
    LineKind.DEFINE: _verbatim,
    LineKind.IF_DIRECTIVE: _if_directive,
    LineKind.ELSE_DIRECTIVE: _else_directive,
    LineKind.ENDIF_DIRECTIVE: _endif_directive,
    LineKind.OTHER_DIRECTIVE: _verbatim,
    LineKind.BANNER: _banner,
    LineKind.COMMENT: _comment,
    LineKind.LISTEN: _verbatim,
    LineKind.ROUTE: _route,
    LineKind.CLOSE_REOPEN: _opener,
    LineKind.OPENER: _opener,
    LineKind.CLOSER: _closer,
    LineKind.MODULE: _statement,
    LineKind.ASSIGNMENT: _statement,
    LineKind.FUNCTION_CALL: _statement,
    LineKind.CONDITIONAL: _conditional,
    LineKind.STATEMENT: _statement,
}


def advance(state: FormatterState, line: ClassifiedLine) -> tuple[FormatterState, list[str]]:
    """Apply one classified line to the formatter state.

    The function is pure: it returns the next state and the output lines
    produced for `line`. An empty string in the output stands for a blank
    line; callers collapse consecutive blanks.

    Args:
        state: State before the line.
        line: Classified input line.

    Returns:
        tuple[FormatterState, list[str]]: State after the line and the lines
            to emit, already indented.

    Examples:
        advance(FormatterState(), classify_line("route[A] {"))
        # (FormatterState(depth=1, ...), ["", "route[A] {"])
    """
    return _TRANSITIONS[line.kind](state, line)


def _emit(output: list[str], line: str) -> None:
    if line == "" and output and output[-1] == "":
        return
    output.append(line)


def _join(lines: list[str]) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def format_lines(lines: Iterable[str]) -> list[str]:
    """Re-indent configuration lines with the rule-based engine.

    Args:
        lines: Raw document lines without line terminators.

    Returns:
        list[str]: Output lines, with runs of blank lines collapsed to one.
    """
    state = FormatterState()
    output: list[str] = []
    for raw_line in lines:
        state, emitted = advance(state, classify_line(raw_line))
        for line in emitted:
            _emit(output, line)
    return output


class Formatter(abc.ABC):
    """Strategy interface for formatting a whole document."""

    name: str

    @abc.abstractmethod
    def format_text(self, text: str) -> str:
        """Return the re-indented document."""

    def format(self, text: str) -> FormatResult:
        return FormatResult(original=text, formatted=self.format_text(text))


class RuleBasedFormatter(Formatter):
    """Classifies each line and applies the Kamailio spacing conventions.

    Route declarations and ``#!ifdef`` blocks are separated by blank lines,
    ``#!KAMAILIO`` is followed by one, and section banners are surrounded by
    them. Indentation is two spaces per nesting level.
    """

    name = "rules"

    def format_text(self, text: str) -> str:
        return _join(format_lines(split_document(text)))


class BraceCountingFormatter(Formatter):
    """Re-indents purely from brace characters.

    Comment lines never change the depth. Lines are joined and spaced first:
    ``route[X]`` followed by a line starting with ``{`` becomes ``route[X] {``,
    a bare ``}`` following a line that itself closes a block is pulled up onto it,
    ``){`` at the end of a line becomes ``) {`` and ``}else`` becomes ``} else``.
    """

    name = "braces"

    def format_text(self, text: str) -> str:
        output: list[str] = []
        depth = 0
        for line in join_lines(split_document(text)):
            if not line:
                output.append("")
                continue
            if is_comment(line):
                output.append(indent(depth, line))
                continue

            opens, closes, _ = count_braces(line)
            if line.startswith("}") and line.endswith("{"):
                output.append(indent(depth - 1, line))
            elif line.endswith(("}", "};")):
                depth = max(depth - max(closes - opens, 0), 0)
                output.append(indent(depth, line))
            elif line.endswith("{"):
                output.append(indent(depth, line))
                depth += max(opens - closes, 0)
            else:
                output.append(indent(depth, line))
        return _join(output)


def normalize_spacing(line: str) -> str:
    if is_comment(line):
        return line
    line = PAREN_BRACE_PATTERN.sub(") {", line)
    return CLOSE_ELSE_PATTERN.sub("} else", line)


def _closes_block(line: str) -> bool:
    if not line.endswith("}"):
        return False
    opens, closes, _ = count_braces(line)
    return line.startswith("}") or closes > opens


def join_lines(lines: Iterable[str]) -> list[str]:
    """Trim lines and merge split block headers and closing braces.

    Args:
        lines: Raw document lines.

    Returns:
        list[str]: Trimmed, spacing-normalized lines.

    Examples:
        join_lines(["route[A]", "{"])  # ["route[A] {"]
        join_lines(["  }", "}"])  # ["} }"]
    """
    joined: list[str] = []
    for raw_line in lines:
        line = normalize_spacing(raw_line.strip())
        previous = joined[-1] if joined else ""
        if previous and not is_comment(previous):
            if line.startswith("{") and previous.endswith("]"):
                joined[-1] = f"{previous} {line}"
                continue
            if line in ("}", "};") and _closes_block(previous):
                joined[-1] = f"{previous} {line}"
                continue
        joined.append(line)
    return joined


FORMATTERS: dict[str, type[Formatter]] = {
    RuleBasedFormatter.name: RuleBasedFormatter,
    BraceCountingFormatter.name: BraceCountingFormatter,
}


def get_formatter(name: str = RuleBasedFormatter.name) -> Formatter:
    """Instantiate a formatting strategy by name.

    Args:
        name: ``"rules"`` or ``"braces"``.

    Returns:
        Formatter: The selected strategy.

    Raises:
        ValueError: If `name` is not a known strategy.
    """
    try:
        return FORMATTERS[name]()
    except KeyError as error:
        choices = ", ".join(FORMATTERS)
        raise ValueError(f"Unknown strategy {name!r} (expected one of: {choices})") from error


def format_cfg(text: str, strategy: str = RuleBasedFormatter.name) -> FormatResult:
    """Format a Kamailio configuration document.

    Never fails on malformed structure: unmatched closers clamp the nesting
    depth at zero and formatting continues.

    Args:
        text: Full document text.
        strategy: Formatting strategy, ``"rules"`` (default) or ``"braces"``.

    Returns:
        FormatResult: The original text and the formatted text.

    Raises:
        ValueError: If `strategy` is unknown.

    Examples:
        format_cfg('route[A]{\\nxlog("x");\\n}\\n').formatted
        # '\\nroute[A]{\\n  xlog("x");\\n}\\n'
    """
    return get_formatter(strategy).format(text)
