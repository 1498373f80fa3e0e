"""Structural validation of Kamailio configuration documents."""

from __future__ import annotations

import logging

from .classifier import directive_name, normalize_newlines
from .constants import ENDIF_DIRECTIVE, IF_DIRECTIVES
from .exceptions import (
    UnexpectedClosingBracketError,
    UnexpectedEndifError,
    UnmatchedStructureError,
    ValidationError,
)
from .models import ValidationCounters

logger = logging.getLogger(__name__)


def _scan_line(counters: ValidationCounters, line: str, line_number: int) -> None:
    if directive_name(line) in IF_DIRECTIVES:
        counters.preprocessor_block_count += 1
    elif line == ENDIF_DIRECTIVE:
        counters.preprocessor_block_count -= 1
        if counters.preprocessor_block_count < 0:
            raise UnexpectedEndifError(line_number)

    for character in line:
        if character == "{":
            counters.block_count += 1
        elif character == "}":
            counters.block_count -= 1
            if counters.block_count < 0:
                raise UnexpectedClosingBracketError(line_number)


def validate_cfg(text: str) -> None:
    """Check that braces and preprocessor conditionals are balanced.

    Every ``{`` and ``}`` on a line counts, wherever it appears. Validation
    stops at the first defect.

    Args:
        text: Full document text.

    Returns:
        None.

    Raises:
        UnexpectedEndifError: If ``#!endif`` closes a block that was never opened.
        UnexpectedClosingBracketError: If a ``}`` has no matching ``{``.
        UnmatchedStructureError: If braces or ``#!ifdef``/``#!ifndef`` blocks
            are still open at the end of the document.

    Examples:
        validate_cfg("#!ifdef WITH_NAT\\nroute[NAT] {\\n}\\n#!endif\\n")
    """
    counters = ValidationCounters()
    try:
        for line_number, raw_line in enumerate(normalize_newlines(text).split("\n"), start=1):
            _scan_line(counters, raw_line.strip(), line_number)

        if counters.block_count != 0:
            raise UnmatchedStructureError("brackets", counters.block_count)
        if counters.preprocessor_block_count != 0:
            raise UnmatchedStructureError("preprocessor", counters.preprocessor_block_count)
    except ValidationError as error:
        logger.debug("Validation failed: %s", error)
        raise
