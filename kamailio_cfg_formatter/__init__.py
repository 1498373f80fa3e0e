"""
kamailio-cfg-formatter: re-indentation and structure checks for Kamailio
configuration files.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    kamailio-cfg-formatter kamailio.cfg

Library Usage:
    from pathlib import Path
    from kamailio_cfg_formatter import format_cfg, validate_cfg

    content = Path("kamailio.cfg").read_text()
    validate_cfg(content)
    formatted = format_cfg(content).formatted
"""

from .classifier import classify_line
from .exceptions import (
    LineTooLongError,
    UnexpectedClosingBracketError,
    UnexpectedEndifError,
    UnmatchedStructureError,
    ValidationError,
)
from .formatter import (
    BraceCountingFormatter,
    Formatter,
    RuleBasedFormatter,
    advance,
    format_cfg,
    get_formatter,
)
from .models import (
    ClassifiedLine,
    FormatResult,
    FormatterState,
    LineKind,
    ValidationCounters,
    ValidationErrorKind,
)
from .validator import validate_cfg

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "format_cfg",
    "validate_cfg",
    "classify_line",
    "advance",
    # Strategies
    "Formatter",
    "RuleBasedFormatter",
    "BraceCountingFormatter",
    "get_formatter",
    # Data models
    "ClassifiedLine",
    "FormatResult",
    "FormatterState",
    "LineKind",
    "ValidationCounters",
    "ValidationErrorKind",
    # Exceptions
    "LineTooLongError",
    "UnexpectedClosingBracketError",
    "UnexpectedEndifError",
    "UnmatchedStructureError",
    "ValidationError",
    # Version
    "__version__",
]
