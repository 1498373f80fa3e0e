"""Constants used across the kamailio-cfg-formatter package."""

from __future__ import annotations

import re

INDENT_UNIT = "  "

# Preprocessor directives
DIRECTIVE_PREFIX = "#!"
DIALECT_DIRECTIVE = "#!KAMAILIO"
DEFINE_DIRECTIVE = "#!define"
IF_DIRECTIVES = ("#!ifdef", "#!ifndef")
ELSE_DIRECTIVE = "#!else"
ENDIF_DIRECTIVE = "#!endif"

BANNER_PATTERN = re.compile(r"^#{5,}")
COMMENT_PREFIXES = ("#", "//")
LISTEN_PATTERN = re.compile(r"^listen\s*=")
MODULE_PREFIXES = ("loadmodule", "modparam")
ROUTE_PREFIXES = (
    "route[",
    "failure_route[",
    "onreply_route[",
    "branch_route[",
    "event_route[",
)
# Route blocks declared without a name
ROUTE_WORDS = ("route", "request_route", "reply_route", "onreply_route", "onsend_route")

# A lone `=`, not part of `==`, `!=`, `<=`, `>=` or `=~`
ASSIGNMENT_PATTERN = re.compile(r"(?<![=!<>])=(?![=~])")

FUNCTION_PREFIXES = (
    "t_",
    "sl_",
    "xlog",
    "rtpengine_",
    "ds_",
    "append_hf",
    "remove_hf",
    "is_method",
    "record_route",
)
CONDITIONAL_PATTERN = re.compile(r"^(if\b|else\b)")
BODYLESS_CONDITIONAL_ENDINGS = ("{", "}", ";")

# Brace-counting strategy normalizations
PAREN_BRACE_PATTERN = re.compile(r"\)\{\s*$")
CLOSE_ELSE_PATTERN = re.compile(r"\}else\b")

CFG_EXTENSIONS = (".cfg", ".inc")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_LINE_LENGTH = 10_000
