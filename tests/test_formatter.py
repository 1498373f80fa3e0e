from __future__ import annotations

import pytest

from kamailio_cfg_formatter.classifier import classify_line
from kamailio_cfg_formatter.formatter import (
    BraceCountingFormatter,
    RuleBasedFormatter,
    advance,
    format_cfg,
    format_lines,
    get_formatter,
)
from kamailio_cfg_formatter.models import FormatterState

SAMPLE_CFG = """#!KAMAILIO
#!define WITH_MYSQL
####### Global Parameters #########
debug=2
    listen=udp:0.0.0.0:5060
#!ifdef WITH_MYSQL
loadmodule "db_mysql.so"
#!else
loadmodule "db_text.so"
#!endif
request_route {
# per request initial checks
route(REQINIT);
if (is_method("INVITE")) {
record_route();
} else {
xlog("L_INFO", "other");
}
if (!t_relay())
sl_reply_error();
exit;
}
route[REQINIT] {
        if (!mf_process_maxfwd_header("10")) {
  sl_send_reply("483","Too Many Hops");
exit;
}
}
"""

EXPECTED_CFG = """#!KAMAILIO

#!define WITH_MYSQL

####### Global Parameters #########

debug=2
listen=udp:0.0.0.0:5060

#!ifdef WITH_MYSQL
  loadmodule "db_mysql.so"
#!else
  loadmodule "db_text.so"
#!endif

request_route {
  # per request initial checks
  route(REQINIT);
  if (is_method("INVITE")) {
    record_route();
  } else {
    xlog("L_INFO", "other");
  }
  if (!t_relay())
    sl_reply_error();
  exit;
}

route[REQINIT] {
  if (!mf_process_maxfwd_header("10")) {
    sl_send_reply("483","Too Many Hops");
    exit;
  }
}
"""


def test_dialect_marker_is_followed_by_blank_line():
    result = format_cfg('#!KAMAILIO\nloadmodule "a.so"\n')

    assert result.formatted.startswith('#!KAMAILIO\n\nloadmodule "a.so"\n')


def test_route_is_separated_and_body_indented():
    result = format_cfg('route[A]{\nxlog("x");\n}\n')

    assert result.formatted == '\nroute[A]{\n  xlog("x");\n}\n'


def test_unmatched_closer_does_not_raise():
    result = format_cfg("{\n}\n}\n")

    assert result.formatted == "{\n}\n}\n"


def test_preprocessor_block_is_indented_and_spaced():
    result = format_cfg("#!ifdef X\na=1\n#!endif\n")

    assert result.formatted == "\n#!ifdef X\n  a=1\n#!endif\n\n"


def test_full_document():
    assert format_cfg(SAMPLE_CFG).formatted == EXPECTED_CFG


def test_full_document_is_stable():
    assert format_cfg(EXPECTED_CFG).formatted == EXPECTED_CFG


def test_result_keeps_original_text():
    result = format_cfg(SAMPLE_CFG)

    assert result.original is SAMPLE_CFG
    assert result.changed is True


def test_blank_line_runs_collapse():
    assert format_cfg("a=1\n\n\n\nb=2\n").formatted == "a=1\n\nb=2\n"


def test_route_collapses_existing_blank_lines():
    result = format_cfg("a=1\n\n\n\nroute[X] {\n}\n")

    assert result.formatted == "a=1\n\nroute[X] {\n}\n"


def test_banner_surrounded_by_single_blank_lines():
    result = format_cfg("a=1\n######\n\n\nb=2")

    assert result.formatted == "a=1\n\n######\n\nb=2\n"


def test_listen_is_never_indented():
    assert format_cfg("{\n  listen=udp:1.2.3.4\n}").formatted == "{\nlisten=udp:1.2.3.4\n}\n"


def test_define_is_emitted_unchanged_inside_ifdef():
    result = format_cfg("#!ifdef A\n  #!define B\n#!endif")

    assert result.formatted == "\n#!ifdef A\n#!define B\n#!endif\n\n"


def test_top_level_comment_is_not_indented():
    assert format_cfg("    # hello\n").formatted == "# hello\n"


def test_ifdef_inside_route_nests_with_blocks():
    result = format_cfg("route[A] {\n#!ifdef NAT\nroute(NATMANAGE);\n#!endif\nexit;\n}")

    assert result.formatted == (
        "\nroute[A] {\n\n  #!ifdef NAT\n    route(NATMANAGE);\n  #!endif\n\n  exit;\n}\n"
    )


def test_braceless_conditional_indents_next_statement_only():
    result = format_cfg("route[A] {\nif (x)\nexit;\nxlog(\"y\");\n}")

    assert result.formatted == '\nroute[A] {\n  if (x)\n    exit;\n  xlog("y");\n}\n'


def test_braceless_conditional_with_brace_on_next_line():
    result = format_cfg("route[A] {\nif ($rU == $null)\n{\nexit;\n}\n}")

    assert result.formatted == "\nroute[A] {\n  if ($rU == $null)\n  {\n    exit;\n  }\n}\n"


def test_single_line_conditional_does_not_indent():
    result = format_cfg("route[A] {\nif (x) exit;\nexit;\n}")

    assert result.formatted == "\nroute[A] {\n  if (x) exit;\n  exit;\n}\n"


def test_balanced_brace_line_keeps_depth():
    result = format_cfg('route[A] {\nif (x) { exit; }\n$var(n) = $(ru{s.len});\nxlog("y");\n}')

    assert result.formatted == (
        '\nroute[A] {\n  if (x) { exit; }\n  $var(n) = $(ru{s.len});\n  xlog("y");\n}\n'
    )


def test_braces_in_trailing_comment_keep_depth():
    result = format_cfg("route {\nexit; # }\ny;\n}")

    assert result.formatted == "\nroute {\n  exit; # }\n  y;\n}\n"


def test_closing_brace_after_statement_dedents_line():
    assert format_cfg("route {\nexit; }\nx;").formatted == "\nroute {\nexit; }\nx;\n"


def test_windows_line_endings_are_normalized():
    result = format_cfg("route[A] {\r\nexit;\r\n}\r\n")

    assert result.formatted == "\nroute[A] {\n  exit;\n}\n"


@pytest.mark.parametrize("text", ["", "\n\n", "  \t \n"])
def test_blank_document_formats_to_empty_text(text: str):
    assert format_cfg(text).formatted == ""


def test_extra_closers_clamp_depth():
    assert format_cfg("}\n}\nx;\nroute {\ny;\n}").formatted == "}\n}\nx;\n\nroute {\n  y;\n}\n"


def test_stray_else_directive_does_not_raise():
    assert format_cfg("#!else\nx;").formatted == "#!else\n  x;\n"


def test_advance_is_pure():
    state = FormatterState()

    new_state, emitted = advance(state, classify_line("route[A] {"))

    assert state == FormatterState()
    assert new_state == FormatterState(depth=1)
    assert emitted == ["", "route[A] {"]


def test_advance_else_directive_keeps_parent_level():
    state = FormatterState(depth=2, in_preprocessor_block=True)

    new_state, emitted = advance(state, classify_line("#!else"))

    assert new_state == state
    assert emitted == ["  #!else"]


def test_advance_endif_clears_preprocessor_flag():
    state = FormatterState(depth=1, in_preprocessor_block=True)

    new_state, emitted = advance(state, classify_line("#!endif"))

    assert new_state == FormatterState()
    assert emitted == ["#!endif", ""]


def test_advance_close_reopen_restores_depth():
    new_state, emitted = advance(FormatterState(depth=2), classify_line("} else {"))

    assert new_state.depth == 2
    assert emitted == ["  } else {"]


def test_format_lines_collapses_blank_lines():
    assert format_lines(["a=1", "", "", "#!KAMAILIO", "", "b=2"]) == [
        "a=1",
        "",
        "#!KAMAILIO",
        "",
        "b=2",
    ]


def test_get_formatter_returns_strategies():
    assert isinstance(get_formatter(), RuleBasedFormatter)
    assert isinstance(get_formatter("rules"), RuleBasedFormatter)
    assert isinstance(get_formatter("braces"), BraceCountingFormatter)


def test_get_formatter_rejects_unknown_strategy():
    with pytest.raises(ValueError, match="Unknown strategy"):
        get_formatter("tabs")


def test_format_cfg_with_brace_strategy():
    result = format_cfg('route[A]\n{\nxlog("x");\n}\n', strategy="braces")

    assert result.formatted == 'route[A] {\n  xlog("x");\n}\n'
