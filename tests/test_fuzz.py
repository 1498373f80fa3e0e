from __future__ import annotations

import os

import pytest

from kamailio_cfg_formatter import ValidationError, format_cfg, validate_cfg

atheris = pytest.importorskip("atheris")

FRAGMENTS = ("{", "}", "#!ifdef X", "#!endif", "#!else", "route[A]", "if (a)", '"}"', "\n", "\r\n")


def _fuzzed_document(provider) -> str:
    parts: list[str] = []
    while provider.remaining_bytes() > 0 and len(parts) < 64:
        if provider.ConsumeBool():
            parts.append(FRAGMENTS[provider.ConsumeIntInRange(0, len(FRAGMENTS) - 1)])
        else:
            parts.append(provider.ConsumeUnicodeNoSurrogates(16))
    return "".join(parts)


def test_format_cfg_with_fuzzed_input():
    provider = atheris.FuzzedDataProvider(os.urandom(4096))

    for _ in range(32):
        if provider.remaining_bytes() == 0:
            break
        text = _fuzzed_document(provider)
        for strategy in ("rules", "braces"):
            result = format_cfg(text, strategy)
            assert format_cfg(result.formatted, strategy).formatted == result.formatted


def test_validate_cfg_with_fuzzed_input():
    provider = atheris.FuzzedDataProvider(os.urandom(4096))
    exercised = 0

    while provider.remaining_bytes() > 0 and exercised < 32:
        text = _fuzzed_document(provider)
        try:
            validate_cfg(text)
        except ValidationError as error:
            assert error.kind is not None
        exercised += 1

    assert exercised
