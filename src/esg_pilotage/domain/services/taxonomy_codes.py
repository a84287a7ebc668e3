# src/esg_pilotage/domain/services/taxonomy_codes.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Taxonomy code helpers.

Deterministic normalization of indicator codes and de-duplication of
assignment code lists.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_WHITESPACE = re.compile(r"\s+")


def normalize_indicator_code(raw: str) -> str:
    """Normalize a free-text indicator name or code.

    Leading/trailing whitespace is dropped, inner whitespace runs become a
    single underscore and the result is upper-cased:
    ``" co2  tons "`` → ``"CO2_TONS"``.

    Raises:
        ValueError: If nothing is left after trimming.
    """
    code = _WHITESPACE.sub("_", raw.strip()).upper()
    if not code:
        raise ValueError("Indicator code must not be blank.")
    return code


def dedupe_codes(codes: Iterable[str]) -> tuple[str, ...]:
    """Strip codes, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for code in codes:
        cleaned = code.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)
