# src/core/normalizer.py — v1
"""Text canonicalization for deduplication and cache keys.

Both functions are total: any input, including non-strings, yields a value
and never raises.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

DEFAULT_MIN_LENGTH = 2
DEFAULT_SYMBOLIC_MIN_LENGTH = 3

_WHITESPACE_RE = re.compile(r"\s+")
# Digits, punctuation, symbols and whitespace only (no letters).
_SYMBOLIC_RE = re.compile(r"^[\d\s\W_]+$")


def normalize(text: Any) -> str:
    """Return the canonical comparison key for ``text``.

    NFKC composition, lower-casing, whitespace runs collapsed to a single
    space, leading/trailing whitespace removed. Idempotent.
    """
    if not isinstance(text, str) or not text:
        return ""
    folded = unicodedata.normalize("NFKC", text).lower()
    # Lower-casing can decompose a few code points; compose again.
    folded = unicodedata.normalize("NFKC", folded)
    return _WHITESPACE_RE.sub(" ", folded).strip()


def is_analyzable(
    text: Any,
    min_length: int = DEFAULT_MIN_LENGTH,
    symbolic_min_length: int = DEFAULT_SYMBOLIC_MIN_LENGTH,
) -> bool:
    """Whether ``text`` carries enough prose to be worth analyzing.

    Rejects empty and whitespace-only text, text shorter than ``min_length``
    once normalized, and purely numeric/symbolic text shorter than
    ``symbolic_min_length`` (prices, counters, icon glyphs).
    """
    normalized = normalize(text)
    if not normalized or len(normalized) < min_length:
        return False
    if _SYMBOLIC_RE.match(normalized) and len(normalized) < symbolic_min_length:
        return False
    return True
