"""Short display codes for the boarding pass."""

from __future__ import annotations
from tracking import t

import re
import unicodedata
from typing import Optional

from infrastructure.constants import (
    CPF_DIGITS,
    KNOWN_VENUE_CODES,
    PLACEHOLDER,
    VENUE_BRAND_PATTERN,
    VENUE_BRAND_PREFIX,
)

_KNOWN_VENUES = tuple((re.compile(pattern), code) for pattern, code in KNOWN_VENUE_CODES)
_BRAND = re.compile(VENUE_BRAND_PATTERN)


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value or "")
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_label(value: Optional[str]) -> str:
    """Accent-free, lowercase form used for pattern matching."""
    t('ticket.codes.normalize_label')
    return strip_accents(value or "").lower()


def derive_unit_code(label: Optional[str]) -> str:
    """
    Four-character venue code

    Known venues map to fixed codes (``MMAC``, ``MMAR``, ``MMSP``); other venues
    of the brand become ``MM`` + two letters of the last word; anything else is
    the first four letters of the label.
    """
    t('ticket.codes.derive_unit_code')
    normalized = normalize_label(label)
    if not normalized.strip():
        return PLACEHOLDER

    if _BRAND.search(normalized):
        for pattern, code in _KNOWN_VENUES:
            if pattern.search(normalized):
                return code
        tokens = re.findall(r"[a-z0-9]+", normalized)
        suffix = tokens[-1][:2].upper() if tokens else ""
        return f"{VENUE_BRAND_PREFIX}{suffix}"

    return re.sub(r"\s+", "", strip_accents(label or ""))[:4].upper()


def derive_area_acronym(label: Optional[str]) -> str:
    """Three-letter airport-style acronym for a seating area."""
    t('ticket.codes.derive_area_acronym')
    tokens = [tok for tok in re.split(r"[\s\-—]+", normalize_label(label)) if tok]
    if not tokens:
        return PLACEHOLDER
    if len(tokens) == 1:
        return tokens[0][:3].upper()
    letters = tokens[0][0] + tokens[1][0]
    if len(tokens) > 2:
        letters += tokens[2][0]
    return letters[:3].upper()


def mask_cpf(value: Optional[str]) -> str:
    """``NNN.***.***-NN`` for exactly 11 digits, the placeholder otherwise."""
    t('ticket.codes.mask_cpf')
    digits = "".join(c for c in str(value or "") if c.isdigit())
    if len(digits) != CPF_DIGITS:
        return PLACEHOLDER
    return f"{digits[:3]}.***.***-{digits[9:]}"


__all__ = ["normalize_label", "derive_unit_code", "derive_area_acronym", "mask_cpf"]
