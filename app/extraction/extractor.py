"""Amount extraction from recognized price-tag / receipt text.

Scans free text for number tokens, canonicalizes each one, drops values that
cannot be a price, and ranks the rest so that well-formed two-decimal prices
in a typical retail range come first.

Score per candidate:
    2 × (normalized string ends in 1–2 fractional digits)
  + 2 × (0.20 <= value <= 5000)
  + min(len(normalized), 10) / 10

Ties are broken by the larger value.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.extraction.normalizer import normalize_number_token

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Candidate:
    value: Decimal
    normalized: str
    score: float


@dataclass(frozen=True)
class AmountExtraction:
    candidates: list[Candidate] = field(default_factory=list)

    @property
    def best(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------

# digit, up to 15 digits/separators/whitespace, digit
NUMBER_TOKEN_RE = re.compile(r"[0-9][0-9.,\s]{0,15}[0-9]")
_FRACTION_RE = re.compile(r"\.\d{1,2}$")

MAX_CANDIDATES = 8
MIN_VALUE = Decimal("0")
MAX_VALUE = Decimal("100000")
TYPICAL_MIN = Decimal("0.20")
TYPICAL_MAX = Decimal("5000")
_CENT = Decimal("0.01")


def _parse_decimal(value: str) -> Decimal | None:
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def score_candidate(value: Decimal, normalized: str) -> float:
    has_decimals = 1 if _FRACTION_RE.search(normalized) else 0
    in_typical_range = 1 if TYPICAL_MIN <= value <= TYPICAL_MAX else 0
    token_len = min(len(normalized), 10) / 10
    return has_decimals * 2 + in_typical_range * 2 + token_len


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class AmountExtractor:
    def __init__(self, limit: int = MAX_CANDIDATES) -> None:
        self._limit = limit

    def extract(self, text: str | None) -> AmountExtraction:
        seen: set[Decimal] = set()
        candidates: list[Candidate] = []

        for token in NUMBER_TOKEN_RE.findall(text or ""):
            normalized = normalize_number_token(token)
            if not normalized:
                continue

            value = _parse_decimal(normalized)
            if value is None or not (MIN_VALUE < value < MAX_VALUE):
                continue

            # First occurrence wins; "1" repeated across a receipt is noise
            key = value.quantize(_CENT, rounding=ROUND_HALF_UP)
            if key in seen:
                continue
            seen.add(key)

            candidates.append(
                Candidate(value=value, normalized=normalized, score=score_candidate(value, normalized))
            )

        candidates.sort(key=lambda c: (c.score, c.value), reverse=True)
        ranked = candidates[: self._limit]

        logger.debug(
            "amounts_extracted",
            extra={"candidate_count": len(ranked), "best": ranked[0].normalized if ranked else None},
        )
        return AmountExtraction(candidates=ranked)


def extract_amounts(text: str | None, limit: int = MAX_CANDIDATES) -> AmountExtraction:
    return AmountExtractor(limit=limit).extract(text)
