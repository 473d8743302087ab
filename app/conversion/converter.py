"""Fixed-rate BGN ⇄ EUR conversion (1 EUR = 1.95583 BGN)."""
from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.core.errors import InvalidInput

BGN_PER_EUR = 1.95583
SUPPORTED_CURRENCIES = ("BGN", "EUR")


@dataclass(frozen=True)
class Conversion:
    rate: float
    amount: float
    from_currency: str
    bgn: float
    eur: float


def round2(value: float) -> float:
    """Round half away from zero to two decimals (2.675 -> 2.68)."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def parse_amount(raw: str | float | None) -> float:
    try:
        amount = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidInput("Invalid amount") from None
    if not math.isfinite(amount):
        raise InvalidInput("Invalid amount")
    return amount


def convert(amount: float, from_currency: str = "BGN", rate: float = BGN_PER_EUR) -> Conversion:
    currency = (from_currency or "BGN").strip().upper()
    if not math.isfinite(amount):
        raise InvalidInput("Invalid amount")
    if currency not in SUPPORTED_CURRENCIES:
        raise InvalidInput("from must be BGN or EUR")

    if currency == "BGN":
        bgn, eur = amount, amount / rate
    else:
        bgn, eur = amount * rate, amount

    return Conversion(rate=rate, amount=amount, from_currency=currency, bgn=round2(bgn), eur=round2(eur))
