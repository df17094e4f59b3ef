"""Money Parsing — strict currency amounts as 2-place Decimals.

Invariants:
    - Accepted format: digits with an optional 1–2 digit fraction (no sign, no exponent)
    - Parsed amounts are strictly positive and quantized to CENTS
    - Floats never participate in arithmetic

Design Decisions:
    - Regex gate before Decimal(): Decimal accepts "1e3", "NaN", "-0" — all invalid here
"""

import re
from decimal import Decimal, ROUND_HALF_UP

from crowdchain.core.domain_types import CENTS
from crowdchain.core.errors import InvalidAmountError

_AMOUNT_RE = re.compile(r"^\d+(?:\.\d{1,2})?$")


def parse_amount(raw: object) -> Decimal:
    """Parse user-supplied amount into a positive Decimal, or raise InvalidAmountError."""
    if isinstance(raw, bool) or raw is None:
        raise InvalidAmountError(raw)
    text = str(raw).strip()
    if not _AMOUNT_RE.match(text):
        raise InvalidAmountError(raw)
    amount = Decimal(text).quantize(CENTS)
    if amount <= 0:
        raise InvalidAmountError(raw)
    return amount


def to_money(value: object) -> Decimal:
    """Normalize a stored numeric (Decimal, int, str, None) to a 2-place Decimal."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def progress_percent(current: Decimal, goal: Decimal) -> int:
    """Funding progress rounded to the nearest whole percent."""
    if goal <= 0:
        return 0
    return int((current / goal * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
