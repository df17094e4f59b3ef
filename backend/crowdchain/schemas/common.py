"""Shared schema types — money and timestamps as they appear on the wire."""

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

from crowdchain.core.money import to_money

# Decimal in, "1234.50" out: floats never reach clients
Money = Annotated[
    Decimal, PlainSerializer(lambda v: f"{to_money(v):.2f}", return_type=str),
]

# Decorative gas figure, always six decimals
GasAmount = Annotated[
    Decimal, PlainSerializer(lambda v: f"{Decimal(str(v)):.6f}", return_type=str),
]
