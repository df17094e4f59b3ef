"""Decorative Ledger Metadata — display-only hash, block and gas values.

Invariants:
    - transaction hash: "0x" + 64 lowercase hex chars
    - wallet address:   "0x" + 40 lowercase hex chars
    - block number in [18_000_000, 19_000_000)
    - gas used in [0.001000, 0.011000], 6 decimal places
    - Values carry no correctness semantics; nothing reads them back

Design Decisions:
    - Injectable random.Random: tests pass a seeded instance for stable output
"""

import random
from dataclasses import dataclass
from decimal import Decimal

_BLOCK_BASE = 18_000_000
_BLOCK_SPAN = 1_000_000
_GAS_QUANT = Decimal("0.000001")


@dataclass(frozen=True)
class LedgerStamp:
    transaction_hash: str
    block_number: int
    gas_used: Decimal


def _hex(rng: random.Random, length: int) -> str:
    return f"{rng.getrandbits(length * 4):0{length}x}"


def make_ledger_stamp(rng: random.Random | None = None) -> LedgerStamp:
    """Generate the hash/block/gas triple attached to every transaction."""
    rng = rng or random.Random()  # nosec B311: display only
    gas = Decimal(str(rng.uniform(0.001, 0.011))).quantize(_GAS_QUANT)
    return LedgerStamp(
        transaction_hash="0x" + _hex(rng, 64),
        block_number=_BLOCK_BASE + rng.randrange(_BLOCK_SPAN),
        gas_used=gas,
    )


def make_wallet_address(rng: random.Random | None = None) -> str:
    rng = rng or random.Random()  # nosec B311
    return "0x" + _hex(rng, 40)
