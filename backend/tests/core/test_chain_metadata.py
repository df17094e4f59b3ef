"""Ledger Metadata — decorative hash/block/gas value ranges."""

import random
import re
from decimal import Decimal

from crowdchain.core.chain_metadata import make_ledger_stamp, make_wallet_address


def test_ledger_stamp_ranges_hold_over_many_draws():
    rng = random.Random(42)
    for _ in range(500):
        stamp = make_ledger_stamp(rng)
        assert re.fullmatch(r"0x[0-9a-f]{64}", stamp.transaction_hash)
        assert 18_000_000 <= stamp.block_number < 19_000_000
        assert Decimal("0.001000") <= stamp.gas_used <= Decimal("0.011000")
        assert stamp.gas_used.as_tuple().exponent == -6


def test_seeded_rng_is_reproducible():
    assert make_ledger_stamp(random.Random(7)) == make_ledger_stamp(random.Random(7))


def test_wallet_address_shape():
    assert re.fullmatch(r"0x[0-9a-f]{40}", make_wallet_address(random.Random(1)))
