"""
Allocation cost ("rent") for ledger records.

A new record must be funded with enough lamports to be rent-exempt. The cost
depends only on the record's stored size.
"""

LAMPORTS_PER_SOL = 1_000_000_000

ACCOUNT_STORAGE_OVERHEAD = 128
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2

DISCRIMINATOR_SIZE = 8
MAX_PLAN_NAME_BYTES = 200

# creator(32) + plan_id(8) + name(4 + 200) + price(8) + duration_days(4) + created_at(8)
PLAN_RECORD_SPACE = DISCRIMINATOR_SIZE + 32 + 8 + (4 + MAX_PLAN_NAME_BYTES) + 8 + 4 + 8
# subscriber(32) + creator(32) + plan_id(8) + created_at(8) + expires_at(8)
SUBSCRIPTION_RECORD_SPACE = DISCRIMINATOR_SIZE + 32 + 32 + 8 + 8 + 8


def minimum_balance(data_len: int) -> int:
    """Lamports needed to keep a record of `data_len` bytes rent-exempt."""
    return (ACCOUNT_STORAGE_OVERHEAD + data_len) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS


def plan_rent() -> int:
    return minimum_balance(PLAN_RECORD_SPACE)


def subscription_rent() -> int:
    return minimum_balance(SUBSCRIPTION_RECORD_SPACE)


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def sol_to_lamports(sol: float) -> int:
    # Round rather than truncate: 0.1 * 1e9 is 99999999.99... in binary float
    return int(round(sol * LAMPORTS_PER_SOL))
