"""Deterministic record addresses.

An address is the SHA-256 of a domain tag, the record's key seeds, the
ledger's PROGRAM_ID and a fixed marker. Two creations with the same key land
on the same address, which is what makes "at most one record per key"
enforceable by the storage primary key.
"""

import hashlib
from typing import Optional

from subledger.core.config import settings
from subledger.core.errors import InvalidArgumentError

PDA_MARKER = b"ProgramDerivedAddress"
PLAN_SEED = b"creator"
SUBSCRIPTION_SEED = b"subscription"

U64_MAX = 2 ** 64 - 1
U32_MAX = 2 ** 32 - 1
I64_MAX = 2 ** 63 - 1
MAX_IDENTITY_LENGTH = 100


def normalize_identity(identity: str, field: str = "identity") -> str:
    value = str(identity or "").strip()
    if not value:
        raise InvalidArgumentError(f"{field} must not be empty", code="invalid_identity")
    if len(value) > MAX_IDENTITY_LENGTH:
        raise InvalidArgumentError(
            f"{field} exceeds maximum length ({MAX_IDENTITY_LENGTH} characters)",
            code="invalid_identity",
        )
    return value


def u64_le(value: int, field: str = "value") -> bytes:
    """Little-endian 8-byte encoding; rejects anything outside u64."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{field} must be an integer", code="out_of_range")
    if value < 0 or value > U64_MAX:
        raise InvalidArgumentError(f"{field} must fit in an unsigned 64-bit integer", code="out_of_range")
    return value.to_bytes(8, "little")


def _identity_seed(identity: str) -> bytes:
    # Length-prefixed so ("ab", "c") and ("a", "bc") never share an address
    raw = identity.encode("utf-8")
    return len(raw).to_bytes(1, "little") + raw


def derive_address(*seeds: bytes, program_id: Optional[str] = None) -> str:
    digest = hashlib.sha256()
    for seed in seeds:
        digest.update(seed)
    digest.update((program_id or settings.PROGRAM_ID).encode("utf-8"))
    digest.update(PDA_MARKER)
    return digest.hexdigest()


def plan_address(creator: str, plan_id: int, program_id: Optional[str] = None) -> str:
    creator = normalize_identity(creator, "creator")
    return derive_address(
        PLAN_SEED,
        _identity_seed(creator),
        u64_le(plan_id, "plan_id"),
        program_id=program_id,
    )


def subscription_address(subscriber: str, creator: str, program_id: Optional[str] = None) -> str:
    subscriber = normalize_identity(subscriber, "subscriber")
    creator = normalize_identity(creator, "creator")
    return derive_address(
        SUBSCRIPTION_SEED,
        _identity_seed(subscriber),
        _identity_seed(creator),
        program_id=program_id,
    )
