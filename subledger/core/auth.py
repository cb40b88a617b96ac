"""
Signer extraction for ledger writes.

The wallet gateway in front of this service verifies transaction signatures
and forwards the signing identity in the X-Signer header.
"""
import logging
from typing import Optional

from fastapi import Header

from subledger.core.addressing import normalize_identity
from subledger.core.errors import UnauthorizedError

logger = logging.getLogger("subledger")


async def get_signer(
    x_signer: Optional[str] = Header(None, description="Identity that signed the transaction")
) -> str:
    """
    Return the identity authorizing the current call.

    Raises:
        UnauthorizedError: header missing or blank
    """
    if not x_signer or not x_signer.strip():
        raise UnauthorizedError("Missing X-Signer header")
    return normalize_identity(x_signer, "signer")
