"""
Account API routes.

- GET  /v1/accounts/{identity}/balance
- POST /v1/accounts/{identity}/airdrop (dev faucet, see AIRDROP_ENABLED)
"""
from fastapi import APIRouter, Depends

from subledger.core.clock import Clock, get_clock
from subledger.features.accounts.balance import airdrop, get_balance
from subledger.models.account import AirdropRequest

router = APIRouter(prefix="/v1/accounts", tags=["accounts"])


@router.get("/{identity}/balance")
def get_balance_endpoint(identity: str):
    return {"data": get_balance(identity).model_dump()}


@router.post("/{identity}/airdrop")
def airdrop_endpoint(identity: str, request: AirdropRequest, clock: Clock = Depends(get_clock)):
    return {"data": airdrop(identity, request.lamports, clock=clock).model_dump()}
