from pydantic import BaseModel, ConfigDict


class AccountBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    identity: str
    lamports: int
    sol: float


class AirdropRequest(BaseModel):
    lamports: int
