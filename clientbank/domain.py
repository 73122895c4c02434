import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Any, Union
from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictFloat, field_serializer, field_validator

ClientID = Path(
    ...,
    min_length=1,
    max_length=64,
    description="Client identifier (1–64 chars)",
)

DEFAULT_ACCOUNT_NAME = "First Checking"

def q2(x: Decimal) -> Decimal:
    # deposits are unbounded; widen precision so the 2dp result always fits
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, x.adjusted() + 3)
        return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def as_number(x: Decimal) -> float:
    return float(q2(x))


class AccountType(str, Enum):
    CHECKING = "Checking"
    SAVINGS = "Savings"
    OTHER = "Other"


class Account(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    account_name: str = Field(..., alias="accountName", min_length=1)
    account_type: AccountType = Field(AccountType.CHECKING, alias="accountType", validate_default=True)
    balance: Decimal = Decimal("0")

    @field_validator("balance")
    @classmethod
    def _finite(cls, v: Decimal):
        if not v.is_finite():
            raise ValueError("balance must be a finite number")
        return v

    @field_serializer("balance", when_used="json")
    def _balance_as_number(self, v: Decimal) -> float:
        return as_number(v)


class Client(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    first_name: str = Field(..., alias="fname")
    last_name: str = Field(..., alias="lname")
    accounts: list[Account] = Field(default_factory=list)


def default_account() -> Account:
    return Account(account_name=DEFAULT_ACCOUNT_NAME, account_type=AccountType.CHECKING, balance=Decimal("0"))


# ---- store documents ----
def to_document(client: Client) -> dict[str, Any]:
    """Plain dict for the record store; balances kept as decimal strings."""
    doc = client.model_dump(by_alias=True)
    for account in doc["accounts"]:
        account["balance"] = str(account["balance"])
    return doc

def from_document(doc: dict[str, Any]) -> Client:
    return Client.model_validate(doc)


# ---- request bodies ----
class Money(BaseModel):
    amount: Union[StrictInt, StrictFloat] = Field(..., description="Non-negative numeric amount")

    @field_validator("amount")
    @classmethod
    def _non_negative(cls, v):
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("amount must be a finite number")
        if v < 0:
            raise ValueError("amount must be >= 0")
        return v

    def as_decimal(self) -> Decimal:
        return Decimal(str(self.amount))
