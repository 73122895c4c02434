from decimal import Decimal

import pytest
from pydantic import ValidationError

from clientbank.domain import Account, Money, as_number, q2


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1.005", "1.01"),
        ("0", "0.00"),
        ("1E+27", "1000000000000000000000000000.00"),
        ("123456789012345678901234567890.125", "123456789012345678901234567890.13"),
    ],
)
def test_q2_rounds_half_up_at_any_magnitude(value, expected):
    assert q2(Decimal(value)) == Decimal(expected)
    assert str(q2(Decimal(value))) == expected


def test_as_number_for_huge_balance():
    assert as_number(Decimal("1E+30")) == 1e30


@pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan")])
def test_money_rejects_non_finite(amount):
    with pytest.raises(ValidationError):
        Money(amount=amount)


@pytest.mark.parametrize("balance", ["Infinity", "NaN", float("inf")])
def test_account_rejects_non_finite_balance(balance):
    with pytest.raises(ValidationError):
        Account(account_name="Vault", balance=balance)
