"""Payment record definitions."""

import secrets
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

PAYMENT_SUCCESS = "Success"

_CENT = Decimal("0.01")


def to_minor_units(amount: Decimal | float | int | str) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(minor: int) -> float:
    return float((Decimal(minor) / 100).quantize(_CENT))


def minor_units_of(payment: dict) -> int:
    # Records written before amountMinor existed only carry the float amount.
    if payment.get("amountMinor") is not None:
        return int(payment["amountMinor"])
    return to_minor_units(payment.get("amount") or 0)


def total_amount(payments: list[dict]) -> float:
    return from_minor_units(sum(minor_units_of(payment) for payment in payments))


def generate_transaction_id(created_at: datetime) -> str:
    return f"TXN-{int(created_at.timestamp() * 1000)}-{secrets.token_hex(3).upper()}"
