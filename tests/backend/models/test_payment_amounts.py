from datetime import datetime, timezone
from decimal import Decimal

import pytest

from backend.models.payment import from_minor_units, generate_transaction_id, to_minor_units, total_amount


@pytest.mark.parametrize(
    ('amount', 'minor'),
    [(Decimal('10.25'), 1025), (0.1, 10), (5000, 500000), ('19.99', 1999), (0.005, 1)],
)
def test_to_minor_units(amount, minor: int) -> None:
    assert to_minor_units(amount) == minor


def test_total_amount_is_exact_for_decimal_fractions() -> None:
    payments = [{'amountMinor': 10}, {'amountMinor': 20}, {'amountMinor': 70}]

    assert total_amount(payments) == 1.0


def test_total_amount_falls_back_to_float_amount() -> None:
    assert total_amount([{'amount': 0.1}, {'amount': 0.2}, {'amountMinor': 5}]) == 0.35


def test_from_minor_units_rounds_to_cents() -> None:
    assert from_minor_units(123456) == 1234.56


def test_transaction_id_is_derived_from_creation_time() -> None:
    created_at = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    transaction_id = generate_transaction_id(created_at)

    assert transaction_id.startswith(f'TXN-{int(created_at.timestamp() * 1000)}-')
    assert transaction_id != generate_transaction_id(created_at)
