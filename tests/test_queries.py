"""Tests for transaction queries."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerflow.models import Split, Transaction
from ledgerflow.queries import (
    DateRangeOption,
    date_range_start,
    filter_by_date_range,
    filter_transactions,
    known_payees,
    last_description_for_payee,
    transactions_for_accounts,
)


def tx(tx_id, on, payee=None, description=None, created_at=0, accounts=("a", "b")):
    return Transaction(
        id=tx_id,
        date=on,
        payee=payee,
        description=description,
        created_at=created_at,
        splits=[
            Split(account_id=accounts[0], amount=Decimal("1")),
            Split(account_id=accounts[1], amount=Decimal("-1")),
        ],
    )


LEDGER = [
    tx("t1", "2024-01-15", payee="Corner Shop", description="bread", created_at=1),
    tx("t2", "2024-02-01", payee="Gas Co", created_at=2, accounts=("gas", "bank")),
    tx("t3", "2024-02-20", payee="corner shop", description="milk", created_at=3),
    tx("t4", "2024-03-01", created_at=4),
]


class TestFilters:
    """Tests for date and payee filters."""

    def test_inclusive_window(self):
        """Test both ends of the window are included."""
        result = filter_transactions(LEDGER, date(2024, 2, 1), date(2024, 3, 1))
        assert [t.id for t in result] == ["t2", "t3", "t4"]

    def test_payee_substring_case_insensitive(self):
        """Test payee matching ignores case."""
        result = filter_transactions(LEDGER, date(2024, 1, 1), date(2024, 12, 31), payee="CORNER")
        assert [t.id for t in result] == ["t1", "t3"]

    def test_month_to_date(self):
        """Test MTD starts on the first of the month."""
        assert date_range_start("MTD", date(2024, 2, 20)) == date(2024, 2, 1)

    def test_relative_ranges(self):
        """Test month-based ranges clamp at month end."""
        today = date(2024, 3, 31)
        assert date_range_start(DateRangeOption.ONE_MONTH, today) == date(2024, 2, 29)
        assert date_range_start("1Y", today) == date(2023, 3, 31)

    def test_filter_by_date_range(self):
        """Test preset windows end on today."""
        result = filter_by_date_range(LEDGER, "1M", date(2024, 2, 20))
        assert [t.id for t in result] == ["t2", "t3"]

    def test_transactions_for_accounts(self):
        """Test filtering on any split account."""
        result = transactions_for_accounts(LEDGER, {"gas"})
        assert [t.id for t in result] == ["t2"]


class TestPayees:
    """Tests for payee helpers."""

    def test_known_payees(self):
        """Test distinct payees are sorted and blanks dropped."""
        assert known_payees(LEDGER) == ["Corner Shop", "Gas Co", "corner shop"]

    def test_last_description(self):
        """Test the latest created transaction supplies the description."""
        ledger = LEDGER + [tx("t5", "2023-12-01", payee="Corner Shop", description="eggs", created_at=9)]
        assert last_description_for_payee(ledger, "Corner Shop") == "eggs"
        assert last_description_for_payee(LEDGER, "Nobody") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
