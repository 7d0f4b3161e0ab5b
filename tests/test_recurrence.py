"""Tests for the recurrence engine."""

import itertools
import pytest
from datetime import date, datetime
from decimal import Decimal

from ledgerflow.errors import LedgerError
from ledgerflow.models import Frequency, RecurringTransaction, Split, Transaction
from ledgerflow.recurrence import (
    CatchUpPolicy,
    advance_due_rules,
    generate_id,
    next_due_date,
    unique_id,
)


def rule(rule_id="r1", frequency=Frequency.MONTHLY, due="2024-01-31", active=True):
    return RecurringTransaction(
        id=rule_id,
        frequency=frequency,
        next_due_date=due,
        payee="Landlord",
        description="Rent",
        splits=[
            Split(account_id="rent", amount=Decimal("1200")),
            Split(account_id="bank", amount=Decimal("-1200")),
        ],
        active=active,
    )


def counter_ids(prefix="gen"):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


class TestNextDueDate:
    """Tests for next_due_date."""

    def test_daily_and_weekly(self):
        """Test fixed-length periods."""
        assert next_due_date("2024-02-28", "daily") == date(2024, 2, 29)
        assert next_due_date(date(2024, 12, 28), Frequency.WEEKLY) == date(2025, 1, 4)

    def test_month_end_clamps(self):
        """Test Jan 31 monthly lands on the last day of February."""
        assert next_due_date("2024-01-31", "monthly") == date(2024, 2, 29)
        assert next_due_date("2023-01-31", "monthly") == date(2023, 2, 28)
        assert next_due_date("2024-03-31", "monthly") == date(2024, 4, 30)

    def test_leap_day_yearly(self):
        """Test Feb 29 yearly clamps to Feb 28."""
        assert next_due_date("2024-02-29", "yearly") == date(2025, 2, 28)

    def test_accepts_datetime(self):
        """Test a datetime is reduced to its date."""
        assert next_due_date(datetime(2024, 5, 1, 13, 0), "monthly") == date(2024, 6, 1)

    def test_unknown_frequency(self):
        """Test unknown frequencies are rejected."""
        with pytest.raises(ValueError):
            next_due_date("2024-01-01", "hourly")


class TestAdvanceDueRules:
    """Tests for advance_due_rules."""

    def test_due_rule_emits_one_transaction(self):
        """Test a due rule emits on its due date and advances."""
        result = advance_due_rules(
            [rule()], [], date(2024, 2, 10),
            now=1000, id_factory=counter_ids(),
        )

        assert len(result.new_transactions) == 1
        emitted = result.new_transactions[0]
        assert emitted.id == "gen1"
        assert emitted.date == date(2024, 1, 31)
        assert emitted.description == "Rent (Recurring)"
        assert emitted.payee == "Landlord"
        assert emitted.created_at == 1000
        assert [(s.account_id, s.amount) for s in emitted.splits] == [
            ("rent", Decimal("1200")), ("bank", Decimal("-1200")),
        ]

        advanced = result.updated_rules[0]
        assert advanced.last_run == date(2024, 1, 31)
        assert advanced.next_due_date == date(2024, 2, 29)
        assert result.emitted_by == {"gen1": "r1"}

    def test_input_rules_not_modified(self):
        """Test the engine returns new rule objects."""
        original = rule()
        advance_due_rules([original], [], "2024-02-10", now=0)
        assert original.next_due_date == date(2024, 1, 31)
        assert original.last_run is None

    def test_not_yet_due(self):
        """Test a future rule is returned unchanged."""
        future = rule(due="2024-03-01")
        result = advance_due_rules([future], [], "2024-02-29", now=0)
        assert result.new_transactions == []
        assert result.updated_rules == [future]

    def test_due_today(self):
        """Test a rule due today fires."""
        result = advance_due_rules([rule(due="2024-02-29")], [], "2024-02-29", now=0)
        assert len(result.new_transactions) == 1

    def test_inactive_rule_skipped(self):
        """Test inactive rules neither emit nor change."""
        paused = rule(active=False)
        result = advance_due_rules([paused], [], "2025-01-01", now=0)
        assert result.new_transactions == []
        assert result.updated_rules[0] == paused

    def test_second_run_same_day_is_idempotent(self):
        """Test running again with the merged output emits nothing."""
        today = date(2024, 2, 10)
        first = advance_due_rules([rule(), rule("r2", Frequency.DAILY, "2024-02-10")], [], today, now=0)
        assert len(first.new_transactions) == 2

        second = advance_due_rules(
            first.updated_rules, first.new_transactions, today, now=1,
        )
        assert second.new_transactions == []
        assert second.updated_rules == first.updated_rules

    def test_single_catch_up_by_default(self):
        """Test only one period is materialized after a long gap."""
        result = advance_due_rules(
            [rule(frequency=Frequency.WEEKLY, due="2024-01-01")], [], "2024-03-01", now=0,
        )
        assert len(result.new_transactions) == 1
        assert result.updated_rules[0].next_due_date == date(2024, 1, 8)

    def test_catch_up_all(self):
        """Test the all policy emits every elapsed period."""
        result = advance_due_rules(
            [rule(frequency=Frequency.WEEKLY, due="2024-01-01")], [], "2024-01-29",
            now=500, catch_up=CatchUpPolicy.ALL,
        )
        assert [t.date for t in result.new_transactions] == [
            date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15),
            date(2024, 1, 22), date(2024, 1, 29),
        ]
        assert [t.created_at for t in result.new_transactions] == [500, 501, 502, 503, 504]
        assert result.updated_rules[0].last_run == date(2024, 1, 29)
        assert result.updated_rules[0].next_due_date == date(2024, 2, 5)

    def test_catch_up_all_by_name(self):
        """Test the policy can be given as a string."""
        result = advance_due_rules(
            [rule(frequency=Frequency.DAILY, due="2024-01-01")], [], "2024-01-03",
            now=0, catch_up="all",
        )
        assert len(result.new_transactions) == 3

    def test_created_at_increases_across_rules(self):
        """Test each emission in a run gets a distinct timestamp."""
        result = advance_due_rules(
            [rule("r1"), rule("r2")], [], "2024-02-01", now=100,
        )
        assert [t.created_at for t in result.new_transactions] == [100, 101]

    def test_ids_avoid_existing_transactions(self):
        """Test generated ids skip ids already in use."""
        existing = [Transaction(id="gen1", date="2024-01-01", created_at=0)]
        result = advance_due_rules(
            [rule()], existing, "2024-02-01", now=0, id_factory=counter_ids(),
        )
        assert result.new_transactions[0].id == "gen2"

    def test_id_factory_exhausted(self):
        """Test a factory that only repeats taken ids raises."""
        existing = [Transaction(id="same", date="2024-01-01", created_at=0)]
        with pytest.raises(LedgerError):
            advance_due_rules([rule()], existing, "2024-02-01", now=0, id_factory=lambda: "same")

    def test_custom_marker(self):
        """Test the description suffix can be overridden."""
        result = advance_due_rules([rule()], [], "2024-02-01", now=0, marker=" [auto]")
        assert result.new_transactions[0].description == "Rent [auto]"

    def test_generate_id(self):
        """Test default ids are short and distinct."""
        ids = {generate_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(i) == 9 for i in ids)


class TestUniqueId:
    """Tests for unique_id."""

    def test_records_accepted_id(self):
        """Test the accepted id is added to the taken set."""
        ids = iter(["a", "b", "c"])
        taken = {"a"}
        assert unique_id(lambda: next(ids), taken) == "b"
        assert unique_id(lambda: next(ids), taken) == "c"
        assert taken == {"a", "b", "c"}

    def test_gives_up_on_exhausted_factory(self):
        """Test a factory that only repeats taken ids raises."""
        with pytest.raises(LedgerError):
            unique_id(lambda: "a", {"a"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
