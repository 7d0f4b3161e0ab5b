"""Starter chart of accounts for a new ledger."""

from decimal import Decimal

from ledgerflow.models.ledger import Account, AccountType


def default_accounts() -> list[Account]:
    """Five typed roots plus a few common children, as fresh objects."""
    return [
        Account(id="root_assets", name="Assets", type=AccountType.ASSET),
        Account(id="root_liabilities", name="Liabilities", type=AccountType.LIABILITY),
        Account(id="root_income", name="Income", type=AccountType.INCOME),
        Account(id="root_expenses", name="Expenses", type=AccountType.EXPENSE),
        Account(id="root_equity", name="Equity/Starting Balance", type=AccountType.EQUITY),
        Account(
            id="acc_checking", parent_id="root_assets",
            name="Checking Account", type=AccountType.ASSET,
        ),
        Account(
            id="acc_food", parent_id="root_expenses",
            name="Food", type=AccountType.EXPENSE, budget=Decimal("500"),
        ),
        Account(
            id="acc_grocery", parent_id="acc_food",
            name="Grocery", type=AccountType.EXPENSE, budget=Decimal("300"),
        ),
        Account(
            id="acc_treat", parent_id="acc_food",
            name="Treats", type=AccountType.EXPENSE, budget=Decimal("100"),
        ),
        Account(
            id="acc_activity", parent_id="root_expenses",
            name="Activity", type=AccountType.EXPENSE, budget=Decimal("200"),
        ),
        Account(
            id="acc_bills", parent_id="root_expenses",
            name="Bills", type=AccountType.EXPENSE,
        ),
        Account(
            id="acc_transport", parent_id="root_expenses",
            name="Transportation", type=AccountType.EXPENSE,
        ),
    ]
