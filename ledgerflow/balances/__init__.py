"""Balance aggregation and budget tracking."""

from ledgerflow.balances.aggregator import (
    account_balance,
    flattened_balances,
    income_expense_summary,
    is_balanced,
    own_balances,
    subtree_balance,
    subtree_balances,
    transaction_total,
)
from ledgerflow.balances.budget import budget_multiplier, budget_status

__all__ = [
    "account_balance",
    "budget_multiplier",
    "budget_status",
    "flattened_balances",
    "income_expense_summary",
    "is_balanced",
    "own_balances",
    "subtree_balance",
    "subtree_balances",
    "transaction_total",
]
