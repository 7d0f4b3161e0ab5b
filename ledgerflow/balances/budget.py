"""Budget targets scaled to a reporting window."""

from datetime import date
from decimal import Decimal
from typing import Iterable

from ledgerflow.models.ledger import Account, BudgetStatus, FlattenedAccountBalance


def budget_multiplier(start: date, end: date) -> float:
    """
    How many monthly budgets fit in the window.

    A 30-day month is assumed; the result never drops below 0.1.
    """
    days = abs((end - start).days)
    return max(0.1, days / 30)


def budget_status(
    accounts: Iterable[Account],
    balances: Iterable[FlattenedAccountBalance],
    multiplier: float = 1.0,
) -> list[BudgetStatus]:
    """Actual versus scaled budget for every account with a positive budget."""
    by_id = {balance.id: balance.balance for balance in balances}
    factor = Decimal(str(multiplier))
    result = []

    for account in accounts:
        if account.budget is None or account.budget <= 0:
            continue
        actual = by_id.get(account.id, Decimal("0"))
        budget = account.budget * factor
        percent = float(actual / budget * 100) if budget > 0 else 0.0
        result.append(BudgetStatus(
            id=account.id,
            name=account.name,
            actual=actual,
            budget=budget,
            percent_used=min(100.0, max(0.0, percent)),
            over_budget=actual > budget,
        ))

    return result
