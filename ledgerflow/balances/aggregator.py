"""
Balance Aggregator

Per-account and per-subtree balances over a set of transactions.

Subtree totals come from one scan of all splits plus one bottom-up pass over
the account forest. Signs are left as recorded: liability and income
subtrees are normally negative, and flipping them for display is up to the
caller.

is_balanced falls back to ``LEDGERFLOW_BALANCE_TOLERANCE`` when no tolerance
is given.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from ledgerflow.accounts.tree import build_tree, get_descendant_ids
from ledgerflow.audit import get_logger
from ledgerflow.config import get_settings
from ledgerflow.models.ledger import (
    Account,
    AccountType,
    FlattenedAccountBalance,
    PeriodSummary,
    Transaction,
)


logger = get_logger(__name__)

ZERO = Decimal("0")


def own_balances(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum split amounts per account id, ignoring the hierarchy."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for tx in transactions:
        for split in tx.splits:
            totals[split.account_id] += split.amount
    return dict(totals)


def account_balance(account_id: str, transactions: Iterable[Transaction]) -> Decimal:
    """Sum of every split posted directly to ``account_id``."""
    return sum(
        (
            split.amount
            for tx in transactions
            for split in tx.splits
            if split.account_id == account_id
        ),
        ZERO,
    )


def subtree_balances(
    accounts: list[Account],
    transactions: Iterable[Transaction],
) -> dict[str, Decimal]:
    """Subtree balance of every account, keyed by id."""
    own = own_balances(transactions)
    forest = build_tree(accounts)
    totals: dict[str, Decimal] = {}

    for root in forest.roots:
        stack = [(root, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                totals[node.id] = own.get(node.id, ZERO) + sum(
                    (totals[child.id] for child in node.children), ZERO
                )
            else:
                stack.append((node, True))
                stack.extend((child, False) for child in node.children)

    return totals


def subtree_balance(
    account: Account,
    accounts: list[Account],
    transactions: list[Transaction],
) -> Decimal:
    """Own balance of ``account`` plus the balances of all its descendants."""
    totals = subtree_balances(accounts, transactions)
    if account.id in totals:
        return totals[account.id]

    # Not part of the list: sum whatever hangs below it.
    own = own_balances(transactions)
    return sum(
        (own.get(acc_id, ZERO) for acc_id in get_descendant_ids(account.id, accounts)),
        ZERO,
    )


def flattened_balances(
    accounts: list[Account],
    transactions: list[Transaction],
) -> list[FlattenedAccountBalance]:
    """One subtree balance entry per account, in input order."""
    totals = subtree_balances(accounts, transactions)
    balances = [
        FlattenedAccountBalance(
            id=account.id,
            name=account.name,
            type=account.type,
            balance=totals.get(account.id, ZERO),
            budget=account.budget if account.budget is not None else ZERO,
        )
        for account in accounts
    ]
    logger.debug(
        "balances_computed",
        accounts=len(balances),
        transactions=len(transactions),
    )
    return balances


def transaction_total(tx: Transaction) -> Decimal:
    """Sum of the transaction's splits; zero for a balanced entry."""
    return sum((split.amount for split in tx.splits), ZERO)


def is_balanced(tx: Transaction, tolerance: Optional[Decimal] = None) -> bool:
    """Debits equal credits within ``tolerance`` (default 0.01)."""
    if tolerance is None:
        tolerance = get_settings().engine.balance_tolerance
    return abs(transaction_total(tx)) < tolerance


def income_expense_summary(
    accounts: Iterable[Account],
    balances: Iterable[FlattenedAccountBalance],
) -> PeriodSummary:
    """
    Totals of the root Income and Expense accounts.

    Income is reported as a magnitude, so net_savings is income minus expense.
    """
    by_id = {balance.id: balance.balance for balance in balances}
    income = ZERO
    expense = ZERO
    for account in accounts:
        if account.parent_id is not None:
            continue
        if account.type == AccountType.INCOME:
            income += by_id.get(account.id, ZERO)
        elif account.type == AccountType.EXPENSE:
            expense += by_id.get(account.id, ZERO)

    income = abs(income)
    return PeriodSummary(
        total_income=income,
        total_expense=expense,
        net_savings=income - expense,
    )
