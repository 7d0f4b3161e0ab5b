"""
Transaction Queries

Deterministic filters over an in-memory transaction list. Windows are
inclusive on both ends and always anchored on an explicit ``today``.
"""

from datetime import date
from enum import Enum
from typing import Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

from ledgerflow.models.ledger import Transaction


class DateRangeOption(str, Enum):
    """Preset reporting windows ending today."""
    MONTH_TO_DATE = "MTD"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"


_RANGE_MONTHS = {
    DateRangeOption.ONE_MONTH: 1,
    DateRangeOption.THREE_MONTHS: 3,
    DateRangeOption.SIX_MONTHS: 6,
    DateRangeOption.ONE_YEAR: 12,
}


def filter_transactions(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    payee: Optional[str] = None,
) -> list[Transaction]:
    """
    Transactions dated within [start, end].

    ``payee`` is a case-insensitive substring match; empty or None matches
    everything.
    """
    term = payee.lower() if payee else ""
    return [
        tx for tx in transactions
        if start <= tx.date <= end
        and (not term or term in (tx.payee or "").lower())
    ]


def date_range_start(option: Union[DateRangeOption, str], today: date) -> date:
    """First day included by a preset window."""
    option = DateRangeOption(option)
    if option is DateRangeOption.MONTH_TO_DATE:
        return today.replace(day=1)
    return today - relativedelta(months=_RANGE_MONTHS[option])


def filter_by_date_range(
    transactions: Iterable[Transaction],
    option: Union[DateRangeOption, str],
    today: date,
) -> list[Transaction]:
    """Transactions inside a preset window ending on ``today``."""
    return filter_transactions(transactions, date_range_start(option, today), today)


def transactions_for_accounts(
    transactions: Iterable[Transaction],
    account_ids: set[str],
) -> list[Transaction]:
    """Transactions with at least one split on any of ``account_ids``."""
    return [
        tx for tx in transactions
        if any(split.account_id in account_ids for split in tx.splits)
    ]


def known_payees(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct non-empty payees, sorted."""
    return sorted({tx.payee for tx in transactions if tx.payee})


def last_description_for_payee(
    transactions: Iterable[Transaction],
    payee: str,
) -> Optional[str]:
    """Description of the most recently created transaction for ``payee``."""
    latest: Optional[Transaction] = None
    for tx in transactions:
        if tx.payee != payee:
            continue
        if latest is None or tx.created_at > latest.created_at:
            latest = tx
    return latest.description if latest else None
