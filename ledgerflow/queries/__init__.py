"""Transaction query package."""

from ledgerflow.queries.filters import (
    DateRangeOption,
    date_range_start,
    filter_by_date_range,
    filter_transactions,
    known_payees,
    last_description_for_payee,
    transactions_for_accounts,
)

__all__ = [
    "DateRangeOption",
    "date_range_start",
    "filter_by_date_range",
    "filter_transactions",
    "known_payees",
    "last_description_for_payee",
    "transactions_for_accounts",
]
