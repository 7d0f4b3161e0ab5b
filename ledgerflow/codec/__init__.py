"""
Codecs for the persisted ledger documents.

Transactions travel as row-per-split CSV; accounts and recurring rules as
JSON arrays.
"""

from ledgerflow.codec.export import EXPORT_HEADER, export_readable_csv
from ledgerflow.codec.records_json import (
    dump_accounts,
    dump_recurring,
    load_accounts,
    load_recurring,
)
from ledgerflow.codec.transactions_csv import (
    HEADER,
    HEADER_FIELDS,
    format_amount,
    parse_transactions,
    serialize_transactions,
)

__all__ = [
    "EXPORT_HEADER",
    "HEADER",
    "HEADER_FIELDS",
    "dump_accounts",
    "dump_recurring",
    "export_readable_csv",
    "format_amount",
    "load_accounts",
    "load_recurring",
    "parse_transactions",
    "serialize_transactions",
]
