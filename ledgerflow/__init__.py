"""
LedgerFlow - Double-Entry Ledger Engine

Builds the account hierarchy, aggregates balances over it, reads and writes
transactions as row-per-split CSV, and materializes recurring rules.

DESIGN PRINCIPLES:
1. Deterministic: the current date and time are always passed in
2. Recover locally, report visibly: bad rows and broken trees become issues
3. No silent corrections: unbalanced data is kept and flagged
4. Every change can be audited
5. Storage is the caller's: the engine only reads and writes text
"""

from ledgerflow.accounts import (
    build_tree,
    default_accounts,
    get_account_path,
    get_descendant_ids,
)
from ledgerflow.balances import (
    budget_status,
    flattened_balances,
    income_expense_summary,
    is_balanced,
    subtree_balance,
)
from ledgerflow.codec import (
    dump_accounts,
    dump_recurring,
    export_readable_csv,
    load_accounts,
    load_recurring,
    parse_transactions,
    serialize_transactions,
)
from ledgerflow.errors import (
    AmountParseError,
    LedgerError,
    LedgerFormatError,
    MalformedRowError,
    ParseError,
)
from ledgerflow.models import (
    Account,
    AccountType,
    Frequency,
    IssueKind,
    LedgerIssue,
    RecurringTransaction,
    Split,
    Transaction,
)
from ledgerflow.orchestrator import LedgerBook, LedgerDocuments
from ledgerflow.recurrence import CatchUpPolicy, advance_due_rules, next_due_date
from ledgerflow.validation import LedgerValidator

__version__ = "1.0.0"
__author__ = "LedgerFlow Team"

__all__ = [
    # Records
    "Account",
    "AccountType",
    "Frequency",
    "RecurringTransaction",
    "Split",
    "Transaction",
    # Issues and errors
    "AmountParseError",
    "IssueKind",
    "LedgerError",
    "LedgerFormatError",
    "LedgerIssue",
    "MalformedRowError",
    "ParseError",
    # Accounts
    "build_tree",
    "default_accounts",
    "get_account_path",
    "get_descendant_ids",
    # Balances
    "budget_status",
    "flattened_balances",
    "income_expense_summary",
    "is_balanced",
    "subtree_balance",
    # Codecs
    "dump_accounts",
    "dump_recurring",
    "export_readable_csv",
    "load_accounts",
    "load_recurring",
    "parse_transactions",
    "serialize_transactions",
    # Recurrence
    "CatchUpPolicy",
    "advance_due_rules",
    "next_due_date",
    # Book and validation
    "LedgerBook",
    "LedgerDocuments",
    "LedgerValidator",
]
