"""
Data Models Package

This package contains all Pydantic models used by LedgerFlow.
All data flowing through the engine conforms to these schemas.
"""

from ledgerflow.models.ledger import (
    Account,
    AccountForest,
    AccountNode,
    AccountPath,
    AccountType,
    Amount,
    BudgetStatus,
    FlattenedAccountBalance,
    Frequency,
    IssueKind,
    LedgerIssue,
    ParseResult,
    PeriodSummary,
    RecurrenceResult,
    RecurringTransaction,
    Split,
    Transaction,
    ValidationResult,
)
from ledgerflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger records
    "Account",
    "AccountType",
    "Amount",
    "Frequency",
    "RecurringTransaction",
    "Split",
    "Transaction",
    # Issues and results
    "AccountForest",
    "AccountNode",
    "AccountPath",
    "BudgetStatus",
    "FlattenedAccountBalance",
    "IssueKind",
    "LedgerIssue",
    "ParseResult",
    "PeriodSummary",
    "RecurrenceResult",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
