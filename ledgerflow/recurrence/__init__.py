"""Recurring transaction scheduling."""

from ledgerflow.recurrence.engine import (
    CatchUpPolicy,
    advance_due_rules,
    generate_id,
    next_due_date,
    unique_id,
)

__all__ = [
    "CatchUpPolicy",
    "advance_due_rules",
    "generate_id",
    "next_due_date",
    "unique_id",
]
