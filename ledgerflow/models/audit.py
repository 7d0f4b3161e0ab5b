"""
Audit Models for LedgerFlow

Significant ledger activity (documents loaded, rows skipped, recurring
transactions materialized, validation findings) is described by an
AuditEvent. Audit events are append-only.
"""

import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ledgerflow.models.ledger import IssueKind, LedgerIssue


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Persistence boundary
    TRANSACTIONS_PARSED = "transactions_parsed"
    TRANSACTIONS_SERIALIZED = "transactions_serialized"
    RECORDS_LOADED = "records_loaded"
    ROW_SKIPPED = "row_skipped"

    # Chart of accounts
    ACCOUNT_ADDED = "account_added"
    ACCOUNT_UPDATED = "account_updated"
    ORPHAN_PROMOTED = "orphan_promoted"
    CYCLE_SUSPECTED = "cycle_suspected"

    # Transactions
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_DELETED = "transaction_deleted"

    # Recurrence
    RECURRING_MATERIALIZED = "recurring_materialized"
    RULE_CHANGED = "rule_changed"

    # Validation
    VALIDATION_ISSUE = "validation_issue"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_ISSUE_EVENT_TYPES = {
    IssueKind.MALFORMED_ROW: AuditEventType.ROW_SKIPPED,
    IssueKind.PARSE_ERROR: AuditEventType.ROW_SKIPPED,
    IssueKind.ORPHAN_ACCOUNT: AuditEventType.ORPHAN_PROMOTED,
    IssueKind.CYCLE_SUSPECTED: AuditEventType.CYCLE_SUSPECTED,
}


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is a ledger id (account, transaction or rule), not a UUID.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'rule')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_row(self) -> list[str]:
        """
        Flatten to a list of strings for tabular audit sinks.

        Columns: event_id, timestamp, event_type, severity, entity_type,
        entity_id, correlation_id, description, details_json, error_message
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transactions_parsed(12, 1)
        event = AuditEventBuilder.from_issue(issue)
    """

    @staticmethod
    def transactions_parsed(
        transaction_count: int,
        skipped_rows: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_PARSED,
            severity=AuditSeverity.WARNING if skipped_rows else AuditSeverity.INFO,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=(
                f"Parsed {transaction_count} transactions, "
                f"skipped {skipped_rows} rows"
            ),
            details={
                "transaction_count": transaction_count,
                "skipped_rows": skipped_rows,
            },
        )

    @staticmethod
    def transactions_serialized(
        transaction_count: int,
        row_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_SERIALIZED,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Serialized {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "row_count": row_count,
            },
        )

    @staticmethod
    def records_loaded(
        record_type: str,
        count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_LOADED,
            entity_type=record_type,
            correlation_id=correlation_id,
            description=f"Loaded {count} {record_type} records",
            details={"count": count},
        )

    @staticmethod
    def account_changed(
        account_id: str,
        name: str,
        created: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.ACCOUNT_ADDED if created
                else AuditEventType.ACCOUNT_UPDATED
            ),
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account {'added' if created else 'updated'}: {name}",
            details={"name": name},
        )

    @staticmethod
    def transaction_saved(
        transaction_id: str,
        split_count: int,
        replaced: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=(
                f"Transaction {'replaced' if replaced else 'created'} "
                f"with {split_count} splits"
            ),
            details={"split_count": split_count, "replaced": replaced},
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
        )

    @staticmethod
    def recurring_materialized(
        rule_id: str,
        transaction_id: str,
        due_date: date,
        next_due_date: date,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_MATERIALIZED,
            entity_type="rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description=f"Recurring rule generated transaction for {due_date.isoformat()}",
            details={
                "transaction_id": transaction_id,
                "due_date": due_date.isoformat(),
                "next_due_date": next_due_date.isoformat(),
            },
        )

    @staticmethod
    def rule_changed(
        rule_id: str,
        change: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RULE_CHANGED,
            entity_type="rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description=f"Recurring rule {change}",
            details={"change": change},
        )

    @staticmethod
    def from_issue(
        issue: LedgerIssue,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        """Wrap a LedgerIssue; its severity carries over."""
        details = dict(issue.details)
        details["kind"] = issue.kind.value
        if issue.row is not None:
            details["row"] = issue.row
        return AuditEvent(
            event_type=_ISSUE_EVENT_TYPES.get(
                issue.kind, AuditEventType.VALIDATION_ISSUE
            ),
            severity=AuditSeverity(issue.severity),
            entity_id=issue.entity_id,
            correlation_id=correlation_id,
            description=issue.message[:500],
            details=details,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
