"""
Audit Logger

Ledger activity is logged in two places:
1. A structured local log (structlog, JSON lines by default)
2. An optional sink callable supplied by the host application

The engine itself only returns issues; turning them into log lines and
audit events is done here, at the caller's request. A failing sink is
logged and reported through the return value, never raised.
"""

import logging
from typing import Callable, Iterable, Optional
from uuid import UUID, uuid4

import structlog

from ledgerflow.config import LoggingSettings, get_settings
from ledgerflow.models.audit import AuditEvent, AuditEventBuilder
from ledgerflow.models.ledger import (
    LedgerIssue,
    ParseResult,
    RecurrenceResult,
    RecurringTransaction,
)


AuditSink = Callable[[AuditEvent], None]


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Configure structlog on top of the standard library logger."""
    settings = settings or get_settings().logging

    logging.getLogger("ledgerflow").setLevel(settings.level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: Optional[str] = None):
    """Return a structlog logger bound to a stdlib logger of that name."""
    return structlog.get_logger(name or "ledgerflow")


class AuditLogger:
    """
    Central audit logging service.

    Every event is logged locally at a level matching its severity and then
    handed to the sink, if one was given.
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Callable receiving each AuditEvent.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = get_logger("ledgerflow.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the sink accepted the event (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_issues(
        self,
        issues: Iterable[LedgerIssue],
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Log one event per issue. Returns the number of issues logged."""
        count = 0
        for issue in issues:
            self.log(AuditEventBuilder.from_issue(issue, correlation_id))
            count += 1
        return count

    def log_parse_result(
        self,
        result: ParseResult,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a CSV parse summary followed by every skipped row."""
        self.log(AuditEventBuilder.transactions_parsed(
            transaction_count=len(result.transactions),
            skipped_rows=result.skipped_rows,
            correlation_id=correlation_id,
        ))
        self.log_issues(result.issues, correlation_id)

    def log_recurrence(
        self,
        result: RecurrenceResult,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log one event per materialized recurring transaction."""
        rules: dict[str, RecurringTransaction] = {
            rule.id: rule for rule in result.updated_rules
        }
        for tx in result.new_transactions:
            rule = rules.get(result.emitted_by.get(tx.id, ""))
            if rule is None:
                continue
            self.log(AuditEventBuilder.recurring_materialized(
                rule_id=rule.id,
                transaction_id=tx.id,
                due_date=tx.date,
                next_due_date=rule.next_due_date,
                correlation_id=correlation_id,
            ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., loading a ledger) and
    pass it to every audit call that belongs to it.
    """
    return uuid4()
