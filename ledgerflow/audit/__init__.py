"""Audit logging package."""

from ledgerflow.audit.logger import (
    AuditLogger,
    AuditSink,
    configure_logging,
    create_correlation_id,
    get_logger,
)

__all__ = [
    "AuditLogger",
    "AuditSink",
    "configure_logging",
    "create_correlation_id",
    "get_logger",
]
