"""Ledger validation package."""

from ledgerflow.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
