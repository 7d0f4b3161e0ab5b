"""
JSON documents for accounts and recurring rules.

Both are JSON arrays of records with camelCase keys, indented by two
spaces. Unset optional fields are left out.
"""

from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from ledgerflow.audit import get_logger
from ledgerflow.errors import LedgerFormatError
from ledgerflow.models.ledger import Account, RecurringTransaction


logger = get_logger(__name__)

_ACCOUNTS = TypeAdapter(list[Account])
_RULES = TypeAdapter(list[RecurringTransaction])


def _dump(adapter: TypeAdapter, records: list) -> str:
    return adapter.dump_json(
        records,
        indent=2,
        by_alias=True,
        exclude_none=True,
    ).decode("utf-8")


def _load(adapter: TypeAdapter, text: str, record_type: str) -> list:
    if not text.strip():
        return []
    try:
        records = adapter.validate_json(text)
    except ValidationError as e:
        raise LedgerFormatError(f"Invalid {record_type} document: {e}") from e
    logger.debug("records_loaded", record_type=record_type, count=len(records))
    return records


def dump_accounts(accounts: Iterable[Account]) -> str:
    """Serialize the chart of accounts."""
    return _dump(_ACCOUNTS, list(accounts))


def load_accounts(text: str) -> list[Account]:
    """Read the chart of accounts; blank text is an empty list."""
    return _load(_ACCOUNTS, text, "account")


def dump_recurring(rules: Iterable[RecurringTransaction]) -> str:
    """Serialize recurring rules."""
    return _dump(_RULES, list(rules))


def load_recurring(text: str) -> list[RecurringTransaction]:
    """Read recurring rules; blank text is an empty list."""
    return _load(_RULES, text, "recurring rule")
