"""
Transaction Codec

Converts transactions to and from the row-per-split CSV layout:

    Transaction ID,Date,Created At,Payee,Description,Account ID,Amount
    tx_1,2024-03-01,1709280000000,"Supermart","Weekly run",acc_checking,-50
    tx_1,2024-03-01,1709280000000,"Supermart","Weekly run",acc_grocery,50

Payee and Description are always quoted, with embedded quotes doubled.
Account ID and Amount are written bare.

Parsing never raises for a bad row. Rows that cannot be read are skipped
and reported on the ParseResult.
"""

import csv
import datetime as dt
import io
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from ledgerflow.audit import get_logger
from ledgerflow.errors import AmountParseError, MalformedRowError, ParseError
from ledgerflow.models.ledger import (
    IssueKind,
    LedgerIssue,
    ParseResult,
    Split,
    Transaction,
)


logger = get_logger(__name__)

HEADER_FIELDS = [
    "Transaction ID",
    "Date",
    "Created At",
    "Payee",
    "Description",
    "Account ID",
    "Amount",
]
HEADER = ",".join(HEADER_FIELDS)


# =============================================================================
# SERIALIZE
# =============================================================================

def quote_field(value: Optional[str]) -> str:
    """Wrap in double quotes, doubling any embedded quote."""
    return '"' + (value or "").replace('"', '""') + '"'


def format_amount(amount: Decimal) -> str:
    """Plain decimal notation, never scientific."""
    return format(amount, "f")


def serialize_transactions(transactions: Iterable[Transaction]) -> str:
    """
    Render the header plus one row per split.

    Transactions keep their input order and splits their per-transaction
    order. Rows are joined by newlines with no trailing newline.
    """
    rows = [
        ",".join([
            tx.id,
            tx.date.isoformat(),
            str(tx.created_at),
            quote_field(tx.payee),
            quote_field(tx.description),
            split.account_id,
            format_amount(split.amount),
        ])
        for tx in transactions
        for split in tx.splits
    ]
    logger.debug("transactions_serialized", rows=len(rows))
    return HEADER + "\n" + "\n".join(rows)


# =============================================================================
# PARSE
# =============================================================================

def _parse_amount(value: str, row: int) -> Decimal:
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        raise AmountParseError(
            f"Amount {value!r} is not a number",
            row=row,
            field="Amount",
            value=value,
        )
    return amount


def _parse_date(value: str, row: int) -> dt.date:
    try:
        return dt.date.fromisoformat(value.strip())
    except ValueError:
        raise ParseError(
            f"Date {value!r} is not an ISO date",
            row=row,
            field="Date",
            value=value,
        )


def _parse_created_at(value: str, row: int) -> int:
    try:
        created_at = int(value.strip())
    except ValueError:
        raise ParseError(
            f"Created At {value!r} is not an integer timestamp",
            row=row,
            field="Created At",
            value=value,
        )
    if created_at < 0:
        raise ParseError(
            f"Created At {value!r} is negative",
            row=row,
            field="Created At",
            value=value,
        )
    return created_at


def _parse_row(fields: list[str], row: int) -> tuple[dict, Split]:
    """
    Read one CSV record.

    Returns the transaction-level fields and the split. Extra trailing
    fields are ignored.
    """
    if len(fields) < len(HEADER_FIELDS):
        raise MalformedRowError(
            f"Expected {len(HEADER_FIELDS)} fields, found {len(fields)}",
            row=row,
            field_count=len(fields),
        )

    tx_id, date_str, created_str, payee, description, account_id, amount_str = (
        fields[:len(HEADER_FIELDS)]
    )
    tx_id = tx_id.strip()
    if not tx_id:
        raise MalformedRowError(
            "Transaction ID is empty",
            row=row,
            field_count=len(fields),
        )

    header = {
        "id": tx_id,
        "date": _parse_date(date_str, row),
        "created_at": _parse_created_at(created_str, row),
        "payee": payee,
        "description": description,
    }
    split = Split(
        account_id=account_id.strip(),
        amount=_parse_amount(amount_str, row),
    )
    return header, split


def _is_blank(fields: list[str]) -> bool:
    return all(not field.strip() for field in fields)


def _allow_field_size(size: int) -> None:
    """Raise the csv module's field limit so no field of ``size`` chars is refused."""
    if csv.field_size_limit() < size:
        csv.field_size_limit(size)


def _record_end(lines: list[str], start: int) -> int:
    """
    Index just past the last physical line of the record at ``start``.

    A record runs on while it holds an odd number of quote characters,
    i.e. while a quoted field is still open.
    """
    end = start + 1
    quotes = lines[start].count('"')
    while quotes % 2 and end < len(lines):
        quotes += lines[end].count('"')
        end += 1
    return end


def _read_record(record: str, row: int) -> list[str]:
    """Split one record with a strict quote-aware reader."""
    try:
        return next(csv.reader([record.rstrip("\r\n")], strict=True), [])
    except csv.Error as e:
        raise MalformedRowError(
            f"Unreadable CSV record: {e}",
            row=row,
            field_count=0,
        ) from e


def parse_transactions(text: str) -> ParseResult:
    """
    Read transactions from CSV text.

    The first record is the header and is always skipped. Rows sharing a
    Transaction ID are merged in encounter order; the first row supplies the
    date, payee and description. The result is sorted newest created first.

    Quoted fields may span lines. When a multi-line record cannot be read
    as a row, only its first line is reported and skipped; reading resumes
    on the next line, so an unterminated quote costs one row.
    """
    issues: list[LedgerIssue] = []
    grouped: dict[str, dict] = {}

    text = text.lstrip("\ufeff")
    _allow_field_size(len(text) + 1)
    lines = io.StringIO(text, newline="").readlines()
    header_seen = False
    start = 0

    while start < len(lines):
        end = _record_end(lines, start)
        record = "".join(lines[start:end])

        try:
            fields = _read_record(record, end)
            if _is_blank(fields):
                start = end
                continue

            if not header_seen:
                header_seen = True
                if [field.strip() for field in fields] != HEADER_FIELDS:
                    issues.append(LedgerIssue(
                        kind=IssueKind.UNEXPECTED_HEADER,
                        message="First row is not the expected transaction header",
                        row=end,
                        details={"found": fields},
                    ))
                start = end
                continue

            header, split = _parse_row(fields, end)
        except MalformedRowError as e:
            row = start + 1
            issues.append(LedgerIssue(
                kind=IssueKind.MALFORMED_ROW,
                severity="error",
                message=str(e),
                row=row,
                details={"field_count": e.field_count},
            ))
            logger.warning("csv_row_skipped", row=row, reason="malformed_row")
            start += 1
            continue
        except ParseError as e:
            issues.append(LedgerIssue(
                kind=IssueKind.PARSE_ERROR,
                severity="error",
                message=str(e),
                entity_id=fields[0].strip() or None,
                row=end,
                details={"field": e.field, "value": e.value},
            ))
            logger.warning("csv_row_skipped", row=end, reason="parse_error", field=e.field)
            start = end
            continue

        entry = grouped.setdefault(header["id"], {**header, "splits": []})
        entry["splits"].append(split)
        start = end

    transactions = sorted(
        (Transaction(**entry) for entry in grouped.values()),
        key=lambda tx: tx.created_at,
        reverse=True,
    )
    logger.debug(
        "transactions_parsed",
        transactions=len(transactions),
        issues=len(issues),
    )
    return ParseResult(transactions=transactions, issues=issues)
