"""Human-readable CSV export with account names and debit/credit columns."""

from typing import Iterable

from ledgerflow.codec.transactions_csv import format_amount, quote_field
from ledgerflow.models.ledger import Account, Transaction


EXPORT_HEADER = "Date,Payee,Description,Account,Debit,Credit,Total Amount"


def export_readable_csv(
    transactions: Iterable[Transaction],
    accounts: Iterable[Account],
) -> str:
    """One line per split, every line newline-terminated."""
    names = {account.id: account.name for account in accounts}
    lines = [EXPORT_HEADER]

    for tx in transactions:
        for split in tx.splits:
            debit = f"{split.amount:.2f}" if split.amount > 0 else ""
            credit = f"{abs(split.amount):.2f}" if split.amount < 0 else ""
            lines.append(",".join([
                tx.date.isoformat(),
                quote_field(tx.payee),
                quote_field(tx.description),
                names.get(split.account_id, "Unknown"),
                debit,
                credit,
                format_amount(split.amount),
            ]))

    return "\n".join(lines) + "\n"
