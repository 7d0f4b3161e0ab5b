"""
Ledger Book

An in-memory ledger that owns the chart of accounts, the transactions and
the recurring rules, and ties the engine modules together:

1. Load (JSON + CSV documents -> records, skipped rows reported)
2. Edit (accounts, transactions, rules)
3. Recur (due rules -> new transactions, advanced rules)
4. Report (balances, validation)
5. Save (records -> documents)

Every mutation is audited and then reported to the ``on_change`` callback,
which receives the book itself; persisting ``to_documents()`` from there
keeps storage in step with memory. A LedgerBook has a single writer.
"""

from decimal import Decimal
from typing import Callable, Iterable, NamedTuple, Optional, Union
from uuid import UUID

from ledgerflow.accounts.defaults import default_accounts
from ledgerflow.audit import AuditLogger, create_correlation_id
from ledgerflow.balances.aggregator import flattened_balances
from ledgerflow.codec.records_json import (
    dump_accounts,
    dump_recurring,
    load_accounts,
    load_recurring,
)
from ledgerflow.codec.transactions_csv import (
    parse_transactions,
    serialize_transactions,
)
from ledgerflow.errors import LedgerError
from ledgerflow.models.audit import AuditEventBuilder
from ledgerflow.models.ledger import (
    Account,
    AccountType,
    FlattenedAccountBalance,
    Frequency,
    LedgerIssue,
    RecurrenceResult,
    RecurringTransaction,
    Split,
    Transaction,
    ValidationResult,
)
from ledgerflow.recurrence.engine import (
    CatchUpPolicy,
    DateLike,
    advance_due_rules,
    generate_id,
    unique_id,
)
from ledgerflow.validation import LedgerValidator


ChangeCallback = Callable[["LedgerBook"], None]


class LedgerDocuments(NamedTuple):
    """The three persisted documents of a ledger."""
    accounts_json: str
    transactions_csv: str
    recurring_json: str


class LedgerBook:
    """
    Owns accounts, transactions and recurring rules.

    Transactions are kept newest first: saved and generated transactions
    are placed at the front, edits keep their position.
    """

    def __init__(
        self,
        accounts: Optional[Iterable[Account]] = None,
        transactions: Iterable[Transaction] = (),
        rules: Iterable[RecurringTransaction] = (),
        *,
        on_change: Optional[ChangeCallback] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize the book.

        Args:
            accounts: Chart of accounts; None seeds the default chart.
            transactions: Existing transactions, newest first.
            rules: Existing recurring rules.
            on_change: Called with the book after every mutation.
            audit_logger: Receives an audit event per operation.
            validator: Used by validate(); a default one is created if None.
            id_factory: Source of new record ids (defaults to generate_id).
        """
        self._accounts = list(accounts) if accounts is not None else default_accounts()
        self._transactions = list(transactions)
        self._rules = list(rules)
        self._on_change = on_change
        self._audit_logger = audit_logger
        self._validator = validator or LedgerValidator()
        self._id_factory = id_factory or generate_id
        self.load_issues: list[LedgerIssue] = []

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    @classmethod
    def from_documents(
        cls,
        accounts_json: str,
        transactions_csv: str,
        recurring_json: str,
        **kwargs,
    ) -> "LedgerBook":
        """
        Build a book from its persisted documents.

        An empty accounts document seeds the default chart. Rows skipped by
        the CSV parser end up in ``load_issues``. Raises LedgerFormatError if
        either JSON document cannot be read.
        """
        audit_logger: Optional[AuditLogger] = kwargs.get("audit_logger")
        correlation_id = create_correlation_id()

        accounts = load_accounts(accounts_json) or None
        rules = load_recurring(recurring_json)
        parsed = parse_transactions(transactions_csv)

        book = cls(accounts, parsed.transactions, rules, **kwargs)
        book.load_issues = list(parsed.issues)

        if audit_logger:
            audit_logger.log(AuditEventBuilder.records_loaded(
                record_type="account",
                count=len(book._accounts),
                correlation_id=correlation_id,
            ))
            audit_logger.log(AuditEventBuilder.records_loaded(
                record_type="rule",
                count=len(rules),
                correlation_id=correlation_id,
            ))
            audit_logger.log_parse_result(parsed, correlation_id)

        return book

    def to_documents(self) -> LedgerDocuments:
        """Serialize the book to its three documents."""
        transactions_csv = serialize_transactions(self._transactions)

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.transactions_serialized(
                transaction_count=len(self._transactions),
                row_count=sum(len(tx.splits) for tx in self._transactions),
            ))

        return LedgerDocuments(
            accounts_json=dump_accounts(self._accounts),
            transactions_csv=transactions_csv,
            recurring_json=dump_recurring(self._rules),
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def rules(self) -> list[RecurringTransaction]:
        return list(self._rules)

    def get_account(self, account_id: str) -> Account:
        for account in self._accounts:
            if account.id == account_id:
                return account
        raise LedgerError(f"Unknown account: {account_id}")

    def get_transaction(self, transaction_id: str) -> Transaction:
        for tx in self._transactions:
            if tx.id == transaction_id:
                return tx
        raise LedgerError(f"Unknown transaction: {transaction_id}")

    def get_rule(self, rule_id: str) -> RecurringTransaction:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        raise LedgerError(f"Unknown recurring rule: {rule_id}")

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def add_account(
        self,
        name: str,
        type: Union[AccountType, str],
        parent_id: Optional[str] = None,
        budget: Optional[Decimal] = None,
        description: Optional[str] = None,
    ) -> Account:
        """Add an account under ``parent_id`` (or as a new root)."""
        if parent_id is not None:
            self.get_account(parent_id)

        account = Account(
            id=unique_id(self._id_factory, {a.id for a in self._accounts}),
            parent_id=parent_id,
            name=name,
            type=AccountType(type),
            budget=budget,
            description=description,
        )
        self._accounts.append(account)

        self._audit(AuditEventBuilder.account_changed(
            account_id=account.id,
            name=name,
            created=True,
        ))
        self._changed()
        return account

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        budget: Optional[Decimal] = None,
    ) -> Account:
        """Rename an account and/or change its budget."""
        current = self.get_account(account_id)

        update = {}
        if name is not None:
            update["name"] = name
        if budget is not None:
            update["budget"] = budget
        account = current.model_copy(update=update)
        self._accounts = [account if a.id == account_id else a for a in self._accounts]

        self._audit(AuditEventBuilder.account_changed(
            account_id=account.id,
            name=account.name,
            created=False,
        ))
        self._changed()
        return account

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def save_transaction(
        self,
        date: DateLike,
        splits: Iterable[Split],
        *,
        now: int,
        payee: Optional[str] = None,
        description: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Transaction:
        """
        Create a transaction, or replace an existing one.

        When ``transaction_id`` names a stored transaction, that transaction
        is replaced wholesale in place and keeps its created_at. Otherwise a
        new transaction with a fresh id and ``created_at=now`` is placed at
        the front.
        """
        existing = None
        if transaction_id is not None:
            existing = next(
                (tx for tx in self._transactions if tx.id == transaction_id),
                None,
            )

        tx = Transaction(
            id=(
                existing.id if existing
                else unique_id(self._id_factory, {t.id for t in self._transactions})
            ),
            date=date,
            payee=payee,
            description=description,
            created_at=existing.created_at if existing else now,
            splits=list(splits),
        )

        if existing:
            self._transactions = [
                tx if t.id == existing.id else t for t in self._transactions
            ]
        else:
            self._transactions.insert(0, tx)

        self._audit(AuditEventBuilder.transaction_saved(
            transaction_id=tx.id,
            split_count=len(tx.splits),
            replaced=existing is not None,
        ))
        self._changed()
        return tx

    def delete_transaction(self, transaction_id: str) -> None:
        """Remove a transaction. Raises LedgerError if it does not exist."""
        self.get_transaction(transaction_id)
        self._transactions = [tx for tx in self._transactions if tx.id != transaction_id]

        self._audit(AuditEventBuilder.transaction_deleted(transaction_id))
        self._changed()

    # -------------------------------------------------------------------------
    # Recurring rules
    # -------------------------------------------------------------------------

    def add_rule(
        self,
        frequency: Union[Frequency, str],
        next_due_date: DateLike,
        splits: Iterable[Split],
        payee: str = "",
        description: str = "",
    ) -> RecurringTransaction:
        """Add an active recurring rule."""
        rule = RecurringTransaction(
            id=unique_id(self._id_factory, {r.id for r in self._rules}),
            frequency=Frequency(frequency),
            next_due_date=next_due_date,
            payee=payee,
            description=description,
            splits=list(splits),
        )
        self._rules.append(rule)

        self._audit(AuditEventBuilder.rule_changed(rule.id, "added"))
        self._changed()
        return rule

    def update_rule(self, rule: RecurringTransaction) -> RecurringTransaction:
        """Replace the stored rule with the same id."""
        self.get_rule(rule.id)
        self._rules = [rule if r.id == rule.id else r for r in self._rules]

        self._audit(AuditEventBuilder.rule_changed(rule.id, "updated"))
        self._changed()
        return rule

    def toggle_rule(self, rule_id: str) -> RecurringTransaction:
        """Flip a rule between active and paused."""
        rule = self.get_rule(rule_id)
        rule = rule.model_copy(update={"active": not rule.active})
        self._rules = [rule if r.id == rule_id else r for r in self._rules]

        self._audit(AuditEventBuilder.rule_changed(
            rule_id, "resumed" if rule.active else "paused"
        ))
        self._changed()
        return rule

    def delete_rule(self, rule_id: str) -> None:
        """Remove a rule. Transactions it already generated are kept."""
        self.get_rule(rule_id)
        self._rules = [r for r in self._rules if r.id != rule_id]

        self._audit(AuditEventBuilder.rule_changed(rule_id, "deleted"))
        self._changed()

    def process_recurring(
        self,
        today: DateLike,
        now: int,
        catch_up: Optional[Union[CatchUpPolicy, str]] = None,
    ) -> RecurrenceResult:
        """
        Materialize due rules into the book.

        New transactions go to the front and the rules are replaced by their
        advanced versions. on_change fires only if something was generated.
        """
        correlation_id = create_correlation_id()

        result = advance_due_rules(
            self._rules,
            self._transactions,
            today,
            now=now,
            catch_up=catch_up,
            id_factory=self._id_factory,
        )
        if not result.new_transactions:
            return result

        self._transactions = list(result.new_transactions) + self._transactions
        self._rules = list(result.updated_rules)

        if self._audit_logger:
            self._audit_logger.log_recurrence(result, correlation_id)
        self._changed()
        return result

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def balances(self) -> list[FlattenedAccountBalance]:
        """Subtree balance of every account, in chart order."""
        return flattened_balances(self._accounts, self._transactions)

    def validate(self, correlation_id: Optional[UUID] = None) -> ValidationResult:
        """Validate the whole book; issues are also sent to the audit log."""
        result = self._validator.validate(self._accounts, self._transactions, self._rules)
        if self._audit_logger and result.issues:
            self._audit_logger.log_issues(result.issues, correlation_id)
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _changed(self) -> None:
        if not self._on_change:
            return
        try:
            self._on_change(self)
        except Exception as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="on_change_failed",
                    error_message=str(e),
                )
            raise
