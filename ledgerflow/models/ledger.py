"""
Core Data Models for LedgerFlow

These models define the schemas for the chart of accounts, transactions and
recurring rules, plus the result objects returned by the engine operations.

Attribute names are snake_case. The persisted JSON uses camelCase keys
(parentId, createdAt, accountId, nextDueDate, lastRun); every record model
accepts both spellings and dumps camelCase when by_alias=True.

Amounts are Decimals in memory and plain JSON numbers on the wire.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Iterator, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Top-level classification of an account."""
    ASSET = "Asset"
    LIABILITY = "Liability"
    INCOME = "Income"
    EXPENSE = "Expense"
    EQUITY = "Equity"


class Frequency(str, Enum):
    """How often a recurring rule materializes."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class IssueKind(str, Enum):
    """
    Recoverable problems reported alongside a result.

    None of these abort an engine operation.
    """
    MALFORMED_ROW = "malformed_row"            # CSV row with fewer than 7 fields
    PARSE_ERROR = "parse_error"                # unreadable Amount / Date / Created At
    UNEXPECTED_HEADER = "unexpected_header"
    ORPHAN_ACCOUNT = "orphan_account"          # parent_id points nowhere
    CYCLE_SUSPECTED = "cycle_suspected"
    DUPLICATE_ID = "duplicate_id"
    UNBALANCED_TRANSACTION = "unbalanced_transaction"
    TOO_FEW_SPLITS = "too_few_splits"
    UNKNOWN_ACCOUNT = "unknown_account"
    TYPE_MISMATCH = "type_mismatch"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Account(BaseModel):
    """
    A node in the chart of accounts.

    Accounts form a forest keyed by parent_id. A child's type is expected to
    match its root's type, but mixed hierarchies are accepted.
    """
    model_config = RECORD_CONFIG

    id: str = Field(..., min_length=1)
    parent_id: Optional[str] = None
    name: str
    type: AccountType
    budget: Optional[Amount] = Field(
        default=None,
        description="Monthly budget target"
    )
    description: Optional[str] = None


class Split(BaseModel):
    """One account/amount line. Positive is a debit, negative a credit."""
    model_config = RECORD_CONFIG

    account_id: str
    amount: Amount


class Transaction(BaseModel):
    """
    A dated set of splits.

    The splits should sum to zero; unbalanced transactions are kept and can
    be detected with balances.is_balanced or the validator.
    """
    model_config = RECORD_CONFIG

    id: str = Field(..., min_length=1)
    date: dt.date
    payee: Optional[str] = None
    description: Optional[str] = None
    created_at: int = Field(
        ...,
        ge=0,
        description="Creation time in milliseconds since the epoch"
    )
    splits: list[Split] = Field(default_factory=list)

    @field_validator('payee', 'description', mode='before')
    @classmethod
    def empty_text_is_none(cls, v: Any) -> Any:
        """Blank payee/description are stored as None."""
        if isinstance(v, str) and v == "":
            return None
        return v


class RecurringTransaction(BaseModel):
    """A template that materializes into a Transaction once per period."""
    model_config = RECORD_CONFIG

    id: str = Field(..., min_length=1)
    frequency: Frequency
    next_due_date: dt.date
    payee: str = ""
    description: str = ""
    splits: list[Split] = Field(default_factory=list)
    last_run: Optional[dt.date] = None
    active: bool = True


# =============================================================================
# ISSUES
# =============================================================================

class LedgerIssue(BaseModel):
    """A single recoverable problem found while processing ledger data."""

    kind: IssueKind
    severity: str = Field(
        default="warning",
        pattern="^(error|warning|info)$",
    )
    message: str
    entity_id: Optional[str] = Field(
        default=None,
        description="Account, transaction or rule the issue is about"
    )
    row: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-based line number where the CSV record ends"
    )
    details: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# RESULT MODELS
# =============================================================================

class AccountNode(BaseModel):
    """An account with its direct children attached."""

    account: Account
    children: list["AccountNode"] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.account.id

    def iter_subtree(self) -> Iterator["AccountNode"]:
        """Yield this node and all its descendants, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


class AccountForest(BaseModel):
    """Result of building the account tree."""

    roots: list[AccountNode] = Field(default_factory=list)
    issues: list[LedgerIssue] = Field(default_factory=list)

    def iter_nodes(self) -> Iterator[AccountNode]:
        for root in self.roots:
            yield from root.iter_subtree()


class AccountPath(BaseModel):
    """Root-first account path, possibly truncated."""

    path: str
    cycle_suspected: bool = False
    issues: list[LedgerIssue] = Field(default_factory=list)

    def __str__(self) -> str:
        return self.path


class FlattenedAccountBalance(BaseModel):
    """One account with its subtree balance, independent of tree position."""

    id: str
    name: str
    type: AccountType
    balance: Amount
    budget: Amount = Decimal("0")


class PeriodSummary(BaseModel):
    """Income versus expense totals over a set of transactions."""

    total_income: Amount
    total_expense: Amount
    net_savings: Amount


class BudgetStatus(BaseModel):
    """Actual spending against a (scaled) budget target."""

    id: str
    name: str
    actual: Amount
    budget: Amount
    percent_used: float = Field(ge=0.0, le=100.0)
    over_budget: bool


class ParseResult(BaseModel):
    """Transactions read from CSV text plus every skipped row."""

    transactions: list[Transaction] = Field(default_factory=list)
    issues: list[LedgerIssue] = Field(default_factory=list)

    @property
    def skipped_rows(self) -> int:
        return sum(
            1 for issue in self.issues
            if issue.kind in (IssueKind.MALFORMED_ROW, IssueKind.PARSE_ERROR)
        )


class RecurrenceResult(BaseModel):
    """Transactions emitted by a recurrence run and the advanced rules."""

    new_transactions: list[Transaction] = Field(default_factory=list)
    updated_rules: list[RecurringTransaction] = Field(default_factory=list)
    emitted_by: dict[str, str] = Field(
        default_factory=dict,
        description="Generated transaction id to the id of its rule"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage ledger validation.

    Stage 1: structure (ids, references, tree shape)
    Stage 2: semantics (balance, account types)
    """

    validated_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )
    structure_valid: bool
    semantic_valid: bool
    is_valid: bool
    issues: list[LedgerIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
