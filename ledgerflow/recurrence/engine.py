"""
Recurrence Engine

Materializes due recurring rules into transactions and advances their
schedules. The current date and time are always passed in.

Per rule and per run:
- inactive rules are returned untouched
- a rule is due when next_due_date <= today
- each emission is dated on the due date, not on ``today``
- the rule then moves forward one period and records last_run

CatchUpPolicy.SINGLE (the default) emits at most one transaction per rule
per run, however many periods have passed. CatchUpPolicy.ALL keeps emitting
until the rule is no longer due. Running twice with the same ``today``, with
the first run's output merged back, emits nothing the second time.

Month and year steps clamp to the end of the target month:
2024-01-31 monthly -> 2024-02-29, 2024-02-29 yearly -> 2025-02-28.

When ``catch_up`` or ``marker`` is omitted it is read from the
``LEDGERFLOW_*`` engine settings. Pass both to make a run depend only on its
arguments.
"""

import datetime as dt
from enum import Enum
from typing import Callable, Iterable, Optional, Union
from uuid import uuid4

from dateutil.relativedelta import relativedelta

from ledgerflow.audit import get_logger
from ledgerflow.config import get_settings
from ledgerflow.errors import LedgerError
from ledgerflow.models.ledger import (
    Frequency,
    RecurrenceResult,
    RecurringTransaction,
    Transaction,
)


logger = get_logger(__name__)

DateLike = Union[dt.date, str]


class CatchUpPolicy(str, Enum):
    """How many overdue periods a single run materializes."""
    SINGLE = "single"
    ALL = "all"


_PERIODS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.YEARLY: relativedelta(years=1),
}

_MAX_ID_ATTEMPTS = 100


def generate_id() -> str:
    """Short random id for new records."""
    return uuid4().hex[:9]


def _as_date(value: DateLike) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(value)


def next_due_date(value: DateLike, frequency: Union[Frequency, str]) -> dt.date:
    """The date one period after ``value``."""
    return _as_date(value) + _PERIODS[Frequency(frequency)]


def unique_id(id_factory: Callable[[], str], taken: set[str]) -> str:
    """Draw ids from ``id_factory`` until one is not in ``taken``; record it there."""
    for _ in range(_MAX_ID_ATTEMPTS):
        candidate = id_factory()
        if candidate not in taken:
            taken.add(candidate)
            return candidate
    raise LedgerError(
        f"Could not generate an unused id in {_MAX_ID_ATTEMPTS} attempts"
    )


def advance_due_rules(
    rules: Iterable[RecurringTransaction],
    transactions: Iterable[Transaction],
    today: DateLike,
    *,
    now: int,
    catch_up: Optional[Union[CatchUpPolicy, str]] = None,
    id_factory: Optional[Callable[[], str]] = None,
    marker: Optional[str] = None,
) -> RecurrenceResult:
    """
    Emit transactions for every due rule and return the advanced rules.

    Args:
        rules: Current recurring rules. Not modified.
        transactions: Existing transactions; new ids never collide with theirs.
        today: The date to run for.
        now: Creation timestamp in milliseconds. The n-th emission of this
             run gets ``now + n`` so created_at stays strictly increasing.
        catch_up: Override for the configured CatchUpPolicy.
        id_factory: Source of new transaction ids (defaults to generate_id).
        marker: Override for the suffix added to generated descriptions.

    Returns:
        RecurrenceResult with the new transactions, the rules in input
        order, and a map from each new transaction id to its rule id.
    """
    settings = get_settings().engine
    policy = CatchUpPolicy(catch_up if catch_up is not None else settings.catch_up_policy)
    limit = 1 if policy is CatchUpPolicy.SINGLE else settings.max_catch_up_periods
    marker = settings.recurrence_marker if marker is None else marker
    id_factory = id_factory or generate_id
    today = _as_date(today)
    taken = {tx.id for tx in transactions}

    new_transactions: list[Transaction] = []
    updated_rules: list[RecurringTransaction] = []
    emitted_by: dict[str, str] = {}

    for rule in rules:
        if not rule.active or rule.next_due_date > today:
            updated_rules.append(rule)
            continue

        due = rule.next_due_date
        last_run = rule.last_run
        emitted = 0
        while due <= today and emitted < limit:
            tx = Transaction(
                id=unique_id(id_factory, taken),
                date=due,
                payee=rule.payee,
                description=f"{rule.description}{marker}",
                created_at=now + len(new_transactions),
                splits=[split.model_copy() for split in rule.splits],
            )
            new_transactions.append(tx)
            emitted_by[tx.id] = rule.id
            last_run = due
            due = next_due_date(due, rule.frequency)
            emitted += 1

        updated_rules.append(rule.model_copy(update={
            "last_run": last_run,
            "next_due_date": due,
        }))
        logger.info(
            "recurring_rule_advanced",
            rule_id=rule.id,
            emitted=emitted,
            last_run=last_run.isoformat(),
            next_due_date=due.isoformat(),
            still_due=due <= today,
        )

    return RecurrenceResult(
        new_transactions=new_transactions,
        updated_rules=updated_rules,
        emitted_by=emitted_by,
    )
