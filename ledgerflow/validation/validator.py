"""
Two-Stage Ledger Validation

STAGE 1 - STRUCTURE:
- Duplicate account, transaction and rule ids
- Orphaned accounts and parent cycles
- Transactions and rules with fewer than two splits
- Splits posted to accounts that do not exist

STAGE 2 - SEMANTICS (only when stage 1 found no errors):
- Transactions and rules whose splits do not sum to zero
- Accounts whose type differs from their root's type

Validation never changes the data. Orphans, cycles and mixed account
types are reported as warnings; the engine handles them.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ledgerflow.accounts.tree import build_tree
from ledgerflow.audit import get_logger
from ledgerflow.config import get_settings
from ledgerflow.models.ledger import (
    Account,
    AccountType,
    IssueKind,
    LedgerIssue,
    RecurringTransaction,
    Split,
    Transaction,
    ValidationResult,
)


logger = get_logger(__name__)


class LedgerValidator:
    """
    Validates accounts, transactions and recurring rules together.

    Stage 1 can run on any input; stage 2 assumes stage 1 passed.
    """

    def __init__(
        self,
        tolerance: Optional[Decimal] = None,
    ):
        """
        Initialize validator.

        Args:
            tolerance: Largest split sum still treated as balanced.
                       Defaults to the configured balance_tolerance.
        """
        self._tolerance = (
            tolerance if tolerance is not None
            else get_settings().engine.balance_tolerance
        )

    def _check_splits(
        self,
        owner_type: str,
        owner_id: str,
        splits: Sequence[Split],
        account_ids: set[str],
    ) -> list[LedgerIssue]:
        issues = []

        if len(splits) < 2:
            issues.append(LedgerIssue(
                kind=IssueKind.TOO_FEW_SPLITS,
                severity="error",
                message=f"{owner_type.capitalize()} {owner_id!r} has {len(splits)} split(s); at least 2 required",
                entity_id=owner_id,
                details={"split_count": len(splits)},
            ))

        for split in splits:
            if split.account_id not in account_ids:
                issues.append(LedgerIssue(
                    kind=IssueKind.UNKNOWN_ACCOUNT,
                    severity="error",
                    message=f"{owner_type.capitalize()} {owner_id!r} posts to unknown account {split.account_id!r}",
                    entity_id=owner_id,
                    details={"account_id": split.account_id},
                ))

        return issues

    def _check_duplicates(self, owner_type: str, ids: Iterable[str]) -> list[LedgerIssue]:
        issues = []
        seen: set[str] = set()
        for record_id in ids:
            if record_id in seen:
                issues.append(LedgerIssue(
                    kind=IssueKind.DUPLICATE_ID,
                    severity="error",
                    message=f"{owner_type.capitalize()} id {record_id!r} is used more than once",
                    entity_id=record_id,
                ))
            seen.add(record_id)
        return issues

    def _validate_structure(
        self,
        accounts: list[Account],
        transactions: list[Transaction],
        rules: list[RecurringTransaction],
    ) -> tuple[bool, list[LedgerIssue]]:
        """
        Stage 1: structure.

        Returns: (is_valid, list_of_issues)
        """
        issues = list(build_tree(accounts).issues)
        account_ids = {account.id for account in accounts}

        issues.extend(self._check_duplicates("transaction", (tx.id for tx in transactions)))
        for tx in transactions:
            issues.extend(self._check_splits("transaction", tx.id, tx.splits, account_ids))

        issues.extend(self._check_duplicates("rule", (rule.id for rule in rules)))
        for rule in rules:
            issues.extend(self._check_splits("rule", rule.id, rule.splits, account_ids))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _unbalanced(self, owner_type: str, owner_id: str, splits: Sequence[Split]) -> Optional[LedgerIssue]:
        total = sum((split.amount for split in splits), Decimal("0"))
        if abs(total) < self._tolerance:
            return None
        return LedgerIssue(
            kind=IssueKind.UNBALANCED_TRANSACTION,
            severity="error",
            message=f"{owner_type.capitalize()} {owner_id!r} is out of balance by {total}",
            entity_id=owner_id,
            details={"total": str(total)},
        )

    def _validate_semantic(
        self,
        accounts: list[Account],
        transactions: list[Transaction],
        rules: list[RecurringTransaction],
    ) -> tuple[bool, list[LedgerIssue]]:
        """
        Stage 2: semantics.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for tx in transactions:
            issue = self._unbalanced("transaction", tx.id, tx.splits)
            if issue:
                issues.append(issue)

        for rule in rules:
            issue = self._unbalanced("rule", rule.id, rule.splits)
            if issue:
                issues.append(issue)

        # Mixed hierarchies are allowed but worth pointing out.
        for root in build_tree(accounts).roots:
            root_type: AccountType = root.account.type
            for node in root.iter_subtree():
                if node.account.type != root_type:
                    issues.append(LedgerIssue(
                        kind=IssueKind.TYPE_MISMATCH,
                        severity="warning",
                        message=(
                            f"Account {node.account.name!r} is {node.account.type.value} "
                            f"under {root_type.value} root {root.account.name!r}"
                        ),
                        entity_id=node.id,
                        details={
                            "account_type": node.account.type.value,
                            "root_id": root.id,
                            "root_type": root_type.value,
                        },
                    ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        accounts: Iterable[Account],
        transactions: Iterable[Transaction],
        rules: Iterable[RecurringTransaction] = (),
    ) -> ValidationResult:
        """
        Run full two-stage validation.

        Returns:
            ValidationResult with all issues found
        """
        accounts = list(accounts)
        transactions = list(transactions)
        rules = list(rules)

        structure_valid, all_issues = self._validate_structure(accounts, transactions, rules)

        semantic_valid = False
        if structure_valid:
            semantic_valid, semantic_issues = self._validate_semantic(accounts, transactions, rules)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        logger.debug(
            "ledger_validated",
            structure_valid=structure_valid,
            semantic_valid=semantic_valid,
            issues=len(all_issues),
        )

        return ValidationResult(
            structure_valid=structure_valid,
            semantic_valid=semantic_valid,
            is_valid=structure_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def summary(self, result: ValidationResult) -> str:
        """Plain-text report of a validation result."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append(f"{result.error_count} problem(s) need fixing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   - {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please review:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
