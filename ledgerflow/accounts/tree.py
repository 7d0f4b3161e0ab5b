"""
Account Tree Builder

Turns the flat account list into a forest and answers ancestry and
descendant questions about it.

Bad data degrades instead of failing:
- a parent_id that matches no account promotes the account to a root
- a parent cycle is cut at one node, which becomes a root
- ancestor walks stop at a depth ceiling or on a repeated ancestor

Each of these is reported as a LedgerIssue on the result.

get_account_path reads its separator and depth ceiling from the
``LEDGERFLOW_*`` engine settings unless they are passed explicitly.
"""

from collections import defaultdict
from typing import Iterable, Optional

from ledgerflow.audit import get_logger
from ledgerflow.config import get_settings
from ledgerflow.models.ledger import (
    Account,
    AccountForest,
    AccountNode,
    AccountPath,
    IssueKind,
    LedgerIssue,
)


logger = get_logger(__name__)


def _unique_accounts(
    accounts: Iterable[Account],
    issues: list[LedgerIssue],
) -> dict[str, Account]:
    """Index accounts by id, keeping the first record for a repeated id."""
    index: dict[str, Account] = {}
    for account in accounts:
        if account.id in index:
            issues.append(LedgerIssue(
                kind=IssueKind.DUPLICATE_ID,
                message=f"Account id {account.id!r} appears more than once; first record kept",
                entity_id=account.id,
                details={"name": account.name},
            ))
            continue
        index[account.id] = account
    return index


def children_index(accounts: Iterable[Account]) -> dict[str, list[str]]:
    """Map each parent id to the ids of its direct children, in input order."""
    children: dict[str, list[str]] = defaultdict(list)
    for account in accounts:
        if account.parent_id is not None:
            children[account.parent_id].append(account.id)
    return children


def build_tree(accounts: Iterable[Account]) -> AccountForest:
    """
    Build the account forest.

    Roots keep input order, with cycle-cut nodes appended last. Every
    distinct account id appears exactly once in the result.
    """
    issues: list[LedgerIssue] = []
    index = _unique_accounts(accounts, issues)
    nodes = {acc_id: AccountNode(account=acc) for acc_id, acc in index.items()}
    roots: list[AccountNode] = []

    for acc_id, account in index.items():
        node = nodes[acc_id]
        parent_id = account.parent_id
        if parent_id is None:
            roots.append(node)
        elif parent_id in nodes:
            nodes[parent_id].children.append(node)
        else:
            roots.append(node)
            issues.append(LedgerIssue(
                kind=IssueKind.ORPHAN_ACCOUNT,
                message=(
                    f"Account {account.name!r} references missing parent "
                    f"{parent_id!r}; treated as a root"
                ),
                entity_id=acc_id,
                details={"parent_id": parent_id},
            ))

    reached: set[str] = set()

    def mark(start: AccountNode) -> None:
        stack = [start]
        while stack:
            node = stack.pop()
            if node.id in reached:
                continue
            reached.add(node.id)
            stack.extend(node.children)

    for root in roots:
        mark(root)

    # Anything still unreached hangs off a parent cycle.
    for acc_id in index:
        if acc_id in reached:
            continue
        seen: set[str] = set()
        current = acc_id
        while current not in seen:
            seen.add(current)
            current = index[current].parent_id

        cut = nodes[current]
        parent = nodes[index[current].parent_id]
        parent.children = [child for child in parent.children if child is not cut]
        roots.append(cut)
        mark(cut)
        issues.append(LedgerIssue(
            kind=IssueKind.CYCLE_SUSPECTED,
            message=(
                f"Account {cut.account.name!r} is part of a parent cycle; "
                "treated as a root"
            ),
            entity_id=cut.id,
            details={"walked": sorted(seen)},
        ))

    logger.debug(
        "account_tree_built",
        accounts=len(index),
        roots=len(roots),
        issues=len(issues),
    )
    return AccountForest(roots=roots, issues=issues)


def get_account_path(
    account: Account,
    accounts: Iterable[Account],
    separator: Optional[str] = None,
    max_depth: Optional[int] = None,
) -> AccountPath:
    """
    Join the names from the root down to ``account``.

    Walks at most ``max_depth`` ancestors. Hitting the ceiling, or meeting
    an ancestor twice, returns the partial path with cycle_suspected set.
    """
    settings = get_settings().engine
    separator = separator if separator is not None else settings.path_separator
    max_depth = max_depth if max_depth is not None else settings.max_path_depth

    index: dict[str, Account] = {}
    for acc in accounts:
        index.setdefault(acc.id, acc)

    names = [account.name]
    visited = {account.id}
    issues: list[LedgerIssue] = []
    cycle_suspected = False
    current = account
    depth = 0

    while current.parent_id is not None:
        if depth >= max_depth or current.parent_id in visited:
            cycle_suspected = True
            issues.append(LedgerIssue(
                kind=IssueKind.CYCLE_SUSPECTED,
                message=(
                    f"Ancestry of {account.name!r} stopped after {depth} levels; "
                    "path is truncated"
                ),
                entity_id=account.id,
                details={"depth": depth, "max_depth": max_depth},
            ))
            logger.warning(
                "account_path_truncated",
                account_id=account.id,
                depth=depth,
            )
            break

        parent = index.get(current.parent_id)
        if parent is None:
            issues.append(LedgerIssue(
                kind=IssueKind.ORPHAN_ACCOUNT,
                message=f"Parent {current.parent_id!r} of {current.name!r} not found",
                entity_id=current.id,
                details={"parent_id": current.parent_id},
            ))
            break

        names.append(parent.name)
        visited.add(parent.id)
        current = parent
        depth += 1

    return AccountPath(
        path=separator.join(reversed(names)),
        cycle_suspected=cycle_suspected,
        issues=issues,
    )


def get_descendant_ids(root_id: str, accounts: Iterable[Account]) -> set[str]:
    """All ids in the subtree under ``root_id``, including ``root_id`` itself."""
    children = children_index(accounts)
    result: set[str] = set()
    stack = [root_id]

    while stack:
        current = stack.pop()
        if current in result:
            continue
        result.add(current)
        stack.extend(children.get(current, ()))

    return result
