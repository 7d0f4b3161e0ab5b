"""Tests for the account tree builder."""

import pytest

from ledgerflow.accounts import (
    build_tree,
    children_index,
    default_accounts,
    get_account_path,
    get_descendant_ids,
)
from ledgerflow.models import Account, AccountType, IssueKind


def acc(acc_id, parent_id=None, name=None, type=AccountType.EXPENSE):
    return Account(id=acc_id, parent_id=parent_id, name=name or acc_id, type=type)


class TestBuildTree:
    """Tests for build_tree."""

    def test_simple_hierarchy(self):
        """Test roots and children are linked in input order."""
        accounts = [acc("A"), acc("B", "A"), acc("C", "A"), acc("D", "B")]
        forest = build_tree(accounts)

        assert [root.id for root in forest.roots] == ["A"]
        assert [child.id for child in forest.roots[0].children] == ["B", "C"]
        assert forest.roots[0].children[0].children[0].id == "D"
        assert forest.issues == []

    def test_orphan_promoted_to_root(self):
        """Test that a dangling parent_id makes the account a root."""
        forest = build_tree([acc("A"), acc("X", "missing")])

        assert [root.id for root in forest.roots] == ["A", "X"]
        assert len(forest.issues) == 1
        assert forest.issues[0].kind == IssueKind.ORPHAN_ACCOUNT
        assert forest.issues[0].entity_id == "X"

    def test_cycle_is_cut(self):
        """Test that a parent cycle is reported and every node kept once."""
        accounts = [acc("R"), acc("A", "B"), acc("B", "A"), acc("C", "A")]
        forest = build_tree(accounts)

        ids = [node.id for node in forest.iter_nodes()]
        assert sorted(ids) == ["A", "B", "C", "R"]
        assert len(ids) == len(set(ids))
        kinds = [issue.kind for issue in forest.issues]
        assert kinds == [IssueKind.CYCLE_SUSPECTED]

    def test_self_parent_is_cut(self):
        """Test that an account listing itself as parent becomes a root."""
        forest = build_tree([acc("A", "A")])
        assert [root.id for root in forest.roots] == ["A"]
        assert forest.roots[0].children == []
        assert forest.issues[0].kind == IssueKind.CYCLE_SUSPECTED

    def test_duplicate_id_keeps_first(self):
        """Test that a repeated id keeps the first record."""
        forest = build_tree([acc("A", name="first"), acc("A", name="second")])
        assert len(forest.roots) == 1
        assert forest.roots[0].account.name == "first"
        assert forest.issues[0].kind == IssueKind.DUPLICATE_ID

    def test_mixed_types_permitted(self):
        """Test that an Expense under an Asset root is accepted."""
        forest = build_tree([
            acc("A", type=AccountType.ASSET),
            acc("E", "A", type=AccountType.EXPENSE),
        ])
        assert forest.roots[0].children[0].id == "E"
        assert forest.issues == []

    def test_default_chart(self):
        """Test the starter chart has five typed roots."""
        forest = build_tree(default_accounts())
        assert len(forest.roots) == 5
        assert forest.issues == []


class TestChildrenIndex:
    """Tests for children_index."""

    def test_index(self):
        """Test parent to children mapping in one pass."""
        index = children_index([acc("A"), acc("B", "A"), acc("C", "A")])
        assert index["A"] == ["B", "C"]
        assert "B" not in index


class TestAccountPath:
    """Tests for get_account_path."""

    def test_root_first_path(self):
        """Test names are joined from the root down."""
        accounts = [acc("A", name="Expenses"), acc("B", "A", name="Food"), acc("C", "B", name="Grocery")]
        path = get_account_path(accounts[2], accounts)
        assert path.path == "Expenses:Food:Grocery"
        assert str(path) == "Expenses:Food:Grocery"
        assert path.cycle_suspected is False

    def test_custom_separator(self):
        """Test an explicit separator."""
        accounts = [acc("A", name="Assets"), acc("B", "A", name="Bank")]
        assert get_account_path(accounts[1], accounts, separator=" / ").path == "Assets / Bank"

    def test_cycle_truncates_and_signals(self):
        """Test that a cycle returns a partial path with the signal set."""
        accounts = [acc("A", "B"), acc("B", "A")]
        path = get_account_path(accounts[0], accounts)
        assert path.path == "B:A"
        assert path.cycle_suspected is True
        assert path.issues[0].kind == IssueKind.CYCLE_SUSPECTED

    def test_depth_ceiling(self):
        """Test that a long chain stops at the depth ceiling."""
        accounts = [acc("n0")] + [acc(f"n{i}", f"n{i - 1}") for i in range(1, 30)]
        path = get_account_path(accounts[-1], accounts, max_depth=5)
        assert path.cycle_suspected is True
        assert len(path.path.split(":")) == 6

    def test_missing_parent(self):
        """Test that a dangling parent ends the path without a cycle signal."""
        orphan = acc("X", "missing", name="Orphan")
        path = get_account_path(orphan, [orphan])
        assert path.path == "Orphan"
        assert path.cycle_suspected is False
        assert path.issues[0].kind == IssueKind.ORPHAN_ACCOUNT


class TestDescendantIds:
    """Tests for get_descendant_ids."""

    def test_contains_root(self):
        """Test the result always includes the root id."""
        assert get_descendant_ids("A", [acc("A")]) == {"A"}
        assert get_descendant_ids("unknown", [acc("A")]) == {"unknown"}

    def test_superset_of_children(self):
        """Test the set covers every child's own descendant set."""
        accounts = [acc("A"), acc("B", "A"), acc("C", "B"), acc("D", "A")]
        result = get_descendant_ids("A", accounts)
        assert result == {"A", "B", "C", "D"}
        for child in ("B", "D"):
            assert get_descendant_ids(child, accounts) <= result

    def test_terminates_on_cycle(self):
        """Test traversal terminates on cyclic data."""
        accounts = [acc("A", "B"), acc("B", "A")]
        assert get_descendant_ids("A", accounts) == {"A", "B"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
