"""Chart of accounts: tree building and ancestry queries."""

from ledgerflow.accounts.defaults import default_accounts
from ledgerflow.accounts.tree import (
    build_tree,
    children_index,
    get_account_path,
    get_descendant_ids,
)

__all__ = [
    "build_tree",
    "children_index",
    "default_accounts",
    "get_account_path",
    "get_descendant_ids",
]
