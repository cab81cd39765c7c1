"""
Hierarchy tree utilities.

Builds downline trees and depth maps from flat (id, parent_id) rows with
explicit work stacks, so arbitrarily deep chains never hit the recursion
limit.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, NamedTuple

from hierarchy_ledger.utils.exceptions import ConsistencyViolation


class AccountRow(NamedTuple):
    """Flat account row used to assemble trees."""

    id: int
    username: str
    balance: Decimal
    role: str
    parent_id: int | None
    created_at: datetime | None


@dataclass
class DownlineNode:
    """
    One account inside a downline tree.

    ``depth_from_viewer`` is 1 for direct children of the account the tree
    was built for; ``depth_from_root`` is the account's absolute level
    (root = 0).
    """

    account_id: int
    username: str
    balance: Decimal
    role: str
    parent_id: int | None
    created_at: datetime | None
    depth_from_viewer: int
    depth_from_root: int
    children: list["DownlineNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the node and its subtree (iteratively)."""
        root: dict[str, Any] = {}
        stack: list[tuple[DownlineNode, dict[str, Any]]] = [(self, root)]
        while stack:
            node, target = stack.pop()
            target.update(
                account_id=node.account_id,
                username=node.username,
                balance=node.balance,
                role=node.role,
                parent_id=node.parent_id,
                created_at=node.created_at,
                depth_from_viewer=node.depth_from_viewer,
                depth_from_root=node.depth_from_root,
                children=[],
            )
            for child in node.children:
                child_dict: dict[str, Any] = {}
                target["children"].append(child_dict)
                stack.append((child, child_dict))
        return root


def index_children(rows: Iterable[Any]) -> dict[int | None, list[Any]]:
    """
    Group rows by parent id, each group ordered by username ascending.

    Args:
        rows: Objects with ``parent_id`` and ``username`` attributes

    Returns:
        Mapping parent_id -> ordered child rows
    """
    index: dict[int | None, list[Any]] = {}
    for row in rows:
        index.setdefault(row.parent_id, []).append(row)
    for children in index.values():
        children.sort(key=lambda r: r.username)
    return index


def build_downline_tree(
    viewer_id: int,
    rows: Iterable[Any],
    viewer_depth_from_root: int = 0,
) -> list[DownlineNode]:
    """
    Assemble the downline of ``viewer_id`` from flat rows.

    Args:
        viewer_id: Account whose descendants the rows describe
        rows: Descendant rows with ``id``, ``username``, ``balance``,
            ``role``, ``parent_id`` and ``created_at`` attributes
        viewer_depth_from_root: Absolute level of the viewer

    Returns:
        Direct children of the viewer, each carrying its own subtree;
        children are ordered by username at every level
    """
    index = index_children(rows)
    top: list[DownlineNode] = []
    # (parent id, list to append to, depth of the nodes being created)
    stack: list[tuple[int, list[DownlineNode], int]] = [(viewer_id, top, 1)]
    seen: set[int] = {viewer_id}

    while stack:
        parent_id, siblings, depth = stack.pop()
        for row in index.get(parent_id, []):
            if row.id in seen:
                raise ConsistencyViolation(
                    f"Account {row.id} appears twice in downline of {viewer_id}"
                )
            seen.add(row.id)
            node = DownlineNode(
                account_id=row.id,
                username=row.username,
                balance=row.balance,
                role=row.role,
                parent_id=row.parent_id,
                created_at=row.created_at,
                depth_from_viewer=depth,
                depth_from_root=viewer_depth_from_root + depth,
            )
            siblings.append(node)
            stack.append((row.id, node.children, depth + 1))

    return top


def flatten_downline(nodes: list[DownlineNode]) -> list[DownlineNode]:
    """
    Depth-first, pre-order listing of a downline tree.

    Args:
        nodes: Top-level nodes as returned by build_downline_tree

    Returns:
        Every node, parents before their children, siblings by username
    """
    result: list[DownlineNode] = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children))
    return result


def compute_depths(parent_of: Mapping[int, int | None]) -> dict[int, int]:
    """
    Depth from root for every account in a parent map.

    Args:
        parent_of: Mapping account_id -> parent_id (None for roots)

    Returns:
        Mapping account_id -> number of parent hops to its root

    Raises:
        ConsistencyViolation: If the map contains a cycle or a dangling
            parent reference
    """
    depths: dict[int, int] = {}
    for start in parent_of:
        if start in depths:
            continue
        path: list[int] = []
        on_path: set[int] = set()
        current: int | None = start
        while current is not None and current not in depths:
            if current in on_path:
                raise ConsistencyViolation(f"Cycle detected at account {current}")
            if current not in parent_of:
                raise ConsistencyViolation(f"Dangling parent reference {current}")
            path.append(current)
            on_path.add(current)
            current = parent_of[current]
        base = -1 if current is None else depths[current]
        for offset, account_id in enumerate(reversed(path), start=1):
            depths[account_id] = base + offset
    return depths
