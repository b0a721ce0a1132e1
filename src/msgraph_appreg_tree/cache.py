"""
In-memory cache tree mirroring the remote application registrations.

All mutations are synchronous and never perform I/O. Child lists are treated
as immutable snapshots: every change builds a new list and swaps it in with a
single assignment, so a reader holding the previous list never observes a
half-applied change.
"""

import bisect
import logging
from typing import Any, Callable, List, Optional

from .errors import TreeSyncError
from .models import ROOT_PATH, TreeNode, TreePath

logger = logging.getLogger(__name__)


class CacheTree:
    """Forest of application nodes addressed by key paths."""

    def __init__(self) -> None:
        self._roots: Optional[List[TreeNode]] = None

    @property
    def roots(self) -> Optional[List[TreeNode]]:
        """Root application nodes, or None before the first load."""
        return self._roots

    @property
    def is_loaded(self) -> bool:
        return self._roots is not None

    def set_roots(self, roots: List[TreeNode]) -> None:
        for root in roots:
            root.parent = None
        self._roots = list(roots)

    def clear(self) -> None:
        self._roots = None

    def find(self, path: TreePath) -> Optional[TreeNode]:
        """Walk ``path`` from the roots, returning None if any step is missing."""
        if not path:
            return None
        siblings = self._roots
        node = None
        for key in path:
            if siblings is None:
                return None
            node = next((child for child in siblings if child.key == key), None)
            if node is None:
                return None
            siblings = node.children
        return node

    def _siblings(self, parent_path: TreePath) -> Optional[List[TreeNode]]:
        if parent_path == ROOT_PATH:
            return self._roots
        parent = self.find(parent_path)
        if parent is None:
            raise TreeSyncError(f"Parent {parent_path} is no longer in the tree")
        return parent.children

    def _store(self, parent_path: TreePath, children: List[TreeNode]) -> None:
        if parent_path == ROOT_PATH:
            self._roots = children
            return
        parent = self.find(parent_path)
        if parent is None:
            raise TreeSyncError(f"Parent {parent_path} is no longer in the tree")
        parent.children = parent.adopt(children)

    def replace_subtree(self, path: TreePath, new_node: TreeNode) -> TreeNode:
        """Swap the node at ``path`` (and everything below it) for ``new_node``."""
        if not path:
            raise TreeSyncError("The root of the forest cannot be replaced")
        parent_path = path[:-1]
        siblings = self._siblings(parent_path)
        if siblings is None:
            raise TreeSyncError(f"Children of {parent_path} are not resolved")
        index = next(
            (i for i, child in enumerate(siblings) if child.key == path[-1]), None
        )
        if index is None:
            raise TreeSyncError(f"Node {path[-1]} is no longer in the tree")
        updated = list(siblings)
        updated[index] = new_node
        if parent_path == ROOT_PATH:
            new_node.parent = None
        self._store(parent_path, updated)
        logger.debug(f"Replaced node {path[-1]}")
        return new_node

    def remove_node(self, path: TreePath) -> TreeNode:
        """Detach the node at ``path`` from its parent."""
        if not path:
            raise TreeSyncError("The root of the forest cannot be removed")
        node = self.find(path)
        if node is None:
            raise TreeSyncError(f"Node {path[-1]} is no longer in the tree")
        parent_path = path[:-1]
        siblings = self._siblings(parent_path) or []
        self._store(parent_path, [child for child in siblings if child is not node])
        node.parent = None
        logger.debug(f"Removed node {path[-1]}")
        return node

    def insert_child(
        self,
        parent_path: TreePath,
        node: TreeNode,
        position: Optional[int] = None,
        sort_key: Optional[Callable[[TreeNode], Any]] = None,
    ) -> TreeNode:
        """
        Insert ``node`` under ``parent_path``.

        The node is appended unless an explicit ``position`` is given, or a
        ``sort_key`` is supplied to keep an ordered sibling list ordered.
        """
        siblings = self._siblings(parent_path)
        if siblings is None:
            raise TreeSyncError(f"Children of {parent_path} are not resolved")
        if any(child.key == node.key for child in siblings):
            raise TreeSyncError(f"Node {node.key} already exists under {parent_path}")
        updated = list(siblings)
        if sort_key is not None:
            keys = [sort_key(child) for child in updated]
            updated.insert(bisect.bisect_right(keys, sort_key(node)), node)
        elif position is not None:
            updated.insert(position, node)
        else:
            updated.append(node)
        if parent_path == ROOT_PATH:
            node.parent = None
        self._store(parent_path, updated)
        return node
