"""
Tree synchronizer: the single writer of the cache tree.

The synchronizer resolves children lazily with field-scoped reads, coalesces
overlapping resolutions of the same node into one remote call, performs full
and partial reloads, and publishes change events for the rendering surface.
Domain services read nodes and request tree mutations through it.
"""

import asyncio
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .cache import CacheTree
from .errors import GraphRequestError, TreeSyncError
from .fields import ROOT_FIELDS, build_children, build_leaf, build_root_node, field_set_for
from .models import (
    GROUP_KINDS,
    ROOT_PATH,
    GraphError,
    NodeKind,
    TreeChangeEvent,
    TreeNode,
    TreePath,
    VisualState,
)
from .repository.base import GraphRepository

logger = logging.getLogger(__name__)

Listener = Callable[[TreeChangeEvent], None]
ErrorHandler = Callable[[GraphError], Awaitable[None]]


class ChangeEmitter:
    """Change event source owned by one synchronizer."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def fire(self, event: TreeChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Tree change listener failed: {e}")


def _fresh_copy(node: TreeNode) -> TreeNode:
    """Idle, unresolved copy of ``node`` used when its subtree is discarded."""
    return TreeNode(
        kind=node.kind,
        identity=node.identity,
        local_value=node.local_value,
        label=node.label,
        description=node.description,
        data=dict(node.data),
    )


class TreeSynchronizer:
    """Bridges the cache tree to the rendering surface and domain services."""

    def __init__(
        self,
        repository: GraphRepository,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.repository = repository
        self.error_handler = error_handler
        self.cache = CacheTree()
        self.events = ChangeEmitter()
        self.filter_text: Optional[str] = None
        self._roots_pending: Optional[asyncio.Task] = None
        self._roots_pending_filter: Optional[str] = None
        # Paths targeted by running mutations, with the number of them
        self._in_flight: Dict[TreePath, int] = {}

    @property
    def is_loaded(self) -> bool:
        """True once the root level has been listed."""
        return self.cache.is_loaded

    # Notification

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    def notify_changed(self, path: Optional[TreePath] = None) -> None:
        """Emit a change for ``path``, or for the whole tree when path is root."""
        self.events.fire(TreeChangeEvent(path=path or None))

    # Reads

    def find(self, path: TreePath) -> Optional[TreeNode]:
        return self.cache.find(path)

    async def get_children(self, node: Optional[TreeNode] = None) -> List[TreeNode]:
        """
        Pull model for the rendering surface.

        Failures are routed to the shared error handler and render as an
        empty list; the node stays unresolved so expanding it again retries.
        """
        try:
            if node is None:
                if self.cache.roots is None:
                    return await self.load_roots(self.filter_text)
                return list(self.cache.roots)
            return list(await self.resolve_children(node))
        except GraphRequestError as e:
            await self._report(e.error)
            return []

    async def _report(self, error: GraphError) -> None:
        if self.error_handler is None:
            logger.error(f"Unhandled remote error: {error}")
            return
        await self.error_handler(error)

    async def load_roots(self, filter_text: Optional[str] = None) -> List[TreeNode]:
        """Fetch the visible applications and rebuild the root level."""
        pending = self._roots_pending
        if pending is not None and not pending.done():
            if self._roots_pending_filter == filter_text:
                return list(await asyncio.shield(pending))
            logger.debug(f"Waiting for the listing in progress before filtering by {filter_text!r}")
            await asyncio.wait([pending])
            return await self.load_roots(filter_text)

        task = asyncio.ensure_future(self._fetch_roots(filter_text))
        self._roots_pending = task
        self._roots_pending_filter = filter_text
        task.add_done_callback(self._clear_roots_pending)
        return list(await asyncio.shield(task))

    def _clear_roots_pending(self, task: asyncio.Task) -> None:
        if self._roots_pending is task:
            self._roots_pending = None
            self._roots_pending_filter = None

    async def _fetch_roots(self, filter_text: Optional[str]) -> List[TreeNode]:
        logger.debug(f"Listing applications (filter: {filter_text!r})")
        result = await self.repository.list_root_objects(filter_text)
        if not result.success:
            raise GraphRequestError(result.error)

        roots = sorted(
            (build_root_node(summary) for summary in result.value or []),
            key=lambda n: n.label.casefold(),
        )
        self.filter_text = filter_text
        self.cache.set_roots(roots)
        for root in roots:
            self._keep_busy(root)
        self.notify_changed(ROOT_PATH)
        logger.info(f"Loaded {len(roots)} applications")
        return roots

    async def resolve_children(self, node: TreeNode) -> List[TreeNode]:
        """
        Return the children of ``node``, fetching them on first use.

        Concurrent callers for the same unresolved node share one fetch. A
        cancelled caller leaves the fetch running for the others.

        Raises:
            GraphRequestError: the field-scoped read failed; the node is left
                unresolved in the error state.
        """
        if node.children is not None:
            return node.children

        if node.pending is not None and not node.pending.done():
            logger.debug(f"Joining in-flight resolution of {node.key}")
            return await asyncio.shield(node.pending)

        task = asyncio.ensure_future(self._fetch_children(node))
        node.pending = task
        task.add_done_callback(partial(_clear_pending, node))
        return await asyncio.shield(task)

    async def _fetch_children(self, node: TreeNode) -> List[TreeNode]:
        fields = field_set_for(node.kind)
        if node.kind is NodeKind.OWNER_GROUP:
            result = await self.repository.list_owners(node.identity)
            payload = {"owners": result.value or []}
        elif fields is None or node.kind in (NodeKind.AUDIENCE, NodeKind.TOKEN_FLOW_FLAG):
            node.children = []
            return node.children
        else:
            logger.debug(f"Reading {fields} of {node.identity} for {node.kind.value}")
            result = await self.repository.read_fields(node.identity, fields)
            payload = result.value or {}

        if not result.success:
            node.visual_state = VisualState.ERROR
            self.notify_changed(node.path)
            logger.error(f"Failed to resolve {node.kind.value} of {node.identity}: {result.error}")
            raise GraphRequestError(result.error)

        node.children = build_children(node, payload)
        if node.visual_state is VisualState.ERROR:
            node.visual_state = VisualState.IDLE
        for child in node.children:
            self._keep_busy(child)
        self.notify_changed(node.path)
        return node.children

    # Reloads

    async def reload(self, path: TreePath = ROOT_PATH) -> Optional[TreeNode]:
        """
        Discard the cached subtree at ``path`` and resolve it again.

        Raises:
            TreeSyncError: ``path`` is no longer in the tree.
            GraphRequestError: the re-read failed.
        """
        if path == ROOT_PATH:
            self.cache.clear()
            self.notify_changed(ROOT_PATH)
            await self.load_roots(self.filter_text)
            return None

        node = self.cache.find(path)
        if node is None:
            raise TreeSyncError(f"Cannot reload {path[-1]}: no longer in the tree")

        fresh = self._keep_busy(self.cache.replace_subtree(path, _fresh_copy(node)))
        self.notify_changed(path)
        await self.resolve_children(fresh)
        return fresh

    async def refresh(self, path: TreePath) -> Optional[TreeNode]:
        """
        Re-read only the fields backing the node at ``path``.

        Leaf flags re-read their own properties, applications re-read their
        summary and keep their resolved children, groups reload, and entries
        inside a group reload the group.
        """
        node = self.cache.find(path)
        if node is None:
            raise TreeSyncError(f"Cannot refresh {path[-1] if path else 'root'}: not in the tree")

        if node.kind in GROUP_KINDS:
            return await self.reload(path)

        if node.kind in (NodeKind.AUDIENCE, NodeKind.TOKEN_FLOW_FLAG, NodeKind.APPLICATION):
            fields = ROOT_FIELDS if node.kind is NodeKind.APPLICATION else field_set_for(node.kind)
            result = await self.repository.read_fields(node.identity, fields or [])
            if not result.success:
                raise GraphRequestError(result.error)
            if node.kind is NodeKind.APPLICATION:
                fresh = build_root_node(result.value or {})
                if node.children is not None:
                    fresh.children = fresh.adopt(node.children)
            else:
                fresh = build_leaf(node.kind, node.identity, node.local_value, result.value or {})
            # The node may have moved or vanished while the read was in flight
            if self.cache.find(path) is not node:
                raise TreeSyncError(f"{path[-1]} changed while it was being refreshed")
            self._keep_busy(self.cache.replace_subtree(path, fresh))
            self.notify_changed(path)
            return fresh

        return await self.reload(path[:-1])

    # Mutations requested by domain services

    def set_visual_state(self, path: TreePath, state: VisualState) -> Optional[TreeNode]:
        node = self.cache.find(path)
        if node is None:
            logger.warning(f"Cannot mark {path[-1] if path else 'root'} {state.value}: not in the tree")
            return None
        node.visual_state = state
        return node

    def insert_child(self, parent_path: TreePath, node: TreeNode, **kwargs) -> TreeNode:
        inserted = self._keep_busy(self.cache.insert_child(parent_path, node, **kwargs))
        self.notify_changed(parent_path)
        return inserted

    def remove_node(self, path: TreePath) -> TreeNode:
        removed = self.cache.remove_node(path)
        self.notify_changed(path[:-1])
        return removed

    def replace_subtree(self, path: TreePath, node: TreeNode) -> TreeNode:
        replaced = self._keep_busy(self.cache.replace_subtree(path, node))
        self.notify_changed(path)
        return replaced

    def reposition(self, path: TreePath, sort_key: Callable[[TreeNode], Any]) -> TreeNode:
        """Move the node at ``path`` to its place in an ordered sibling list."""
        parent_path = path[:-1]
        node = self.cache.remove_node(path)
        moved = self._keep_busy(self.cache.insert_child(parent_path, node, sort_key=sort_key))
        self.notify_changed(parent_path)
        return moved

    # Operations in flight

    def begin_operation(self, path: TreePath) -> Optional[TreeNode]:
        """Mark the node at ``path`` busy until the matching ``end_operation``."""
        self._in_flight[path] = self._in_flight.get(path, 0) + 1
        return self.set_visual_state(path, VisualState.BUSY)

    def end_operation(self, path: TreePath, state: VisualState) -> Optional[TreeNode]:
        """Settle the node at ``path`` in ``state`` once no operation targets it."""
        remaining = self._in_flight.get(path, 0) - 1
        if remaining > 0:
            self._in_flight[path] = remaining
            return self.cache.find(path)
        self._in_flight.pop(path, None)
        return self.set_visual_state(path, state)

    def is_in_flight(self, path: TreePath) -> bool:
        return path in self._in_flight

    def _keep_busy(self, node: TreeNode) -> TreeNode:
        """Re-apply BUSY to ``node`` and resolved descendants still being mutated."""
        if not self._in_flight:
            return node
        stack = [node]
        while stack:
            current = stack.pop()
            if current.path in self._in_flight:
                current.visual_state = VisualState.BUSY
            stack.extend(current.children or [])
        return node


def _clear_pending(node: TreeNode, task: asyncio.Task) -> None:
    if node.pending is task:
        node.pending = None
