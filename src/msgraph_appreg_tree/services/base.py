"""
Mutation protocol shared by every domain service.

Each mutating operation goes through ``ServiceBase.mutate``:

1. Begin: show a status message, mark the target nodes busy and notify the
   rendering surface, all before the first suspension.
2. Execute: await exactly one logical remote operation.
3. Complete: clear the status message, then either mark the nodes idle and
   refresh the affected subtree, or mark them error, leave the cached data
   untouched and hand the failure to the shared error surface.

User input is always collected before Begin, so an aborted prompt never
shows a busy node.
"""

import copy
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from ..config import Settings
from ..errors import GraphRequestError, TreeSyncError
from ..models import GraphError, GraphErrorKind, GraphResult, TreeNode, TreePath, VisualState
from ..reporting import ErrorReporter
from ..repository.base import GraphRepository
from ..sync import TreeSynchronizer
from ..ui import InputBoxOptions, QuickPickItem, QuickPickOptions, UserInterface

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[GraphResult]]
Refresh = Callable[[Any], Awaitable[Any]]
Modify = Callable[[Any], Any]


class ServiceBase:
    """Base class wiring a domain service to the repository, tree and UI."""

    def __init__(
        self,
        repository: GraphRepository,
        synchronizer: TreeSynchronizer,
        ui: UserInterface,
        reporter: Optional[ErrorReporter] = None,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.synchronizer = synchronizer
        self.ui = ui
        self.reporter = reporter or ErrorReporter(ui)
        self.settings = settings or Settings()

    async def handle_error(self, error: GraphError) -> None:
        await self.reporter.handle_error(error)

    def live_node(self, node: TreeNode) -> Optional[TreeNode]:
        """The node currently cached at ``node``'s path, if it still exists."""
        live = self.synchronizer.find(node.path)
        if live is None:
            logger.warning(f"{node.kind.value} {node.local_value or node.identity} is no longer in the tree")
        return live

    async def mutate(
        self,
        targets: Sequence[TreeNode],
        status: str,
        operation: Operation,
        refresh: Optional[Refresh] = None,
    ) -> bool:
        """
        Run ``operation`` under the mutation protocol.

        Args:
            targets: Nodes shown busy while the operation runs (the target and,
                for operations changing a child count, its parent)
            status: Progress text shown while the operation runs
            operation: The remote call(s), returning one GraphResult
            refresh: Called with the result value after success to update or
                reload the affected subtree

        Returns:
            True if the remote operation succeeded
        """
        paths: List[TreePath] = [node.path for node in targets]
        live = [self.synchronizer.find(path) for path in paths]
        if any(node is None for node in live):
            logger.warning(f"Ignoring '{status}': the item is no longer in the tree")
            return False
        if any(
            node.effective_state is VisualState.BUSY or self.synchronizer.is_in_flight(node.path)
            for node in live
        ):
            logger.warning(f"Ignoring '{status}': another operation on this item is in progress")
            return False

        handle = self.ui.set_status_message(status)
        for path in paths:
            self.synchronizer.begin_operation(path)
        for path in paths:
            self.synchronizer.notify_changed(path)
        logger.debug(f"Begin: {status}")

        result: Optional[GraphResult] = None
        try:
            result = await operation()
        finally:
            self.ui.clear_status_message(handle)
            succeeded = result is not None and result.success
            final_state = VisualState.IDLE if succeeded else VisualState.ERROR
            for path in paths:
                self.synchronizer.end_operation(path, final_state)
            if not succeeded:
                for path in paths:
                    self.synchronizer.notify_changed(path)

        if not result.success:
            logger.error(f"Failed: {status} {result.error}")
            await self.handle_error(result.error)
            return False

        if refresh is not None:
            try:
                await refresh(result.value)
            except GraphRequestError as e:
                await self.handle_error(e.error)
            except TreeSyncError as e:
                logger.warning(f"Skipped refresh after '{status}': {e}")
        for path in paths:
            self.synchronizer.notify_changed(path)
        logger.info(f"Completed: {status}")
        return True

    # Remote reads

    async def read_field(self, object_id: str, field: str, status: Optional[str] = None) -> Optional[Any]:
        """
        Field-scoped read of one property, reporting failures.

        Returns:
            A private copy of the property value, or None if the read failed
        """
        handle = self.ui.set_status_message(status) if status else None
        try:
            result = await self.repository.read_fields(object_id, [field])
        finally:
            if handle is not None:
                self.ui.clear_status_message(handle)
        if not result.success:
            await self.handle_error(result.error)
            return None
        return copy.deepcopy((result.value or {}).get(field))

    async def read_modify_write(self, object_id: str, field: str, modify: Modify) -> GraphResult:
        """
        Read ``field``, apply ``modify`` to a copy and write the whole value back.

        ``modify`` receives the freshly read value and returns the value to
        submit. It raises LookupError when the element it targets has gone.
        """
        read = await self.repository.read_fields(object_id, [field])
        if not read.success:
            return GraphResult.fail(read.error)
        current = copy.deepcopy((read.value or {}).get(field))
        try:
            updated = modify(current)
        except LookupError as e:
            return GraphResult.fail(GraphError(GraphErrorKind.NOT_FOUND, str(e)))
        write = await self.repository.write_fields(object_id, {field: updated})
        if not write.success:
            return GraphResult.fail(write.error)
        return GraphResult.ok(updated)

    # Input collection

    async def input_text(self, options: InputBoxOptions) -> Optional[str]:
        """Prompt for text; None if aborted or the final value is invalid."""
        value = await self.ui.show_input_box(options)
        if value is None:
            logger.debug(f"Input aborted: {options.title}")
            return None
        if options.validate is not None:
            error = options.validate(value)
            if error:
                logger.info(f"Rejected input for '{options.title}': {error}")
                await self.ui.show_error_message(error)
                return None
        return value

    async def pick(
        self, items: List[QuickPickItem], title: str, placeholder: str = ""
    ) -> Optional[QuickPickItem]:
        choice = await self.ui.show_quick_pick(
            items, QuickPickOptions(title=title, placeholder=placeholder)
        )
        if choice is None:
            logger.debug(f"Selection aborted: {title}")
        return choice

    async def confirm(self, message: str, accept: str = "Yes", modal: bool = False) -> bool:
        actions = (accept,) if modal else (accept, "No")
        answer = await self.ui.show_warning_message(message, *actions, modal=modal)
        return answer == accept


def update_element(items: Optional[List[dict]], item_id: str, changes: dict, key: str = "id") -> List[dict]:
    """Apply ``changes`` to the element whose ``key`` equals ``item_id``."""
    for item in items or []:
        if item.get(key) == item_id:
            item.update(changes)
            return items
    raise LookupError(f"Item {item_id} no longer exists")


def remove_element(items: Optional[List[dict]], item_id: str, key: str = "id") -> List[dict]:
    """Return ``items`` without the element whose ``key`` equals ``item_id``."""
    remaining = [item for item in items or [] if item.get(key) != item_id]
    if len(remaining) == len(items or []):
        raise LookupError(f"Item {item_id} no longer exists")
    return remaining


def find_element(items: Optional[List[dict]], item_id: str, key: str = "id") -> Optional[dict]:
    return next((item for item in items or [] if item.get(key) == item_id), None)
