"""Owners of an application registration."""

import logging
from typing import Optional

from ..fields import build_owner_node
from ..models import TreeNode
from ..ui import InputBoxOptions, QuickPickItem
from ..validation import validate_user_search
from .base import ServiceBase

logger = logging.getLogger(__name__)


def _by_label(node: TreeNode) -> str:
    return node.label.casefold()


class OwnerService(ServiceBase):
    """Owners of an application (a relationship, not an array property)."""

    async def add(self, node: TreeNode) -> bool:
        group = self.live_node(node)
        if group is None:
            return False

        query = await self.input_text(
            InputBoxOptions(
                title="Add Owner (1/2)",
                prompt="Search for a user",
                placeholder="Enter the start of a name, email address or UPN",
                validate=validate_user_search,
            )
        )
        if query is None:
            return False

        handle = self.ui.set_status_message("Searching users...")
        try:
            found = await self.repository.find_users(query)
        finally:
            self.ui.clear_status_message(handle)
        if not found.success:
            await self.handle_error(found.error)
            return False
        if not found.value:
            await self.ui.show_information_message(f"No users found matching '{query}'.")
            return False

        choice = await self.pick(
            [
                QuickPickItem(
                    label=user.get("displayName") or user["id"],
                    description=user.get("mail") or user.get("userPrincipalName") or "",
                    value=user,
                )
                for user in found.value
            ],
            "Add Owner (2/2)",
            "Select the user to add as an owner",
        )
        if choice is None:
            return False
        user = choice.value

        if any(child.local_value == user["id"] for child in group.children or []):
            await self.ui.show_error_message(f"{choice.label} is already an owner of this application.")
            return False

        async def insert(_) -> None:
            live = self.synchronizer.find(group.path)
            if live is not None and live.children is not None:
                self.synchronizer.insert_child(
                    group.path, build_owner_node(group.identity, user), sort_key=_by_label
                )

        return await self.mutate(
            [group],
            "Adding Owner...",
            lambda: self.repository.add_owner(group.identity, user["id"]),
            refresh=insert,
        )

    async def remove(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False

        group: Optional[TreeNode] = item.parent
        if group is not None and group.children is not None and len(group.children) <= 1:
            await self.ui.show_error_message(
                "An application registration should keep at least one owner."
            )
            return False

        if not await self.confirm(f"Do you want to remove {item.label} as an owner?"):
            return False

        path = item.path
        targets = [item, group] if group is not None else [item]
        return await self.mutate(
            targets,
            "Removing Owner...",
            lambda: self.repository.remove_owner(item.identity, item.local_value),
            refresh=lambda _: self._detach(path),
        )

    async def _detach(self, path) -> None:
        self.synchronizer.remove_node(path)
