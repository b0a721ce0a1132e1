"""
App roles exposed by an application.

Roles live in the ``appRoles`` array; every change reads the current array,
edits one role and writes the whole array back.
"""

import logging
import uuid
from functools import partial
from typing import Any, Dict, List, Optional

from ..constants import ALLOWED_MEMBER_TYPE_OPTIONS
from ..models import GraphError, GraphErrorKind, TreeNode
from ..ui import InputBoxOptions, QuickPickItem
from ..validation import (
    validate_app_role_description,
    validate_app_role_display_name,
    validate_app_role_value,
)
from .base import ServiceBase, find_element, remove_element, update_element

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("displayName", "value", "description", "allowedMemberTypes")


class AppRoleService(ServiceBase):
    """App roles, stored as the ``appRoles`` array of the application."""

    async def add(self, node: TreeNode) -> bool:
        """Add a new app role under an app role group."""
        group = self.live_node(node)
        if group is None:
            return False

        roles = await self.read_field(group.identity, "appRoles", "Reading App Roles...")
        if roles is None:
            return False

        role = await self._input_role_details({}, False, roles)
        if role is None:
            return False

        def append(current: Optional[List[dict]]) -> List[dict]:
            current = current or []
            current.append(role)
            return current

        return await self.mutate(
            [group],
            "Adding App Role...",
            partial(self.read_modify_write, group.identity, "appRoles", append),
            refresh=lambda _: self.synchronizer.reload(group.path),
        )

    async def edit(self, node: TreeNode) -> bool:
        """Edit every field of an app role."""
        item = self.live_node(node)
        if item is None:
            return False

        roles = await self.read_field(item.identity, "appRoles", "Reading App Role...")
        if roles is None:
            return False
        existing = find_element(roles, item.local_value)
        if existing is None:
            await self._report_missing(item)
            return False

        role = await self._input_role_details(dict(existing), True, roles)
        if role is None:
            return False

        changes = {k: v for k, v in role.items() if k != "id"}
        return await self._update(item, "Updating App Role...", changes)

    async def edit_field(self, node: TreeNode, field: str) -> bool:
        """Edit a single field of an app role."""
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"App role field {field!r} cannot be edited")
        item = self.live_node(node)
        if item is None:
            return False

        roles = await self.read_field(item.identity, "appRoles", "Reading App Role...")
        if roles is None:
            return False
        existing = find_element(roles, item.local_value)
        if existing is None:
            await self._report_missing(item)
            return False

        title = "Edit App Role (1/1)"
        value: Any
        if field == "displayName":
            value = await self._input_display_name(title, existing.get("displayName"))
        elif field == "value":
            value = await self._input_value(title, True, roles, existing.get("value"))
        elif field == "description":
            value = await self._input_description(title, existing.get("description"))
        else:
            allowed = await self._input_allowed_member_types(title)
            value = allowed.value if allowed is not None else None
        if value is None:
            return False

        return await self._update(item, "Updating App Role...", {field: value})

    async def change_state(self, node: TreeNode, enabled: bool) -> bool:
        """Enable or disable an app role."""
        item = self.live_node(node)
        if item is None:
            return False
        status = "Enabling App Role..." if enabled else "Disabling App Role..."
        return await self._update(item, status, {"isEnabled": enabled})

    async def delete(self, node: TreeNode, hide_confirmation: bool = False) -> bool:
        """
        Delete an app role.

        Graph refuses to delete an enabled role, so an enabled role is first
        disabled after the user agrees to it.
        """
        item = self.live_node(node)
        if item is None:
            return False

        if item.is_enabled is not False and not hide_confirmation:
            agreed = await self.confirm(
                f"The App Role {item.label} cannot be deleted unless it is disabled. "
                "Do you want to disable the role and then delete it?"
            )
            if not agreed:
                return False
            path = item.path
            if not await self.change_state(item, False):
                return False
            # The group was reloaded, so look the disabled entry up again
            disabled = self.synchronizer.find(path)
            if disabled is None:
                return False
            return await self.delete(disabled, True)

        if not hide_confirmation:
            if not await self.confirm(f"Do you want to delete the App Role {item.label}?"):
                return False

        group_path = item.path[:-1]
        group = item.parent
        targets = [item, group] if group is not None else [item]
        return await self.mutate(
            targets,
            "Deleting App Role...",
            partial(
                self.read_modify_write,
                item.identity,
                "appRoles",
                partial(remove_element, item_id=item.local_value),
            ),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )

    async def _update(self, item: TreeNode, status: str, changes: Dict[str, Any]) -> bool:
        group_path = item.path[:-1]
        return await self.mutate(
            [item],
            status,
            partial(
                self.read_modify_write,
                item.identity,
                "appRoles",
                partial(update_element, item_id=item.local_value, changes=changes),
            ),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )

    async def _report_missing(self, item: TreeNode) -> None:
        await self.handle_error(
            GraphError(GraphErrorKind.NOT_FOUND, f"App role {item.label} no longer exists")
        )

    # Input steps

    async def _input_display_name(self, title: str, existing: Optional[str]) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title=title,
                prompt="App Role Display Name",
                placeholder="Enter a display name for the App Role",
                value=existing,
                validate=validate_app_role_display_name,
            )
        )

    async def _input_value(
        self, title: str, is_editing: bool, roles: List[dict], existing: Optional[str]
    ) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title=title,
                prompt="App Role Value",
                placeholder="Enter a value for the App Role",
                value=existing,
                validate=lambda value: validate_app_role_value(value, is_editing, existing, roles),
                debounce=500,
            )
        )

    async def _input_description(self, title: str, existing: Optional[str]) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title=title,
                prompt="App Role Description",
                placeholder="Enter a description for the App Role",
                value=existing,
                validate=validate_app_role_description,
            )
        )

    async def _input_allowed_member_types(self, title: str) -> Optional[QuickPickItem]:
        items = [
            QuickPickItem(label=label, description=description, value=value)
            for label, description, value in ALLOWED_MEMBER_TYPE_OPTIONS
        ]
        return await self.pick(items, title, "Select allowed member types")

    async def _input_role_details(
        self, role: Dict[str, Any], is_editing: bool, roles: List[dict]
    ) -> Optional[Dict[str, Any]]:
        """Collect the five role fields in order; any abort cancels the lot."""
        verb = "Edit" if is_editing else "Add"

        display_name = await self._input_display_name(f"{verb} App Role (1/5)", role.get("displayName"))
        if display_name is None:
            return None

        value = await self._input_value(f"{verb} App Role (2/5)", is_editing, roles, role.get("value"))
        if value is None:
            return None

        description = await self._input_description(f"{verb} App Role (3/5)", role.get("description"))
        if description is None:
            return None

        allowed = await self._input_allowed_member_types(f"{verb} App Role (4/5)")
        if allowed is None:
            return None

        state = await self.pick(
            [QuickPickItem(label="Enabled", value=True), QuickPickItem(label="Disabled", value=False)],
            f"{verb} App Role (5/5)",
            "Select role state",
        )
        if state is None:
            return None

        return {
            "id": role.get("id") or str(uuid.uuid4()),
            "displayName": display_name,
            "value": value,
            "description": description,
            "allowedMemberTypes": allowed.value,
            "isEnabled": state.value,
        }
