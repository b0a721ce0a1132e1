"""
Exposed API permission scopes.

Scopes live in ``api.oauth2PermissionScopes``; every change reads the current
``api`` object, edits the one scope and writes the whole ``api`` object back.
"""

import logging
import uuid
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from ..models import GraphError, GraphErrorKind, TreeNode
from ..ui import InputBoxOptions, QuickPickItem
from ..validation import (
    validate_scope_description,
    validate_scope_display_name,
    validate_scope_value,
)
from .base import ServiceBase, find_element, remove_element, update_element

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "value",
    "type",
    "adminConsentDisplayName",
    "adminConsentDescription",
    "userConsentDisplayName",
    "userConsentDescription",
)

_PROMPTS = {
    "adminConsentDisplayName": ("Admin consent display name", validate_scope_display_name),
    "adminConsentDescription": ("Admin consent description", validate_scope_description),
    "userConsentDisplayName": ("User consent display name (optional)", None),
    "userConsentDescription": ("User consent description (optional)", None),
}


def on_scopes(change: Callable[[List[dict]], List[dict]]) -> Callable[[Any], Dict[str, Any]]:
    """Lift a change to the scope list into a change to the ``api`` object."""

    def apply(api: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        api = api or {}
        api["oauth2PermissionScopes"] = change(api.get("oauth2PermissionScopes") or [])
        return api

    return apply


class OAuth2PermissionScopeService(ServiceBase):
    """Scopes the application exposes to other applications."""

    async def _read_scopes(self, object_id: str, status: str) -> Optional[List[dict]]:
        api = await self.read_field(object_id, "api", status)
        if api is None:
            return None
        return api.get("oauth2PermissionScopes") or []

    async def add(self, node: TreeNode) -> bool:
        group = self.live_node(node)
        if group is None:
            return False

        scopes = await self._read_scopes(group.identity, "Reading Exposed API Permissions...")
        if scopes is None:
            return False

        scope = await self._input_scope_details({}, False, scopes)
        if scope is None:
            return False

        return await self.mutate(
            [group],
            "Adding Exposed API Permission...",
            partial(
                self.read_modify_write,
                group.identity,
                "api",
                on_scopes(lambda current: current + [scope]),
            ),
            refresh=lambda _: self.synchronizer.reload(group.path),
        )

    async def edit(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False

        scopes = await self._read_scopes(item.identity, "Reading Exposed API Permission...")
        if scopes is None:
            return False
        existing = find_element(scopes, item.local_value)
        if existing is None:
            await self._report_missing(item)
            return False

        scope = await self._input_scope_details(dict(existing), True, scopes)
        if scope is None:
            return False
        changes = {k: v for k, v in scope.items() if k != "id"}
        return await self._update(item, "Updating Exposed API Permission...", changes)

    async def edit_field(self, node: TreeNode, field: str) -> bool:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Scope field {field!r} cannot be edited")
        item = self.live_node(node)
        if item is None:
            return False

        scopes = await self._read_scopes(item.identity, "Reading Exposed API Permission...")
        if scopes is None:
            return False
        existing = find_element(scopes, item.local_value)
        if existing is None:
            await self._report_missing(item)
            return False

        title = "Edit Exposed API Permission (1/1)"
        value: Any
        if field == "value":
            value = await self._input_value(title, True, scopes, existing.get("value"))
        elif field == "type":
            choice = await self._input_consent_type(title)
            value = choice.value if choice is not None else None
        else:
            value = await self._input_text_field(title, field, existing.get(field))
        if value is None:
            return False

        return await self._update(item, "Updating Exposed API Permission...", {field: value or None})

    async def change_state(self, node: TreeNode, enabled: bool) -> bool:
        item = self.live_node(node)
        if item is None:
            return False
        status = (
            "Enabling Exposed API Permission..."
            if enabled
            else "Disabling Exposed API Permission..."
        )
        return await self._update(item, status, {"isEnabled": enabled})

    async def delete(self, node: TreeNode, hide_confirmation: bool = False) -> bool:
        """Delete a scope, disabling it first (with confirmation) if enabled."""
        item = self.live_node(node)
        if item is None:
            return False

        if item.is_enabled is not False and not hide_confirmation:
            agreed = await self.confirm(
                f"The scope {item.label} cannot be deleted unless it is disabled. "
                "Do you want to disable the scope and then delete it?"
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
            if not await self.confirm(f"Do you want to delete the scope {item.label}?"):
                return False

        group_path = item.path[:-1]
        targets = [item, item.parent] if item.parent is not None else [item]
        return await self.mutate(
            targets,
            "Deleting Exposed API Permission...",
            partial(
                self.read_modify_write,
                item.identity,
                "api",
                on_scopes(partial(remove_element, item_id=item.local_value)),
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
                "api",
                on_scopes(partial(update_element, item_id=item.local_value, changes=changes)),
            ),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )

    async def _report_missing(self, item: TreeNode) -> None:
        await self.handle_error(
            GraphError(GraphErrorKind.NOT_FOUND, f"Scope {item.label} no longer exists")
        )

    async def _input_value(
        self, title: str, is_editing: bool, scopes: List[dict], existing: Optional[str]
    ) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title=title,
                prompt="Scope name",
                placeholder="Enter a scope name, for example Files.Read",
                value=existing,
                validate=lambda value: validate_scope_value(value, is_editing, existing, scopes),
                debounce=500,
            )
        )

    async def _input_consent_type(self, title: str) -> Optional[QuickPickItem]:
        return await self.pick(
            [
                QuickPickItem(label="Admins only", value="Admin"),
                QuickPickItem(label="Admins and users", value="User"),
            ],
            title,
            "Who can consent?",
        )

    async def _input_text_field(self, title: str, field: str, existing: Optional[str]) -> Optional[str]:
        prompt, validator = _PROMPTS[field]
        return await self.input_text(
            InputBoxOptions(title=title, prompt=prompt, value=existing, validate=validator)
        )

    async def _input_scope_details(
        self, scope: Dict[str, Any], is_editing: bool, scopes: List[dict]
    ) -> Optional[Dict[str, Any]]:
        verb = "Edit" if is_editing else "Add"
        steps = 7

        value = await self._input_value(f"{verb} Exposed API Permission (1/{steps})", is_editing, scopes, scope.get("value"))
        if value is None:
            return None

        consent = await self._input_consent_type(f"{verb} Exposed API Permission (2/{steps})")
        if consent is None:
            return None

        collected: Dict[str, Optional[str]] = {}
        for step, field in enumerate(_PROMPTS, start=3):
            text = await self._input_text_field(
                f"{verb} Exposed API Permission ({step}/{steps})", field, scope.get(field)
            )
            if text is None:
                return None
            collected[field] = text or None

        state = await self.pick(
            [QuickPickItem(label="Enabled", value=True), QuickPickItem(label="Disabled", value=False)],
            f"{verb} Exposed API Permission ({steps}/{steps})",
            "Select scope state",
        )
        if state is None:
            return None

        return {
            "id": scope.get("id") or str(uuid.uuid4()),
            "value": value,
            "type": consent.value,
            **collected,
            "isEnabled": state.value,
        }
