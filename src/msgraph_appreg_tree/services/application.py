"""
Application registrations: the root nodes of the tree.
"""

import json
import logging
from typing import Any, Dict, Optional

from ..constants import PORTAL_APP_URI, SIGN_IN_AUDIENCE_OPTIONS
from ..errors import GraphRequestError
from ..fields import build_root_node
from ..models import ROOT_PATH, TreeNode
from ..ui import InputBoxOptions, QuickPickItem
from ..validation import validate_application_display_name
from .base import ServiceBase

logger = logging.getLogger(__name__)


def _by_label(node: TreeNode) -> str:
    return node.label.casefold()


def _matches_filter(name: str, filter_text: Optional[str]) -> bool:
    # Graph evaluates startswith case-insensitively
    return not filter_text or name.casefold().startswith(filter_text.casefold())


class ApplicationService(ServiceBase):
    """Create, rename, delete and inspect application registrations."""

    async def add(self) -> bool:
        """
        Create a new application registration.

        The user is asked for a display name and a sign in audience. The new
        application is inserted into the loaded root level in display name
        order, without re-listing every application.

        Returns:
            True if the application was created
        """
        name = await self.input_text(
            InputBoxOptions(
                title="Create Application (1/2)",
                prompt="Create new application registration",
                placeholder="Application name...",
                validate=validate_application_display_name,
            )
        )
        if name is None:
            return False

        audience = await self.pick(
            [
                QuickPickItem(label=label, description=value, value=value)
                for label, value in SIGN_IN_AUDIENCE_OPTIONS.items()
            ],
            "Create Application (2/2)",
            "Select the sign in audience...",
        )
        if audience is None:
            return False

        async def insert(created: Optional[Dict[str, Any]]) -> None:
            if not self.synchronizer.is_loaded:
                await self.synchronizer.load_roots(self.synchronizer.filter_text)
                return
            if not _matches_filter(name, self.synchronizer.filter_text):
                logger.info(f"Created {name}, hidden by the filter {self.synchronizer.filter_text!r}")
                return
            self.synchronizer.insert_child(
                ROOT_PATH, build_root_node(created or {}), sort_key=_by_label
            )

        return await self.mutate(
            [],
            "Creating application registration...",
            lambda: self.repository.create_object(
                {"displayName": name, "signInAudience": audience.value}
            ),
            refresh=insert,
        )

    async def rename(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False

        name = await self.input_text(
            InputBoxOptions(
                title="Rename Application",
                prompt="Rename application with new display name",
                placeholder="New application name...",
                value=item.label,
                validate=validate_application_display_name,
            )
        )
        if name is None or name == item.label:
            return False

        path = item.path

        async def refresh(_: Any) -> None:
            await self.synchronizer.refresh(path)
            # Keep the root level in display name order
            self.synchronizer.reposition(path, _by_label)

        return await self.mutate(
            [item],
            "Renaming application registration...",
            lambda: self.repository.write_fields(item.identity, {"displayName": name}),
            refresh=refresh,
        )

    async def delete(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False

        if not await self.confirm(f"Do you want to delete the application {item.label}?"):
            return False

        path = item.path
        return await self.mutate(
            [item],
            "Deleting application registration...",
            lambda: self.repository.delete_object(item.identity),
            refresh=lambda _: self._detach(path),
        )

    async def _detach(self, path) -> None:
        self.synchronizer.remove_node(path)

    async def filter(self) -> bool:
        """
        Show only applications whose display name starts with the given text.

        An empty value clears the filter.
        """
        text = await self.input_text(
            InputBoxOptions(
                title="Filter Applications",
                prompt="Show applications whose display name starts with",
                placeholder="Display name...",
                value=self.synchronizer.filter_text,
            )
        )
        if text is None:
            return False

        filter_text = text.strip() or None
        logger.info(f"Filtering applications by {filter_text!r}")
        try:
            await self.synchronizer.load_roots(filter_text)
        except GraphRequestError as e:
            await self.handle_error(e.error)
            return False
        return True

    async def reload(self) -> bool:
        """Discard the cached tree and list the applications again."""
        try:
            await self.synchronizer.reload()
        except GraphRequestError as e:
            await self.handle_error(e.error)
            return False
        return True

    async def copy_id(self, node: TreeNode) -> None:
        app_id = node.data.get("appId") or node.description
        await self.ui.write_clipboard(app_id)

    async def open_in_portal(self, node: TreeNode) -> None:
        app_id = node.data.get("appId") or node.description
        await self.ui.open_external(f"{PORTAL_APP_URI}{app_id}")

    async def view_manifest(self, node: TreeNode) -> bool:
        """Open the full application object as formatted JSON."""
        handle = self.ui.set_status_message("Reading application manifest...")
        try:
            result = await self.repository.read_object(node.identity)
        finally:
            self.ui.clear_status_message(handle)
        if not result.success:
            await self.handle_error(result.error)
            return False
        await self.ui.show_document(f"{node.label}.json", json.dumps(result.value, indent=4))
        return True
