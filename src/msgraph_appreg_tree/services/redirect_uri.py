"""
Redirect URIs for the web, single-page and public client platforms.

Each platform object (``web``, ``spa``, ``publicClient``) is read and written
back whole so that sibling settings such as ``implicitGrantSettings`` are
never lost.
"""

import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from ..constants import REDIRECT_URI_PLATFORMS
from ..models import TreeNode
from ..ui import InputBoxOptions, QuickPickItem
from ..validation import validate_redirect_uri
from .base import ServiceBase

logger = logging.getLogger(__name__)


def on_redirect_uris(change: Callable[[List[str]], List[str]]):
    def apply(platform: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        platform = platform or {}
        platform["redirectUris"] = change(list(platform.get("redirectUris") or []))
        return platform

    return apply


def _replace_uri(uris: List[str], old: str, new: str) -> List[str]:
    if old not in uris:
        raise LookupError(f"Redirect URI {old} no longer exists")
    return [new if uri == old else uri for uri in uris]


def _remove_uri(uris: List[str], uri: str) -> List[str]:
    if uri not in uris:
        raise LookupError(f"Redirect URI {uri} no longer exists")
    return [u for u in uris if u != uri]


class RedirectUriService(ServiceBase):
    """Redirect URIs grouped under one tree node."""

    async def _read_uris(self, object_id: str, platform: str) -> Optional[List[str]]:
        value = await self.read_field(object_id, platform, "Reading Redirect URIs...")
        if value is None:
            return None
        return value.get("redirectUris") or []

    async def _input_uri(
        self, title: str, platform: str, existing: List[str], old: Optional[str] = None
    ) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title=title,
                prompt="Redirect URI",
                placeholder="Enter a redirect URI, for example https://localhost:5001/signin-oidc",
                value=old,
                validate=lambda value: validate_redirect_uri(value, platform, existing, old),
            )
        )

    async def add(self, node: TreeNode) -> bool:
        group = self.live_node(node)
        if group is None:
            return False

        platform = await self.pick(
            [
                QuickPickItem(label=label, description=key, value=key)
                for key, label in REDIRECT_URI_PLATFORMS.items()
            ],
            "Add Redirect URI (1/2)",
            "Select the platform",
        )
        if platform is None:
            return False

        existing = await self._read_uris(group.identity, platform.value)
        if existing is None:
            return False

        uri = await self._input_uri("Add Redirect URI (2/2)", platform.value, existing)
        if uri is None:
            return False

        return await self.mutate(
            [group],
            "Adding Redirect URI...",
            partial(
                self.read_modify_write,
                group.identity,
                platform.value,
                on_redirect_uris(lambda uris: uris + [uri]),
            ),
            refresh=lambda _: self.synchronizer.reload(group.path),
        )

    async def edit(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False
        platform, old = item.data["platform"], item.data["uri"]

        existing = await self._read_uris(item.identity, platform)
        if existing is None:
            return False

        uri = await self._input_uri("Edit Redirect URI", platform, existing, old)
        if uri is None or uri == old:
            return False

        group_path = item.path[:-1]
        return await self.mutate(
            [item],
            "Updating Redirect URI...",
            partial(
                self.read_modify_write,
                item.identity,
                platform,
                on_redirect_uris(partial(_replace_uri, old=old, new=uri)),
            ),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )

    async def delete(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False
        platform, uri = item.data["platform"], item.data["uri"]

        if not await self.confirm(f"Do you want to delete the Redirect URI {uri}?"):
            return False

        group_path = item.path[:-1]
        targets = [item, item.parent] if item.parent is not None else [item]
        return await self.mutate(
            targets,
            "Deleting Redirect URI...",
            partial(
                self.read_modify_write,
                item.identity,
                platform,
                on_redirect_uris(partial(_remove_uri, uri=uri)),
            ),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )
