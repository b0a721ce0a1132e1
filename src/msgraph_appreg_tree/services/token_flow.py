"""
Implicit grant and public client flow settings.

Implicit and hybrid flags live in ``web.implicitGrantSettings``; the public
client flag is the top level ``isFallbackPublicClient`` property.
"""

import logging
from functools import partial
from typing import Any, Dict, Optional

from ..constants import HYBRID_FLOW, IMPLICIT_FLOW
from ..models import NodeKind, TreeNode
from .base import ServiceBase

logger = logging.getLogger(__name__)

_DISABLE_WARNING = (
    "Turning off {flow} grant settings will disable them for the entire application. "
    "If you have an application in production still using {flow} settings, disabling "
    "these settings may cause issues. Are you sure you want to disable {flow} grant?"
)


def _with_grants(changes: Dict[str, bool]):
    def apply(web: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        web = web or {}
        grants = web.get("implicitGrantSettings") or {}
        grants.update(changes)
        web["implicitGrantSettings"] = grants
        return web

    return apply


class TokenFlowService(ServiceBase):
    """Implicit, hybrid and public client token issuance flags."""

    async def enable_implicit_flow(self, node: TreeNode, enable: bool) -> bool:
        item = self.live_node(node)
        if item is None:
            return False
        # Following the portal, disabling an enabled grant needs confirmation
        if item.is_enabled and not enable:
            if not await self.confirm(_DISABLE_WARNING.format(flow="implicit"), "Disable", modal=True):
                return False
        return await self._update_grants(
            item,
            {"enableIdTokenIssuance": enable, "enableAccessTokenIssuance": enable},
        )

    async def enable_hybrid_flow(self, node: TreeNode, enable: bool) -> bool:
        item = self.live_node(node)
        if item is None:
            return False
        if item.is_enabled and not enable:
            if not await self.confirm(_DISABLE_WARNING.format(flow="hybrid"), "Disable", modal=True):
                return False
        return await self._update_grants(item, {"enableIdTokenIssuance": enable})

    async def enable_public_client_flows(self, node: TreeNode, enable: bool) -> bool:
        item = self.live_node(node)
        if item is None:
            return False
        return await self.mutate(
            [item],
            "Updating Token Flow...",
            lambda: self.repository.write_fields(item.identity, {"isFallbackPublicClient": enable}),
            refresh=lambda _: self.synchronizer.refresh(item.path),
        )

    async def _update_grants(self, item: TreeNode, changes: Dict[str, bool]) -> bool:
        app_path = item.path[:-1]

        async def refresh_flags(_: Any) -> None:
            # Implicit and hybrid both read enableIdTokenIssuance
            for flow in (IMPLICIT_FLOW, HYBRID_FLOW):
                await self.synchronizer.refresh(
                    app_path + ((NodeKind.TOKEN_FLOW_FLAG, item.identity, flow),)
                )

        return await self.mutate(
            [item],
            "Updating Token Flow...",
            partial(self.read_modify_write, item.identity, "web", _with_grants(changes)),
            refresh=refresh_flags,
        )
