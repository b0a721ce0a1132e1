"""Sign in audience of an application."""

import logging

from ..constants import (
    SIGN_IN_AUDIENCE_DOCUMENTATION,
    SIGN_IN_AUDIENCE_OPTIONS,
)
from ..models import GraphError, GraphErrorKind, NodeKind, TreeNode
from ..ui import QuickPickItem
from .base import ServiceBase

logger = logging.getLogger(__name__)


class SignInAudienceService(ServiceBase):
    """Which accounts may sign in to the application."""

    async def edit(self, node: TreeNode) -> bool:
        """Change the sign in audience of the application owning ``node``."""
        item = self.live_node(node)
        if item is None:
            return False
        if item.kind is NodeKind.APPLICATION:
            item = self.synchronizer.find(item.path + ((NodeKind.AUDIENCE, item.identity, None),)) or item

        audience = await self.pick(
            [
                QuickPickItem(label=label, description=value, value=value)
                for label, value in SIGN_IN_AUDIENCE_OPTIONS.items()
            ],
            "Edit Sign In Audience",
            "Select the sign in audience...",
        )
        if audience is None:
            return False

        async def refresh(_) -> None:
            await self.synchronizer.refresh(item.path)
            if item.kind is NodeKind.AUDIENCE:
                await self.synchronizer.refresh(item.path[:-1])

        return await self.mutate(
            [item],
            "Updating Sign In Audience...",
            lambda: self.repository.write_fields(item.identity, {"signInAudience": audience.value}),
            refresh=refresh,
        )

    async def handle_error(self, error: GraphError) -> None:
        """Audience changes mostly fail on unsupported properties; offer the docs."""
        if error.kind is not GraphErrorKind.GENERIC:
            await super().handle_error(error)
            return
        logger.error(f"Sign in audience change failed: {error}")
        answer = await self.ui.show_error_message(
            "An error occurred while attempting to change the sign in audience. This is "
            "likely because some properties of the application are not supported by the "
            "new sign in audience. Please consult the documentation for more information.",
            "OK",
            "Open Documentation",
        )
        if answer == "Open Documentation":
            await self.ui.open_external(SIGN_IN_AUDIENCE_DOCUMENTATION)
