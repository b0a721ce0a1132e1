"""Certificate credentials of an application."""

import logging
from functools import partial

from ..models import TreeNode
from .base import ServiceBase, remove_element

logger = logging.getLogger(__name__)


class KeyCredentialService(ServiceBase):
    """Certificate credentials, stored as the ``keyCredentials`` array."""

    async def delete(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False

        if not await self.confirm(f"Do you want to delete the certificate credential {item.label}?"):
            return False

        group_path = item.path[:-1]
        targets = [item, item.parent] if item.parent is not None else [item]
        return await self.mutate(
            targets,
            "Deleting Certificate Credential...",
            partial(
                self.read_modify_write,
                item.identity,
                "keyCredentials",
                partial(remove_element, item_id=item.local_value, key="keyId"),
            ),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )
