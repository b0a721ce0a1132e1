"""
Client secrets (password credentials).

Microsoft Graph does not accept ``passwordCredentials`` in a PATCH, so new
secrets go through ``addPassword`` (which also generates the secret text) and
deletions through ``removePassword``.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

from ..models import TreeNode
from ..ui import InputBoxOptions, Validator
from ..validation import (
    parse_expiry_date,
    validate_password_credential_description,
    validate_password_credential_expiry_date,
)
from .base import ServiceBase

logger = logging.getLogger(__name__)


class PasswordCredentialService(ServiceBase):
    """Client secrets of an application."""

    async def add(self, node: TreeNode) -> bool:
        """Generate a new client secret and copy it to the clipboard."""
        group = self.live_node(node)
        if group is None:
            return False

        description = await self.input_description(validate_password_credential_description)
        if description is None:
            return False

        default_expiry = date.today() + timedelta(days=self.settings.password_default_days)
        max_years = self.settings.password_max_years
        expiry = await self.input_expiry_date(
            default_expiry,
            lambda value: validate_password_credential_expiry_date(value, max_years),
        )
        if expiry is None:
            return False
        end_date_time = f"{parse_expiry_date(expiry).isoformat()}T00:00:00Z"

        async def on_added(credential: Optional[Dict[str, Any]]) -> None:
            secret = (credential or {}).get("secretText")
            if secret:
                await self.ui.write_clipboard(secret)
                await self.ui.show_information_message(
                    "The new client secret has been copied to the clipboard. "
                    "It will not be shown again."
                )
            await self.synchronizer.reload(group.path)

        return await self.mutate(
            [group],
            "Adding Password Credential...",
            lambda: self.repository.add_password(group.identity, description, end_date_time),
            refresh=on_added,
        )

    async def delete(self, node: TreeNode) -> bool:
        item = self.live_node(node)
        if item is None:
            return False

        if not await self.confirm(f"Do you want to delete the password credential {item.label}?"):
            return False

        group_path = item.path[:-1]
        targets = [item, item.parent] if item.parent is not None else [item]
        return await self.mutate(
            targets,
            "Deleting Password Credential...",
            lambda: self.repository.remove_password(item.identity, item.local_value),
            refresh=lambda _: self.synchronizer.reload(group_path),
        )

    async def input_description(self, validation: Validator) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title="Add Password Credential (1/2)",
                prompt="Password description",
                placeholder="Enter a description for the password credential",
                validate=validation,
            )
        )

    async def input_expiry_date(self, expiry: date, validation: Validator) -> Optional[str]:
        return await self.input_text(
            InputBoxOptions(
                title="Add Password Credential (2/2)",
                prompt="Password expiry",
                placeholder="Enter an expiry date in the format YYYY-MM-DD",
                value=expiry.strftime("%Y-%m-%d"),
                validate=validation,
            )
        )
