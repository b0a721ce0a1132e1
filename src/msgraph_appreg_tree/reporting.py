"""User-visible reporting of remote failures."""

import logging

from .models import GraphError, GraphErrorKind
from .ui import UserInterface

logger = logging.getLogger(__name__)

_GUIDANCE = {
    GraphErrorKind.AUTHENTICATION: (
        "You are not signed in. Run 'az login' (or configure another credential "
        "supported by DefaultAzureCredential) and try again."
    ),
    GraphErrorKind.UNAUTHORIZED: (
        "You are signed in but do not have permission to perform this action "
        "on the application registration."
    ),
    GraphErrorKind.NOT_FOUND: (
        "The application registration or one of its items no longer exists. "
        "Refresh the tree and try again."
    ),
}


class ErrorReporter:
    """The single error surface shared by the synchronizer and every service."""

    def __init__(self, ui: UserInterface):
        self.ui = ui

    @staticmethod
    def describe(error: GraphError) -> str:
        guidance = _GUIDANCE.get(error.kind)
        if guidance is None:
            return f"An error occurred while calling Microsoft Graph: {error}"
        return f"{guidance} ({error})"

    async def handle_error(self, error: GraphError) -> None:
        logger.error(f"Remote operation failed [{error.kind.value}]: {error}")
        await self.ui.show_error_message(self.describe(error))
