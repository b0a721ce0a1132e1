"""
User interface contract consumed by the domain services.

Prompt methods resolve to the entered value, or to None when the user aborts.
The tree view itself consumes ``TreeSynchronizer.get_children`` and its change
events; everything the services need from the editor goes through here.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

Validator = Callable[[str], Optional[str]]


@dataclass
class InputBoxOptions:
    """Configuration of a single free-text prompt."""

    title: str
    prompt: str = ""
    placeholder: str = ""
    value: Optional[str] = None
    validate: Optional[Validator] = None
    # Validators that scan sibling collections should be debounced (ms)
    debounce: int = 0


@dataclass
class QuickPickItem:
    label: str
    description: str = ""
    value: Any = None


@dataclass
class QuickPickOptions:
    title: str = ""
    placeholder: str = ""


class UserInterface:
    """Abstract base class for the editor integration."""

    def set_status_message(self, text: str) -> Any:
        """Show an ephemeral progress message; returns a handle to clear it."""
        raise NotImplementedError

    def clear_status_message(self, handle: Any) -> None:
        raise NotImplementedError

    async def show_input_box(self, options: InputBoxOptions) -> Optional[str]:
        raise NotImplementedError

    async def show_quick_pick(
        self, items: List[QuickPickItem], options: QuickPickOptions
    ) -> Optional[QuickPickItem]:
        raise NotImplementedError

    async def show_warning_message(
        self, message: str, *actions: str, modal: bool = False
    ) -> Optional[str]:
        raise NotImplementedError

    async def show_error_message(self, message: str, *actions: str) -> Optional[str]:
        raise NotImplementedError

    async def show_information_message(self, message: str, *actions: str) -> Optional[str]:
        raise NotImplementedError

    async def write_clipboard(self, text: str) -> None:
        raise NotImplementedError

    async def open_external(self, url: str) -> None:
        raise NotImplementedError

    async def show_document(self, title: str, content: str) -> None:
        raise NotImplementedError
