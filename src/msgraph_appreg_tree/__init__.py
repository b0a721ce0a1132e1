"""
Application Registration Tree for Microsoft Graph.

A Python library that mirrors Azure AD application registrations as a lazily
resolved tree and drives every change to them through one mutation protocol
with asynchronous Microsoft Graph calls.
"""

from .cache import CacheTree
from .config import Settings, configure_logging
from .errors import GraphRequestError, TreeSyncError
from .explorer import AppRegistrationExplorer
from .models import (
    GraphError,
    GraphErrorKind,
    GraphResult,
    NodeKind,
    TreeChangeEvent,
    TreeNode,
    VisualState,
)
from .repository import GraphApiRepository, GraphRepository
from .sync import TreeSynchronizer
from .ui import InputBoxOptions, QuickPickItem, QuickPickOptions, UserInterface

__version__ = "0.1.0"

__all__ = [
    "AppRegistrationExplorer",
    "CacheTree",
    "TreeSynchronizer",
    "GraphRepository",
    "GraphApiRepository",
    "Settings",
    "configure_logging",
    "GraphError",
    "GraphErrorKind",
    "GraphResult",
    "GraphRequestError",
    "TreeSyncError",
    "NodeKind",
    "TreeChangeEvent",
    "TreeNode",
    "VisualState",
    "UserInterface",
    "InputBoxOptions",
    "QuickPickItem",
    "QuickPickOptions",
]
