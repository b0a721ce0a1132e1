"""
Data models for the application registration tree.

This module contains the dataclass definitions shared by the repository, the
cache tree, the synchronizer and the domain services: remote call results,
error descriptions, tree nodes and change events.
"""

import asyncio
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class GraphErrorKind(str, Enum):
    """Categories of remote failure the error surface can tailor guidance for."""

    GENERIC = "generic"
    UNAUTHORIZED = "unauthorized"  # Authenticated but not allowed (401/403)
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"  # No usable credential at all


@dataclass
class GraphError:
    """A structured failure returned by the remote repository."""

    kind: GraphErrorKind
    message: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


@dataclass
class GraphResult(Generic[T]):
    """Outcome of a repository operation: a value or a structured error."""

    success: bool
    value: Optional[T] = None
    error: Optional[GraphError] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "GraphResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: GraphError) -> "GraphResult[T]":
        return cls(success=False, error=error)


class NodeKind(str, Enum):
    """What a tree node represents. Legal operations are chosen by kind."""

    APPLICATION = "application"
    APP_ROLE_GROUP = "app-role-group"
    APP_ROLE = "app-role"
    CREDENTIAL_GROUP = "credential-group"
    PASSWORD_CREDENTIAL = "password-credential"
    CERTIFICATE_CREDENTIAL = "certificate-credential"
    SCOPE_GROUP = "scope-group"
    PERMISSION_SCOPE = "permission-scope"
    REDIRECT_URI_GROUP = "redirect-uri-group"
    REDIRECT_URI = "redirect-uri"
    AUDIENCE = "audience"
    TOKEN_FLOW_FLAG = "token-flow-flag"
    OWNER_GROUP = "owner-group"
    OWNER = "owner"


GROUP_KINDS = frozenset(
    {
        NodeKind.APP_ROLE_GROUP,
        NodeKind.CREDENTIAL_GROUP,
        NodeKind.SCOPE_GROUP,
        NodeKind.REDIRECT_URI_GROUP,
        NodeKind.OWNER_GROUP,
    }
)

LEAF_KINDS = frozenset(
    {
        NodeKind.APP_ROLE,
        NodeKind.PASSWORD_CREDENTIAL,
        NodeKind.CERTIFICATE_CREDENTIAL,
        NodeKind.PERMISSION_SCOPE,
        NodeKind.REDIRECT_URI,
        NodeKind.AUDIENCE,
        NodeKind.TOKEN_FLOW_FLAG,
        NodeKind.OWNER,
    }
)


class VisualState(str, Enum):
    """Visual state of a node as shown by the rendering surface."""

    IDLE = "idle"
    BUSY = "busy"
    ERROR = "error"


NodeKey = Tuple[NodeKind, str, Optional[str]]
TreePath = Tuple[NodeKey, ...]

ROOT_PATH: TreePath = ()


@dataclass(eq=False)
class TreeNode:
    """
    One node of the cache tree.

    ``children`` is ``None`` until the node has been resolved; an empty list
    means resolved without children. ``data`` holds the remote fragment the
    node was built from and is never modified after construction.
    """

    kind: NodeKind
    identity: str
    local_value: Optional[str] = None
    label: str = ""
    description: Optional[str] = None
    visual_state: VisualState = VisualState.IDLE
    children: Optional[List["TreeNode"]] = None
    data: Dict[str, Any] = field(default_factory=dict)
    _parent: Optional["weakref.ReferenceType[TreeNode]"] = field(
        default=None, repr=False
    )
    pending: Optional["asyncio.Task"] = field(default=None, repr=False)

    @property
    def key(self) -> NodeKey:
        return (self.kind, self.identity, self.local_value)

    @property
    def parent(self) -> Optional["TreeNode"]:
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, value: Optional["TreeNode"]) -> None:
        self._parent = weakref.ref(value) if value is not None else None

    @property
    def path(self) -> TreePath:
        """Keys from the root application down to this node."""
        keys: List[NodeKey] = []
        node: Optional[TreeNode] = self
        while node is not None:
            keys.append(node.key)
            node = node.parent
        return tuple(reversed(keys))

    @property
    def is_resolved(self) -> bool:
        return self.children is not None

    @property
    def is_enabled(self) -> Optional[bool]:
        """Enabled flag for roles, scopes and token flows; None elsewhere."""
        value = self.data.get("isEnabled")
        return value if isinstance(value, bool) else None

    @property
    def effective_state(self) -> VisualState:
        """Busy if this node or any ancestor is busy, otherwise its own state."""
        node = self.parent
        while node is not None:
            if node.visual_state is VisualState.BUSY:
                return VisualState.BUSY
            node = node.parent
        return self.visual_state

    def adopt(self, children: List["TreeNode"]) -> List["TreeNode"]:
        """Point the back-reference of every child at this node."""
        for child in children:
            child.parent = self
        return children


@dataclass
class TreeChangeEvent:
    """Change notification consumed by the rendering surface."""

    path: Optional[TreePath] = None  # None invalidates the whole tree

    @property
    def is_whole_tree(self) -> bool:
        return self.path is None
