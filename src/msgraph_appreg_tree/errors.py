"""Exceptions raised above the repository boundary."""

from .models import GraphError


class TreeSyncError(Exception):
    """A node or parent addressed by path is no longer part of the tree."""


class GraphRequestError(Exception):
    """A remote read needed to resolve part of the tree failed."""

    def __init__(self, error: GraphError):
        super().__init__(str(error))
        self.error = error
