"""
Remote repository implementations for application registrations.

This package provides the repository contract consumed by the tree
synchronizer and the domain services, and its Microsoft Graph implementation.
"""

from .base import GraphRepository
from .graph_api import GraphApiRepository

__all__ = ["GraphRepository", "GraphApiRepository"]
