"""
Base abstract class for remote repository implementations.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models import GraphResult

logger = logging.getLogger(__name__)


class GraphRepository:
    """
    Abstract base class for the remote directory repository.

    Every operation returns a ``GraphResult`` and never raises across this
    boundary; implementations translate transport and authentication errors
    into ``GraphError`` values.
    """

    async def list_root_objects(
        self, filter_text: Optional[str] = None
    ) -> GraphResult[List[Dict[str, Any]]]:
        """
        List the application registrations visible to the caller.

        Args:
            filter_text: Optional display name prefix to filter on

        Returns:
            Result holding summaries (see ``fields.ROOT_FIELDS``)
        """
        logger.debug("GraphRepository.list_root_objects() not implemented")
        raise NotImplementedError

    async def read_fields(
        self, object_id: str, field_set: List[str]
    ) -> GraphResult[Dict[str, Any]]:
        """
        Read only the named properties of an application.

        Args:
            object_id: Directory object id of the application
            field_set: Remote property names to select

        Returns:
            Result holding a partial application object
        """
        logger.debug("GraphRepository.read_fields() not implemented")
        raise NotImplementedError

    async def read_object(self, object_id: str) -> GraphResult[Dict[str, Any]]:
        """
        Read the full representation of an application (manifest view).

        Args:
            object_id: Directory object id of the application
        """
        logger.debug("GraphRepository.read_object() not implemented")
        raise NotImplementedError

    async def write_fields(
        self, object_id: str, partial_update: Dict[str, Any]
    ) -> GraphResult[None]:
        """
        Update the given properties of an application.

        Args:
            object_id: Directory object id of the application
            partial_update: Properties to write, in Graph JSON form
        """
        logger.debug("GraphRepository.write_fields() not implemented")
        raise NotImplementedError

    async def create_object(
        self, properties: Dict[str, Any]
    ) -> GraphResult[Dict[str, Any]]:
        """
        Create an application registration.

        Args:
            properties: Initial properties of the application

        Returns:
            Result holding the created object's summary
        """
        logger.debug("GraphRepository.create_object() not implemented")
        raise NotImplementedError

    async def delete_object(self, object_id: str) -> GraphResult[None]:
        """
        Delete an application registration.

        Args:
            object_id: Directory object id of the application
        """
        logger.debug("GraphRepository.delete_object() not implemented")
        raise NotImplementedError

    async def add_password(
        self, object_id: str, display_name: str, end_date_time: str
    ) -> GraphResult[Dict[str, Any]]:
        """
        Generate a new client secret on an application.

        Returns:
            Result holding the new password credential including ``secretText``
        """
        logger.debug("GraphRepository.add_password() not implemented")
        raise NotImplementedError

    async def remove_password(self, object_id: str, key_id: str) -> GraphResult[None]:
        """Remove a client secret from an application."""
        logger.debug("GraphRepository.remove_password() not implemented")
        raise NotImplementedError

    async def list_owners(self, object_id: str) -> GraphResult[List[Dict[str, Any]]]:
        """List the owners of an application."""
        logger.debug("GraphRepository.list_owners() not implemented")
        raise NotImplementedError

    async def add_owner(self, object_id: str, user_id: str) -> GraphResult[None]:
        """Add a user as owner of an application."""
        logger.debug("GraphRepository.add_owner() not implemented")
        raise NotImplementedError

    async def remove_owner(self, object_id: str, user_id: str) -> GraphResult[None]:
        """Remove an owner from an application."""
        logger.debug("GraphRepository.remove_owner() not implemented")
        raise NotImplementedError

    async def find_users(self, query: str) -> GraphResult[List[Dict[str, Any]]]:
        """
        Find users whose display name, mail or UPN starts with ``query``.

        Args:
            query: Search prefix typed by the user
        """
        logger.debug("GraphRepository.find_users() not implemented")
        raise NotImplementedError

    async def close(self) -> None:
        """
        Clean up any resources used by the repository implementation.
        Default implementation does nothing.
        """
        logger.debug("GraphRepository.close() default implementation called")
