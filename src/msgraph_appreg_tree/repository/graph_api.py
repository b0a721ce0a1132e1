"""
Microsoft Graph repository using the official Microsoft Graph SDK.

Requests are sent through the SDK's Kiota request adapter so that
authentication, retry and throttling handling come from the SDK, while the
payloads stay in Graph JSON form for the cache tree builders.
"""

import json
import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from azure.core.exceptions import ClientAuthenticationError
from azure.identity.aio import DefaultAzureCredential
from kiota_abstractions.api_error import APIError
from kiota_abstractions.method import Method
from kiota_abstractions.request_information import RequestInformation
from msgraph.graph_service_client import GraphServiceClient

from ..config import Settings
from ..fields import ROOT_FIELDS
from ..models import GraphError, GraphErrorKind, GraphResult
from .base import GraphRepository

logger = logging.getLogger(__name__)

OWNER_FIELDS = ["id", "displayName", "mail", "userPrincipalName"]


def _quote_literal(value: str) -> str:
    """Escape a string for use inside an OData single-quoted literal."""
    return value.replace("'", "''")


def to_graph_error(exc: Exception) -> GraphError:
    """Translate an SDK or credential exception into a GraphError."""
    if isinstance(exc, ClientAuthenticationError):
        return GraphError(GraphErrorKind.AUTHENTICATION, str(exc) or "Authentication failed")
    if isinstance(exc, APIError):
        status = getattr(exc, "response_status_code", None)
        main_error = getattr(exc, "error", None)
        message = getattr(main_error, "message", None) or getattr(exc, "message", None)
        message = message or str(exc) or "Microsoft Graph request failed"
        if status in (401, 403):
            kind = GraphErrorKind.UNAUTHORIZED
        elif status == 404:
            kind = GraphErrorKind.NOT_FOUND
        else:
            kind = GraphErrorKind.GENERIC
        return GraphError(kind, message, status)
    return GraphError(GraphErrorKind.GENERIC, str(exc) or type(exc).__name__)


class GraphApiRepository(GraphRepository):
    """
    Application registration repository backed by Microsoft Graph.

    The credential and ``GraphServiceClient`` are created lazily on first use;
    a credential created here is closed by ``close()``.
    """

    def __init__(
        self,
        credential: Optional[DefaultAzureCredential] = None,
        settings: Optional[Settings] = None,
        logger_: Optional[logging.Logger] = None,
    ):
        """
        Initialize the repository.

        Args:
            credential: Azure credential for authentication
            settings: Scopes, base URL and paging configuration
        """
        self.settings = settings or Settings()
        self.credential = credential
        self.scopes = list(self.settings.scopes)
        self.base_url = self.settings.graph_base_url.rstrip("/")
        self._graph_client: Optional[GraphServiceClient] = None
        self._credential_created = False
        self._initialized = False
        self._closed = False
        self.logger = logger_ or logger

    async def _initialize(self) -> None:
        """Initialize the Graph client and authentication."""
        if self._initialized and not self._closed:
            return

        if self._closed:
            self._closed = False
            self._initialized = False

        if self.credential is None:
            self.credential = DefaultAzureCredential()
            self._credential_created = True
            self.logger.debug("Created DefaultAzureCredential")

        self._graph_client = GraphServiceClient(
            credentials=self.credential, scopes=self.scopes
        )
        self.logger.debug("Created GraphServiceClient with Microsoft Graph SDK")
        self._initialized = True

    async def _send(
        self, method: Method, url: str, body: Optional[Dict[str, Any]] = None
    ) -> GraphResult[Any]:
        """Send one request and decode the JSON response, if any."""
        try:
            await self._initialize()
            if not self._graph_client or not self._graph_client.request_adapter:
                raise ValueError("Graph client or request adapter not available")

            request_info = RequestInformation()
            request_info.http_method = method
            request_info.url_template = url
            request_info.headers.try_add("Accept", "application/json")
            if body is not None:
                request_info.set_stream_content(
                    json.dumps(body).encode("utf-8"), "application/json"
                )

            self.logger.debug(f"{method.value} {url}")
            if method in (Method.GET, Method.POST):
                content = await self._graph_client.request_adapter.send_primitive_async(
                    request_info, "bytes", {}
                )
                return GraphResult.ok(json.loads(content) if content else None)

            await self._graph_client.request_adapter.send_no_response_content_async(
                request_info, {}
            )
            return GraphResult.ok(None)
        except Exception as e:
            error = to_graph_error(e)
            self.logger.error(f"{method.value} {url} failed: {error}")
            return GraphResult.fail(error)

    def _application_url(self, object_id: str, suffix: str = "") -> str:
        return f"{self.base_url}/applications/{urllib.parse.quote(object_id)}{suffix}"

    async def list_root_objects(
        self, filter_text: Optional[str] = None
    ) -> GraphResult[List[Dict[str, Any]]]:
        params = {"$select": ",".join(ROOT_FIELDS), "$top": str(self.settings.page_size)}
        if filter_text:
            params["$filter"] = f"startswith(displayName,'{_quote_literal(filter_text)}')"
        url: Optional[str] = (
            f"{self.base_url}/applications?{urllib.parse.urlencode(params, safe='$,')}"
        )

        applications: List[Dict[str, Any]] = []
        page = 0
        while url:
            page += 1
            result = await self._send(Method.GET, url)
            if not result.success:
                return GraphResult.fail(result.error)
            body = result.value or {}
            applications.extend(body.get("value", []))
            url = body.get("@odata.nextLink")
            self.logger.debug(
                f"Page {page}: {len(applications)} applications so far, "
                f"next page: {bool(url)}"
            )
        self.logger.info(f"Listed {len(applications)} applications")
        return GraphResult.ok(applications)

    async def read_fields(
        self, object_id: str, field_set: List[str]
    ) -> GraphResult[Dict[str, Any]]:
        if not field_set:
            return GraphResult.fail(
                GraphError(GraphErrorKind.GENERIC, "A field-scoped read needs at least one field")
            )
        select = urllib.parse.urlencode({"$select": ",".join(field_set)}, safe="$,")
        return await self._send(Method.GET, self._application_url(object_id, f"?{select}"))

    async def read_object(self, object_id: str) -> GraphResult[Dict[str, Any]]:
        return await self._send(Method.GET, self._application_url(object_id))

    async def write_fields(
        self, object_id: str, partial_update: Dict[str, Any]
    ) -> GraphResult[None]:
        return await self._send(Method.PATCH, self._application_url(object_id), partial_update)

    async def create_object(self, properties: Dict[str, Any]) -> GraphResult[Dict[str, Any]]:
        return await self._send(Method.POST, f"{self.base_url}/applications", properties)

    async def delete_object(self, object_id: str) -> GraphResult[None]:
        return await self._send(Method.DELETE, self._application_url(object_id))

    async def add_password(
        self, object_id: str, display_name: str, end_date_time: str
    ) -> GraphResult[Dict[str, Any]]:
        body = {
            "passwordCredential": {
                "displayName": display_name,
                "endDateTime": end_date_time,
            }
        }
        return await self._send(
            Method.POST, self._application_url(object_id, "/addPassword"), body
        )

    async def remove_password(self, object_id: str, key_id: str) -> GraphResult[None]:
        result = await self._send(
            Method.POST, self._application_url(object_id, "/removePassword"), {"keyId": key_id}
        )
        return GraphResult.ok(None) if result.success else GraphResult.fail(result.error)

    async def list_owners(self, object_id: str) -> GraphResult[List[Dict[str, Any]]]:
        select = urllib.parse.urlencode({"$select": ",".join(OWNER_FIELDS)}, safe="$,")
        result = await self._send(
            Method.GET, self._application_url(object_id, f"/owners?{select}")
        )
        if not result.success:
            return GraphResult.fail(result.error)
        return GraphResult.ok((result.value or {}).get("value", []))

    async def add_owner(self, object_id: str, user_id: str) -> GraphResult[None]:
        body = {"@odata.id": f"{self.base_url}/directoryObjects/{user_id}"}
        result = await self._send(
            Method.POST, self._application_url(object_id, "/owners/$ref"), body
        )
        return GraphResult.ok(None) if result.success else GraphResult.fail(result.error)

    async def remove_owner(self, object_id: str, user_id: str) -> GraphResult[None]:
        suffix = f"/owners/{urllib.parse.quote(user_id)}/$ref"
        return await self._send(Method.DELETE, self._application_url(object_id, suffix))

    async def find_users(self, query: str) -> GraphResult[List[Dict[str, Any]]]:
        literal = _quote_literal(query)
        params = {
            "$filter": " or ".join(
                f"startswith({prop},'{literal}')"
                for prop in ("displayName", "mail", "userPrincipalName")
            ),
            "$select": ",".join(OWNER_FIELDS),
            "$top": "25",
        }
        url = f"{self.base_url}/users?{urllib.parse.urlencode(params, safe='$,')}"
        result = await self._send(Method.GET, url)
        if not result.success:
            return GraphResult.fail(result.error)
        return GraphResult.ok((result.value or {}).get("value", []))

    async def close(self) -> None:
        """Close the Graph client and any credential created by this repository."""
        if self._closed:
            return
        self._closed = True
        self._graph_client = None

        if self.credential and self._credential_created:
            try:
                await self.credential.close()
                self.logger.debug("Closed DefaultAzureCredential")
            except Exception as e:
                self.logger.warning(f"Error closing credential: {e}")
            self.credential = None
            self._credential_created = False

        self._initialized = False

    async def __aenter__(self):
        """Async context manager entry."""
        await self._initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - ensures cleanup."""
        await self.close()
