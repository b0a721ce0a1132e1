"""Test configuration and fixtures."""

import asyncio
import copy
import logging
import uuid
from collections import deque
from typing import Any, Callable, Dict, List, Optional

import pytest

from msgraph_appreg_tree.config import Settings
from msgraph_appreg_tree.models import GraphError, GraphErrorKind, GraphResult, NodeKind
from msgraph_appreg_tree.reporting import ErrorReporter
from msgraph_appreg_tree.repository.base import GraphRepository
from msgraph_appreg_tree.sync import TreeSynchronizer
from msgraph_appreg_tree.ui import InputBoxOptions, QuickPickItem, QuickPickOptions, UserInterface


def pytest_configure(config):
    """Configure pytest with custom settings."""
    # Set up logging for tests
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


ALICE = {"id": "user-alice", "displayName": "Alice Smith", "mail": "alice@contoso.com", "userPrincipalName": "alice@contoso.com"}
BOB = {"id": "user-bob", "displayName": "Bob Jones", "mail": "bob@contoso.com", "userPrincipalName": "bob@contoso.com"}


def make_application(object_id: str, display_name: str, **overrides: Any) -> Dict[str, Any]:
    """A full application object as Microsoft Graph returns it."""
    app = {
        "id": object_id,
        "appId": f"app-{object_id}",
        "displayName": display_name,
        "signInAudience": "AzureADMyOrg",
        "createdDateTime": "2024-01-01T00:00:00Z",
        "appRoles": [],
        "passwordCredentials": [],
        "keyCredentials": [],
        "api": {"oauth2PermissionScopes": []},
        "web": {
            "redirectUris": [],
            "implicitGrantSettings": {
                "enableIdTokenIssuance": False,
                "enableAccessTokenIssuance": False,
            },
        },
        "spa": {"redirectUris": []},
        "publicClient": {"redirectUris": []},
        "isFallbackPublicClient": False,
    }
    app.update(overrides)
    return app


def contoso_api() -> Dict[str, Any]:
    return make_application(
        "obj-1",
        "Contoso API",
        appRoles=[
            {
                "id": "role-writer",
                "displayName": "Writer",
                "value": "writer",
                "description": "Write access",
                "allowedMemberTypes": ["User"],
                "isEnabled": True,
            }
        ],
        api={
            "oauth2PermissionScopes": [
                {
                    "id": "scope-read",
                    "value": "Files.Read",
                    "type": "User",
                    "adminConsentDisplayName": "Read files",
                    "adminConsentDescription": "Allows the app to read files",
                    "userConsentDisplayName": "Read your files",
                    "userConsentDescription": "Allows the app to read your files",
                    "isEnabled": True,
                }
            ]
        },
        passwordCredentials=[
            {"keyId": "pwd-1", "displayName": "CI secret", "endDateTime": "2099-01-01T00:00:00Z", "hint": "abc"}
        ],
        keyCredentials=[
            {"keyId": "cert-1", "displayName": "CN=contoso", "endDateTime": "2099-06-01T00:00:00Z", "type": "AsymmetricX509Cert", "usage": "Verify"}
        ],
        web={
            "redirectUris": ["https://contoso.com/signin-oidc"],
            "implicitGrantSettings": {
                "enableIdTokenIssuance": False,
                "enableAccessTokenIssuance": False,
            },
        },
    )


class FakeGraphRepository(GraphRepository):
    """In-memory repository recording every call made to it."""

    def __init__(self):
        self.apps: Dict[str, Dict[str, Any]] = {}
        self.owners: Dict[str, List[Dict[str, Any]]] = {}
        self.users: List[Dict[str, Any]] = [ALICE, BOB]
        self.calls: List[tuple] = []
        # Operation name -> error returned by every call to it
        self.failures: Dict[str, GraphError] = {}
        # Field name -> error returned by reads selecting it
        self.field_failures: Dict[str, GraphError] = {}
        # Called with the operation name when each call starts
        self.on_call: Optional[Callable[[str], None]] = None
        # When set, reads block until the event is set
        self.read_gate: Optional[asyncio.Event] = None
        self._created = 0

    def add_application(self, app: Dict[str, Any], owners: Optional[List[Dict[str, Any]]] = None) -> None:
        self.apps[app["id"]] = copy.deepcopy(app)
        self.owners[app["id"]] = [copy.deepcopy(o) for o in owners or []]

    def calls_to(self, operation: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == operation]

    async def _enter(self, operation: str, *args: Any) -> Optional[GraphError]:
        self.calls.append((operation,) + args)
        if self.on_call is not None:
            self.on_call(operation)
        if self.read_gate is not None and operation in ("list_root_objects", "read_fields", "list_owners"):
            await self.read_gate.wait()
        else:
            await asyncio.sleep(0)
        return self.failures.get(operation)

    def _missing(self, object_id: str) -> GraphResult:
        return GraphResult.fail(GraphError(GraphErrorKind.NOT_FOUND, f"Application {object_id} not found", 404))

    async def list_root_objects(self, filter_text=None):
        error = await self._enter("list_root_objects", filter_text)
        if error:
            return GraphResult.fail(error)
        summaries = [
            {k: app.get(k) for k in ("id", "appId", "displayName", "signInAudience", "createdDateTime")}
            for app in self.apps.values()
            if not filter_text or app["displayName"].lower().startswith(filter_text.lower())
        ]
        return GraphResult.ok(summaries)

    async def read_fields(self, object_id, field_set):
        error = await self._enter("read_fields", object_id, tuple(field_set))
        if error:
            return GraphResult.fail(error)
        for name in field_set:
            if name in self.field_failures:
                return GraphResult.fail(self.field_failures[name])
        app = self.apps.get(object_id)
        if app is None:
            return self._missing(object_id)
        return GraphResult.ok({name: copy.deepcopy(app.get(name)) for name in field_set})

    async def read_object(self, object_id):
        error = await self._enter("read_object", object_id)
        if error:
            return GraphResult.fail(error)
        app = self.apps.get(object_id)
        if app is None:
            return self._missing(object_id)
        return GraphResult.ok(copy.deepcopy(app))

    async def write_fields(self, object_id, partial_update):
        error = await self._enter("write_fields", object_id, copy.deepcopy(partial_update))
        if error:
            return GraphResult.fail(error)
        app = self.apps.get(object_id)
        if app is None:
            return self._missing(object_id)
        app.update(copy.deepcopy(partial_update))
        return GraphResult.ok(None)

    async def create_object(self, properties):
        error = await self._enter("create_object", copy.deepcopy(properties))
        if error:
            return GraphResult.fail(error)
        self._created += 1
        object_id = f"new-{self._created}"
        app = make_application(object_id, properties["displayName"], **{k: v for k, v in properties.items() if k != "displayName"})
        self.add_application(app)
        return GraphResult.ok({k: app.get(k) for k in ("id", "appId", "displayName", "signInAudience", "createdDateTime")})

    async def delete_object(self, object_id):
        error = await self._enter("delete_object", object_id)
        if error:
            return GraphResult.fail(error)
        if self.apps.pop(object_id, None) is None:
            return self._missing(object_id)
        return GraphResult.ok(None)

    async def add_password(self, object_id, display_name, end_date_time):
        error = await self._enter("add_password", object_id, display_name, end_date_time)
        if error:
            return GraphResult.fail(error)
        app = self.apps.get(object_id)
        if app is None:
            return self._missing(object_id)
        credential = {
            "keyId": str(uuid.uuid4()),
            "displayName": display_name,
            "endDateTime": end_date_time,
            "hint": "s3c",
        }
        app["passwordCredentials"] = (app.get("passwordCredentials") or []) + [credential]
        return GraphResult.ok(dict(credential, secretText="s3cr3t-value"))

    async def remove_password(self, object_id, key_id):
        error = await self._enter("remove_password", object_id, key_id)
        if error:
            return GraphResult.fail(error)
        app = self.apps.get(object_id)
        if app is None:
            return self._missing(object_id)
        remaining = [c for c in app["passwordCredentials"] if c["keyId"] != key_id]
        if len(remaining) == len(app["passwordCredentials"]):
            return GraphResult.fail(GraphError(GraphErrorKind.NOT_FOUND, "No such password", 404))
        app["passwordCredentials"] = remaining
        return GraphResult.ok(None)

    async def list_owners(self, object_id):
        error = await self._enter("list_owners", object_id)
        if error:
            return GraphResult.fail(error)
        if object_id not in self.apps:
            return self._missing(object_id)
        return GraphResult.ok(copy.deepcopy(self.owners.get(object_id, [])))

    async def add_owner(self, object_id, user_id):
        error = await self._enter("add_owner", object_id, user_id)
        if error:
            return GraphResult.fail(error)
        user = next((u for u in self.users if u["id"] == user_id), None)
        if object_id not in self.apps or user is None:
            return self._missing(object_id)
        self.owners.setdefault(object_id, []).append(copy.deepcopy(user))
        return GraphResult.ok(None)

    async def remove_owner(self, object_id, user_id):
        error = await self._enter("remove_owner", object_id, user_id)
        if error:
            return GraphResult.fail(error)
        owners = self.owners.get(object_id, [])
        self.owners[object_id] = [o for o in owners if o["id"] != user_id]
        return GraphResult.ok(None)

    async def find_users(self, query):
        error = await self._enter("find_users", query)
        if error:
            return GraphResult.fail(error)
        q = query.lower()
        return GraphResult.ok(
            [
                copy.deepcopy(u)
                for u in self.users
                if any((u.get(p) or "").lower().startswith(q) for p in ("displayName", "mail", "userPrincipalName"))
            ]
        )


class FakeUserInterface(UserInterface):
    """Scripted user interface: answers are consumed in order, None aborts."""

    def __init__(self):
        self.inputs: deque = deque()
        self.picks: deque = deque()
        self.warning_answers: deque = deque()
        self.error_answers: deque = deque()
        self.input_boxes: List[InputBoxOptions] = []
        self.quick_picks: List[QuickPickOptions] = []
        self.warnings: List[tuple] = []
        self.errors: List[str] = []
        self.infos: List[str] = []
        self.status_history: List[str] = []
        self.active_status: Dict[int, str] = {}
        self.clipboard: Optional[str] = None
        self.opened: List[str] = []
        self.documents: List[tuple] = []
        self._handles = 0

    def set_status_message(self, text):
        self._handles += 1
        self.status_history.append(text)
        self.active_status[self._handles] = text
        return self._handles

    def clear_status_message(self, handle):
        self.active_status.pop(handle, None)

    async def show_input_box(self, options):
        self.input_boxes.append(options)
        return self.inputs.popleft() if self.inputs else None

    async def show_quick_pick(self, items: List[QuickPickItem], options):
        self.quick_picks.append(options)
        answer = self.picks.popleft() if self.picks else None
        if answer is None:
            return None
        for item in items:
            if item.label == answer:
                return item
        raise AssertionError(f"No quick pick item labelled {answer!r} in {[i.label for i in items]}")

    async def show_warning_message(self, message, *actions, modal=False):
        self.warnings.append((message, actions, modal))
        return self.warning_answers.popleft() if self.warning_answers else None

    async def show_error_message(self, message, *actions):
        self.errors.append(message)
        return self.error_answers.popleft() if self.error_answers else None

    async def show_information_message(self, message, *actions):
        self.infos.append(message)
        return None

    async def write_clipboard(self, text):
        self.clipboard = text

    async def open_external(self, url):
        self.opened.append(url)

    async def show_document(self, title, content):
        self.documents.append((title, content))


@pytest.fixture
def repository():
    """Provide a repository holding one fully populated application."""
    repo = FakeGraphRepository()
    repo.add_application(contoso_api(), owners=[ALICE])
    return repo


@pytest.fixture
def ui():
    return FakeUserInterface()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def reporter(ui):
    return ErrorReporter(ui)


@pytest.fixture
def synchronizer(repository, reporter):
    return TreeSynchronizer(repository, error_handler=reporter.handle_error)


@pytest.fixture
def events(synchronizer):
    """Record every change event fired by the synchronizer."""
    fired = []
    synchronizer.subscribe(fired.append)
    return fired


@pytest.fixture
def make_service(repository, synchronizer, ui, reporter, settings):
    def _make(cls):
        return cls(repository, synchronizer, ui, reporter, settings)

    return _make


@pytest.fixture
def expand(synchronizer):
    """Resolve ``node`` and return its child of ``kind`` (and local value)."""

    async def _expand(node, kind: NodeKind, local_value: Optional[str] = None):
        children = await synchronizer.resolve_children(node)
        return next(
            child
            for child in children
            if child.kind is kind and (local_value is None or child.local_value == local_value)
        )

    return _expand


@pytest.fixture
async def app_node(synchronizer):
    """The loaded root node of the Contoso API application."""
    roots = await synchronizer.load_roots()
    return next(root for root in roots if root.identity == "obj-1")
