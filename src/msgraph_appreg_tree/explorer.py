"""
Composition root for the application registration explorer.

``AppRegistrationExplorer`` owns one repository, one synchronizer and one
instance of every domain service, all sharing the same error surface. Its
``commands`` table maps command ids to coroutine callables so an editor
integration can register them without knowing about the services.
"""

import logging
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import Settings, configure_logging
from .reporting import ErrorReporter
from .repository import GraphApiRepository, GraphRepository
from .services import (
    AppRoleService,
    ApplicationService,
    KeyCredentialService,
    OAuth2PermissionScopeService,
    OwnerService,
    PasswordCredentialService,
    RedirectUriService,
    SignInAudienceService,
    TokenFlowService,
)
from .sync import TreeSynchronizer
from .ui import UserInterface

logger = logging.getLogger(__name__)

Command = Callable[..., Awaitable[Any]]


class AppRegistrationExplorer:
    """Wires the tree, the remote repository and the domain services together."""

    def __init__(
        self,
        ui: UserInterface,
        repository: Optional[GraphRepository] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the explorer.

        Args:
            ui: Editor integration used for prompts and notifications
            repository: Remote repository; a GraphApiRepository by default
            settings: Runtime settings; read from the environment by default
        """
        self.settings = settings or Settings.from_env()
        configure_logging(self.settings.log_level)

        self.ui = ui
        self.repository = repository or GraphApiRepository(settings=self.settings)
        self.reporter = ErrorReporter(ui)
        self.synchronizer = TreeSynchronizer(
            self.repository, error_handler=self.reporter.handle_error
        )

        service_args = (self.repository, self.synchronizer, ui, self.reporter, self.settings)
        self.applications = ApplicationService(*service_args)
        self.app_roles = AppRoleService(*service_args)
        self.scopes = OAuth2PermissionScopeService(*service_args)
        self.passwords = PasswordCredentialService(*service_args)
        self.certificates = KeyCredentialService(*service_args)
        self.redirect_uris = RedirectUriService(*service_args)
        self.audience = SignInAudienceService(*service_args)
        self.token_flows = TokenFlowService(*service_args)
        self.owners = OwnerService(*service_args)

        self.commands: Dict[str, Command] = self._build_commands()
        logger.debug(f"Registered {len(self.commands)} commands")

    def _build_commands(self) -> Dict[str, Command]:
        roles, scopes, flows = self.app_roles, self.scopes, self.token_flows
        return {
            "appRegistrations.refresh": self.applications.reload,
            "appRegistrations.filter": self.applications.filter,
            "appRegistrations.addApp": self.applications.add,
            "appRegistrations.renameApp": self.applications.rename,
            "appRegistrations.deleteApp": self.applications.delete,
            "appRegistrations.copyAppId": self.applications.copy_id,
            "appRegistrations.openInPortal": self.applications.open_in_portal,
            "appRegistrations.viewManifest": self.applications.view_manifest,
            "appRegistrations.addAppRole": roles.add,
            "appRegistrations.editAppRole": roles.edit,
            "appRegistrations.editAppRoleDisplayName": partial(roles.edit_field, field="displayName"),
            "appRegistrations.editAppRoleValue": partial(roles.edit_field, field="value"),
            "appRegistrations.editAppRoleDescription": partial(roles.edit_field, field="description"),
            "appRegistrations.editAppRoleAllowed": partial(roles.edit_field, field="allowedMemberTypes"),
            "appRegistrations.enableAppRole": partial(roles.change_state, enabled=True),
            "appRegistrations.disableAppRole": partial(roles.change_state, enabled=False),
            "appRegistrations.deleteAppRole": roles.delete,
            "appRegistrations.addExposedApiScope": scopes.add,
            "appRegistrations.editExposedApiScope": scopes.edit,
            "appRegistrations.enableExposedApiScope": partial(scopes.change_state, enabled=True),
            "appRegistrations.disableExposedApiScope": partial(scopes.change_state, enabled=False),
            "appRegistrations.deleteExposedApiScope": scopes.delete,
            "appRegistrations.addPasswordCredential": self.passwords.add,
            "appRegistrations.deletePasswordCredential": self.passwords.delete,
            "appRegistrations.deleteCertificateCredential": self.certificates.delete,
            "appRegistrations.addRedirectUri": self.redirect_uris.add,
            "appRegistrations.editRedirectUri": self.redirect_uris.edit,
            "appRegistrations.deleteRedirectUri": self.redirect_uris.delete,
            "appRegistrations.editAudience": self.audience.edit,
            "appRegistrations.enableImplicitFlow": partial(flows.enable_implicit_flow, enable=True),
            "appRegistrations.disableImplicitFlow": partial(flows.enable_implicit_flow, enable=False),
            "appRegistrations.enableHybridFlow": partial(flows.enable_hybrid_flow, enable=True),
            "appRegistrations.disableHybridFlow": partial(flows.enable_hybrid_flow, enable=False),
            "appRegistrations.enablePublicClientFlows": partial(flows.enable_public_client_flows, enable=True),
            "appRegistrations.disablePublicClientFlows": partial(flows.enable_public_client_flows, enable=False),
            "appRegistrations.addOwner": self.owners.add,
            "appRegistrations.removeOwner": self.owners.remove,
        }

    async def execute(self, command_id: str, *args: Any) -> Any:
        """Run the command registered under ``command_id``."""
        command = self.commands.get(command_id)
        if command is None:
            raise KeyError(f"Unknown command: {command_id}")
        logger.debug(f"Executing {command_id}")
        return await command(*args)

    async def close(self) -> None:
        await self.repository.close()

    async def __aenter__(self) -> "AppRegistrationExplorer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
