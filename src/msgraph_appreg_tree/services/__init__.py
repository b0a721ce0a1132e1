"""Domain services, one per resource family of an application registration."""

from .app_role import AppRoleService
from .application import ApplicationService
from .base import ServiceBase
from .key_credential import KeyCredentialService
from .oauth2_permission_scope import OAuth2PermissionScopeService
from .owner import OwnerService
from .password_credential import PasswordCredentialService
from .redirect_uri import RedirectUriService
from .sign_in_audience import SignInAudienceService
from .token_flow import TokenFlowService

__all__ = [
    "ServiceBase",
    "ApplicationService",
    "AppRoleService",
    "OAuth2PermissionScopeService",
    "PasswordCredentialService",
    "KeyCredentialService",
    "RedirectUriService",
    "SignInAudienceService",
    "TokenFlowService",
    "OwnerService",
]
