"""
Field selection and node builders for partial fetches.

Every node kind maps to the explicit set of remote properties needed to build
its children (or the node itself for leaf flags), so that expanding a group
never reads the whole application object. The builders here are pure: they
turn remote payloads into fresh, idle ``TreeNode`` instances.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .constants import (
    HYBRID_FLOW,
    IMPLICIT_FLOW,
    PUBLIC_CLIENT_FLOW,
    REDIRECT_URI_PLATFORMS,
    TOKEN_FLOW_LABELS,
    sign_in_audience_label,
)
from .models import NodeKind, TreeNode

logger = logging.getLogger(__name__)

ROOT_FIELDS = ["id", "appId", "displayName", "signInAudience", "createdDateTime"]

APPLICATION_FIELDS = ["signInAudience", "web", "isFallbackPublicClient"]

_FIELD_SETS: Dict[NodeKind, List[str]] = {
    NodeKind.APPLICATION: APPLICATION_FIELDS,
    NodeKind.APP_ROLE_GROUP: ["appRoles"],
    NodeKind.CREDENTIAL_GROUP: ["passwordCredentials", "keyCredentials"],
    NodeKind.SCOPE_GROUP: ["api"],
    NodeKind.REDIRECT_URI_GROUP: list(REDIRECT_URI_PLATFORMS),
    NodeKind.AUDIENCE: ["signInAudience"],
    NodeKind.TOKEN_FLOW_FLAG: ["web", "isFallbackPublicClient"],
}

# Group -> kind of the entries it holds
GROUP_ENTRY_KIND = {
    NodeKind.APP_ROLE_GROUP: NodeKind.APP_ROLE,
    NodeKind.SCOPE_GROUP: NodeKind.PERMISSION_SCOPE,
    NodeKind.REDIRECT_URI_GROUP: NodeKind.REDIRECT_URI,
    NodeKind.OWNER_GROUP: NodeKind.OWNER,
}

_GROUP_LABELS = {
    NodeKind.CREDENTIAL_GROUP: "Credentials",
    NodeKind.REDIRECT_URI_GROUP: "Redirect URIs",
    NodeKind.SCOPE_GROUP: "Exposed API Permissions",
    NodeKind.APP_ROLE_GROUP: "App Roles",
    NodeKind.OWNER_GROUP: "Owners",
}


def field_set_for(kind: NodeKind) -> Optional[List[str]]:
    """
    Remote properties required to build a node of ``kind``.

    Returns None for kinds that are not built from a field-scoped read of the
    application (owners come from a relationship, entries from their group).
    """
    fields = _FIELD_SETS.get(kind)
    return list(fields) if fields is not None else None


def build_root_node(summary: Dict[str, Any]) -> TreeNode:
    """Build an unresolved application node from a listed object summary."""
    return TreeNode(
        kind=NodeKind.APPLICATION,
        identity=summary["id"],
        label=summary.get("displayName") or "(no name)",
        description=summary.get("appId"),
        data=dict(summary),
    )


def _group(kind: NodeKind, identity: str) -> TreeNode:
    return TreeNode(kind=kind, identity=identity, label=_GROUP_LABELS[kind])


def _format_expiry(end: Optional[str]) -> Optional[str]:
    if not end:
        return None
    try:
        expiry = datetime.fromisoformat(end.replace("Z", "+00:00"))
    except ValueError:
        return f"Expires {end}"
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    if expiry < datetime.now(timezone.utc):
        return f"Expired {expiry.strftime('%Y-%m-%d')}"
    return f"Expires {expiry.strftime('%Y-%m-%d')}"


def token_flow_states(payload: Dict[str, Any]) -> Dict[str, bool]:
    """Derive the three token flow flags from web/isFallbackPublicClient."""
    grants = (payload.get("web") or {}).get("implicitGrantSettings") or {}
    id_tokens = bool(grants.get("enableIdTokenIssuance"))
    access_tokens = bool(grants.get("enableAccessTokenIssuance"))
    return {
        IMPLICIT_FLOW: id_tokens and access_tokens,
        HYBRID_FLOW: id_tokens,
        PUBLIC_CLIENT_FLOW: bool(payload.get("isFallbackPublicClient")),
    }


def build_leaf(
    kind: NodeKind, identity: str, local_value: Optional[str], payload: Dict[str, Any]
) -> TreeNode:
    """Build a leaf whose state lives directly on the application object."""
    if kind is NodeKind.AUDIENCE:
        audience = payload.get("signInAudience") or ""
        return TreeNode(
            kind=kind,
            identity=identity,
            label="Sign In Audience",
            description=sign_in_audience_label(audience),
            children=[],
            data={"signInAudience": audience},
        )
    if kind is NodeKind.TOKEN_FLOW_FLAG:
        if local_value not in TOKEN_FLOW_LABELS:
            raise ValueError(f"Unknown token flow: {local_value}")
        enabled = token_flow_states(payload)[local_value]
        return TreeNode(
            kind=kind,
            identity=identity,
            local_value=local_value,
            label=TOKEN_FLOW_LABELS[local_value],
            description="Enabled" if enabled else "Disabled",
            children=[],
            data={"isEnabled": enabled},
        )
    raise ValueError(f"{kind.value} nodes are not built from application fields")


def _application_children(identity: str, payload: Dict[str, Any]) -> List[TreeNode]:
    children = [
        build_leaf(NodeKind.AUDIENCE, identity, None, payload),
        _group(NodeKind.CREDENTIAL_GROUP, identity),
        _group(NodeKind.REDIRECT_URI_GROUP, identity),
    ]
    for flow in (IMPLICIT_FLOW, HYBRID_FLOW, PUBLIC_CLIENT_FLOW):
        children.append(build_leaf(NodeKind.TOKEN_FLOW_FLAG, identity, flow, payload))
    children.extend(
        [
            _group(NodeKind.SCOPE_GROUP, identity),
            _group(NodeKind.APP_ROLE_GROUP, identity),
            _group(NodeKind.OWNER_GROUP, identity),
        ]
    )
    return children


def _entry(kind: NodeKind, identity: str, item: Dict[str, Any], **kwargs: Any) -> TreeNode:
    return TreeNode(kind=kind, identity=identity, children=[], data=dict(item), **kwargs)


def _role_children(identity: str, payload: Dict[str, Any]) -> List[TreeNode]:
    roles = sorted(
        payload.get("appRoles") or [],
        key=lambda r: (r.get("displayName") or "").casefold(),
    )
    return [
        _entry(
            NodeKind.APP_ROLE,
            identity,
            role,
            local_value=role["id"],
            label=role.get("displayName") or "",
            description=role.get("value") if role.get("isEnabled", True) else "Disabled",
        )
        for role in roles
    ]


def _credential_children(identity: str, payload: Dict[str, Any]) -> List[TreeNode]:
    def order(cred: Dict[str, Any]) -> tuple:
        return ((cred.get("displayName") or "").casefold(), cred.get("endDateTime") or "")

    children = [
        _entry(
            NodeKind.PASSWORD_CREDENTIAL,
            identity,
            cred,
            local_value=cred["keyId"],
            label=cred.get("displayName") or "(no description)",
            description=_format_expiry(cred.get("endDateTime")),
        )
        for cred in sorted(payload.get("passwordCredentials") or [], key=order)
    ]
    children.extend(
        _entry(
            NodeKind.CERTIFICATE_CREDENTIAL,
            identity,
            cred,
            local_value=cred["keyId"],
            label=cred.get("displayName") or "(no description)",
            description=_format_expiry(cred.get("endDateTime")),
        )
        for cred in sorted(payload.get("keyCredentials") or [], key=order)
    )
    return children


def _scope_children(identity: str, payload: Dict[str, Any]) -> List[TreeNode]:
    scopes = sorted(
        (payload.get("api") or {}).get("oauth2PermissionScopes") or [],
        key=lambda s: (s.get("value") or "").casefold(),
    )
    return [
        _entry(
            NodeKind.PERMISSION_SCOPE,
            identity,
            scope,
            local_value=scope["id"],
            label=scope.get("value") or "",
            description=(
                scope.get("adminConsentDisplayName")
                if scope.get("isEnabled", True)
                else "Disabled"
            ),
        )
        for scope in scopes
    ]


def redirect_uri_local_value(platform: str, uri: str) -> str:
    return f"{platform}|{uri}"


def _redirect_children(identity: str, payload: Dict[str, Any]) -> List[TreeNode]:
    children = []
    for platform, platform_label in REDIRECT_URI_PLATFORMS.items():
        uris = (payload.get(platform) or {}).get("redirectUris") or []
        for uri in sorted(uris, key=str.casefold):
            children.append(
                _entry(
                    NodeKind.REDIRECT_URI,
                    identity,
                    {"platform": platform, "uri": uri},
                    local_value=redirect_uri_local_value(platform, uri),
                    label=uri,
                    description=platform_label,
                )
            )
    return children


def _owner_children(identity: str, payload: Dict[str, Any]) -> List[TreeNode]:
    owners = sorted(
        payload.get("owners") or [],
        key=lambda o: (o.get("displayName") or "").casefold(),
    )
    return [build_owner_node(identity, owner) for owner in owners]


def build_owner_node(identity: str, owner: Dict[str, Any]) -> TreeNode:
    return _entry(
        NodeKind.OWNER,
        identity,
        owner,
        local_value=owner["id"],
        label=owner.get("displayName") or owner["id"],
        description=owner.get("mail") or owner.get("userPrincipalName"),
    )


_CHILD_BUILDERS = {
    NodeKind.APPLICATION: _application_children,
    NodeKind.APP_ROLE_GROUP: _role_children,
    NodeKind.CREDENTIAL_GROUP: _credential_children,
    NodeKind.SCOPE_GROUP: _scope_children,
    NodeKind.REDIRECT_URI_GROUP: _redirect_children,
    NodeKind.OWNER_GROUP: _owner_children,
}


def build_children(parent: TreeNode, payload: Dict[str, Any]) -> List[TreeNode]:
    """Build the complete, ordered child list of ``parent`` from a payload."""
    builder = _CHILD_BUILDERS.get(parent.kind)
    if builder is None:
        logger.debug(f"{parent.kind.value} nodes have no children")
        return []
    return parent.adopt(builder(parent.identity, payload))
