"""Constants shared by the tree builders and the domain services."""

PORTAL_APP_URI = (
    "https://portal.azure.com/#view/Microsoft_AAD_RegisteredApps/"
    "ApplicationMenuBlade/~/Overview/appId/"
)

SIGN_IN_AUDIENCE_DOCUMENTATION = (
    "https://learn.microsoft.com/en-us/azure/active-directory/develop/"
    "supported-accounts-validation"
)

# Label shown to the user -> value stored in signInAudience
SIGN_IN_AUDIENCE_OPTIONS = {
    "Single Tenant": "AzureADMyOrg",
    "Multi Tenant": "AzureADMultipleOrgs",
    "Multi Tenant and Personal Accounts": "AzureADandPersonalMicrosoftAccount",
    "Personal Accounts Only": "PersonalMicrosoftAccount",
}

# Token flow flag local values
IMPLICIT_FLOW = "implicit"
HYBRID_FLOW = "hybrid"
PUBLIC_CLIENT_FLOW = "public-client"

TOKEN_FLOW_LABELS = {
    IMPLICIT_FLOW: "Implicit Grant (access and ID tokens)",
    HYBRID_FLOW: "Hybrid Flow (ID tokens)",
    PUBLIC_CLIENT_FLOW: "Allow Public Client Flows",
}

# Redirect URI platforms -> property that carries redirectUris
REDIRECT_URI_PLATFORMS = {
    "web": "Web",
    "spa": "Single-page application",
    "publicClient": "Mobile and desktop applications",
}

ALLOWED_MEMBER_TYPE_OPTIONS = [
    ("Users/Groups", "Users and groups can be assigned this role.", ["User"]),
    ("Applications", "Only applications can be assigned this role.", ["Application"]),
    (
        "Both (Users/Groups + Applications)",
        "Users, groups and applications can be assigned this role.",
        ["User", "Application"],
    ),
]


def sign_in_audience_label(value: str) -> str:
    """Convert a signInAudience value to the label shown in the tree."""
    for label, audience in SIGN_IN_AUDIENCE_OPTIONS.items():
        if audience == value:
            return label
    return value
