"""
Field validators used at the input step.

Each validator returns an error message, or None when the value is valid.
Validators that check uniqueness take the freshly read sibling collection.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

_DATE_PATTERN = re.compile(r"^\d{4}[-/]\d{2}[-/]\d{2}$")
_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def _required(value: Optional[str], what: str, max_length: int) -> Optional[str]:
    if value is None or value.strip() == "":
        return f"{what} cannot be empty."
    if len(value) > max_length:
        return f"{what} cannot be longer than {max_length} characters."
    return None


def validate_application_display_name(value: str) -> Optional[str]:
    return _required(value, "Application name", 120)


def validate_app_role_display_name(value: str) -> Optional[str]:
    return _required(value, "Display name", 100)


def validate_app_role_description(value: str) -> Optional[str]:
    return _required(value, "Description", 1000)


def _validate_unique_value(
    value: str,
    is_editing: bool,
    old_value: Optional[str],
    siblings: List[Dict[str, Any]],
    max_length: int,
) -> Optional[str]:
    error = _required(value, "Value", max_length)
    if error:
        return error
    if " " in value:
        return "Value cannot contain spaces."
    if value.startswith("."):
        return "Value cannot start with a full stop."
    if is_editing and value == old_value:
        return None
    if any(sibling.get("value") == value for sibling in siblings):
        return "The value specified already exists."
    return None


def validate_app_role_value(
    value: str, is_editing: bool, old_value: Optional[str], roles: List[Dict[str, Any]]
) -> Optional[str]:
    """A role value must be unique among the application's roles."""
    return _validate_unique_value(value, is_editing, old_value, roles, 250)


def validate_scope_value(
    value: str, is_editing: bool, old_value: Optional[str], scopes: List[Dict[str, Any]]
) -> Optional[str]:
    """A scope value must be unique among the application's exposed scopes."""
    return _validate_unique_value(value, is_editing, old_value, scopes, 120)


def validate_scope_display_name(value: str) -> Optional[str]:
    return _required(value, "Display name", 100)


def validate_scope_description(value: str) -> Optional[str]:
    return _required(value, "Description", 1000)


def validate_password_credential_description(value: str) -> Optional[str]:
    return _required(value, "Description", 100)


def add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 29 February
        return start.replace(year=start.year + years, day=28)


def parse_expiry_date(value: str) -> date:
    return datetime.strptime(value.replace("/", "-"), "%Y-%m-%d").date()


def validate_password_credential_expiry_date(
    value: str, max_years: int = 2, today: Optional[date] = None
) -> Optional[str]:
    """Expiry must be a real date after today and within ``max_years``."""
    if not _DATE_PATTERN.match(value or ""):
        return "Expiry must be in the format YYYY-MM-DD or YYYY/MM/DD."
    try:
        expiry = parse_expiry_date(value)
    except ValueError:
        return "Expiry must be a valid date."
    today = today or date.today()
    if expiry <= today:
        return "Expiry must be in the future."
    if expiry > add_years(today, max_years):
        return f"Expiry must be less than {max_years} years in the future."
    return None


def validate_redirect_uri(
    value: str,
    platform: str,
    existing: List[str],
    old_value: Optional[str] = None,
) -> Optional[str]:
    """Redirect URIs follow the Entra ID rules for the given platform."""
    error = _required(value, "Redirect URI", 256)
    if error:
        return error
    if "*" in value:
        return "Wildcard characters are not supported in redirect URIs."
    if platform in ("web", "spa"):
        if not (value.startswith("https://") or value.startswith("http://localhost")):
            return "Redirect URI must start with https:// or http://localhost."
    elif not _SCHEME_PATTERN.match(value):
        return "Redirect URI must include a scheme, for example msal{client-id}://auth."
    if value != old_value and value in existing:
        return "The redirect URI specified already exists."
    return None


def validate_user_search(value: str) -> Optional[str]:
    if value is None or len(value.strip()) < 1:
        return "Enter at least one character to search for a user."
    return None
