"""
Configuration for the application registration tree.

Defaults live on the ``Settings`` dataclass; ``Settings.from_env`` overrides
them from ``APPREG_TREE_*`` environment variables, loading an optional
``.env`` file first.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "APPREG_TREE_"


@dataclass
class Settings:
    """Runtime settings shared by the repository and the domain services."""

    scopes: List[str] = field(
        default_factory=lambda: ["https://graph.microsoft.com/.default"]
    )
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    page_size: int = 999
    # Client secrets may not expire later than this many years from today
    password_max_years: int = 2
    password_default_days: int = 90
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from the environment (and an optional .env file)."""
        load_dotenv(dotenv_path)
        settings = cls()

        scopes = os.getenv(f"{ENV_PREFIX}SCOPES")
        if scopes:
            settings.scopes = [s.strip() for s in scopes.split(",") if s.strip()]
        settings.graph_base_url = os.getenv(
            f"{ENV_PREFIX}GRAPH_BASE_URL", settings.graph_base_url
        )
        settings.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", settings.log_level).upper()

        for name in ("page_size", "password_max_years", "password_default_days"):
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            try:
                setattr(settings, name, int(raw))
            except ValueError:
                logger.warning(f"Ignoring non-integer {ENV_PREFIX}{name.upper()}={raw!r}")
        return settings


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """
    Set the package log level and align azure.identity.aio / httpx with it.

    Returns:
        The package logger
    """
    package_logger = logging.getLogger("msgraph_appreg_tree")
    package_logger.setLevel(level)
    ext_level = package_logger.getEffectiveLevel()
    logging.getLogger("azure.identity.aio").setLevel(ext_level)
    logging.getLogger("httpx").setLevel(ext_level)
    return package_logger
