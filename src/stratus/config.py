"""Configuration management for Stratus.

This module provides centralized configuration loaded from environment
variables, layered over the user's preferences file.
"""

import os
from dataclasses import dataclass, field

from stratus.config_file import (
    EXPLORER_SECTION,
    get_default_config,
    load_explorer_section,
)


@dataclass
class Config:
    """Application configuration.

    All settings can be overridden via environment variables with the
    STRATUS_ prefix (e.g., STRATUS_LOAD_TIMEOUT).
    """

    # Loading Configuration
    load_timeout: float = 30.0  # seconds, bounds an explicit refresh

    # Search Configuration
    max_search_results: int = 500

    # Explorer Configuration
    show_all: bool = True  # show empty resource categories
    hidden_subscriptions: list[str] = field(default_factory=list)

    # Logging Configuration
    log_level: str = "INFO"
    log_file: str | None = None
    enable_credential_scrubbing: bool = True

    def is_subscription_hidden(self, subscription_id: str) -> bool:
        """Check whether a subscription was hidden by the user.

        Args:
            subscription_id: Subscription ID

        Returns:
            True if the subscription is in the hidden list
        """
        wanted = subscription_id.lower()
        return any(s.lower() == wanted for s in self.hidden_subscriptions)

    def toggle_subscription_hidden(self, subscription_id: str) -> bool:
        """Hide a visible subscription or unhide a hidden one.

        Returns:
            True if the subscription is hidden afterwards
        """
        wanted = subscription_id.lower()
        if self.is_subscription_hidden(subscription_id):
            self.hidden_subscriptions = [
                s for s in self.hidden_subscriptions if s.lower() != wanted
            ]
            return False
        self.hidden_subscriptions.append(subscription_id)
        return True

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables.

        Values from the "explorer" section of the config file are used as
        defaults; environment variables win over them.

        Environment variables:
            STRATUS_LOAD_TIMEOUT: Refresh timeout in seconds
            STRATUS_MAX_SEARCH_RESULTS: Maximum number of search results
            STRATUS_SHOW_ALL: Show empty resource categories (true/false)
            STRATUS_HIDDEN_SUBSCRIPTIONS: Comma separated subscription IDs
            STRATUS_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
            STRATUS_LOG_FILE: Log file path (optional)
            STRATUS_ENABLE_CREDENTIAL_SCRUBBING: Enable credential scrubbing (true/false)

        Returns:
            Config instance with values from environment
        """
        explorer = {**get_default_config()[EXPLORER_SECTION], **load_explorer_section()}

        show_all_default = "true" if explorer["show_all"] else "false"
        hidden_default = ",".join(str(s) for s in explorer["hidden_subscriptions"] or [])

        hidden = os.getenv("STRATUS_HIDDEN_SUBSCRIPTIONS", hidden_default)

        return cls(
            load_timeout=float(os.getenv("STRATUS_LOAD_TIMEOUT", "30")),
            max_search_results=int(os.getenv("STRATUS_MAX_SEARCH_RESULTS", "500")),
            show_all=os.getenv("STRATUS_SHOW_ALL", show_all_default).lower() == "true",
            hidden_subscriptions=[s.strip() for s in hidden.split(",") if s.strip()],
            log_level=os.getenv("STRATUS_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("STRATUS_LOG_FILE"),
            enable_credential_scrubbing=os.getenv(
                "STRATUS_ENABLE_CREDENTIAL_SCRUBBING", "true"
            ).lower()
            == "true",
        )


# Global config instance (lazy-loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config instance (loads from environment on first call)
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (mainly for testing)."""
    global _config
    _config = None
