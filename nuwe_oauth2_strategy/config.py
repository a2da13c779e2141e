"""
Configuration management for the nuwe OAuth2 integration.

This module loads the nuwe client credentials, endpoint overrides and
redirect settings from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .errors import ConfigurationError
from .strategy import (
    DEFAULT_AUTHORIZATION_URL,
    DEFAULT_TOKEN_URL,
    DEFAULT_USER_PROFILE_URL,
)

DEFAULT_BASE_URL = "http://127.0.0.1:5000"
CALLBACK_PATH = "/auth/nuwe/callback"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


def _env_timeout(name: str, default: str) -> float:
    value = os.environ.get(name, default)
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}")
    if timeout <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return timeout


@dataclass
class NuweProviderConfig:
    """nuwe client registration and endpoints."""

    name: str = "nuwe"

    # Endpoints
    authorization_url: str = DEFAULT_AUTHORIZATION_URL
    token_url: str = DEFAULT_TOKEN_URL
    user_profile_url: str = DEFAULT_USER_PROFILE_URL

    # Client credentials
    client_id: str = ""
    client_secret: str = ""
    callback_url: str = f"{DEFAULT_BASE_URL}{CALLBACK_PATH}"

    scope: Optional[str] = None
    use_authorization_header: bool = False
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "NuweProviderConfig":
        """Create configuration from environment variables."""
        base_url = os.environ.get("NUWE_BASE_URL", DEFAULT_BASE_URL).rstrip("/")

        return cls(
            authorization_url=os.environ.get(
                "NUWE_AUTHORIZATION_URL", DEFAULT_AUTHORIZATION_URL
            ),
            token_url=os.environ.get("NUWE_TOKEN_URL", DEFAULT_TOKEN_URL),
            user_profile_url=os.environ.get(
                "NUWE_USER_PROFILE_URL", DEFAULT_USER_PROFILE_URL
            ),
            client_id=os.environ.get("NUWE_CLIENT_ID", ""),
            client_secret=os.environ.get("NUWE_CLIENT_SECRET", ""),
            callback_url=os.environ.get(
                "NUWE_CALLBACK_URL", f"{base_url}{CALLBACK_PATH}"
            ),
            scope=os.environ.get("NUWE_SCOPE") or None,
            use_authorization_header=_env_flag("NUWE_USE_AUTHORIZATION_HEADER"),
            timeout=_env_timeout("NUWE_TIMEOUT", "10"),
        )

    def to_options(self) -> dict:
        """Return the options mapping accepted by NuweStrategy."""
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "callback_url": self.callback_url,
            "authorization_url": self.authorization_url,
            "token_url": self.token_url,
            "user_profile_url": self.user_profile_url,
            "scope": self.scope,
            "use_authorization_header_for_get": self.use_authorization_header,
            "timeout": self.timeout,
        }


@dataclass
class PluginConfig:
    """Overall plugin configuration."""

    nuwe: NuweProviderConfig = field(default_factory=NuweProviderConfig.from_env)

    base_url: str = DEFAULT_BASE_URL

    # Frontend redirect settings
    frontend_url: str = "/"
    login_success_redirect: str = "/"
    login_failure_redirect: str = "/login"

    @classmethod
    def from_env(cls) -> "PluginConfig":
        """Create configuration from environment variables."""
        return cls(
            nuwe=NuweProviderConfig.from_env(),
            base_url=os.environ.get("NUWE_BASE_URL", DEFAULT_BASE_URL),
            frontend_url=os.environ.get("NUWE_FRONTEND_URL", "/"),
            login_success_redirect=os.environ.get("NUWE_LOGIN_SUCCESS_REDIRECT", "/"),
            login_failure_redirect=os.environ.get(
                "NUWE_LOGIN_FAILURE_REDIRECT", "/login"
            ),
        )
