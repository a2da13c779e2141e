"""
Flask extension wiring the nuwe strategy into an application.

The plugin builds the ``NuweStrategy`` from configuration, registers the
authentication blueprint and the ``nuwe`` CLI group, and owns the hooks
that turn a user into a session record and back.
"""

import logging
from typing import Any, Callable, Optional

from flask import Flask

from .blueprint import EXTENSION_NAME, nuwe_bp
from .cli import nuwe_cli
from .config import PluginConfig
from .engine import VerifyCallback
from .profile import Profile
from .strategy import NuweStrategy

logger = logging.getLogger(__name__)


def default_verify(access_token, refresh_token, profile):
    """Accept every user and use the nuwe profile as the user object."""
    return profile


def serialize_user(user) -> dict:
    """
    Reduce a user to the record stored in the session.

    Only stable identifying fields are kept; the raw profile body is never
    written to the session.
    """
    if isinstance(user, Profile):
        return {
            "provider": user.provider,
            "id": user.id,
            "username": user.username,
            "displayName": user.display_name,
        }
    return user


def deserialize_user(record):
    """Return the user for a session record (the record itself)."""
    return record


class NuwePlugin:
    """
    nuwe OAuth2 login for a Flask application.

    Applications with their own user store should pass ``verify`` to map
    the profile to a local user, and ``serialize_user`` /
    ``deserialize_user`` to keep only the user id in the session.
    """

    def __init__(
        self,
        app: Flask = None,
        verify: VerifyCallback = None,
        config: PluginConfig = None,
        serialize_user: Callable[[Any], Any] = serialize_user,
        deserialize_user: Callable[[Any], Any] = deserialize_user,
    ):
        """
        Initialize the plugin.

        Args:
            app: Flask application instance (optional, can call init_app later)
            verify: Callback mapping (access_token, refresh_token, profile)
                to a user; defaults to returning the profile
            config: Plugin configuration; loaded from the environment if omitted
            serialize_user: Turns a user into a session record
            deserialize_user: Turns a session record back into a user
        """
        self.app = app
        self.verify = verify or default_verify
        self.config: Optional[PluginConfig] = config
        self.strategy: Optional[NuweStrategy] = None
        self.serialize_user = serialize_user
        self.deserialize_user = deserialize_user

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask):
        """
        Initialize the plugin with a Flask application.

        Raises:
            ConfigurationError: nuwe client credentials are missing
        """
        self.app = app
        if self.config is None:
            self.config = PluginConfig.from_env()

        self.strategy = NuweStrategy(self.config.nuwe.to_options(), self.verify)

        # Flask pre-populates these keys, so only replace values the host
        # has left at Flask's default
        for key, value in self.get_config().items():
            if app.config.get(key) == Flask.default_config.get(key):
                app.config[key] = value

        if not app.config.get("SECRET_KEY"):
            logger.warning(
                "Flask SECRET_KEY not set. Sessions will not persist across restarts."
            )

        app.extensions[EXTENSION_NAME] = self
        if nuwe_bp.name not in app.blueprints:
            app.register_blueprint(nuwe_bp)
        app.cli.add_command(nuwe_cli)

        logger.info("nuwe OAuth2 plugin initialized")
        logger.info(f"Callback URL: {self.config.nuwe.callback_url}")

    @staticmethod
    def get_config() -> dict:
        """Session cookie defaults required by the OAuth2 redirect flow."""
        return {
            # SECURE must be False for HTTP (dev), True for HTTPS (prod)
            # SAMESITE must be "Lax" for OAuth2 redirects to work
            "SESSION_COOKIE_SECURE": False,
            "SESSION_COOKIE_HTTPONLY": True,
            "SESSION_COOKIE_SAMESITE": "Lax",
        }

    @staticmethod
    def get_name() -> str:
        """Return the plugin name."""
        return "nuwe-oauth2-strategy"

    @staticmethod
    def get_version() -> str:
        """Return the plugin version."""
        from . import __version__
        return __version__
