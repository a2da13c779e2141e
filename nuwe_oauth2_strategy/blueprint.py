"""
Flask blueprint for nuwe OAuth2 authentication.

This blueprint provides the following endpoints:
- GET /auth/nuwe - Redirect to nuwe for authorization
- GET /auth/nuwe/callback - nuwe redirects back here with the authorization code
- GET /auth/logout - Clear session and logout
- GET /auth/account - Current user (requires login)
- GET /auth/info - Provider information for the frontend
"""

import logging
import secrets

from flask import current_app, jsonify, redirect, request, session, url_for
from flask_smorest import Blueprint

logger = logging.getLogger(__name__)

EXTENSION_NAME = "nuwe_oauth2"

nuwe_bp = Blueprint(
    "nuwe_auth",
    __name__,
    url_prefix="/auth",
    description="nuwe OAuth2 authentication endpoints",
)


def get_plugin():
    """Return the NuwePlugin registered on the current application."""
    return current_app.extensions[EXTENSION_NAME]


@nuwe_bp.route("/nuwe")
def login():
    """
    Start the nuwe authorization flow.

    Query Parameters:
        next: URL to redirect to after successful login (optional)
    """
    plugin = get_plugin()

    # CSRF protection for the callback
    state = secrets.token_urlsafe(32)
    session["oauth2_state"] = state
    session["auth_return_url"] = request.args.get(
        "next", plugin.config.login_success_redirect
    )
    session.modified = True

    authorization_url = plugin.strategy.authorization_url(state)
    logger.info("Initiating nuwe login, redirecting to provider")
    return redirect(authorization_url)


@nuwe_bp.route("/nuwe/callback")
def callback():
    """Complete the login after nuwe redirects back."""
    plugin = get_plugin()
    stored_state = session.pop("oauth2_state", None)
    return_url = session.pop("auth_return_url", plugin.config.login_success_redirect)

    result = plugin.strategy.authenticate(request.args, stored_state)

    if result.error is not None:
        logger.error(f"nuwe authentication error: {result.error}")
        return redirect(plugin.config.login_failure_redirect)

    if not result.user:
        message = (result.info or {}).get("message")
        logger.warning(f"nuwe authentication failed: {message}")
        return redirect(plugin.config.login_failure_redirect)

    session["user"] = plugin.serialize_user(result.user)
    logger.info("User authenticated successfully via nuwe")
    return redirect(return_url)


@nuwe_bp.route("/logout")
def logout():
    """Logout and clear session."""
    plugin = get_plugin()
    session.clear()
    logger.info("User logged out")
    return redirect(plugin.config.frontend_url)


@nuwe_bp.route("/account")
def account():
    """Return the logged-in user, or 401 with the login URL."""
    plugin = get_plugin()
    record = session.get("user")

    if record is None:
        return jsonify({
            "error": "Not authenticated",
            "login_url": url_for("nuwe_auth.login", _external=True),
        }), 401

    return jsonify({"user": plugin.deserialize_user(record)})


@nuwe_bp.route("/info")
def auth_info():
    """
    Return information about the nuwe login.

    This endpoint can be used by the frontend to display login options.
    """
    plugin = get_plugin()

    return jsonify({
        "provider": plugin.strategy.name,
        "login_url": url_for("nuwe_auth.login", _external=True),
        "configured": bool(plugin.config.nuwe.client_id and plugin.config.nuwe.client_secret),
        "version": plugin.get_version(),
    })
