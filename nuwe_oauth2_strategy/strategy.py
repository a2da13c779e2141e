"""
OAuth 2.0 strategy for the nuwe identity provider.

``NuweStrategy`` supplies the nuwe endpoints, the ``type=web_server``
parameter nuwe expects on both the authorization and token requests, the
profile lookup and the mapping of nuwe's error bodies. The protocol flow
itself is run by an ``OAuth2Engine`` the strategy owns.

Example::

    strategy = NuweStrategy(
        {
            "client_id": "123-456-789",
            "client_secret": "shhh-its-a-secret",
            "callback_url": "https://www.example.net/auth/nuwe/callback",
        },
        lambda access_token, refresh_token, profile: profile,
    )
"""

import json
import logging
from typing import Mapping, Optional

from . import profile as nuwe_profile
from .engine import DEFAULT_TIMEOUT, AuthResult, OAuth2Engine, VerifyCallback
from .errors import (
    ConfigurationError,
    FetchError,
    ParseError,
    ProviderAPIError,
    StrategyError,
    TransportError,
)
from .profile import PROVIDER_NAME, Profile

logger = logging.getLogger(__name__)

DEFAULT_AUTHORIZATION_URL = "https://api.nuapi.co/oauth/authorize"
DEFAULT_TOKEN_URL = "https://api.nuapi.co/authorization/token"
DEFAULT_USER_PROFILE_URL = "https://api.nuapi.co/authorization.json"

REQUIRED_OPTIONS = ("client_id", "client_secret", "callback_url")


class NuweStrategy:
    """
    Authenticate users against nuwe using OAuth 2.0.

    Options:
        client_id: nuwe application client id (required)
        client_secret: nuwe application client secret (required)
        callback_url: URL nuwe redirects to after authorization (required)
        authorization_url, token_url, user_profile_url: endpoint overrides
        scope: requested scope (optional)
        skip_user_profile: do not fetch the profile after the exchange
        use_authorization_header_for_get: send the access token as a
            Bearer header on the profile request
        timeout: outbound request timeout in seconds
        transport: httpx transport used for the profile request (optional)

    The ``verify`` callback receives ``(access_token, refresh_token,
    profile)`` and returns the user, or a falsy value if the user is not
    accepted.
    """

    name = PROVIDER_NAME

    def __init__(self, options: Optional[Mapping] = None, verify: VerifyCallback = None):
        options = dict(options or {})

        missing = [key for key in REQUIRED_OPTIONS if not options.get(key)]
        if missing:
            raise ConfigurationError(
                f"NuweStrategy requires option(s): {', '.join(missing)}"
            )
        if not callable(verify):
            raise ConfigurationError("NuweStrategy requires a verify callback")

        self._verify = verify
        self._user_profile_url = options.get("user_profile_url") or DEFAULT_USER_PROFILE_URL
        self._oauth2 = OAuth2Engine(
            self,
            client_id=options["client_id"],
            client_secret=options["client_secret"],
            callback_url=options["callback_url"],
            authorization_url=options.get("authorization_url") or DEFAULT_AUTHORIZATION_URL,
            token_url=options.get("token_url") or DEFAULT_TOKEN_URL,
            scope=options.get("scope"),
            use_authorization_header_for_get=bool(
                options.get("use_authorization_header_for_get", False)
            ),
            skip_user_profile=bool(options.get("skip_user_profile", False)),
            timeout=options.get("timeout") or DEFAULT_TIMEOUT,
            transport=options.get("transport"),
        )

    @property
    def oauth2(self) -> OAuth2Engine:
        return self._oauth2

    @property
    def user_profile_url(self) -> str:
        return self._user_profile_url

    def authorization_params(self) -> dict:
        """Extra parameters for the authorization request."""
        return {"type": "web_server"}

    def token_params(self) -> dict:
        """Extra parameters for the token request."""
        return {"type": "web_server"}

    def fetch_user_profile(self, access_token: str) -> Profile:
        """
        Retrieve the user profile from nuwe.

        The returned profile always has ``provider`` set to ``nuwe``, and
        carries the original body (``raw``) and its decoded form (``json``).

        Raises:
            ProviderAPIError: nuwe rejected the request with an error body
            TransportError: The request failed for any other reason
            ParseError: The profile response is not JSON
        """
        try:
            body = self._oauth2.get(self._user_profile_url, access_token)
        except FetchError as e:
            data = None
            if e.data:
                try:
                    data = json.loads(e.data)
                except ValueError:
                    pass
            if isinstance(data, dict) and isinstance(data.get("error"), str) and data["error"]:
                raise ProviderAPIError(data["error"]) from e
            raise TransportError("Failed to fetch user profile", e) from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ParseError("Failed to parse user profile") from e

        profile = nuwe_profile.parse(data)
        profile.provider = PROVIDER_NAME
        profile.raw = body
        profile.json = data
        return profile

    def user_profile(self, access_token: str, done):
        """Fetch the profile and pass ``(error, profile)`` to ``done``."""
        try:
            profile = self.fetch_user_profile(access_token)
        except StrategyError as e:
            return done(e, None)
        return done(None, profile)

    def parse_error_response(self, body: str, status: int) -> Optional[StrategyError]:
        """
        Classify an error response from the nuwe token endpoint.

        nuwe answers some failures with a bare ``{"error": "..."}``; those
        become ProviderAPIError. Standard OAuth2 error bodies go to the
        engine's default parser.

        Raises:
            ValueError: The body is not JSON
        """
        data = json.loads(body)
        if (
            isinstance(data, dict)
            and isinstance(data.get("error"), str)
            and data["error"]
            and not data.get("error_description")
        ):
            return ProviderAPIError(data["error"])
        return self._oauth2.parse_error_response(body, status)

    def authorization_url(self, state: str) -> str:
        """Return the nuwe authorization redirect URL for ``state``."""
        return self._oauth2.authorization_url(state)

    def authenticate(self, params: Mapping[str, str], expected_state: Optional[str]) -> AuthResult:
        """Complete the login from the callback request parameters."""
        result = self._oauth2.authenticate(params, expected_state, self._verify)
        if result.succeeded:
            logger.info("nuwe authentication succeeded")
        return result
