"""
Generic OAuth 2.0 authorization-code engine.

The engine owns the protocol mechanics: it builds the authorization
redirect, exchanges the authorization code for a token, performs
authenticated GET requests and runs the callback flow. Everything that is
specific to one identity provider comes from a ``ProviderAdapter`` passed
in at construction.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol

import httpx
import requests
from authlib.integrations.base_client import OAuthError
from authlib.integrations.requests_client import OAuth2Session

from .errors import (
    AuthorizationError,
    ConfigurationError,
    FetchError,
    ParseError,
    StrategyError,
    TokenError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# verify(access_token, refresh_token, profile) -> user or falsy
VerifyCallback = Callable[[str, Optional[str], Any], Any]
ProfileCallback = Callable[[Optional[StrategyError], Any], Any]


class ProviderAdapter(Protocol):
    """Hooks a provider supplies to the engine."""

    name: str

    def authorization_params(self) -> dict:
        ...

    def token_params(self) -> dict:
        ...

    def parse_error_response(self, body: str, status: int) -> Optional[StrategyError]:
        ...

    def user_profile(self, access_token: str, done: ProfileCallback) -> Any:
        ...


@dataclass
class AuthResult:
    """Outcome of one authorization callback."""

    user: Any = None
    info: Optional[dict] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.user)


class OAuth2Engine:
    """Authorization-code flow driven by a provider adapter."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        client_id: str,
        client_secret: str,
        callback_url: str,
        authorization_url: str,
        token_url: str,
        scope=None,
        use_authorization_header_for_get: bool = False,
        skip_user_profile: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the engine.

        Args:
            adapter: Provider hooks (extra params, error parsing, profile)
            client_id: OAuth2 client id
            client_secret: OAuth2 client secret
            callback_url: Redirect URI registered with the provider
            authorization_url: Provider authorize endpoint
            token_url: Provider token endpoint
            scope: Space separated string or list of scopes (optional)
            use_authorization_header_for_get: Send the access token as a
                Bearer header instead of the ``access_token`` query parameter
            skip_user_profile: Do not load the profile after the exchange
            timeout: Timeout in seconds for outbound requests
            transport: httpx transport override for authenticated GETs
        """
        if not client_id:
            raise ConfigurationError("OAuth2Engine requires a client_id")
        if not authorization_url:
            raise ConfigurationError("OAuth2Engine requires an authorization_url")
        if not token_url:
            raise ConfigurationError("OAuth2Engine requires a token_url")

        self.adapter = adapter
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.authorization_endpoint = authorization_url
        self.token_url = token_url
        self.scope = scope
        self.use_authorization_header_for_get = use_authorization_header_for_get
        self.skip_user_profile = skip_user_profile
        self.timeout = timeout
        self.transport = transport

    def create_session(self) -> OAuth2Session:
        """Create an OAuth2 session for the configured provider."""
        return OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.callback_url,
            scope=self.scope,
            token_endpoint_auth_method="client_secret_post",
        )

    def authorization_url(self, state: str) -> str:
        """Build the URL the user agent is redirected to for login."""
        oauth = self.create_session()
        url, _ = oauth.create_authorization_url(
            self.authorization_endpoint,
            state=state,
            **self.adapter.authorization_params(),
        )
        logger.debug(f"Authorization URL: {url}")
        return url

    def exchange_code(self, code: str) -> dict:
        """
        Exchange an authorization code for a token response.

        Raises:
            StrategyError: Classified failure of the token request
        """
        oauth = self.create_session()
        oauth.register_compliance_hook(
            "access_token_response", self._check_token_response
        )
        try:
            token = oauth.fetch_token(
                self.token_url,
                code=code,
                timeout=self.timeout,
                **self.adapter.token_params(),
            )
        except OAuthError as e:
            raise TokenError(e.description, e.error) from e
        except requests.exceptions.JSONDecodeError as e:
            raise ParseError("Failed to parse access token response") from e
        except requests.RequestException as e:
            raise TransportError("Failed to obtain access token", e) from e
        except ValueError as e:
            # authlib rejects bodies that are not a JSON object
            raise ParseError("Failed to parse access token response") from e

        if not isinstance(token, dict):
            raise ParseError("Failed to parse access token response")
        if not token.get("access_token"):
            raise TokenError("Token response has no access_token", "invalid_grant")
        return dict(token)

    def _check_token_response(self, resp):
        if resp.status_code >= 400:
            raise self._token_error(resp.text, resp.status_code)
        return resp

    def _token_error(self, body: str, status: int) -> StrategyError:
        try:
            error = self.adapter.parse_error_response(body, status)
        except ValueError:
            error = None
        if error is None:
            cause = FetchError(
                f"Token endpoint returned HTTP {status}", status_code=status, data=body
            )
            error = TransportError("Failed to obtain access token", cause)
        return error

    def parse_error_response(self, body: str, status: int) -> Optional[StrategyError]:
        """
        Default parser for OAuth2-standard token endpoint errors.

        Raises:
            ValueError: The body is not JSON
        """
        data = json.loads(body)
        if isinstance(data, dict) and data.get("error"):
            return TokenError(
                data.get("error_description"),
                data["error"],
                data.get("error_uri"),
            )
        return None

    def get(self, url: str, access_token: str) -> str:
        """
        Perform an authenticated GET and return the response body.

        Raises:
            FetchError: Network failure, timeout or non-2xx status
        """
        headers = {}
        params = None
        if self.use_authorization_header_for_get:
            headers["Authorization"] = f"Bearer {access_token}"
        else:
            params = {"access_token": access_token}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(
                f"Request to {url} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                data=resp.text,
            )
        return resp.text

    def load_user_profile(self, access_token: str):
        """Run the adapter's profile hook and return its result."""
        outcome = {}

        def done(err, profile):
            outcome["error"] = err
            outcome["profile"] = profile

        self.adapter.user_profile(access_token, done)
        if outcome.get("error") is not None:
            raise outcome["error"]
        return outcome.get("profile")

    def authenticate(
        self,
        params: Mapping[str, str],
        expected_state: Optional[str],
        verify: VerifyCallback,
    ) -> AuthResult:
        """
        Handle the provider's redirect back to the callback URL.

        Args:
            params: Query parameters of the callback request
            expected_state: State stored when the login was started
            verify: Host callback turning tokens and profile into a user

        Returns:
            AuthResult; nothing is raised for runtime failures
        """
        error = params.get("error")
        if error:
            description = params.get("error_description")
            if error == "access_denied":
                logger.warning(f"{self.adapter.name}: user denied access")
                return AuthResult(info={"message": description or "Access denied."})
            logger.error(f"{self.adapter.name} authorization error: {error} - {description}")
            return AuthResult(
                error=AuthorizationError(description, error, params.get("error_uri"))
            )

        state = params.get("state")
        if not state or state != expected_state:
            logger.warning(f"{self.adapter.name}: authorization state mismatch")
            return AuthResult(info={"message": "Invalid authorization request state."})

        code = params.get("code")
        if not code:
            logger.warning(f"{self.adapter.name}: no authorization code received")
            return AuthResult(info={"message": "Missing authorization code."})

        try:
            token = self.exchange_code(code)
        except StrategyError as e:
            logger.error(f"{self.adapter.name} token exchange failed: {e}")
            return AuthResult(error=e)

        access_token = token["access_token"]
        refresh_token = token.get("refresh_token")

        profile = None
        if not self.skip_user_profile:
            try:
                profile = self.load_user_profile(access_token)
            except StrategyError as e:
                logger.error(f"{self.adapter.name} profile fetch failed: {e}")
                return AuthResult(error=e)

        try:
            user = verify(access_token, refresh_token, profile)
        except Exception as e:
            logger.exception(f"{self.adapter.name} verify callback failed")
            return AuthResult(error=e)

        if not user:
            logger.info(f"{self.adapter.name}: verify callback rejected the user")
            return AuthResult(info={"message": "User rejected by verify callback."})

        return AuthResult(user=user)
