"""Tests for NuweStrategy: options, extra params, profile and error mapping."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from conftest import PROFILE, accept_profile, make_profile_strategy
from nuwe_oauth2_strategy.errors import (
    ConfigurationError,
    FetchError,
    ParseError,
    ProviderAPIError,
    TokenError,
    TransportError,
)
from nuwe_oauth2_strategy.profile import Profile
from nuwe_oauth2_strategy.strategy import (
    DEFAULT_AUTHORIZATION_URL,
    DEFAULT_TOKEN_URL,
    DEFAULT_USER_PROFILE_URL,
    NuweStrategy,
)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_defaults_applied(strategy):
    assert strategy.name == "nuwe"
    assert strategy.oauth2.authorization_endpoint == DEFAULT_AUTHORIZATION_URL
    assert strategy.oauth2.token_url == DEFAULT_TOKEN_URL
    assert strategy.user_profile_url == DEFAULT_USER_PROFILE_URL


def test_endpoint_overrides(options):
    options.update(
        authorization_url="https://idp.test/authorize",
        token_url="https://idp.test/token",
        user_profile_url="https://idp.test/me",
    )
    strategy = NuweStrategy(options, accept_profile)

    assert strategy.oauth2.authorization_endpoint == "https://idp.test/authorize"
    assert strategy.oauth2.token_url == "https://idp.test/token"
    assert strategy.user_profile_url == "https://idp.test/me"


@pytest.mark.parametrize("missing", ["client_id", "client_secret", "callback_url"])
def test_missing_credential_raises(options, missing):
    del options[missing]

    with pytest.raises(ConfigurationError, match=missing):
        NuweStrategy(options, accept_profile)


def test_missing_client_id_fails_before_any_request(options, monkeypatch):
    def no_network(*args, **kwargs):
        raise AssertionError("network used")

    monkeypatch.setattr(httpx.Client, "send", no_network)
    options["client_id"] = ""

    with pytest.raises(ConfigurationError):
        NuweStrategy(options, accept_profile)


def test_no_options_raises():
    with pytest.raises(ConfigurationError):
        NuweStrategy(None, accept_profile)


def test_verify_must_be_callable(options):
    with pytest.raises(ConfigurationError, match="verify"):
        NuweStrategy(options, None)


# ---------------------------------------------------------------------------
# Extra parameters
# ---------------------------------------------------------------------------


def test_authorization_and_token_params(strategy):
    assert strategy.authorization_params() == {"type": "web_server"}
    assert strategy.token_params() == {"type": "web_server"}


def test_params_are_independent_between_calls(strategy):
    first = strategy.authorization_params()
    first["type"] = "changed"

    assert strategy.authorization_params() == {"type": "web_server"}
    assert strategy.token_params() == {"type": "web_server"}


def test_authorization_url_carries_web_server_type(strategy):
    url = strategy.authorization_url("state-1")

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == DEFAULT_AUTHORIZATION_URL
    assert query["type"] == ["web_server"]
    assert query["state"] == ["state-1"]
    assert query["response_type"] == ["code"]
    assert query["client_id"] == ["test-client-id"]
    assert query["redirect_uri"] == ["https://app.example.net/auth/nuwe/callback"]


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def test_fetch_user_profile(options):
    body = json.dumps(PROFILE)
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text=body)

    strategy = make_profile_strategy(options, handler)
    profile = strategy.fetch_user_profile("access-123")

    assert profile == Profile(
        provider="nuwe",
        id="42",
        username="alice",
        display_name="Alice A.",
        raw=body,
        json=PROFILE,
    )
    assert str(seen[0].url).startswith(DEFAULT_USER_PROFILE_URL)
    assert seen[0].url.params["access_token"] == "access-123"


def test_fetch_user_profile_forces_provider(options):
    payload = dict(PROFILE, provider="someone-else")
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(200, json=payload)
    )

    profile = strategy.fetch_user_profile("access-123")

    assert profile.provider == "nuwe"
    assert profile.json["provider"] == "someone-else"


def test_fetch_user_profile_keeps_incomplete_profile(options):
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(200, json={"username": "bob"})
    )

    profile = strategy.fetch_user_profile("access-123")

    assert profile.id is None
    assert profile.username == "bob"


def test_fetch_user_profile_authorization_header(options):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=PROFILE)

    strategy = make_profile_strategy(
        options, handler, use_authorization_header_for_get=True
    )
    strategy.fetch_user_profile("access-123")

    assert seen[0].headers["Authorization"] == "Bearer access-123"
    assert "access_token" not in seen[0].url.params


@pytest.mark.parametrize("body", ["not json", "<html></html>", ""])
def test_fetch_user_profile_invalid_json(options, body):
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(200, text=body)
    )

    with pytest.raises(ParseError, match="Failed to parse user profile"):
        strategy.fetch_user_profile("access-123")


def test_fetch_user_profile_provider_error(options):
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(401, json={"error": "invalid_token"})
    )

    with pytest.raises(ProviderAPIError) as excinfo:
        strategy.fetch_user_profile("access-123")

    assert excinfo.value.message == "invalid_token"


@pytest.mark.parametrize(
    "body",
    ["Internal Server Error", json.dumps({"error": {"code": 1}}), json.dumps(["error"])],
)
def test_fetch_user_profile_unrecognized_error_body(options, body):
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(500, text=body)
    )

    with pytest.raises(TransportError) as excinfo:
        strategy.fetch_user_profile("access-123")

    assert isinstance(excinfo.value.cause, FetchError)
    assert excinfo.value.cause.status_code == 500


def test_fetch_user_profile_network_failure(options):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    strategy = make_profile_strategy(options, handler)

    with pytest.raises(TransportError) as excinfo:
        strategy.fetch_user_profile("access-123")

    cause = excinfo.value.cause
    assert isinstance(cause, FetchError)
    assert cause.data is None
    assert isinstance(cause.__cause__, httpx.ConnectError)


def test_fetch_user_profile_timeout_is_transport_error(options):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    strategy = make_profile_strategy(options, handler)

    with pytest.raises(TransportError):
        strategy.fetch_user_profile("access-123")


def test_user_profile_continuation_success(options):
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(200, json=PROFILE)
    )
    calls = []

    strategy.user_profile("access-123", lambda err, profile: calls.append((err, profile)))

    assert len(calls) == 1
    err, profile = calls[0]
    assert err is None
    assert profile.id == "42"


def test_user_profile_continuation_error(options):
    strategy = make_profile_strategy(
        options, lambda request: httpx.Response(400, json={"error": "invalid_token"})
    )
    calls = []

    strategy.user_profile("access-123", lambda err, profile: calls.append((err, profile)))

    assert len(calls) == 1
    err, profile = calls[0]
    assert isinstance(err, ProviderAPIError)
    assert profile is None


# ---------------------------------------------------------------------------
# Token endpoint errors
# ---------------------------------------------------------------------------


def test_parse_error_response_minimal_error(strategy):
    error = strategy.parse_error_response(json.dumps({"error": "invalid_grant"}), 400)

    assert isinstance(error, ProviderAPIError)
    assert error.message == "invalid_grant"


def test_parse_error_response_standard_error_delegates(strategy):
    body = json.dumps({"error": "invalid_grant", "error_description": "Code expired"})

    error = strategy.parse_error_response(body, 400)

    assert isinstance(error, TokenError)
    assert error.code == "invalid_grant"
    assert error.message == "Code expired"


def test_parse_error_response_without_error_field(strategy):
    assert strategy.parse_error_response(json.dumps({"detail": "nope"}), 400) is None


def test_parse_error_response_invalid_json(strategy):
    with pytest.raises(ValueError):
        strategy.parse_error_response("<html>", 502)
