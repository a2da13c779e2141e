"""Shared test fixtures for nuwe_oauth2_strategy.

Provides strategy construction helpers, an in-process stand-in for the
nuwe token endpoint, and a Flask application with the plugin installed.
No test talks to the network.
"""

import json

import httpx
import pytest
import requests
from requests.adapters import BaseAdapter
from flask import Flask

from nuwe_oauth2_strategy.config import NuweProviderConfig, PluginConfig
from nuwe_oauth2_strategy.plugin import NuwePlugin
from nuwe_oauth2_strategy.strategy import NuweStrategy

CALLBACK_URL = "https://app.example.net/auth/nuwe/callback"

PROFILE = {"id": "42", "username": "alice", "displayName": "Alice A."}


def accept_profile(access_token, refresh_token, profile):
    return profile


@pytest.fixture
def options():
    return {
        "client_id": "test-client-id",
        "client_secret": "test-client-secret",
        "callback_url": CALLBACK_URL,
    }


@pytest.fixture
def strategy(options):
    return NuweStrategy(options, accept_profile)


def make_profile_strategy(options, handler, **extra):
    """Strategy whose profile GETs are answered by ``handler``."""
    opts = dict(options, transport=httpx.MockTransport(handler), **extra)
    return NuweStrategy(opts, accept_profile)


# ---------------------------------------------------------------------------
# Token endpoint stand-in
# ---------------------------------------------------------------------------


class TokenEndpointStub(BaseAdapter):
    """requests transport adapter returning a canned token response."""

    def __init__(self):
        super().__init__()
        self.status_code = 200
        self.body = json.dumps({"access_token": "access-123", "refresh_token": "refresh-456"})
        self.requests = []
        self.error = None

    def fail_with(self, error):
        self.error = error

    def respond(self, status_code, body):
        self.status_code = status_code
        self.body = body if isinstance(body, str) else json.dumps(body)

    def send(self, request, **kwargs):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        resp = requests.Response()
        resp.status_code = self.status_code
        resp._content = self.body.encode("utf-8")
        resp.encoding = "utf-8"
        resp.headers["Content-Type"] = "application/json"
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass


@pytest.fixture
def token_endpoint(strategy, monkeypatch):
    stub = TokenEndpointStub()
    create_session = strategy.oauth2.create_session

    def create_stubbed_session():
        oauth = create_session()
        oauth.mount("https://", stub)
        return oauth

    monkeypatch.setattr(strategy.oauth2, "create_session", create_stubbed_session)
    return stub


# ---------------------------------------------------------------------------
# Flask application
# ---------------------------------------------------------------------------


@pytest.fixture
def plugin_config():
    return PluginConfig(
        nuwe=NuweProviderConfig(
            client_id="test-client-id",
            client_secret="test-client-secret",
            callback_url=CALLBACK_URL,
        ),
        login_success_redirect="/home",
        login_failure_redirect="/login",
        frontend_url="/",
    )


@pytest.fixture
def app(plugin_config):
    app = Flask(__name__)
    app.config.update(SECRET_KEY="test-secret", TESTING=True)
    NuwePlugin(app, config=plugin_config)
    return app


@pytest.fixture
def plugin(app):
    return app.extensions["nuwe_oauth2"]


@pytest.fixture
def client(app):
    return app.test_client()
