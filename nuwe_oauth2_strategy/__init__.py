"""
nuwe-oauth2-strategy

OAuth 2.0 login against the nuwe identity provider for Flask applications.

This package provides:
- NuweStrategy: nuwe endpoints, extra parameters, profile and error mapping
- OAuth2Engine: the generic authorization-code flow the strategy plugs into
- NuwePlugin / nuwe_bp: Flask integration (login, callback, logout routes)
"""

__version__ = "0.1.0"

from .engine import AuthResult, OAuth2Engine, ProviderAdapter
from .errors import (
    AuthorizationError,
    ConfigurationError,
    FetchError,
    ParseError,
    ProviderAPIError,
    StrategyError,
    TokenError,
    TransportError,
)
from .profile import Profile
from .profile import parse as parse_profile
from .strategy import NuweStrategy
from .blueprint import nuwe_bp
from .cli import nuwe_cli
from .plugin import NuwePlugin

Strategy = NuweStrategy

__all__ = [
    "AuthResult",
    "AuthorizationError",
    "ConfigurationError",
    "FetchError",
    "NuwePlugin",
    "NuweStrategy",
    "OAuth2Engine",
    "ParseError",
    "Profile",
    "ProviderAPIError",
    "ProviderAdapter",
    "StrategyError",
    "Strategy",
    "TokenError",
    "TransportError",
    "__version__",
    "nuwe_bp",
    "nuwe_cli",
    "parse_profile",
]
