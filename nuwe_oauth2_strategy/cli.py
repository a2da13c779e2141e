"""
CLI commands for the nuwe OAuth2 integration.

These commands help with setup and debugging. They are available as
``flask nuwe ...`` once the plugin is initialized.
"""

import click
import httpx

from .config import PluginConfig
from .errors import ConfigurationError


@click.group("nuwe")
def nuwe_cli():
    """nuwe OAuth2 management commands."""
    pass


@nuwe_cli.command("show-config")
def show_config():
    """Display current nuwe configuration."""
    config = PluginConfig.from_env()
    nuwe = config.nuwe

    click.echo("=== nuwe Provider Configuration ===")
    click.echo(f"Authorization URL: {nuwe.authorization_url}")
    click.echo(f"Token URL: {nuwe.token_url}")
    click.echo(f"User Profile URL: {nuwe.user_profile_url}")
    click.echo(f"Callback URL: {nuwe.callback_url}")
    click.echo(f"Scope: {nuwe.scope or 'Not configured'}")
    click.echo(f"Client ID: {nuwe.client_id[:8] + '...' if nuwe.client_id else 'Not configured'}")
    click.echo(f"Client Secret: {'Configured' if nuwe.client_secret else 'Not configured'}")
    click.echo(f"Token in Authorization header: {nuwe.use_authorization_header}")
    click.echo(f"Timeout: {nuwe.timeout} seconds")

    click.echo("\n=== Redirects ===")
    click.echo(f"Login success: {config.login_success_redirect}")
    click.echo(f"Login failure: {config.login_failure_redirect}")
    click.echo(f"Frontend: {config.frontend_url}")


@nuwe_cli.command("validate-config")
def validate_config():
    """Validate the current configuration."""
    config = PluginConfig.from_env()
    errors = []
    warnings = []

    if not config.nuwe.client_id:
        errors.append("NUWE_CLIENT_ID not configured")
    if not config.nuwe.client_secret:
        errors.append("NUWE_CLIENT_SECRET not configured")
    if not config.nuwe.callback_url.startswith(("http://", "https://")):
        errors.append(f"NUWE_CALLBACK_URL is not an absolute URL: {config.nuwe.callback_url}")
    elif config.nuwe.callback_url.startswith("http://"):
        warnings.append("Callback URL uses plain HTTP (OK for development only)")

    if warnings:
        click.echo("=== Warnings ===")
        for warning in warnings:
            click.echo(f"  ! {warning}")

    if errors:
        click.echo("\n=== Errors ===")
        for error in errors:
            click.echo(f"  x {error}")
        raise click.ClickException(
            f"Configuration validation failed with {len(errors)} error(s)"
        )

    click.echo("\n[OK] Configuration is valid!")


@nuwe_cli.command("authorize-url")
@click.option("--state", default="cli-test-state", help="State value to embed")
def authorize_url(state):
    """Print the authorization URL users are redirected to."""
    from .strategy import NuweStrategy

    config = PluginConfig.from_env()
    try:
        strategy = NuweStrategy(
            config.nuwe.to_options(),
            lambda access_token, refresh_token, profile: profile,
        )
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    click.echo(strategy.authorization_url(state))


@nuwe_cli.command("test-connection")
def test_connection():
    """Test connectivity to the nuwe endpoints."""
    config = PluginConfig.from_env()
    timeout = config.nuwe.timeout

    click.echo("=== Testing nuwe Connectivity ===\n")

    endpoints = [
        ("Authorization URL", "HEAD", config.nuwe.authorization_url),
        # Without credentials these answer with an error status, which
        # still proves the endpoint is reachable
        ("Token URL", "POST", config.nuwe.token_url),
        ("User Profile URL", "GET", config.nuwe.user_profile_url),
    ]

    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        for label, method, url in endpoints:
            try:
                resp = client.request(method, url)
                click.echo(f"[OK] {label} reachable (HTTP {resp.status_code}): {url}")
            except httpx.HTTPError as e:
                click.echo(f"[FAIL] {label}: {e}")
