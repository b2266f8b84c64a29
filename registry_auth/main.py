"""CLI entry point for registry-auth.

Commands:
    - lookup: Resolve credentials for an image (secrets masked by default)
    - repository: Print the registry host of an image reference
    - check: Show which lookup strategy config.json selects for an image

Example::

    $ registry-auth lookup gcr.io/my-project/app:1.0
    {"registry_address": "https://gcr.io", "username": "_json_key", "password": "***"}
    $ registry-auth repository localhost:5000/app
    localhost:5000
"""

import json
import sys
from pathlib import Path

import click
import structlog
from pydantic import ValidationError

from registry_auth.config.document import load_config_document
from registry_auth.config.settings import RegistryAuthSettings
from registry_auth.exceptions import ConfigurationError
from registry_auth.helpers import CredentialHelperInvoker
from registry_auth.locator import RegistryAuthLocator
from registry_auth.lookup import find_auth_entry
from registry_auth.models import AuthConfig
from registry_auth.repository import get_repository
from registry_auth.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--log-level",
    envvar="REGISTRY_AUTH_LOG_LEVEL",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option("--console-logs", is_flag=True, help="Human-readable logs instead of JSON")
@click.pass_context
def cli(ctx: click.Context, log_level: str, console_logs: bool) -> None:
    """registry-auth: resolve Docker registry credentials."""
    configure_logging(log_level.upper(), json_output=not console_logs)

    try:
        settings = RegistryAuthSettings()
    except ValidationError as e:
        click.echo(click.style(f"Error: invalid REGISTRY_AUTH_* environment: {e}", fg="red"), err=True)
        sys.exit(1)

    ctx.obj = {"settings": settings}


@cli.command()
@click.argument("image")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.json (default: $DOCKER_CONFIG/config.json or ~/.docker/config.json)",
)
@click.option("--helper-prefix", help="Prefix for credential helper executables")
@click.option("--timeout", type=float, help="Seconds to wait for a credential helper")
@click.option("--registry", "default_registry", default="", help="Default registry address")
@click.option("--username", "default_username", default="", help="Default user name")
@click.option(
    "--password",
    "default_password",
    default="",
    envvar="REGISTRY_AUTH_DEFAULT_PASSWORD",
    help="Default password (can use env var)",
)
@click.option("--show-secrets", is_flag=True, help="Show secrets (default: masked)")
@click.pass_context
def lookup(
    ctx: click.Context,
    image: str,
    config_file: Path | None,
    helper_prefix: str | None,
    timeout: float | None,
    default_registry: str,
    default_username: str,
    default_password: str,
    show_secrets: bool,
) -> None:
    """Resolve credentials for IMAGE and print them as JSON.

    When nothing is configured for the registry, the defaults given with
    --registry/--username/--password are printed.

    Examples:

        registry-auth lookup gcr.io/my-project/app:1.0

        registry-auth lookup localhost:5000/app --config ./config.json
    """
    settings: RegistryAuthSettings = ctx.obj["settings"]
    default = AuthConfig(
        registry_address=default_registry,
        username=default_username,
        password=default_password,
    )

    invoker = CredentialHelperInvoker(
        helper_prefix or settings.helper_prefix,
        timeout=timeout if timeout is not None else settings.helper_timeout,
    )
    locator = RegistryAuthLocator(default, config_file or settings.config_path, invoker=invoker)

    auth = locator.lookup_auth_config(image)
    if auth is default:
        click.echo(click.style("No credentials found, using defaults", fg="yellow"), err=True)

    click.echo(json.dumps(auth.to_dict(mask_secrets=not show_secrets)))


@cli.command()
@click.argument("image")
def repository(image: str) -> None:
    """Print the registry host of IMAGE (empty for the default registry)."""
    click.echo(get_repository(image))


@cli.command()
@click.argument("image")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.json",
)
@click.pass_context
def check(ctx: click.Context, image: str, config_file: Path | None) -> None:
    """Show which config.json strategy applies to IMAGE.

    Unlike lookup, configuration errors are reported and no credential
    helper is run.
    """
    settings: RegistryAuthSettings = ctx.obj["settings"]
    path = config_file or settings.config_path
    host = get_repository(image)

    try:
        document = load_config_document(path)
        match = find_auth_entry(document, host)
    except ConfigurationError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        if e.suggestion:
            click.echo(click.style(f"Suggestion: {e.suggestion}", fg="yellow"), err=True)
        log.debug("check_config_error", config_file=str(path), exc_info=True)
        sys.exit(1)

    click.echo(f"Config file: {path}")
    click.echo(f"Registry: {host or '(default registry)'}")

    if match is not None and not match[1].is_empty:
        click.echo(f"Strategy: auths ({match[0]})")
    elif host in document.cred_helpers:
        click.echo(f"Strategy: credHelpers ({settings.helper_prefix}{document.cred_helpers[host]})")
    elif document.creds_store is not None:
        click.echo(f"Strategy: credsStore ({settings.helper_prefix}{document.creds_store})")
    else:
        click.echo(click.style("Strategy: none (default credentials)", fg="yellow"))


if __name__ == "__main__":
    cli()
