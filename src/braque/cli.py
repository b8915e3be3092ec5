"""CLI entry point for braque."""

import json
from pathlib import Path

import click

from braque.client import Client
from braque.config import ClientConfig
from braque.errors import ConfigurationError
from braque.routes.compiler import compile_routes, default_handlers
from braque.routes.loader import load_routes


def _parse_params(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn ('user=d1b1', 'repo=x') into a message dict."""
    message = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got '{pair}'", param_hint="--param")
        message[name] = value
    return message


def _auth_options(token: str | None, username: str | None, password: str | None) -> dict | None:
    if token:
        return {"type": "oauth", "token": token}
    if username or password:
        return {"type": "basic", "username": username, "password": password}
    return None


@click.group()
def main():
    """braque: call REST APIs described by a declarative route table."""
    pass


@main.command()
@click.argument("route_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def routes(route_file: Path):
    """Compile a route file and list the operations it defines."""
    try:
        table = load_routes(route_file)
        endpoints = compile_routes(table, default_handlers(table))
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    for endpoint in endpoints:
        click.echo(f"{endpoint.section}.{endpoint.operation}\t{endpoint.spec.method}\t{endpoint.spec.url}")
    click.echo(f"Found {len(endpoints)} endpoints.")


@main.command()
@click.argument("route_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("operation")
@click.option("-p", "--param", "params", multiple=True, help="Message parameter as name=value (repeatable).")
@click.option("--host", default=None, help="Override defines.constants.host.")
@click.option("--protocol", default=None, type=click.Choice(["http", "https"]), help="Override the protocol.")
@click.option("--port", default=None, type=int, help="Override the port.")
@click.option("--timeout", default=None, type=float, help="Request timeout in seconds.")
@click.option("--token", default=None, envvar="BRAQUE_TOKEN", help="OAuth2 access token.")
@click.option("--username", default=None, help="Basic auth username.")
@click.option("--password", default=None, envvar="BRAQUE_PASSWORD", help="Basic auth password.")
@click.option("--debug", is_flag=True, help="Log requests and responses.")
def call(
    route_file: Path,
    operation: str,
    params: tuple[str, ...],
    host: str | None,
    protocol: str | None,
    port: int | None,
    timeout: float | None,
    token: str | None,
    username: str | None,
    password: str | None,
    debug: bool,
):
    """Call OPERATION (section.operation) and print the JSON result."""
    message = _parse_params(params)
    overrides = {"host": host, "protocol": protocol, "port": port, "timeout": timeout}
    overrides = {k: v for k, v in overrides.items() if v is not None}

    try:
        config = ClientConfig.from_env(route_file=route_file, debug=debug, **overrides)
        client = Client(config)
        client.authenticate(_auth_options(token, username, password))
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    section, _, name = operation.partition(".")
    try:
        func = getattr(client.get_api(section), name)
    except AttributeError as e:
        raise click.ClickException(str(e))

    result = func(message)
    if not result.ok:
        raise click.ClickException(f"{type(result.error).__name__}: {result.error}")
    click.echo(json.dumps(result.value, indent=2, default=str))
