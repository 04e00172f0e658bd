"""CLI for ramorie.

Thin shell around the MCP server: run it, inspect the tool catalogue, and
manage the local config it reads.

Usage:
    ramorie mcp                                  # Serve MCP over stdio
    ramorie tools                                # List the tool catalogue
    ramorie tools --json                         # Catalogue as JSON
    ramorie config show                          # Show local config
    ramorie config set api_url https://...       # Change a config value
"""

from __future__ import annotations

import json as json_mod
import sys
from dataclasses import asdict
from pathlib import Path

import click

from ramorie import __version__
from ramorie.core import CONFIG_FILENAME, config_dir, read_config, write_config

SETTABLE_KEYS = ("api_url", "api_key")


def _mask(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="ramorie")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Config directory (default: $RAMORIE_HOME or ~/.ramorie)",
)
@click.pass_context
def cli(ctx: click.Context, config_dir: Path | None) -> None:
    """Ramorie: task and memory tools for agents."""
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


@cli.command()
@click.option("--api-url", default=None, help="Backend API URL (overrides config)")
@click.pass_context
def mcp(ctx: click.Context, api_url: str | None) -> None:
    """Serve the MCP tool server over stdin/stdout."""
    from ramorie.mcp_server import run

    try:
        run(ctx.obj["config_dir"], api_url)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tools(as_json: bool) -> None:
    """List the MCP tool catalogue."""
    from ramorie.mcp_server import CATALOGUE_VERSION, catalogue

    catalogue_tools = catalogue()
    if as_json:
        data = {
            "version": CATALOGUE_VERSION,
            "tools": [t.model_dump(by_alias=True, exclude_none=True) for t in catalogue_tools],
        }
        click.echo(json_mod.dumps(data, indent=2))
        return

    click.echo(f"Catalogue {CATALOGUE_VERSION}: {len(catalogue_tools)} tools")
    width = max(len(t.name) for t in catalogue_tools)
    for tool in catalogue_tools:
        summary = (tool.description or "").split(". ")[0].rstrip(".")
        click.echo(f"  {tool.name:<{width}}  {summary}")


@cli.group()
def config() -> None:
    """Inspect or change the local config."""


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show the effective config (API key masked)."""
    directory = ctx.obj["config_dir"]
    cfg = read_config(directory)
    data = asdict(cfg)
    data["api_key"] = _mask(cfg.api_key)
    if as_json:
        click.echo(json_mod.dumps(data, indent=2))
        return
    click.echo(f"Config: {(directory or config_dir()) / CONFIG_FILENAME}")
    for key, value in data.items():
        click.echo(f"  {key}: {value or '(not set)'}")


@config.command("set")
@click.argument("key", type=click.Choice(SETTABLE_KEYS))
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a config value."""
    directory = ctx.obj["config_dir"]
    value = value.strip()
    if key == "api_url" and not value.startswith(("http://", "https://")):
        click.echo(f"Invalid api_url: {value} (expected http:// or https://)", err=True)
        sys.exit(1)
    cfg = read_config(directory, apply_env=False)
    setattr(cfg, key, value)
    try:
        path = write_config(cfg, directory)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    shown = _mask(value) if key == "api_key" else value
    click.echo(f"Set {key} = {shown} in {path}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
