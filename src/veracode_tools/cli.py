import asyncio
import json
import sys

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.tools import all_tools, build_registry
from veracode_tools.api.client import VeracodeClient
from veracode_tools.core.config import load_config, load_credentials
from veracode_tools.core.errors import ConfigurationError, UnknownToolError
from veracode_tools.utils.logger import setup_logger

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--profile", "-p", default=None, help="Region profile (eu, us-fed)")
@click.pass_context
def cli(ctx, verbose, profile):
    """Veracode agent tools - query applications, findings, SCA and policies."""
    ctx.ensure_object(dict)
    config = load_config(profile)
    log_settings = config.get("logging", {})
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    setup_logger(verbose=verbose or log_settings.get("verbose", False), log_file=log_settings.get("file"))


@cli.command()
@click.option("--category", "-c", default=None, help="Only tools in this category")
def tools(category):
    """List the available tools."""
    table = Table(title="Veracode Tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("Description")
    for tool in all_tools():
        if category and tool.category.value != category:
            continue
        table.add_row(tool.name, tool.category.value, tool.description)
    console.print(table)


@cli.command()
@click.argument("tool_name")
def schema(tool_name):
    """Print the JSON schema of a tool's arguments."""
    tool = next((t for t in all_tools() if t.name == tool_name), None)
    if tool is None:
        console.print(f"[red]Tool not found: {tool_name}[/]")
        raise SystemExit(1)
    click.echo(json.dumps(tool.definition(), indent=2))


def _parse_args(args_json, pairs) -> dict:
    try:
        args = json.loads(args_json) if args_json else {}
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args")
    if not isinstance(args, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint="--arg")
        try:
            args[key] = json.loads(value)
        except json.JSONDecodeError:
            args[key] = value
    return args


@cli.command()
@click.argument("tool_name")
@click.option("--args", "args_json", default=None, help="Tool arguments as a JSON object")
@click.option("--arg", "pairs", multiple=True, help="Single argument as key=value (repeatable)")
@click.pass_context
def call(ctx, tool_name, args_json, pairs):
    """Run TOOL_NAME against the Veracode API and print the JSON response."""
    config = ctx.obj["config"]
    args = _parse_args(args_json, pairs)
    try:
        credentials = load_credentials()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    async def _run():
        async with VeracodeClient(config, credentials) as client:
            registry = build_registry(ToolContext(client=client, config=config))
            return await registry.execute(tool_name, args)

    try:
        response = asyncio.run(_run())
    except UnknownToolError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    click.echo(json.dumps(response.to_dict(), indent=2, default=str))
    if not response.success:
        sys.exit(1)


@cli.command()
@click.pass_context
def config(ctx):
    """Show the effective configuration."""
    cfg = ctx.obj["config"]
    console.print(Panel(yaml.dump(cfg, default_flow_style=False), title="Current Configuration"))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
