"""code-search config command - show or create the configuration file."""

import click
import yaml

from codesearch.cli.utils import cli_errors, load_cli_config
from codesearch.config import loader
from codesearch.core.progress import status


@click.command()
@click.option("--path", "show_path", is_flag=True, help="Print the config file location")
@click.option("--create", is_flag=True, help="Write a default config file if none exists")
@click.pass_context
def config_command(ctx: click.Context, show_path: bool, create: bool) -> None:
    """Show the effective configuration as YAML."""
    obj = ctx.ensure_object(dict)
    target = obj.get("config_path") or loader.GLOBAL_CONFIG_PATH

    if show_path:
        click.echo(str(target))
        return

    if create:
        if target.exists():
            raise click.ClickException(f"Config file already exists: {target}")
        with cli_errors():
            loader.write_default_config(target)
        status(f"Wrote default config to {target}", style="success")
        return

    config = load_cli_config(ctx)
    click.echo(yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False), nl=False)
