#!/usr/bin/env python3
"""
Configuration Commands for batchmint

Shows the merged configuration and where it came from.
"""

import json
from typing import Optional

import click
import yaml

from ..config import build_pipeline_config
from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def config(ctx: CLIContext):
    """
    Configuration commands.

    Inspect settings resolved from defaults, config files and environment.
    """
    ctx.logger.debug("Config command group invoked")


@config.command('show')
@click.option('--key', help='Specific configuration key to show (dot notation)')
@click.option('--sources', is_flag=True, help='Show configuration sources')
@click.option('--resolved', is_flag=True, help='Show the resolved pipeline settings')
@click.option('--format', 'output_format', type=click.Choice(['yaml', 'json']),
              default='yaml', help='Output format')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, key: Optional[str], sources: bool,
                resolved: bool, output_format: str):
    """
    Display current configuration settings.

    Examples:
        batchmint config show
        batchmint config show --key mint.chunk_size
        batchmint config show --resolved --format json
    """
    manager = ctx.config_manager

    if sources:
        for source in manager.get_sources():
            click.echo(source)
        return

    if resolved:
        data = build_pipeline_config(manager).to_dict()
    elif key:
        data = manager.get(key)
        if data is None:
            raise click.BadParameter(f"Unknown configuration key: {key}", param_hint='--key')
    else:
        data = manager.load()

    if not isinstance(data, (dict, list)):
        click.echo(data)
    elif output_format == 'json':
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())
