#!/usr/bin/env python3
"""
Key Commands for batchmint

Converts a wallet's base58 secret export into the JSON key file the mint
command reads.
"""

from pathlib import Path

import click

from crypto.keys import keypair_from_base58, save_keypair

from ..context import CLIContext, handle_cli_error, pass_context


@click.command('convert-key')
@click.argument('secret', envvar='BATCHMINT_SECRET_KEY')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              default=Path('keypair.json'), show_default=True,
              help='Key file to write')
@click.option('--force', is_flag=True, help='Overwrite an existing key file')
@pass_context
@handle_cli_error
def convert_key(ctx: CLIContext, secret: str, output: Path, force: bool):
    """
    Write a key file from a base58-encoded secret key.

    SECRET may also be supplied through BATCHMINT_SECRET_KEY to keep it out
    of shell history.

    Examples:
        batchmint convert-key 4Z7cXSy... --output keypair.json
    """
    if output.exists() and not force:
        raise click.UsageError(f"{output} already exists (use --force to overwrite)")

    keypair = keypair_from_base58(secret)
    save_keypair(keypair, output)

    click.echo(f"{output} created for {keypair.pubkey()}")
