#!/usr/bin/env python3
"""
batchmint - Command Line Interface

Batch-mint NFTs on Solana with images and metadata stored on Arweave.
"""

import sys
from typing import Optional

import click

from . import __version__
from .commands.config import config
from .commands.keys import convert_key
from .commands.mint import mint
from .context import CLIContext, pass_context


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              help='Path to configuration file')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='batchmint')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], verbose: int):
    """
    batchmint Command Line Interface

    Mint a directory of NFT catalog entries in concurrent batches.

    Examples:
        batchmint convert-key <base58-secret>
        batchmint mint --simulate
        batchmint -v mint --live --chunk-size 5
    """
    ctx.config_file = config_file
    ctx.verbose = verbose

    ctx.setup_logging()

    ctx.logger.debug("CLI initialized with context")


cli.add_command(mint)
cli.add_command(convert_key)
cli.add_command(config)


def main():
    """Console script entry point."""
    cli(prog_name='batchmint')


if __name__ == '__main__':
    sys.exit(main())
