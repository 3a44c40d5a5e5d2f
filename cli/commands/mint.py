#!/usr/bin/env python3
"""
Minting Command for batchmint

Runs the catalog through the batch pipeline, in simulation or live mode.
"""

import asyncio
from pathlib import Path
from typing import Optional

import click

from network.ledger import NETWORK_RPC_URLS
from nft.pipeline import run_pipeline

from ..config import build_pipeline_config
from ..context import CLIContext, handle_cli_error, pass_context


@click.command('mint')
@click.option('--simulate/--live', default=None,
              help='Simulate without network calls, or mint for real')
@click.option('--chunk-size', type=click.IntRange(min=1),
              help='Number of items minted concurrently')
@click.option('--catalog-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory of catalog JSON files')
@click.option('--keyfile', type=click.Path(dir_okay=False, path_type=Path),
              help='Operator key file (JSON byte array)')
@click.option('--rpc-url', help='Solana RPC endpoint')
@click.option('--network', type=click.Choice(sorted(NETWORK_RPC_URLS)),
              help='Solana cluster')
@click.option('--report', 'report_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Where to write the results report')
@click.option('--royalty', type=click.FloatRange(0, 100),
              help='Default royalty percentage')
@click.option('--priority-fee', type=click.IntRange(min=0),
              help='Compute-unit price in micro-lamports')
@pass_context
@handle_cli_error
def mint(ctx: CLIContext, simulate: Optional[bool], chunk_size: Optional[int],
         catalog_dir: Optional[Path], keyfile: Optional[Path], rpc_url: Optional[str],
         network: Optional[str], report_path: Optional[Path], royalty: Optional[float],
         priority_fee: Optional[int]):
    """
    Mint every asset in the catalog.

    Uploads each image and metadata document to Arweave, then creates the
    asset on Solana. Failed items are recorded in the report and do not
    stop the batch.

    Examples:
        batchmint mint --simulate --catalog-dir ./nfts
        batchmint mint --live --chunk-size 5 --keyfile ./keypair.json
    """
    config = build_pipeline_config(ctx.config_manager, {
        'simulate': simulate,
        'chunk_size': chunk_size,
        'catalog_dir': catalog_dir,
        'keypair_path': keyfile,
        'rpc_url': rpc_url,
        'network': network,
        'report_path': report_path,
        'royalty_percentage': royalty,
        'priority_fee': priority_fee,
    })

    mode = "SIMULATION" if config.simulate else f"LIVE {config.network.upper()}"
    click.echo(f"Mode: {mode}")

    report = asyncio.run(run_pipeline(config, on_progress=click.echo))

    counts = report.counts()
    click.echo("")
    click.echo(
        f"Done. {counts['total']} items in {report.chunk_count} batches: "
        f"{counts['success']} minted, {counts['simulated']} simulated, {counts['failed']} failed"
    )
    click.echo(f"Results saved to {report.report_path}")
