#!/usr/bin/env python3
"""
DEX cost-basis ledger indexer

Usage:
    python main.py index
    python main.py index --once
    python main.py report 0xabc...
    python main.py position 0xabc... 0xtoken...
    python main.py legs 0xtxhash...
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from dexledger.clients.rpc import RpcClient
from dexledger.config import load_config
from dexledger.db.connection import get_connection
from dexledger.db.cost_basis_repo import CostBasisRepo
from dexledger.db.token_repo import TokenRepo
from dexledger.db.transaction_repo import SwapRepo, TransactionRepo
from dexledger.ledger.indexer import Indexer
from dexledger.ledger.report import position_summaries, print_positions, print_swap_legs
from dexledger.models import position_id


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


@click.group()
@click.version_option(version="0.1.0")
@click.option("--env-file", type=click.Path(path_type=Path), default=None,
              help="Path to a .env file")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path]):
    """Index Uniswap-V2 style pair events into a per-user cost-basis ledger."""
    config = load_config(env_file)
    _setup_logging(config.log_level)
    ctx.obj = config


@cli.command()
@click.option("--once", is_flag=True, help="Process a single block window and exit")
@click.pass_obj
def index(config, once: bool):
    """Follow the chain and apply pair events to the ledger."""
    conn = get_connection(config.db_path)
    rpc = RpcClient(config.rpc)
    try:
        indexer = Indexer(config, conn, rpc)
        if once:
            indexer.run_once()
        else:
            indexer.run()
    finally:
        rpc.close()
        conn.close()


@cli.command()
@click.argument("user")
@click.pass_obj
def report(config, user: str):
    """Print every cost-basis position held by USER."""
    conn = get_connection(config.db_path)
    try:
        rows = position_summaries(CostBasisRepo(conn), TokenRepo(conn), user.lower())
        print_positions(user.lower(), rows)
    finally:
        conn.close()


@cli.command()
@click.argument("user")
@click.argument("token")
@click.pass_obj
def position(config, user: str, token: str):
    """Show the raw position of USER in TOKEN."""
    conn = get_connection(config.db_path)
    try:
        record = CostBasisRepo(conn).get(position_id(user.lower(), token.lower()))
        if record is None:
            click.echo("No position recorded", err=True)
            sys.exit(1)
        for name, value in vars(record).items():
            click.echo(f"{name:<32} {value}")
    finally:
        conn.close()


@cli.command()
@click.argument("tx_hash")
@click.pass_obj
def legs(config, tx_hash: str):
    """List the swap legs recorded for TX_HASH and whom each one debited."""
    conn = get_connection(config.db_path)
    try:
        tx = TransactionRepo(conn).get(tx_hash.lower())
        if tx is None:
            click.echo("No transaction recorded", err=True)
            sys.exit(1)
        print_swap_legs(tx, SwapRepo(conn).list_for_transaction(tx.id))
    finally:
        conn.close()


if __name__ == "__main__":
    cli()
