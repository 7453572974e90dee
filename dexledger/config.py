"""Central configuration for the dexledger indexer.

Frozen dataclasses per concern with environment variable overrides,
loaded once by the CLI and passed down explicitly.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

UNISWAP_ROUTER_1 = "0xf164fc0ec4e93095b804a4795bbe1e041497b92a"
UNISWAP_ROUTER_2 = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"

WETH_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC_WETH_PAIR = "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc"
DAI_WETH_PAIR = "0xa478c2975ab1ea89e8196811f51a7b7ade33eb11"
USDT_WETH_PAIR = "0x0d4a11d5eeaac28ec3f61d100daf4d40471f1852"


@dataclass(frozen=True)
class RpcConfig:
    url: str = "http://localhost:8545"
    timeout: int = 30


@dataclass(frozen=True)
class LedgerConfig:
    factory_address: str = "0x5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f"
    intermediary_addresses: frozenset[str] = frozenset({UNISWAP_ROUTER_1, UNISWAP_ROUTER_2})
    # raw LP amount locked forever by the first mint of every pair
    minimum_liquidity: int = 1000
    bundle_id: str = "1"


@dataclass(frozen=True)
class PricingConfig:
    weth_address: str = WETH_ADDRESS
    stable_pairs: tuple[str, ...] = (DAI_WETH_PAIR, USDC_WETH_PAIR, USDT_WETH_PAIR)
    whitelist: tuple[str, ...] = (
        WETH_ADDRESS,
        "0x6b175474e89094c44da98b954eedeac495271d0f",  # DAI
        "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",  # USDC
        "0xdac17f958d2ee523a2206206994597c13d831ec7",  # USDT
        "0x0000000000085d4780b73119b644ae5ecd22b376",  # TUSD
        "0x5d3a536e4d6dbd6114cc1ead35777bab948e3643",  # cDAI
        "0x39aa39c021dfbae8fac545936693ac917d5e7563",  # cUSDC
        "0x57ab1ec28d129707052df4df418d58a2d46d5f51",  # sUSD
        "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",  # WBTC
    )
    # rebasing tokens, never counted in tracked volume
    untracked_pairs: tuple[str, ...] = ("0x9ea3b5b4ec044b70375236a281986106457b20ef",)
    minimum_liquidity_threshold_eth: Decimal = Decimal("2")


@dataclass(frozen=True)
class IndexerConfig:
    start_block: int = 10000835
    block_window: int = 200
    poll_interval: float = 12.0
    # pair addresses per eth_getLogs filter
    address_batch: int = 500


@dataclass
class AppConfig:
    rpc: RpcConfig = field(default_factory=RpcConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    indexer: IndexerConfig = field(default_factory=IndexerConfig)
    db_path: Path = Path("data/ledger.db")
    log_level: str = "INFO"


def _parse_addresses(raw: str) -> frozenset[str]:
    return frozenset(a.strip().lower() for a in raw.split(",") if a.strip())


def load_config(env_file: Path | None = None) -> AppConfig:
    """Load configuration from environment variables + defaults.

    Args:
        env_file: Path to .env file. If None, searches project root.
    """
    if env_file and env_file.exists():
        load_dotenv(env_file)
    else:
        for candidate in [Path(".env"), Path(__file__).parent.parent / ".env"]:
            if candidate.exists():
                load_dotenv(candidate)
                break

    rpc = RpcConfig(
        url=os.environ.get("RPC_URL", RpcConfig.url),
        timeout=int(os.environ.get("RPC_TIMEOUT", RpcConfig.timeout)),
    )

    ledger = LedgerConfig()
    factory = os.environ.get("FACTORY_ADDRESS")
    routers = os.environ.get("INTERMEDIARY_ADDRESSES")
    if factory or routers:
        ledger = LedgerConfig(
            factory_address=(factory or ledger.factory_address).lower(),
            intermediary_addresses=(
                _parse_addresses(routers) if routers else ledger.intermediary_addresses
            ),
        )

    indexer = IndexerConfig(
        start_block=int(os.environ.get("START_BLOCK", IndexerConfig.start_block)),
        block_window=int(os.environ.get("BLOCK_WINDOW", IndexerConfig.block_window)),
        address_batch=int(os.environ.get("ADDRESS_BATCH", IndexerConfig.address_batch)),
    )

    return AppConfig(
        rpc=rpc,
        ledger=ledger,
        indexer=indexer,
        db_path=Path(os.environ.get("DB_PATH", "data/ledger.db")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
