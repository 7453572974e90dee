"""Shared test fixtures: in-memory DB, seeded market, fixed pricing."""
from __future__ import annotations

from decimal import Decimal

import pytest

from dexledger.config import LedgerConfig, PricingConfig
from dexledger.db.connection import MEMORY, get_connection
from dexledger.ledger.context import LedgerContext
from dexledger.ledger.events import EventMeta
from dexledger.models import Bundle, Factory, Pair, Token

FACTORY = "0x" + "fa" * 20
ROUTER_A = "0x" + "a1" * 20
ROUTER_B = "0x" + "b2" * 20
WALLET = "0x" + "11" * 20
WALLET_Z = "0x" + "22" * 20
CONTRACT = "0x" + "33" * 20

TOKEN_A = "0x" + "0a" * 20  # plays WETH
TOKEN_B = "0x" + "0b" * 20
TOKEN_C = "0x" + "0c" * 20
TOKEN_D = "0x" + "0d" * 20  # plays a USD stablecoin

PAIR_AB = "0x" + "f1" * 20
PAIR_BC = "0x" + "f2" * 20

ETH = 10 ** 18


@pytest.fixture
def mem_conn():
    """In-memory SQLite connection with schema applied."""
    conn = get_connection(MEMORY)
    yield conn
    conn.close()


@pytest.fixture
def ledger_config():
    return LedgerConfig(
        factory_address=FACTORY,
        intermediary_addresses=frozenset({ROUTER_A, ROUTER_B}),
    )


@pytest.fixture
def pricing_config():
    return PricingConfig(
        weth_address=TOKEN_A,
        stable_pairs=(),
        whitelist=(TOKEN_A, TOKEN_D),
        untracked_pairs=(),
        minimum_liquidity_threshold_eth=Decimal("2"),
    )


class FixedPricing:
    """Pricing stub: constant ETH price, tokens keep their derived ETH."""

    def __init__(self, eth_price=Decimal("2000"), tracked_volume=Decimal(0)):
        self.eth_price = eth_price
        self.tracked_volume = tracked_volume

    def get_eth_price_in_usd(self):
        return self.eth_price

    def find_eth_per_token(self, token):
        return token.derived_eth

    def tracked_volume_usd(self, amount0, token0, amount1, token1, pair):
        return self.tracked_volume

    def tracked_liquidity_usd(self, amount0, token0, amount1, token1):
        return (amount0 * token0.derived_eth + amount1 * token1.derived_eth) * self.eth_price


@pytest.fixture
def ctx(mem_conn, ledger_config, pricing_config):
    return LedgerContext.from_connection(mem_conn, ledger_config, pricing_config)


@pytest.fixture
def fixed_ctx(mem_conn, ledger_config):
    return LedgerContext.from_connection(mem_conn, ledger_config, pricing=FixedPricing())


def seed_market(ctx: LedgerContext, eth_price=Decimal("2000")) -> None:
    """Factory, bundle, tokens A/B/C and pairs A-B, B-C."""
    ctx.factories.save(Factory(id=ctx.config.factory_address, pair_count=2))
    ctx.bundles.save(Bundle(id=ctx.config.bundle_id, eth_price=eth_price))
    ctx.tokens.save(Token(id=TOKEN_A, symbol="WETH", decimals=18, derived_eth=Decimal(1)))
    ctx.tokens.save(Token(id=TOKEN_B, symbol="BBB", decimals=18, derived_eth=Decimal("0.5")))
    ctx.tokens.save(Token(id=TOKEN_C, symbol="CCC", decimals=18, derived_eth=Decimal("0.25")))
    for pair_id, t0, t1 in ((PAIR_AB, TOKEN_A, TOKEN_B), (PAIR_BC, TOKEN_B, TOKEN_C)):
        pair = Pair(id=pair_id, token0=t0, token1=t1)
        ctx.pairs.save(pair)
        ctx.pairs.save_lookup(pair)


@pytest.fixture
def market(ctx):
    seed_market(ctx)
    return ctx


@pytest.fixture
def fixed_market(fixed_ctx):
    seed_market(fixed_ctx)
    return fixed_ctx


def make_meta(
    tx_hash: str = "0xt1",
    log_index: int = 0,
    tx_from: str = WALLET,
    tx_to: str = ROUTER_A,
    block_number: int = 100,
    timestamp: int = 1_600_000_000,
) -> EventMeta:
    return EventMeta(
        tx_hash=tx_hash,
        block_number=block_number,
        timestamp=timestamp,
        log_index=log_index,
        tx_from=tx_from,
        tx_to=tx_to,
    )
