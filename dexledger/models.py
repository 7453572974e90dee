"""Persistent records maintained by the ledger.

Each record maps one-to-one onto a table in db/schema.sql. Quantities are
Decimals stored as TEXT; addresses are lower-case hex strings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from dexledger.shared.math_utils import ZERO


@dataclass
class Token:
    id: str
    symbol: str = "unknown"
    name: str = "unknown"
    decimals: int = 0
    total_supply: Decimal = ZERO
    trade_volume: Decimal = ZERO
    trade_volume_usd: Decimal = ZERO
    untracked_volume_usd: Decimal = ZERO
    tx_count: int = 0
    total_liquidity: Decimal = ZERO
    derived_eth: Decimal = ZERO


@dataclass
class Pair:
    id: str
    token0: str
    token1: str
    reserve0: Decimal = ZERO
    reserve1: Decimal = ZERO
    total_supply: Decimal = ZERO
    reserve_eth: Decimal = ZERO
    reserve_usd: Decimal = ZERO
    tracked_reserve_eth: Decimal = ZERO
    token0_price: Decimal = ZERO
    token1_price: Decimal = ZERO
    volume_token0: Decimal = ZERO
    volume_token1: Decimal = ZERO
    volume_usd: Decimal = ZERO
    untracked_volume_usd: Decimal = ZERO
    tx_count: int = 0
    created_at_timestamp: int = 0
    created_at_block: int = 0


@dataclass
class Factory:
    id: str
    pair_count: int = 0
    total_volume_usd: Decimal = ZERO
    total_volume_eth: Decimal = ZERO
    untracked_volume_usd: Decimal = ZERO
    total_liquidity_usd: Decimal = ZERO
    total_liquidity_eth: Decimal = ZERO
    tx_count: int = 0


@dataclass
class Bundle:
    id: str
    eth_price: Decimal = ZERO


@dataclass
class Transaction:
    """Chain state shared by every swap leg of one on-chain transaction."""
    id: str
    block_number: int
    timestamp: int
    swaps: list[str] = field(default_factory=list)
    chain_in_progress: bool = False
    chain_beneficiary: str | None = None


@dataclass
class SwapLeg:
    id: str
    transaction_id: str
    pair_id: str
    timestamp: int
    log_index: int
    sender: str
    from_address: str
    to_address: str
    txn_target: str
    amount0_in: Decimal = ZERO
    amount1_in: Decimal = ZERO
    amount0_out: Decimal = ZERO
    amount1_out: Decimal = ZERO
    amount_usd: Decimal = ZERO
    router_swap: bool = False
    accounted: bool = False
    cost_basis_id: str | None = None
    # party whose sale this leg recognized; None on legs continuing a chain
    debitor: str | None = None


@dataclass
class Position:
    """Weighted-average cost basis of one user's holding of one token."""
    id: str
    user_address: str
    token_id: str
    outstanding_quantity: Decimal = ZERO
    weighted_average_cost_usd: Decimal = ZERO
    consumed_quantity: Decimal = ZERO
    realized_profit_usd: Decimal = ZERO
    realized_loss_usd: Decimal = ZERO
    realized_net_proceeds_usd: Decimal = ZERO
    unrecognizable_quantity: Decimal = ZERO
    sale_count: int = 0
    contract_attribution_disproven: bool = False


def position_id(user_address: str, token_id: str) -> str:
    return user_address + token_id
