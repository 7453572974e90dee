"""Typed pair and factory events as delivered to the processor.

Amounts are raw on-chain integers; normalization to token units happens in
the handlers, which know each token's decimals.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EventMeta:
    tx_hash: str
    block_number: int
    timestamp: int
    log_index: int
    tx_from: str
    # top-level call target; zero address for contract creation
    tx_to: str


@dataclass(frozen=True)
class LiquidityTransfer:
    pair: str
    from_address: str
    to_address: str
    value: int
    meta: EventMeta


@dataclass(frozen=True)
class ReserveSync:
    pair: str
    reserve0: int
    reserve1: int
    meta: EventMeta


@dataclass(frozen=True)
class Swap:
    pair: str
    sender: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    to: str
    meta: EventMeta


@dataclass(frozen=True)
class PairCreated:
    factory: str
    token0: str
    token1: str
    pair: str
    meta: EventMeta


PairEvent = LiquidityTransfer | ReserveSync | Swap
LedgerEvent = LiquidityTransfer | ReserveSync | Swap | PairCreated
