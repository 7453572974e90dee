"""Route ledger events to their handlers.

The processor never commits: the caller owns the SQLite transaction so a
block window is applied completely or not at all.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from dexledger.db.records import MissingEntityError
from dexledger.ledger.attribution import SwapAttributor
from dexledger.ledger.context import LedgerContext
from dexledger.ledger.events import (
    LedgerEvent,
    LiquidityTransfer,
    PairCreated,
    ReserveSync,
    Swap,
)
from dexledger.ledger.metadata import TokenMetadataResolver
from dexledger.ledger.reserves import ReserveTracker
from dexledger.models import Bundle, Factory, Pair, Token
from dexledger.shared.math_utils import ZERO, ledger_precision

log = logging.getLogger("ledger")


class EventProcessor:
    def __init__(
        self,
        ctx: LedgerContext,
        metadata: TokenMetadataResolver | None = None,
    ):
        self.ctx = ctx
        self.metadata = metadata or TokenMetadataResolver.default()
        self.reserves = ReserveTracker(ctx)
        self.attributor = SwapAttributor(ctx)

        self.stats = {
            "pairs_created": 0,
            "transfers": 0,
            "syncs": 0,
            "swaps": 0,
        }

    @ledger_precision
    def process(self, event: LedgerEvent) -> None:
        try:
            if isinstance(event, Swap):
                self.attributor.handle_swap(event)
                self.stats["swaps"] += 1
            elif isinstance(event, ReserveSync):
                self.reserves.handle_sync(event)
                self.stats["syncs"] += 1
            elif isinstance(event, LiquidityTransfer):
                self.reserves.handle_transfer(event)
                self.stats["transfers"] += 1
            elif isinstance(event, PairCreated):
                self.handle_pair_created(event)
                self.stats["pairs_created"] += 1
            else:
                raise TypeError(f"Unsupported event type: {type(event).__name__}")
        except MissingEntityError as e:
            log.critical(
                f"{e} (tx {event.meta.tx_hash} log {event.meta.log_index}); "
                f"halting, aggregates would be corrupted"
            )
            raise

    def process_all(self, events) -> int:
        n = 0
        for event in events:
            self.process(event)
            n += 1
        return n

    # ── Pair bootstrap ────────────────────────────────────

    def handle_pair_created(self, event: PairCreated) -> Pair | None:
        ctx = self.ctx
        if event.factory != ctx.config.factory_address:
            log.debug(f"Ignoring PairCreated from foreign factory {event.factory}")
            return None

        factory = ctx.factories.get(ctx.config.factory_address)
        if factory is None:
            factory = Factory(id=ctx.config.factory_address)
            ctx.bundles.save(Bundle(id=ctx.config.bundle_id, eth_price=ZERO))
            log.info(f"Factory {factory.id} initialized")
        factory.pair_count += 1
        ctx.factories.save(factory)

        for address in (event.token0, event.token1):
            if not ctx.tokens.exists(address):
                ctx.tokens.save(self._build_token(address))

        pair = Pair(
            id=event.pair,
            token0=event.token0,
            token1=event.token1,
            created_at_timestamp=event.meta.timestamp,
            created_at_block=event.meta.block_number,
        )
        ctx.pairs.save(pair)
        ctx.pairs.save_lookup(pair)
        log.info(f"New pair {pair.id} ({event.token0}/{event.token1})")
        return pair

    def _build_token(self, address: str) -> Token:
        return Token(
            id=address,
            symbol=self.metadata.symbol(address),
            name=self.metadata.name(address),
            decimals=self.metadata.decimals(address),
            total_supply=Decimal(self.metadata.total_supply(address)),
        )
