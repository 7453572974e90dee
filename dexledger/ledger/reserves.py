"""Pair reserves, spot prices and liquidity-token supply."""
from __future__ import annotations

import logging

from dexledger.ledger.chain_state import get_or_create_transaction
from dexledger.ledger.context import LedgerContext
from dexledger.ledger.events import LiquidityTransfer, ReserveSync
from dexledger.shared.addresses import ADDRESS_ZERO
from dexledger.shared.math_utils import convert_token_to_decimal, ledger_precision, safe_div

log = logging.getLogger("ledger")

LP_TOKEN_DECIMALS = 18


class ReserveTracker:
    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx

    @ledger_precision
    def handle_transfer(self, event: LiquidityTransfer) -> None:
        # the first mint of every pair locks MINIMUM_LIQUIDITY at the zero address
        if (
            event.to_address == ADDRESS_ZERO
            and event.value == self.ctx.config.minimum_liquidity
        ):
            return

        pair = self.ctx.pairs.get_or_fail(event.pair)
        value = convert_token_to_decimal(event.value, LP_TOKEN_DECIMALS)

        transaction = get_or_create_transaction(self.ctx.transactions, event.meta)

        if event.from_address == ADDRESS_ZERO:
            pair.total_supply += value
            self.ctx.pairs.save(pair)

        if event.to_address == ADDRESS_ZERO and event.from_address == pair.id:
            pair.total_supply -= value
            self.ctx.pairs.save(pair)

        self.ctx.transactions.save(transaction)

    @ledger_precision
    def handle_sync(self, event: ReserveSync) -> None:
        ctx = self.ctx
        pair = ctx.pairs.get_or_fail(event.pair)
        factory = ctx.load_factory()
        token0 = ctx.tokens.get_or_fail(pair.token0)
        token1 = ctx.tokens.get_or_fail(pair.token1)

        # take the pair's previous contribution out of the running totals
        factory.total_liquidity_eth -= pair.tracked_reserve_eth
        token0.total_liquidity -= pair.reserve0
        token1.total_liquidity -= pair.reserve1

        pair.reserve0 = convert_token_to_decimal(event.reserve0, token0.decimals)
        pair.reserve1 = convert_token_to_decimal(event.reserve1, token1.decimals)
        pair.token0_price = safe_div(pair.reserve0, pair.reserve1)
        pair.token1_price = safe_div(pair.reserve1, pair.reserve0)
        ctx.pairs.save(pair)

        # reserves moved, so the reference price may have too
        bundle = ctx.load_bundle()
        bundle.eth_price = ctx.pricing.get_eth_price_in_usd()
        ctx.bundles.save(bundle)

        token0.derived_eth = ctx.pricing.find_eth_per_token(token0)
        token1.derived_eth = ctx.pricing.find_eth_per_token(token1)
        ctx.tokens.save(token0)
        ctx.tokens.save(token1)

        # zero unless one side is whitelisted
        tracked_liquidity_eth = safe_div(
            ctx.pricing.tracked_liquidity_usd(pair.reserve0, token0, pair.reserve1, token1),
            bundle.eth_price,
        )

        pair.tracked_reserve_eth = tracked_liquidity_eth
        pair.reserve_eth = (
            pair.reserve0 * token0.derived_eth + pair.reserve1 * token1.derived_eth
        )
        pair.reserve_usd = pair.reserve_eth * bundle.eth_price

        factory.total_liquidity_eth += tracked_liquidity_eth
        factory.total_liquidity_usd = factory.total_liquidity_eth * bundle.eth_price

        token0.total_liquidity += pair.reserve0
        token1.total_liquidity += pair.reserve1

        ctx.pairs.save(pair)
        ctx.factories.save(factory)
        ctx.tokens.save(token0)
        ctx.tokens.save(token1)
        log.debug(
            f"Sync {pair.id}: reserve0={pair.reserve0} reserve1={pair.reserve1} "
            f"tracked_eth={tracked_liquidity_eth}"
        )
