"""Swap attribution: who sold, who bought, and which swaps are mere hops.

Each Swap event updates volume rollups, then decides from transfer
mechanics which address disposed of which token and whether the output
goes on into another pair in the same transaction. Only the first leg of a
chain recognizes a sale and only the terminal leg recognizes a purchase.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from dexledger.ledger import chain_state
from dexledger.ledger.context import LedgerContext
from dexledger.ledger.cost_basis import CostBasisLedger
from dexledger.ledger.creditor import resolve_creditor
from dexledger.ledger.events import Swap
from dexledger.models import Pair, SwapLeg, Token, Transaction
from dexledger.shared.math_utils import convert_token_to_decimal, ledger_precision, safe_div

log = logging.getLogger("ledger")

TWO = Decimal(2)


def select_disposed_token(amount0_out: Decimal, amount1_out: Decimal) -> int:
    """Index (0 or 1) of the token the trader gave up.

    Normally exactly one out-amount is non-zero and the other token is the
    one sold. When both are non-zero (gas-golfing contracts, malformed
    trades) the token with the smaller out-amount is taken as sold. This is
    a tie-break policy, not something the event proves.
    """
    if amount0_out < amount1_out:
        return 0
    return 1


def is_intermediate_hop(destination: str, sender: str, origin: str, pairs) -> bool:
    """True when the swap output is routed into another known pair."""
    if destination == sender or destination == origin:
        return False
    return pairs.exists(destination)


class SwapAttributor:
    def __init__(self, ctx: LedgerContext, ledger: CostBasisLedger | None = None):
        self.ctx = ctx
        self.ledger = ledger or CostBasisLedger(ctx.cost_basis)

    @ledger_precision
    def handle_swap(self, event: Swap) -> SwapLeg:
        ctx = self.ctx
        pair = ctx.pairs.get_or_fail(event.pair)
        token0 = ctx.tokens.get_or_fail(pair.token0)
        token1 = ctx.tokens.get_or_fail(pair.token1)

        amount0_in = convert_token_to_decimal(event.amount0_in, token0.decimals)
        amount1_in = convert_token_to_decimal(event.amount1_in, token1.decimals)
        amount0_out = convert_token_to_decimal(event.amount0_out, token0.decimals)
        amount1_out = convert_token_to_decimal(event.amount1_out, token1.decimals)

        amount_usd = self._update_volumes(
            pair, token0, token1, amount0_in + amount0_out, amount1_in + amount1_out,
        )

        meta = event.meta
        transaction = chain_state.get_or_create_transaction(ctx.transactions, meta)
        leg = SwapLeg(
            id=f"{transaction.id}-{len(transaction.swaps)}",
            transaction_id=transaction.id,
            pair_id=pair.id,
            timestamp=transaction.timestamp,
            log_index=meta.log_index,
            sender=event.sender,
            from_address=meta.tx_from,
            to_address=event.to,
            txn_target=meta.tx_to,
            amount0_in=amount0_in,
            amount1_in=amount1_in,
            amount0_out=amount0_out,
            amount1_out=amount1_out,
            amount_usd=amount_usd,
            router_swap=ctx.registry.is_intermediary(event.sender),
        )

        destination = event.to
        if ctx.registry.is_intermediary(destination):
            # swap-to-ETH: the router receives WETH only to unwrap it for the origin
            destination = meta.tx_from
        leg.to_address = destination

        next_hop_is_pair = is_intermediate_hop(
            destination, event.sender, meta.tx_from, ctx.pairs,
        )
        chain_was_open = chain_state.is_chain_open(transaction)

        if not chain_was_open:
            self._recognize_sale(leg, pair, transaction)

        if next_hop_is_pair:
            leg.accounted = False
            chain_state.open_chain(transaction)
        else:
            leg.accounted = True
            chain_state.close_chain(transaction, destination)
            self.ledger.recognize_purchase(
                destination, pair.token0, amount0_out, amount_usd, False,
            )
            self.ledger.recognize_purchase(
                destination, pair.token1, amount1_out, amount_usd, False,
            )

        ctx.swaps.save(leg)
        chain_state.append_leg(transaction, leg.id)
        ctx.transactions.save(transaction)
        return leg

    def _recognize_sale(self, leg: SwapLeg, pair: Pair, transaction: Transaction) -> None:
        log.info(
            f"Recognizing token sale for tx {transaction.id} pair {pair.id} "
            f"fromAddress: {leg.from_address}"
        )
        debitor = resolve_creditor(
            self.ctx.registry, leg.sender, leg.from_address, leg.txn_target,
        )
        leg.debitor = debitor
        is_verified_wallet = debitor == leg.from_address

        if select_disposed_token(leg.amount0_out, leg.amount1_out) == 0:
            token_id, quantity = pair.token0, leg.amount0_in
        else:
            token_id, quantity = pair.token1, leg.amount1_in

        position = self.ledger.recognize_sale(
            token_id, quantity, leg.amount_usd, debitor, is_verified_wallet,
        )
        leg.cost_basis_id = position.id if position is not None else None

    def _update_volumes(
        self,
        pair: Pair,
        token0: Token,
        token1: Token,
        amount0_total: Decimal,
        amount1_total: Decimal,
    ) -> Decimal:
        """Roll the swap into token, pair and factory volume; return its USD value."""
        ctx = self.ctx
        bundle = ctx.load_bundle()

        derived_amount_eth = (
            token1.derived_eth * amount1_total + token0.derived_eth * amount0_total
        ) / TWO
        derived_amount_usd = derived_amount_eth * bundle.eth_price

        # only counts volume through whitelisted tokens
        tracked_amount_usd = ctx.pricing.tracked_volume_usd(
            amount0_total, token0, amount1_total, token1, pair,
        )
        tracked_amount_eth = safe_div(tracked_amount_usd, bundle.eth_price)

        token0.trade_volume += amount0_total
        token0.trade_volume_usd += tracked_amount_usd
        token0.untracked_volume_usd += derived_amount_usd
        token0.tx_count += 1

        token1.trade_volume += amount1_total
        token1.trade_volume_usd += tracked_amount_usd
        token1.untracked_volume_usd += derived_amount_usd
        token1.tx_count += 1

        pair.volume_usd += tracked_amount_usd
        pair.volume_token0 += amount0_total
        pair.volume_token1 += amount1_total
        pair.untracked_volume_usd += derived_amount_usd
        pair.tx_count += 1

        factory = ctx.load_factory()
        factory.total_volume_usd += tracked_amount_usd
        factory.total_volume_eth += tracked_amount_eth
        factory.untracked_volume_usd += derived_amount_usd
        factory.tx_count += 1

        ctx.pairs.save(pair)
        ctx.tokens.save(token0)
        ctx.tokens.save(token1)
        ctx.factories.save(factory)

        if tracked_amount_usd == 0:
            return derived_amount_usd
        return tracked_amount_usd
