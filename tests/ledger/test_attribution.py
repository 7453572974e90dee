"""Tests for swap attribution: sale/purchase recognition and multi-hop chains."""
from __future__ import annotations

from decimal import Decimal

import pytest

from dexledger.db.records import MissingEntityError
from dexledger.ledger.attribution import SwapAttributor, select_disposed_token
from dexledger.ledger.context import LedgerContext
from dexledger.ledger.events import Swap
from dexledger.models import position_id

from conftest import (
    CONTRACT,
    ETH,
    PAIR_AB,
    PAIR_BC,
    ROUTER_A,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    WALLET,
    WALLET_Z,
    FixedPricing,
    make_meta,
    seed_market,
)

D = Decimal


def _swap(pair, sender, to, meta, a0_in=0, a1_in=0, a0_out=0, a1_out=0):
    return Swap(
        pair=pair,
        sender=sender,
        amount0_in=a0_in,
        amount1_in=a1_in,
        amount0_out=a0_out,
        amount1_out=a1_out,
        to=to,
        meta=meta,
    )


@pytest.fixture
def attributor(fixed_market):
    return SwapAttributor(fixed_market)


class TestDisposedTokenPolicy:
    def test_only_token1_out_means_token0_sold(self):
        assert select_disposed_token(D(0), D(7)) == 0

    def test_only_token0_out_means_token1_sold(self):
        assert select_disposed_token(D(7), D(0)) == 1

    def test_dual_outs_pick_smaller_as_sold(self):
        # documented tie-break policy, not a derived fact
        assert select_disposed_token(D(5), D(3)) == 1
        assert select_disposed_token(D(3), D(5)) == 0


class TestDirectSwap:
    def test_wallet_sells_token0_buys_token1(self, attributor, fixed_market):
        meta = make_meta(tx_to=PAIR_AB)
        leg = attributor.handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, meta, a0_in=1 * ETH, a1_out=2 * ETH)
        )

        assert leg.amount_usd == 2000
        assert leg.accounted is True
        assert leg.router_swap is False
        assert leg.cost_basis_id == position_id(WALLET, TOKEN_A)

        sold = fixed_market.cost_basis.get(position_id(WALLET, TOKEN_A))
        assert sold.sale_count == 1
        assert sold.unrecognizable_quantity == 1
        assert sold.contract_attribution_disproven is True

        bought = fixed_market.cost_basis.get(position_id(WALLET, TOKEN_B))
        assert bought.outstanding_quantity == 2
        assert bought.weighted_average_cost_usd == 1000

    def test_volume_rollups(self, attributor, fixed_market):
        attributor.handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta(), a0_in=1 * ETH, a1_out=2 * ETH)
        )
        token_a = fixed_market.tokens.get(TOKEN_A)
        pair = fixed_market.pairs.get(PAIR_AB)
        factory = fixed_market.load_factory()

        assert token_a.trade_volume == 1
        assert token_a.tx_count == 1
        assert token_a.untracked_volume_usd == 2000
        assert pair.volume_token0 == 1
        assert pair.volume_token1 == 2
        assert pair.tx_count == 1
        assert factory.tx_count == 1
        assert factory.untracked_volume_usd == 2000
        assert factory.total_volume_usd == 0

    def test_missing_pair_is_fatal(self, attributor):
        with pytest.raises(MissingEntityError) as exc:
            attributor.handle_swap(
                _swap("0x" + "99" * 20, WALLET, WALLET, make_meta(), a0_in=ETH, a1_out=ETH)
            )
        assert exc.value.kind == "pair"


class TestRouterSwaps:
    def test_swap_to_eth_credits_origin(self, attributor, fixed_market):
        attributor.handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta("0xbuy", tx_to=PAIR_AB),
                  a0_in=1 * ETH, a1_out=2 * ETH)
        )
        leg = attributor.handle_swap(
            _swap(PAIR_AB, ROUTER_A, ROUTER_A, make_meta("0xsell", tx_to=ROUTER_A),
                  a1_in=2 * ETH, a0_out=1 * ETH)
        )

        assert leg.router_swap is True
        assert leg.to_address == WALLET
        assert leg.cost_basis_id == position_id(WALLET, TOKEN_B)
        assert leg.debitor == WALLET
        assert fixed_market.swaps.get(leg.id).debitor == WALLET

        b = fixed_market.cost_basis.get(position_id(WALLET, TOKEN_B))
        assert b.outstanding_quantity == 0
        assert b.consumed_quantity == 2
        assert b.realized_net_proceeds_usd == 0

        a = fixed_market.cost_basis.get(position_id(WALLET, TOKEN_A))
        assert a.outstanding_quantity == 1
        assert a.weighted_average_cost_usd == 2000

    def test_router_driven_by_contract_credits_contract(self, attributor, fixed_market):
        leg = attributor.handle_swap(
            _swap(PAIR_AB, ROUTER_A, WALLET, make_meta(tx_to=CONTRACT),
                  a0_in=1 * ETH, a1_out=2 * ETH)
        )
        assert leg.cost_basis_id == position_id(CONTRACT, TOKEN_A)
        assert leg.debitor == CONTRACT
        p = fixed_market.cost_basis.get(leg.cost_basis_id)
        assert p.contract_attribution_disproven is False


class TestMultiHop:
    def test_two_leg_chain(self, attributor, fixed_market):
        leg1 = attributor.handle_swap(
            _swap(PAIR_AB, ROUTER_A, PAIR_BC, make_meta("0xhop", log_index=3),
                  a0_in=1 * ETH, a1_out=2 * ETH)
        )
        tx = fixed_market.transactions.get("0xhop")
        assert leg1.accounted is False
        assert leg1.debitor == WALLET
        assert leg1.cost_basis_id == position_id(WALLET, TOKEN_A)
        assert tx.chain_in_progress is True

        leg2 = attributor.handle_swap(
            _swap(PAIR_BC, ROUTER_A, WALLET_Z, make_meta("0xhop", log_index=7),
                  a0_in=2 * ETH, a1_out=4 * ETH)
        )
        tx = fixed_market.transactions.get("0xhop")
        assert leg2.accounted is True
        assert leg2.cost_basis_id is None
        assert leg2.debitor is None
        assert fixed_market.swaps.get("0xhop-1").debitor is None
        assert tx.chain_in_progress is False
        assert tx.chain_beneficiary == WALLET_Z
        assert tx.swaps == ["0xhop-0", "0xhop-1"]

        # one sale for the whole chain, one purchase at its end
        sales = [p for p in fixed_market.cost_basis.list_for_user(WALLET) if p.sale_count]
        assert len(sales) == 1
        assert fixed_market.cost_basis.get(position_id(WALLET, TOKEN_B)) is None
        assert fixed_market.cost_basis.list_for_user(PAIR_BC) == []

        c = fixed_market.cost_basis.get(position_id(WALLET_Z, TOKEN_C))
        assert c.outstanding_quantity == 4
        assert c.sale_count == 0

    def test_three_leg_chain_stays_open_until_terminal(self, attributor, fixed_market):
        attributor.handle_swap(
            _swap(PAIR_AB, ROUTER_A, PAIR_BC, make_meta("0x3h", log_index=0),
                  a0_in=ETH, a1_out=2 * ETH)
        )
        middle = attributor.handle_swap(
            _swap(PAIR_BC, ROUTER_A, PAIR_AB, make_meta("0x3h", log_index=1),
                  a0_in=2 * ETH, a1_out=4 * ETH)
        )
        assert middle.accounted is False
        assert middle.cost_basis_id is None
        assert fixed_market.transactions.get("0x3h").chain_in_progress is True

        attributor.handle_swap(
            _swap(PAIR_AB, ROUTER_A, WALLET_Z, make_meta("0x3h", log_index=2),
                  a1_in=ETH, a0_out=ETH)
        )
        tx = fixed_market.transactions.get("0x3h")
        assert tx.chain_in_progress is False
        assert len(tx.swaps) == 3

    def test_output_to_origin_is_terminal(self, attributor, fixed_market):
        leg = attributor.handle_swap(
            _swap(PAIR_AB, ROUTER_A, WALLET, make_meta(), a0_in=ETH, a1_out=ETH)
        )
        assert leg.accounted is True


class TestAmbiguousLegs:
    def test_dual_outs_sell_smaller_out_token(self, attributor, fixed_market):
        leg = attributor.handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta(tx_to=PAIR_AB),
                  a1_in=1 * ETH, a0_out=5 * ETH, a1_out=3 * ETH)
        )
        assert leg.cost_basis_id == position_id(WALLET, TOKEN_B)
        b = fixed_market.cost_basis.get(position_id(WALLET, TOKEN_B))
        assert b.unrecognizable_quantity == 1
        assert b.sale_count == 1

    def test_zero_sold_quantity_links_nothing(self, attributor, fixed_market):
        leg = attributor.handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta(), a1_out=ETH)
        )
        assert leg.cost_basis_id is None
        assert fixed_market.cost_basis.get(position_id(WALLET, TOKEN_A)) is None


class TestPricing:
    def test_tracked_amount_preferred(self, mem_conn, ledger_config):
        ctx = LedgerContext.from_connection(
            mem_conn, ledger_config, pricing=FixedPricing(tracked_volume=D(1234)),
        )
        seed_market(ctx)
        leg = SwapAttributor(ctx).handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta(), a0_in=ETH, a1_out=2 * ETH)
        )
        assert leg.amount_usd == 1234
        factory = ctx.load_factory()
        assert factory.total_volume_usd == 1234
        assert factory.total_volume_eth == D("0.617")

    def test_zero_eth_price_gives_zero_tracked_eth(self, mem_conn, ledger_config):
        ctx = LedgerContext.from_connection(
            mem_conn, ledger_config, pricing=FixedPricing(tracked_volume=D(1234)),
        )
        seed_market(ctx, eth_price=D(0))
        SwapAttributor(ctx).handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta(), a0_in=ETH, a1_out=2 * ETH)
        )
        assert ctx.load_factory().total_volume_eth == 0


class TestWideAmounts:
    def test_selling_everything_bought_leaves_no_shortfall(self, attributor, fixed_market):
        raw_a = 12423588656278701582244377401
        raw_b = 52895115941683571703859617465
        for tx, raw in (("0xw1", raw_a), ("0xw2", raw_b)):
            attributor.handle_swap(
                _swap(PAIR_AB, WALLET, WALLET, make_meta(tx, tx_to=PAIR_AB),
                      a0_in=ETH, a1_out=raw)
            )
        attributor.handle_swap(
            _swap(PAIR_AB, WALLET, WALLET, make_meta("0xw3", tx_to=PAIR_AB),
                  a1_in=raw_a + raw_b, a0_out=ETH)
        )

        b = fixed_market.cost_basis.get(position_id(WALLET, TOKEN_B))
        assert b.unrecognizable_quantity == 0
        assert b.outstanding_quantity == 0
        assert b.weighted_average_cost_usd > 0
