"""Weighted-average cost basis per (user, token) with realized P&L.

Positions only move through recognize_purchase / recognize_sale. A sale
larger than what the ledger has seen the user acquire is split: the known
part is realized against the running average, the rest is parked in
``unrecognizable_quantity`` and the average resets to zero.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from dexledger.db.cost_basis_repo import CostBasisRepo
from dexledger.models import Position, position_id
from dexledger.shared.math_utils import ZERO, ledger_precision

log = logging.getLogger("ledger")


class CostBasisLedger:
    def __init__(self, repo: CostBasisRepo):
        self.repo = repo

    def get_or_create(
        self,
        user_address: str,
        token_id: str,
        is_verified_wallet: bool,
    ) -> Position:
        """Load a position, creating it on first touch.

        ``contract_attribution_disproven`` is sticky: once any recognition
        confirms the party is a plain wallet it stays set. The flip is saved
        on its own so it survives even if the caller mutates nothing else.
        """
        pid = position_id(user_address, token_id)
        position = self.repo.get(pid)
        if position is not None:
            if is_verified_wallet and not position.contract_attribution_disproven:
                position.contract_attribution_disproven = True
                self.repo.save(position)
            return position

        position = Position(
            id=pid,
            user_address=user_address,
            token_id=token_id,
            contract_attribution_disproven=is_verified_wallet,
        )
        self.repo.save(position)
        return position

    @ledger_precision
    def recognize_purchase(
        self,
        user_address: str,
        token_id: str,
        quantity: Decimal,
        usd_value: Decimal,
        is_verified_wallet: bool,
    ) -> None:
        if quantity == 0:
            return

        position = self.get_or_create(user_address, token_id, is_verified_wallet)

        unit_cost = usd_value / quantity
        new_total = position.outstanding_quantity + quantity
        new_weight = quantity / new_total
        old_weight = position.outstanding_quantity / new_total

        position.weighted_average_cost_usd = (
            unit_cost * new_weight + position.weighted_average_cost_usd * old_weight
        )
        position.outstanding_quantity = new_total
        self.repo.save(position)

    @ledger_precision
    def recognize_sale(
        self,
        token_id: str,
        quantity: Decimal,
        usd_value: Decimal,
        creditor_address: str,
        is_verified_wallet: bool,
    ) -> Position | None:
        if quantity == 0:
            return None

        position = self.get_or_create(creditor_address, token_id, is_verified_wallet)
        prior_average = position.weighted_average_cost_usd

        if quantity <= position.outstanding_quantity:
            attributable = quantity
            position.outstanding_quantity -= quantity
        else:
            attributable = position.outstanding_quantity
            shortfall = quantity - attributable
            position.outstanding_quantity = ZERO
            position.weighted_average_cost_usd = ZERO
            position.unrecognizable_quantity += shortfall
            log.debug(
                f"Sale of {quantity} {token_id} by {creditor_address} exceeds "
                f"tracked holdings by {shortfall}"
            )
        position.consumed_quantity += attributable

        # realized price uses the whole sold quantity, not just the known part
        realized_price = usd_value / quantity
        delta = attributable * (realized_price - prior_average)
        if realized_price > prior_average:
            position.realized_profit_usd += delta
        else:
            position.realized_loss_usd += delta
        position.realized_net_proceeds_usd += delta

        position.sale_count += 1
        self.repo.save(position)
        return position
