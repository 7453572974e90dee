"""Explicit state handed to every ledger handler.

Repositories, the router registry, pricing and configuration travel
together so handlers never reach for module-level singletons.
"""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from dexledger.config import LedgerConfig, PricingConfig
from dexledger.db.cost_basis_repo import CostBasisRepo
from dexledger.db.factory_repo import BundleRepo, FactoryRepo
from dexledger.db.pair_repo import PairRepo
from dexledger.db.token_repo import TokenRepo
from dexledger.db.transaction_repo import SwapRepo, TransactionRepo
from dexledger.ledger.identity import IntermediaryRegistry
from dexledger.ledger.pricing import PricingProvider, WhitelistPricing
from dexledger.models import Bundle, Factory


@dataclass
class LedgerContext:
    conn: sqlite3.Connection
    config: LedgerConfig
    tokens: TokenRepo
    pairs: PairRepo
    factories: FactoryRepo
    bundles: BundleRepo
    transactions: TransactionRepo
    swaps: SwapRepo
    cost_basis: CostBasisRepo
    registry: IntermediaryRegistry
    pricing: PricingProvider

    @classmethod
    def from_connection(
        cls,
        conn: sqlite3.Connection,
        config: LedgerConfig | None = None,
        pricing_config: PricingConfig | None = None,
        pricing: PricingProvider | None = None,
    ) -> "LedgerContext":
        config = config or LedgerConfig()
        pairs = PairRepo(conn)
        tokens = TokenRepo(conn)
        bundles = BundleRepo(conn)
        if pricing is None:
            pricing = WhitelistPricing(
                pairs, tokens, bundles, pricing_config, bundle_id=config.bundle_id,
            )
        return cls(
            conn=conn,
            config=config,
            tokens=tokens,
            pairs=pairs,
            factories=FactoryRepo(conn),
            bundles=bundles,
            transactions=TransactionRepo(conn),
            swaps=SwapRepo(conn),
            cost_basis=CostBasisRepo(conn),
            registry=IntermediaryRegistry(config.intermediary_addresses),
            pricing=pricing,
        )

    def load_factory(self) -> Factory:
        return self.factories.get_or_fail(self.config.factory_address)

    def load_bundle(self) -> Bundle:
        return self.bundles.get_or_fail(self.config.bundle_id)
