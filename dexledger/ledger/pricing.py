"""ETH/USD reference pricing and tracked-volume classification.

The ledger only depends on the PricingProvider protocol. WhitelistPricing is
the default implementation: WETH priced from stablecoin pairs, other tokens
priced through a liquid pair against a whitelisted token, and volume or
liquidity counted as "tracked" only where a whitelisted token is involved.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from dexledger.config import PricingConfig
from dexledger.db.factory_repo import BundleRepo
from dexledger.db.pair_repo import PairRepo
from dexledger.db.token_repo import TokenRepo
from dexledger.models import Pair, Token
from dexledger.shared.math_utils import ONE, ZERO, safe_div

TWO = Decimal(2)


class PricingProvider(Protocol):
    def get_eth_price_in_usd(self) -> Decimal: ...

    def find_eth_per_token(self, token: Token) -> Decimal: ...

    def tracked_volume_usd(
        self, amount0: Decimal, token0: Token, amount1: Decimal, token1: Token, pair: Pair,
    ) -> Decimal: ...

    def tracked_liquidity_usd(
        self, amount0: Decimal, token0: Token, amount1: Decimal, token1: Token,
    ) -> Decimal: ...


class WhitelistPricing:
    def __init__(
        self,
        pairs: PairRepo,
        tokens: TokenRepo,
        bundles: BundleRepo,
        config: PricingConfig | None = None,
        bundle_id: str = "1",
    ):
        self.pairs = pairs
        self.tokens = tokens
        self.bundles = bundles
        self.bundle_id = bundle_id
        self.config = config or PricingConfig()
        self._whitelist = frozenset(self.config.whitelist)
        self._untracked = frozenset(self.config.untracked_pairs)

    def get_eth_price_in_usd(self) -> Decimal:
        """Reserve-weighted WETH price across the configured stablecoin pairs."""
        weth = self.config.weth_address
        weighted = ZERO
        total_weight = ZERO
        for pair_id in self.config.stable_pairs:
            pair = self.pairs.get(pair_id)
            if pair is None:
                continue
            if pair.token0 == weth:
                weight, price = pair.reserve0, pair.token1_price
            elif pair.token1 == weth:
                weight, price = pair.reserve1, pair.token0_price
            else:
                continue
            weighted += weight * price
            total_weight += weight
        return safe_div(weighted, total_weight)

    def find_eth_per_token(self, token: Token) -> Decimal:
        if token.id == self.config.weth_address:
            return ONE
        threshold = self.config.minimum_liquidity_threshold_eth
        for candidate in self.config.whitelist:
            if candidate == token.id:
                continue
            pair = self.pairs.find_by_tokens(token.id, candidate)
            if pair is None or pair.reserve_eth <= threshold:
                continue
            if pair.token0 == token.id:
                other = self.tokens.get(pair.token1)
                if other is not None:
                    return pair.token1_price * other.derived_eth
            else:
                other = self.tokens.get(pair.token0)
                if other is not None:
                    return pair.token0_price * other.derived_eth
        return ZERO

    def _usd_price(self, token: Token) -> Decimal:
        return token.derived_eth * self.bundles.get_or_fail(self.bundle_id).eth_price

    def tracked_volume_usd(
        self, amount0: Decimal, token0: Token, amount1: Decimal, token1: Token, pair: Pair,
    ) -> Decimal:
        if pair.id in self._untracked:
            return ZERO
        usd0 = amount0 * self._usd_price(token0)
        usd1 = amount1 * self._usd_price(token1)
        listed0 = token0.id in self._whitelist
        listed1 = token1.id in self._whitelist
        if listed0 and listed1:
            return (usd0 + usd1) / TWO
        if listed0:
            return usd0
        if listed1:
            return usd1
        return ZERO

    def tracked_liquidity_usd(
        self, amount0: Decimal, token0: Token, amount1: Decimal, token1: Token,
    ) -> Decimal:
        usd0 = amount0 * self._usd_price(token0)
        usd1 = amount1 * self._usd_price(token1)
        listed0 = token0.id in self._whitelist
        listed1 = token1.id in self._whitelist
        if listed0 and listed1:
            return usd0 + usd1
        if listed0:
            return usd0 * TWO
        if listed1:
            return usd1 * TWO
        return ZERO
