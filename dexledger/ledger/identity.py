"""Router / aggregator classification from a static allow-list."""
from __future__ import annotations

from typing import Iterable


class IntermediaryRegistry:
    """Known contracts that relay trades without being the economic party.

    Membership is configuration, never inferred from chain data.
    """

    def __init__(self, addresses: Iterable[str]):
        self._addresses = frozenset(a.lower() for a in addresses)

    def is_intermediary(self, address: str | None) -> bool:
        if not address:
            return False
        return address.lower() in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)
