"""Token metadata (symbol, name, decimals, supply) as an ordered source chain.

Sources are tried in order and the first one that answers wins:

1. StaticDefinitions: hand-maintained overrides for tokens whose contracts
   do not follow ERC-20 metadata conventions.
2. ContractMetadata: eth_call against the token, decoding the result as the
   standard ``string`` return first and as ``bytes32`` second.
3. SentinelDefault: ``"unknown"`` strings and zero numbers.

A failing lookup is never an error for the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from eth_abi.exceptions import DecodingError
from web3 import Web3

from dexledger.clients.rpc import RpcClient, RpcError
from dexledger.shared.addresses import is_null_eth_value

log = logging.getLogger("ledger")

_codec = Web3().codec

SYMBOL_SELECTOR = "0x95d89b41"
NAME_SELECTOR = "0x06fdde03"
DECIMALS_SELECTOR = "0x313ce567"
TOTAL_SUPPLY_SELECTOR = "0x18160ddd"

UNKNOWN = "unknown"


@dataclass(frozen=True)
class TokenDefinition:
    address: str
    symbol: str
    name: str
    decimals: int


STATIC_DEFINITIONS: dict[str, TokenDefinition] = {
    d.address: d
    for d in (
        TokenDefinition("0xe0b7927c4af23765cb51314a0e0521a9645f0e2a", "DGD", "DGD", 9),
        TokenDefinition("0x7fc66500c84a76ad7e9c93437bfc5ac33e2ddae9", "AAVE", "Aave Token", 18),
        TokenDefinition("0xeb9951021698b42e4399f9cbb6267aa35f82d59d", "LIF", "Lif", 18),
        TokenDefinition("0xbdeb4b83251fb146687fa19d1c660f99411eefe3", "SVD", "savedroid", 18),
        TokenDefinition("0xbb9bc244d798123fde783fcc1c72d3bb8c189413", "TheDAO", "TheDAO", 16),
        TokenDefinition("0x38c6a68304cdefb9bec48bbfaaba5c5b47818bb2", "HPB", "HPBCoin", 18),
    )
}


class MetadataSource(Protocol):
    def symbol(self, address: str) -> str | None: ...

    def name(self, address: str) -> str | None: ...

    def decimals(self, address: str) -> int | None: ...

    def total_supply(self, address: str) -> int | None: ...


class StaticDefinitions:
    def __init__(self, definitions: dict[str, TokenDefinition] | None = None):
        self.definitions = STATIC_DEFINITIONS if definitions is None else definitions

    def symbol(self, address: str) -> str | None:
        d = self.definitions.get(address)
        return d.symbol if d else None

    def name(self, address: str) -> str | None:
        d = self.definitions.get(address)
        return d.name if d else None

    def decimals(self, address: str) -> int | None:
        d = self.definitions.get(address)
        return d.decimals if d else None

    def total_supply(self, address: str) -> int | None:
        return None


class ContractMetadata:
    def __init__(self, rpc: RpcClient):
        self.rpc = rpc

    def _try_call(self, address: str, selector: str) -> bytes | None:
        try:
            result = self.rpc.eth_call(address, selector)
        except RpcError as e:
            log.debug(f"eth_call {selector} reverted on {address}: {e}")
            return None
        if not result or result == "0x":
            return None
        return bytes.fromhex(result.removeprefix("0x"))

    def _text(self, address: str, selector: str) -> str | None:
        data = self._try_call(address, selector)
        if data is None:
            return None
        try:
            (value,) = _codec.decode(["string"], data)
            return value
        except (DecodingError, OverflowError, UnicodeDecodeError):
            pass
        # older tokens (MKR, SAI) return bytes32
        if len(data) < 32 or is_null_eth_value("0x" + data[:32].hex()):
            return None
        return data[:32].rstrip(b"\x00").decode("utf-8", errors="ignore") or None

    def _uint(self, address: str, selector: str, abi_type: str) -> int | None:
        data = self._try_call(address, selector)
        if data is None:
            return None
        try:
            (value,) = _codec.decode([abi_type], data)
        except (DecodingError, OverflowError):
            return None
        return value

    def symbol(self, address: str) -> str | None:
        return self._text(address, SYMBOL_SELECTOR)

    def name(self, address: str) -> str | None:
        return self._text(address, NAME_SELECTOR)

    def decimals(self, address: str) -> int | None:
        return self._uint(address, DECIMALS_SELECTOR, "uint8")

    def total_supply(self, address: str) -> int | None:
        return self._uint(address, TOTAL_SUPPLY_SELECTOR, "uint256")


class SentinelDefault:
    def symbol(self, address: str) -> str | None:
        return UNKNOWN

    def name(self, address: str) -> str | None:
        return UNKNOWN

    def decimals(self, address: str) -> int | None:
        return 0

    def total_supply(self, address: str) -> int | None:
        return 0


class TokenMetadataResolver:
    def __init__(self, sources: Iterable[MetadataSource]):
        self.sources = list(sources)

    @classmethod
    def default(cls, rpc: RpcClient | None = None) -> "TokenMetadataResolver":
        sources: list[MetadataSource] = [StaticDefinitions()]
        if rpc is not None:
            sources.append(ContractMetadata(rpc))
        sources.append(SentinelDefault())
        return cls(sources)

    def _first(self, attr: str, address: str):
        for source in self.sources:
            value = getattr(source, attr)(address)
            if value is not None:
                return value
        log.warning(f"No metadata source answered {attr} for {address}")
        return None

    def symbol(self, address: str) -> str:
        return self._first("symbol", address)

    def name(self, address: str) -> str:
        return self._first("name", address)

    def decimals(self, address: str) -> int:
        return self._first("decimals", address)

    def total_supply(self, address: str) -> int:
        return self._first("total_supply", address)
