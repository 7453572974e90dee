"""Decode raw eth_getLogs entries into ledger events.

Topic hashes are keccak-256 of the canonical event signatures. Indexed
addresses come from the topics; everything else is ABI-encoded in data.
"""
from __future__ import annotations

from web3 import Web3

from dexledger.ledger.events import (
    EventMeta,
    LedgerEvent,
    LiquidityTransfer,
    PairCreated,
    ReserveSync,
    Swap,
)
from dexledger.shared.addresses import normalize_address, topic_to_address

_codec = Web3().codec


def _topic(signature: str) -> str:
    return "0x" + Web3.keccak(text=signature).hex().removeprefix("0x")


TRANSFER_TOPIC = _topic("Transfer(address,address,uint256)")
SYNC_TOPIC = _topic("Sync(uint112,uint112)")
SWAP_TOPIC = _topic("Swap(address,uint256,uint256,uint256,uint256,address)")
PAIR_CREATED_TOPIC = _topic("PairCreated(address,address,address,uint256)")

PAIR_TOPICS = (TRANSFER_TOPIC, SYNC_TOPIC, SWAP_TOPIC)


def _as_int(value: int | str) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def _data_bytes(raw: dict) -> bytes:
    data = raw.get("data") or "0x"
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return bytes.fromhex(data.removeprefix("0x"))


def log_sort_key(raw: dict) -> tuple[int, int]:
    return (_as_int(raw["blockNumber"]), _as_int(raw["logIndex"]))


def decode_log(
    raw: dict,
    timestamp: int,
    tx_from: str,
    tx_to: str | None,
) -> LedgerEvent | None:
    """Build a typed event, or None for topics the ledger ignores.

    Args:
        raw: Log object as returned by eth_getLogs.
        timestamp: Block timestamp of the log.
        tx_from: Originating account of the enclosing transaction.
        tx_to: Top-level target of the transaction; None for creation.
    """
    topics = [t.lower() for t in raw.get("topics", [])]
    if not topics:
        return None
    topic0 = topics[0]
    address = normalize_address(raw["address"])
    meta = EventMeta(
        tx_hash=raw["transactionHash"].lower(),
        block_number=_as_int(raw["blockNumber"]),
        timestamp=timestamp,
        log_index=_as_int(raw["logIndex"]),
        tx_from=normalize_address(tx_from),
        tx_to=normalize_address(tx_to),
    )
    data = _data_bytes(raw)

    # ERC-20 Transfer shares the topic; only 3-topic forms carry indexed addresses
    if topic0 == TRANSFER_TOPIC and len(topics) == 3:
        (value,) = _codec.decode(["uint256"], data)
        return LiquidityTransfer(
            pair=address,
            from_address=topic_to_address(topics[1]),
            to_address=topic_to_address(topics[2]),
            value=value,
            meta=meta,
        )

    if topic0 == SYNC_TOPIC:
        reserve0, reserve1 = _codec.decode(["uint112", "uint112"], data)
        return ReserveSync(pair=address, reserve0=reserve0, reserve1=reserve1, meta=meta)

    if topic0 == SWAP_TOPIC and len(topics) == 3:
        amount0_in, amount1_in, amount0_out, amount1_out = _codec.decode(
            ["uint256", "uint256", "uint256", "uint256"], data,
        )
        return Swap(
            pair=address,
            sender=topic_to_address(topics[1]),
            amount0_in=amount0_in,
            amount1_in=amount1_in,
            amount0_out=amount0_out,
            amount1_out=amount1_out,
            to=topic_to_address(topics[2]),
            meta=meta,
        )

    if topic0 == PAIR_CREATED_TOPIC and len(topics) == 3:
        pair_address, _ = _codec.decode(["address", "uint256"], data)
        return PairCreated(
            factory=address,
            token0=topic_to_address(topics[1]),
            token1=topic_to_address(topics[2]),
            pair=normalize_address(pair_address),
            meta=meta,
        )

    return None


def created_pair_address(raw: dict) -> str | None:
    """Pair address announced by a PairCreated log, or None for other logs."""
    topics = raw.get("topics", [])
    if len(topics) != 3 or topics[0].lower() != PAIR_CREATED_TOPIC:
        return None
    pair_address, _ = _codec.decode(["address", "uint256"], _data_bytes(raw))
    return normalize_address(pair_address)
