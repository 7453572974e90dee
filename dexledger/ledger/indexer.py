"""Block-window indexer feeding JSON-RPC logs through the ledger.

Each window's events and the cursor advance are committed together, so a
crash resumes at the first uncommitted window.
"""
from __future__ import annotations

import logging
import signal
import sqlite3
import time

from dexledger.clients.rpc import RpcClient
from dexledger.config import AppConfig
from dexledger.db.sync_state_repo import SyncStateRepo
from dexledger.ledger.context import LedgerContext
from dexledger.ledger.decoder import (
    PAIR_CREATED_TOPIC,
    PAIR_TOPICS,
    SWAP_TOPIC,
    created_pair_address,
    decode_log,
    log_sort_key,
)
from dexledger.ledger.events import LedgerEvent
from dexledger.ledger.metadata import TokenMetadataResolver
from dexledger.ledger.processor import EventProcessor

log = logging.getLogger("ledger")


class Indexer:
    def __init__(self, config: AppConfig, conn: sqlite3.Connection, rpc: RpcClient):
        self.config = config
        self.conn = conn
        self.rpc = rpc
        self.ctx = LedgerContext.from_connection(conn, config.ledger, config.pricing)
        self.processor = EventProcessor(self.ctx, TokenMetadataResolver.default(rpc))
        self.sync_state = SyncStateRepo(conn)
        self.running = True

        self._timestamps: dict[int, int] = {}
        self._tx_targets: dict[str, tuple[str, str | None]] = {}

    def next_block(self) -> int:
        last = self.sync_state.get_last_block()
        if last is None:
            return self.config.indexer.start_block
        return last + 1

    def _is_relevant(self, raw: dict) -> bool:
        address = raw["address"].lower()
        topic0 = raw["topics"][0].lower() if raw.get("topics") else None
        if topic0 == PAIR_CREATED_TOPIC:
            return address == self.config.ledger.factory_address
        return self.ctx.pairs.exists(address)

    def _timestamp(self, block_number: int) -> int:
        if block_number not in self._timestamps:
            self._timestamps[block_number] = self.rpc.get_block_timestamp(block_number)
        return self._timestamps[block_number]

    def _tx_endpoints(self, tx_hash: str) -> tuple[str, str | None]:
        if tx_hash not in self._tx_targets:
            tx = self.rpc.get_transaction(tx_hash)
            self._tx_targets[tx_hash] = (tx["from"], tx.get("to"))
        return self._tx_targets[tx_hash]

    def _decode(self, raw: dict) -> LedgerEvent | None:
        if not self._is_relevant(raw):
            return None
        block_number, _ = log_sort_key(raw)
        tx_from, tx_to = "", None
        if raw["topics"][0].lower() == SWAP_TOPIC:
            tx_from, tx_to = self._tx_endpoints(raw["transactionHash"])
        return decode_log(raw, self._timestamp(block_number), tx_from, tx_to)

    def _fetch_logs(self, from_block: int, to_block: int) -> list[dict]:
        """Factory PairCreated logs, then pair logs filtered by pair address.

        Pairs created inside the window are included in the pair filter so
        their first events land in the same window.
        """
        created = self.rpc.get_logs(
            from_block, to_block, [[PAIR_CREATED_TOPIC]],
            address=self.config.ledger.factory_address,
        )
        pairs = self.ctx.pairs.list_ids()
        known = set(pairs)
        for raw in created:
            address = created_pair_address(raw)
            if address is not None and address not in known:
                pairs.append(address)
                known.add(address)

        raw_logs = list(created)
        batch = self.config.indexer.address_batch
        for i in range(0, len(pairs), batch):
            raw_logs.extend(self.rpc.get_logs(
                from_block, to_block, [list(PAIR_TOPICS)], address=pairs[i:i + batch],
            ))
        return raw_logs

    def process_window(self, from_block: int, to_block: int) -> int:
        """Fetch, apply and commit one block window. Returns events applied."""
        raw_logs = self._fetch_logs(from_block, to_block)
        n = 0
        try:
            # decode lazily: pairs created earlier in the window must be visible
            for raw in sorted(raw_logs, key=log_sort_key):
                event = self._decode(raw)
                if event is None:
                    continue
                self.processor.process(event)
                n += 1
            self.sync_state.set_last_block(to_block)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            log.error(f"Window {from_block}-{to_block} rolled back")
            raise
        finally:
            self._timestamps.clear()
            self._tx_targets.clear()
        return n

    def run_once(self) -> int:
        """Process the next window up to the chain head. Returns events applied."""
        head = self.rpc.block_number()
        start = self.next_block()
        if start > head:
            return 0
        end = min(start + self.config.indexer.block_window - 1, head)
        n = self.process_window(start, end)
        log.info(f"Blocks {start}-{end}: {n} events (head {head})")
        return n

    def stop(self, *_args) -> None:
        log.info("Shutdown signal received...")
        self.running = False

    def run(self) -> None:
        signal.signal(signal.SIGINT, self.stop)
        signal.signal(signal.SIGTERM, self.stop)

        log.info("=" * 60)
        log.info(f"Ledger indexer starting at block {self.next_block()}")
        log.info(f"Intermediaries: {len(self.ctx.registry)} configured")
        log.info("=" * 60)

        while self.running:
            start = self.next_block()
            self.run_once()
            if self.next_block() == start:
                time.sleep(self.config.indexer.poll_interval)

        log.info(f"Indexer stopped: {self.processor.stats}")
