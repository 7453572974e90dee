"""Ethereum JSON-RPC client over HTTP.

Only the handful of read methods the indexer and token metadata lookups need.
"""
from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from dexledger.config import RpcConfig

log = logging.getLogger("rpc")


class RpcError(Exception):
    """JSON-RPC error object returned by the node (reverts included)."""

    def __init__(self, method: str, error: dict[str, Any]):
        self.method = method
        self.code = error.get("code")
        self.data = error.get("data")
        super().__init__(f"{method} failed [{self.code}]: {error.get('message', '')}")


class RpcClient:
    def __init__(
        self,
        config: RpcConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config or RpcConfig()
        self._transport = transport
        self._client: httpx.Client | None = None
        self._ids = itertools.count(1)

    @property
    def client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=self.config.timeout, transport=self._transport,
            )
        return self._client

    def call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        body = self._post(payload)
        if body.get("error"):
            raise RpcError(method, body["error"])
        return body.get("result")

    @retry(
        retry=retry_if_exception_type(httpx.HTTPError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )
    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        resp = self.client.post(self.config.url, json=payload)
        resp.raise_for_status()
        return resp.json()

    def block_number(self) -> int:
        return int(self.call("eth_blockNumber", []), 16)

    def get_block_timestamp(self, block_number: int) -> int:
        block = self.call("eth_getBlockByNumber", [hex(block_number), False])
        return int(block["timestamp"], 16)

    def get_transaction(self, tx_hash: str) -> dict:
        return self.call("eth_getTransactionByHash", [tx_hash])

    def get_logs(
        self,
        from_block: int,
        to_block: int,
        topics: list[Any],
        address: str | list[str] | None = None,
    ) -> list[dict]:
        log_filter: dict[str, Any] = {
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
            "topics": topics,
        }
        if address is not None:
            log_filter["address"] = address
        return self.call("eth_getLogs", [log_filter])

    def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        return self.call("eth_call", [{"to": to, "data": data}, block])

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
