"""
JSON-RPC client for the Arc testnet node.

Only reads are performed here; transactions are signed and submitted by the
seller's or buyer's wallet in the browser.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, List, Optional

import httpx

from domain.chain import TransactionReceipt
from domain.errors import UpstreamError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS: float = 15.0


class ChainClient:
    """
    Minimal Ethereum JSON-RPC client over httpx.

    Owns an httpx.Client; call `close()` on shutdown.
    """

    def __init__(self, rpc_url: str, *, http_client: Optional[httpx.Client] = None) -> None:
        self.rpc_url = rpc_url
        self._http = http_client or httpx.Client(timeout=REQUEST_TIMEOUT_SECONDS)
        self._ids = itertools.count(1)

    def _call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            response = self._http.post(self.rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise UpstreamError(f"RPC {method} failed: {e}") from e

        if response.status_code >= 400:
            raise UpstreamError(f"RPC {method} failed: HTTP {response.status_code}")

        body = response.json()
        if body.get("error"):
            error = body["error"]
            raise UpstreamError(f"RPC {method} error: {error.get('message', error)}")

        return body.get("result")

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        """
        Fetch a transaction receipt.

        Returns None while the transaction is still unconfirmed.
        """

        result = self._call("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            logger.info("Transaction not yet confirmed", extra={"tx_hash": tx_hash})
            return None
        return TransactionReceipt.from_rpc(result)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ChainClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["ChainClient"]
