"""Ethereum JSON-RPC client utilities."""

from typing import Any, Protocol

import httpx

from blob_indexer.data.blobs.errors import TransportError
from blob_indexer.helpers.constants import DEFAULT_TIMEOUT


class NodeClient(Protocol):
    """Capability to fetch raw blocks and transactions from a node.

    Both calls return None when the node has no such object and raise
    TransportError on network or RPC faults.
    """

    async def get_block(self, block_number: int) -> dict[str, Any] | None: ...

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None: ...


class RPCClient:
    """Ethereum JSON-RPC client."""

    def __init__(self, rpc_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout

    async def call(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: list[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Make a single JSON-RPC call.

        Args:
            client: HTTP client instance
            method: RPC method name (e.g., "eth_blockNumber")
            params: Method parameters list
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            httpx.HTTPError: If the HTTP request fails
            TransportError: If the response is not a JSON-RPC object or
                contains an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": 1,
        }

        response = await client.post(
            self.rpc_url, json=payload, timeout=timeout or self.timeout
        )
        response.raise_for_status()
        result = response.json()

        if not isinstance(result, dict):
            msg = f"Unexpected RPC response for {method}: {result!r}"
            raise TransportError(msg)
        if "error" in result:
            msg = f"RPC error: {result['error']}"
            raise TransportError(msg)

        return result.get("result")

    async def get_block_by_number(
        self, client: httpx.AsyncClient, block_number: int
    ) -> dict[str, Any] | None:
        """Fetch a block header with transaction hashes only.

        Args:
            client: HTTP client instance
            block_number: Block number

        Returns:
            Raw block object, or None if the node has no such block
        """
        # False = transactions as hashes, fetched one by one afterwards
        return await self.call(
            client, "eth_getBlockByNumber", [hex(block_number), False]
        )

    async def get_transaction_by_hash(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> dict[str, Any] | None:
        """Fetch a transaction by hash.

        Returns:
            Raw transaction object, or None if unknown to the node
        """
        return await self.call(client, "eth_getTransactionByHash", [tx_hash])


def _object_or_none(method: str, result: Any) -> dict[str, Any] | None:
    if result is None or isinstance(result, dict):
        return result
    msg = f"{method} returned {type(result).__name__}, expected an object"
    raise TransportError(msg)


class RPCNodeClient:
    """NodeClient backed by an Ethereum JSON-RPC endpoint.

    Converts HTTP failures and undecodable responses into TransportError so
    callers only ever see the ingestion error taxonomy.

    Example:
        ```python
        async with create_http_client() as http:
            node = RPCNodeClient(RPCClient(rpc_url), http)
            block = await node.get_block(19_426_587)
        ```
    """

    def __init__(self, rpc: RPCClient, client: httpx.AsyncClient) -> None:
        self.rpc = rpc
        self.client = client

    async def get_block(self, block_number: int) -> dict[str, Any] | None:
        try:
            result = await self.rpc.get_block_by_number(self.client, block_number)
        except (httpx.HTTPError, ValueError) as e:
            msg = f"eth_getBlockByNumber({block_number}) failed: {e}"
            raise TransportError(msg) from e
        return _object_or_none("eth_getBlockByNumber", result)

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        try:
            result = await self.rpc.get_transaction_by_hash(self.client, tx_hash)
        except (httpx.HTTPError, ValueError) as e:
            msg = f"eth_getTransactionByHash({tx_hash}) failed: {e}"
            raise TransportError(msg) from e
        return _object_or_none("eth_getTransactionByHash", result)


__all__ = [
    "NodeClient",
    "RPCClient",
    "RPCNodeClient",
]
