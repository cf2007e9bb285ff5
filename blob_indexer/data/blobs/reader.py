"""Fetch blocks and their full transactions from a node."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from blob_indexer.data.blobs.errors import (
    BlockNotFoundError,
    IncompleteBlockError,
    TransportError,
)
from blob_indexer.data.blobs.models import Block, IngestStats, Transaction
from blob_indexer.helpers.logging import get_logger
from blob_indexer.helpers.parsers import (
    parse_hex_bytes,
    parse_hex_int,
    parse_optional_hex_int,
)


if TYPE_CHECKING:
    from blob_indexer.helpers.rpc import NodeClient


logger = get_logger(__name__)

BlockObserver = Callable[[Block], None]


def parse_transaction(tx_data: dict[str, Any]) -> Transaction:
    """Convert an eth_getTransactionByHash result to a Transaction model."""
    return Transaction(
        hash=tx_data["hash"],
        from_address=tx_data["from"],
        to_address=tx_data.get("to"),
        value=parse_hex_int(tx_data.get("value")),
        gas=parse_hex_int(tx_data.get("gas")),
        gas_price=parse_hex_int(tx_data.get("gasPrice")),
        input=parse_hex_bytes(tx_data.get("input")),
        transaction_type=parse_optional_hex_int(tx_data.get("type")),
    )


def parse_block(
    block_number: int, block_data: dict[str, Any], transactions: list[Transaction]
) -> Block:
    """Convert an eth_getBlockByNumber result to a Block model.

    Raises:
        IncompleteBlockError: If hash or totalDifficulty is missing
    """
    for rpc_field in ("hash", "totalDifficulty"):
        if block_data.get(rpc_field) is None:
            raise IncompleteBlockError(block_number, rpc_field)

    return Block(
        number=parse_hex_int(block_data.get("number"), default=block_number),
        hash=block_data["hash"],
        parent_hash=block_data["parentHash"],
        nonce=block_data.get("nonce"),
        logs_bloom=(
            parse_hex_bytes(block_data["logsBloom"])
            if block_data.get("logsBloom") is not None
            else None
        ),
        transactions_root=block_data["transactionsRoot"],
        state_root=block_data["stateRoot"],
        receipts_root=block_data["receiptsRoot"],
        difficulty=parse_hex_int(block_data.get("difficulty")),
        total_difficulty=parse_hex_int(block_data["totalDifficulty"]),
        extra_data=parse_hex_bytes(block_data.get("extraData")),
        size=parse_optional_hex_int(block_data.get("size")),
        gas_limit=parse_hex_int(block_data.get("gasLimit")),
        gas_used=parse_hex_int(block_data.get("gasUsed")),
        timestamp=parse_hex_int(block_data.get("timestamp")),
        base_fee_per_gas=parse_optional_hex_int(block_data.get("baseFeePerGas")),
        transactions=transactions,
        uncles=list(block_data.get("uncles", [])),
    )


class ChainReader:
    """Build normalized Block records from a NodeClient.

    Transactions the node cannot return are skipped and counted in
    stats.missing_transactions; block-level failures raise FetchError.
    Nothing is retried here.
    """

    def __init__(
        self,
        node: NodeClient,
        stats: IngestStats | None = None,
        on_block: BlockObserver | None = None,
    ) -> None:
        """Initialize reader.

        Args:
            node: Node client capability
            stats: Shared run counters (a fresh instance if omitted)
            on_block: Optional observer called after each successful fetch
        """
        self.node = node
        self.stats = stats if stats is not None else IngestStats()
        self.on_block = on_block

    async def _fetch_transactions(
        self, tx_hashes: list[str]
    ) -> tuple[list[Transaction], list[str]]:
        """Fetch transactions in order; returns (transactions, missing hashes)."""
        transactions: list[Transaction] = []
        missing: list[str] = []
        for tx_hash in tx_hashes:
            tx_data = await self.node.get_transaction(tx_hash)
            if tx_data is None:
                missing.append(tx_hash)
                continue
            transactions.append(parse_transaction(tx_data))
        return transactions, missing

    async def fetch_block(self, block_number: int) -> Block:
        """Fetch a block and all its transactions.

        Args:
            block_number: Block number

        Returns:
            Block with transactions in block order

        Raises:
            BlockNotFoundError: If the node has no block for this number
            IncompleteBlockError: If the block lacks hash or totalDifficulty
            TransportError: On network or RPC failure
        """
        block_data = await self.node.get_block(block_number)
        if block_data is None:
            raise BlockNotFoundError(block_number)

        # Fail before the per-transaction round trips
        for rpc_field in ("hash", "totalDifficulty"):
            if block_data.get(rpc_field) is None:
                raise IncompleteBlockError(block_number, rpc_field)

        # Some nodes inline full objects even when asked for hashes
        tx_hashes = [
            tx if isinstance(tx, str) else tx["hash"]
            for tx in block_data.get("transactions", [])
        ]

        try:
            transactions, missing = await self._fetch_transactions(tx_hashes)
            block = parse_block(block_number, block_data, transactions)
        except (KeyError, ValueError) as e:
            msg = f"Unparseable node response for block {block_number}: {e!r}"
            raise TransportError(msg) from e

        # Soft failures are counted once per successful fetch
        for tx_hash in missing:
            self.stats.missing_transactions += 1
            logger.warning(
                "Transaction %s referenced by block %d not returned by node",
                tx_hash,
                block_number,
            )
        self.stats.blocks += 1
        self.stats.transactions += len(block.transactions)

        block_size_kb = block.size / 1024 if block.size is not None else 0.0
        logger.info(
            "Processed block number: %d, Gas used: %d, Block size: %.2f KB, "
            "Number of transactions: %d",
            block.number,
            block.gas_used,
            block_size_kb,
            len(block.transactions),
        )
        if self.on_block is not None:
            self.on_block(block)

        return block


__all__ = [
    "BlockObserver",
    "ChainReader",
    "parse_block",
    "parse_transaction",
]
