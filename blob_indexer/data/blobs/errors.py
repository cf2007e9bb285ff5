"""Error taxonomy for blob ingestion.

Every failure carries an ErrorKind so callers branch on the category, not on
message text. Hard errors (fetch, store) abort a range walk; soft errors
(decode, missing field) skip one transaction and are counted.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Closed set of failure categories."""

    TRANSPORT = "transport"
    BLOCK_NOT_FOUND = "block_not_found"
    INCOMPLETE_BLOCK = "incomplete_block"
    MALFORMED_INPUT = "malformed_input"
    OVERFLOW = "overflow"
    MISSING_FIELD = "missing_field"
    STORE = "store"


class BlobIndexerError(Exception):
    """Base class for all ingestion errors."""

    kind: ErrorKind


class FetchError(BlobIndexerError):
    """Failure retrieving a block from the node."""


class TransportError(FetchError):
    """Network or JSON-RPC fault talking to the node."""

    kind = ErrorKind.TRANSPORT


class BlockNotFoundError(FetchError):
    """Node answered, but has no block for the requested number."""

    kind = ErrorKind.BLOCK_NOT_FOUND

    def __init__(self, block_number: int) -> None:
        super().__init__(f"Block {block_number} not found")
        self.block_number = block_number


class IncompleteBlockError(FetchError):
    """Block payload lacks a field required for a confirmed block."""

    kind = ErrorKind.INCOMPLETE_BLOCK

    def __init__(self, block_number: int, field: str) -> None:
        super().__init__(f"Block {block_number} is missing required field {field!r}")
        self.block_number = block_number
        self.field = field


class DecodeError(BlobIndexerError):
    """Transaction input could not be decoded into blob fields."""


class MalformedInputError(DecodeError):
    kind = ErrorKind.MALFORMED_INPUT


class DecodeOverflowError(DecodeError):
    kind = ErrorKind.OVERFLOW


class MissingFieldError(BlobIndexerError):
    """A field required for persistence is absent."""

    kind = ErrorKind.MISSING_FIELD

    def __init__(self, tx_hash: str, field: str) -> None:
        super().__init__(f"Transaction {tx_hash} has no {field!r}")
        self.tx_hash = tx_hash
        self.field = field


class StoreError(BlobIndexerError):
    """Key-value store write or read failed."""

    kind = ErrorKind.STORE


class RangeWalkError(BlobIndexerError):
    """A hard fetch failure stopped the range walk.

    Attributes:
        block_number: Block whose fetch failed
        last_block: Last block fully processed before the failure, or None
        cause: The underlying FetchError
    """

    def __init__(
        self, block_number: int, last_block: int | None, cause: FetchError
    ) -> None:
        super().__init__(
            f"Range walk stopped at block {block_number} ({cause.kind}): {cause}"
        )
        self.block_number = block_number
        self.last_block = last_block
        self.cause = cause
        self.kind = cause.kind

    @property
    def resume_from(self) -> int:
        """Block number to restart the walk from."""
        return self.block_number


__all__ = [
    "BlobIndexerError",
    "BlockNotFoundError",
    "DecodeError",
    "DecodeOverflowError",
    "ErrorKind",
    "FetchError",
    "IncompleteBlockError",
    "MalformedInputError",
    "MissingFieldError",
    "RangeWalkError",
    "StoreError",
    "TransportError",
]
