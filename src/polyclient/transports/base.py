"""
Base transport interface.

A transport performs one remote operation per call and returns the node's
``result`` re-encoded as JSON bytes. It knows nothing about domain types;
decoding happens in the client manager.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from polyclient.errors import NodeError, TransportError

# Envelope version understood by the REST and WebSocket endpoints
API_VERSION = "1.0.0"

NODE_SUCCESS = 0


def encode_result(result: Any) -> bytes:
    """Re-encode a parsed ``result`` field as the raw bytes handed to decoders."""
    return json.dumps(result).encode("utf-8")


def parse_node_response(data: Any, action: str) -> bytes:
    """
    Unwrap the ``{"Action", "Desc", "Error", "Result", "Version"}`` envelope
    used by the REST and WebSocket endpoints.

    Raises:
        TransportError: If the reply is not an envelope at all
        NodeError: If the node reported a non-zero error code
    """
    if not isinstance(data, dict) or "Error" not in data:
        raise TransportError(f"{action}: malformed node response: {data!r}")

    error_code = data.get("Error")
    if error_code != NODE_SUCCESS:
        raise NodeError(error_code, str(data.get("Desc", "")), action=action)

    return encode_result(data.get("Result"))


class TransportClient(ABC):
    """
    Abstract transport to a Poly node.

    Every method takes the request correlation id ``qid`` first. Concrete
    transports raise ``TransportError`` (or ``NodeError``) on failure.
    """

    @abstractmethod
    async def get_current_block_height(self, qid: str) -> bytes:
        """Current block height"""

    @abstractmethod
    async def get_current_block_hash(self, qid: str) -> bytes:
        """Hash of the current best block"""

    @abstractmethod
    async def get_block_by_height(self, qid: str, height: int) -> bytes:
        """Block at the given height, in JSON form"""

    @abstractmethod
    async def get_block_by_hash(self, qid: str, block_hash: str) -> bytes:
        """Block with the given hash, in JSON form"""

    @abstractmethod
    async def get_block_info_by_height(self, qid: str, height: int) -> bytes:
        """Node-specific block summary, passed through undecoded"""

    @abstractmethod
    async def get_raw_transaction(self, qid: str, tx_hash: str) -> bytes:
        """Transaction with the given hash, in JSON form"""

    @abstractmethod
    async def get_block_hash(self, qid: str, height: int) -> bytes:
        """Block hash for the given height"""

    @abstractmethod
    async def get_block_height_by_tx_hash(self, qid: str, tx_hash: str) -> bytes:
        """Height of the block containing the transaction"""

    @abstractmethod
    async def get_block_tx_hashes_by_height(self, qid: str, height: int) -> bytes:
        """Transaction hashes of the block at the given height"""

    @abstractmethod
    async def get_storage(self, qid: str, contract_address: str, key: bytes) -> bytes:
        """Contract storage value, hex encoded"""

    @abstractmethod
    async def get_smart_contract_event(self, qid: str, tx_hash: str) -> bytes:
        """Contract event emitted by one transaction"""

    @abstractmethod
    async def get_smart_contract_event_by_block(self, qid: str, height: int) -> bytes:
        """Contract events emitted by all transactions of a block"""

    @abstractmethod
    async def get_merkle_proof(self, qid: str, block_height: int, root_height: int) -> bytes:
        """Merkle proof of a block against the block root at ``root_height``"""

    @abstractmethod
    async def get_cross_states_proof(self, qid: str, height: int, key: str) -> bytes:
        """Cross-chain state proof of ``key`` at the given height"""

    @abstractmethod
    async def get_header_by_height(self, qid: str, height: int) -> bytes:
        """Block header at the given height, in JSON form"""

    @abstractmethod
    async def get_state_merkle_root(self, qid: str, height: int) -> bytes:
        """State Merkle root at the given height"""

    @abstractmethod
    async def get_mem_pool_tx_state(self, qid: str, tx_hash: str) -> bytes:
        """Pool state of a pending transaction"""

    @abstractmethod
    async def get_mem_pool_tx_count(self, qid: str) -> bytes:
        """``[verified, verifying]`` pool counts"""

    @abstractmethod
    async def get_version(self, qid: str) -> bytes:
        """Node software version"""

    @abstractmethod
    async def get_network_id(self, qid: str) -> bytes:
        """Network id the node runs on"""

    @abstractmethod
    async def send_raw_transaction(self, qid: str, tx: bytes, is_pre_exec: bool) -> bytes:
        """Submit a serialized transaction; with ``is_pre_exec`` only simulate it"""

    async def close(self) -> None:
        """Close transport connections"""
        pass
