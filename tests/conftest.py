"""
Shared fixtures: an in-memory transport and sample node replies.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from polyclient.transports.base import TransportClient

BLOCK_HASH = "9b6c1d0e4cf8a52b1e0ad3c9f31e7f6c8a2b94d1e5f0c7a36b8d2e4f1a0c9b7d"
TX_HASH = "1f3e5d7c9b0a2f4e6d8c0b1a3f5e7d9c2b4a6f8e0d1c3b5a7f9e2d4c6b8a0f1e"
PREV_HASH = "0" * 64


def sample_header(height: int = 120) -> dict[str, Any]:
    return {
        "Version": 0,
        "ChainID": 0,
        "PrevBlockHash": PREV_HASH,
        "TransactionsRoot": "ab" * 32,
        "CrossStateRoot": "cd" * 32,
        "BlockRoot": "ef" * 32,
        "Timestamp": 1_600_000_000,
        "Height": height,
        "ConsensusData": 42,
        "ConsensusPayload": "",
        "NextBookkeeper": "AYnhakv7kC9R5ppw65JoE2rt6xDzCjCTvD",
        "Bookkeepers": ["0257d9a0f1d7e58d0a4b3e53ab5aa3b8a3d1f7a2b4c5d6e7f8091a2b3c4d5e6f7a"],
        "SigData": ["deadbeef"],
        "Hash": BLOCK_HASH,
    }


def sample_transaction() -> dict[str, Any]:
    return {
        "Version": 0,
        "TxType": 209,
        "Nonce": 7,
        "ChainID": 0,
        "Payload": {"Code": "00c66b"},
        "Attributes": "",
        "Sigs": [{"PubKeys": ["02ab"], "M": 1, "SigData": ["01cd"]}],
        "Hash": TX_HASH,
        "Height": 120,
    }


def sample_block(height: int = 120) -> dict[str, Any]:
    return {
        "Hash": BLOCK_HASH,
        "Size": 512,
        "Header": sample_header(height),
        "Transactions": [sample_transaction()],
    }


def sample_event() -> dict[str, Any]:
    return {
        "TxHash": TX_HASH,
        "State": 1,
        "GasConsumed": 0,
        "Notify": [
            {"ContractAddress": "0300000000000000000000000000000000000000", "States": ["ok"]}
        ],
    }


def raw(value: Any) -> bytes:
    """Encode a value the way transports hand replies to the manager."""
    return json.dumps(value).encode()


class FakeTransport(TransportClient):
    """
    Transport that answers from ``replies`` and records every call.

    A reply that is an exception instance is raised instead of returned.
    """

    def __init__(self, replies: dict[str, Any] | None = None):
        self.replies: dict[str, Any] = dict(replies or {})
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self.closed = False

    def _reply(self, name: str, qid: str, *args: Any) -> bytes:
        self.calls.append((name, qid, args))
        reply = self.replies.get(name)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise AssertionError(f"FakeTransport has no reply for {name}")
        return reply

    @property
    def qids(self) -> list[str]:
        return [qid for _, qid, _ in self.calls]

    async def get_current_block_height(self, qid: str) -> bytes:
        return self._reply("get_current_block_height", qid)

    async def get_current_block_hash(self, qid: str) -> bytes:
        return self._reply("get_current_block_hash", qid)

    async def get_block_by_height(self, qid: str, height: int) -> bytes:
        return self._reply("get_block_by_height", qid, height)

    async def get_block_by_hash(self, qid: str, block_hash: str) -> bytes:
        return self._reply("get_block_by_hash", qid, block_hash)

    async def get_block_info_by_height(self, qid: str, height: int) -> bytes:
        return self._reply("get_block_info_by_height", qid, height)

    async def get_raw_transaction(self, qid: str, tx_hash: str) -> bytes:
        return self._reply("get_raw_transaction", qid, tx_hash)

    async def get_block_hash(self, qid: str, height: int) -> bytes:
        return self._reply("get_block_hash", qid, height)

    async def get_block_height_by_tx_hash(self, qid: str, tx_hash: str) -> bytes:
        return self._reply("get_block_height_by_tx_hash", qid, tx_hash)

    async def get_block_tx_hashes_by_height(self, qid: str, height: int) -> bytes:
        return self._reply("get_block_tx_hashes_by_height", qid, height)

    async def get_storage(self, qid: str, contract_address: str, key: bytes) -> bytes:
        return self._reply("get_storage", qid, contract_address, key)

    async def get_smart_contract_event(self, qid: str, tx_hash: str) -> bytes:
        return self._reply("get_smart_contract_event", qid, tx_hash)

    async def get_smart_contract_event_by_block(self, qid: str, height: int) -> bytes:
        return self._reply("get_smart_contract_event_by_block", qid, height)

    async def get_merkle_proof(self, qid: str, block_height: int, root_height: int) -> bytes:
        return self._reply("get_merkle_proof", qid, block_height, root_height)

    async def get_cross_states_proof(self, qid: str, height: int, key: str) -> bytes:
        return self._reply("get_cross_states_proof", qid, height, key)

    async def get_header_by_height(self, qid: str, height: int) -> bytes:
        return self._reply("get_header_by_height", qid, height)

    async def get_state_merkle_root(self, qid: str, height: int) -> bytes:
        return self._reply("get_state_merkle_root", qid, height)

    async def get_mem_pool_tx_state(self, qid: str, tx_hash: str) -> bytes:
        return self._reply("get_mem_pool_tx_state", qid, tx_hash)

    async def get_mem_pool_tx_count(self, qid: str) -> bytes:
        return self._reply("get_mem_pool_tx_count", qid)

    async def get_version(self, qid: str) -> bytes:
        return self._reply("get_version", qid)

    async def get_network_id(self, qid: str) -> bytes:
        return self._reply("get_network_id", qid)

    async def send_raw_transaction(self, qid: str, tx: bytes, is_pre_exec: bool) -> bytes:
        name = "pre_exec_transaction" if is_pre_exec else "send_raw_transaction"
        return self._reply(name, qid, tx)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport(
        {
            "get_current_block_height": raw(120),
            "get_current_block_hash": raw(BLOCK_HASH),
            "get_block_by_height": raw(sample_block()),
            "get_block_by_hash": raw(sample_block()),
            "get_block_info_by_height": b'{"Height":120}',
            "get_raw_transaction": raw(sample_transaction()),
            "get_block_hash": raw(BLOCK_HASH.upper()),
            "get_block_height_by_tx_hash": raw(120),
            "get_block_tx_hashes_by_height": raw(
                {"Hash": BLOCK_HASH, "Height": 120, "Transactions": [TX_HASH]}
            ),
            "get_storage": raw("0a0b0c"),
            "get_smart_contract_event": raw(sample_event()),
            "get_smart_contract_event_by_block": raw([sample_event(), sample_event()]),
            "get_merkle_proof": raw(
                {
                    "Type": "MerkleProof",
                    "TransactionsRoot": "ab" * 32,
                    "BlockHeight": 100,
                    "CurBlockRoot": "cd" * 32,
                    "CurBlockHeight": 120,
                    "TargetHashes": ["ef" * 32],
                }
            ),
            "get_cross_states_proof": raw({"Type": "MerkleProof", "AuditPath": "00ff"}),
            "get_header_by_height": raw(sample_header()),
            "get_state_merkle_root": raw("ab" * 32),
            "get_mem_pool_tx_state": raw({"State": [{"Type": 1, "Height": 0, "ErrCode": 0}]}),
            "get_mem_pool_tx_count": raw([3, 1]),
            "get_version": raw("v1.0.2"),
            "get_network_id": raw(2),
            "send_raw_transaction": raw(TX_HASH),
            "pre_exec_transaction": raw({"State": 1, "Gas": 20000, "Result": "01", "Notify": None}),
        }
    )
