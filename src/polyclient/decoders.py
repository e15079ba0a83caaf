"""
Decoders from raw node replies to domain values.

Every transport hands back the JSON encoding of the node's ``result`` field.
The functions here parse that JSON and validate it into the types from
``polyclient.models``. On any failure they raise ``DecodeError`` naming the
decoder and the input; they never return a partially populated object.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from polyclient.errors import DecodeError
from polyclient.models import (
    Block,
    BlockTxHashes,
    CrossStatesProof,
    Header,
    MemPoolTxCount,
    MemPoolTxState,
    MerkleProof,
    PreExecResult,
    SmartContractEvent,
    Transaction,
    normalize_hash,
)

UINT32_MAX = 2**32 - 1

# Bytes of the offending reply quoted in error messages
_ERROR_PREVIEW_BYTES = 200

ModelT = TypeVar("ModelT", bound=BaseModel)


def _preview(data: bytes) -> str:
    text = data[:_ERROR_PREVIEW_BYTES].decode("utf-8", errors="replace")
    if len(data) > _ERROR_PREVIEW_BYTES:
        text += "..."
    return text


def _load(name: str, data: bytes) -> Any:
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise DecodeError(f"{name}: invalid JSON {_preview(data)!r}: {e}") from e


def _validate(name: str, model: type[ModelT], data: bytes) -> ModelT:
    obj = _load(name, data)
    if not isinstance(obj, dict):
        raise DecodeError(f"{name}: expected JSON object, got {_preview(data)!r}")
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        raise DecodeError(f"{name}: {e}") from e


def _hex_to_bytes(name: str, value: Any) -> bytes:
    if not isinstance(value, str):
        raise DecodeError(f"{name}: expected hex string, got {type(value).__name__}")
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise DecodeError(f"{name}: invalid hex {value[:64]!r}") from e


def get_uint32(data: bytes) -> int:
    value = _load("get_uint32", data)
    # bool is an int subclass; a node never sends one for a height or id
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"get_uint32: expected integer, got {_preview(data)!r}")
    if not 0 <= value <= UINT32_MAX:
        raise DecodeError(f"get_uint32: {value} out of uint32 range")
    return value


def get_uint256(data: bytes) -> str:
    value = _load("get_uint256", data)
    if not isinstance(value, str):
        raise DecodeError(f"get_uint256: expected hex string, got {_preview(data)!r}")
    try:
        return normalize_hash(value)
    except ValueError as e:
        raise DecodeError(f"get_uint256: {e}") from e


def get_string(data: bytes) -> str:
    value = _load("get_string", data)
    if not isinstance(value, str):
        raise DecodeError(f"get_string: expected string, got {_preview(data)!r}")
    return value


def get_block(data: bytes) -> Block:
    return _validate("get_block", Block, data)


def get_header(data: bytes) -> Header:
    return _validate("get_header", Header, data)


def get_transaction(data: bytes) -> Transaction:
    return _validate("get_transaction", Transaction, data)


def get_block_tx_hashes(data: bytes) -> BlockTxHashes:
    return _validate("get_block_tx_hashes", BlockTxHashes, data)


def get_storage(data: bytes) -> bytes:
    """Storage values arrive hex-encoded; a missing key is an empty value."""
    value = _load("get_storage", data)
    if value is None:
        return b""
    return _hex_to_bytes("get_storage", value)


def get_smart_contract_event(data: bytes) -> SmartContractEvent | None:
    """Decode the event of one transaction; ``None`` when the node has none."""
    if _load("get_smart_contract_event", data) is None:
        return None
    return _validate("get_smart_contract_event", SmartContractEvent, data)


def get_smart_contract_events(data: bytes) -> list[SmartContractEvent]:
    value = _load("get_smart_contract_events", data)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(
            f"get_smart_contract_events: expected JSON array, got {_preview(data)!r}"
        )
    try:
        return [SmartContractEvent.model_validate(item) for item in value]
    except ValidationError as e:
        raise DecodeError(f"get_smart_contract_events: {e}") from e


def get_merkle_proof(data: bytes) -> MerkleProof:
    return _validate("get_merkle_proof", MerkleProof, data)


def get_cross_states_proof(data: bytes) -> CrossStatesProof:
    return _validate("get_cross_states_proof", CrossStatesProof, data)


def get_mem_pool_tx_state(data: bytes) -> MemPoolTxState:
    return _validate("get_mem_pool_tx_state", MemPoolTxState, data)


def get_mem_pool_tx_count(data: bytes) -> MemPoolTxCount:
    """The node reports ``[verified, verifying]``."""
    value = _load("get_mem_pool_tx_count", data)
    if not isinstance(value, list) or len(value) != 2:
        raise DecodeError(
            f"get_mem_pool_tx_count: expected [verified, verifying], got {_preview(data)!r}"
        )
    try:
        return MemPoolTxCount(verified=value[0], verifying=value[1])
    except ValidationError as e:
        raise DecodeError(f"get_mem_pool_tx_count: {e}") from e


def get_pre_exec_result(data: bytes) -> PreExecResult:
    return _validate("get_pre_exec_result", PreExecResult, data)
