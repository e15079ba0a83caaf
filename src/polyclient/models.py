"""
Domain types returned by the client manager.

The node speaks PascalCase JSON; every model keeps snake_case attributes and
accepts the node's keys through aliases.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

HASH_HEX_LENGTH = 64


def normalize_hash(value: str) -> str:
    """Validate a 256-bit hash in hex form and return it lower-cased."""
    if not isinstance(value, str):
        raise ValueError(f"hash must be a hex string, got {type(value).__name__}")
    value = value.lower()
    if value.startswith("0x"):
        value = value[2:]
    if len(value) != HASH_HEX_LENGTH:
        raise ValueError(f"hash must be {HASH_HEX_LENGTH} hex chars, got {len(value)}")
    try:
        bytes.fromhex(value)
    except ValueError as e:
        raise ValueError(f"hash is not valid hex: {value!r}") from e
    return value


class _NodeModel(BaseModel):
    model_config = {"populate_by_name": True, "frozen": True}


class Header(_NodeModel):
    version: int = Field(default=0, alias="Version")
    chain_id: int = Field(default=0, alias="ChainID")
    prev_block_hash: str = Field(default="", alias="PrevBlockHash")
    transactions_root: str = Field(default="", alias="TransactionsRoot")
    cross_state_root: str = Field(default="", alias="CrossStateRoot")
    block_root: str = Field(default="", alias="BlockRoot")
    timestamp: int = Field(default=0, ge=0, alias="Timestamp")
    height: int = Field(..., ge=0, alias="Height")
    consensus_data: int = Field(default=0, alias="ConsensusData")
    consensus_payload: str = Field(default="", alias="ConsensusPayload")
    next_bookkeeper: str = Field(default="", alias="NextBookkeeper")
    bookkeepers: list[str] = Field(default_factory=list, alias="Bookkeepers")
    sig_data: list[str] = Field(default_factory=list, alias="SigData")
    hash: str = Field(default="", alias="Hash")


class Sig(_NodeModel):
    pub_keys: list[str] = Field(default_factory=list, alias="PubKeys")
    m: int = Field(default=0, ge=0, alias="M")
    sig_data: list[str] = Field(default_factory=list, alias="SigData")


class Transaction(_NodeModel):
    version: int = Field(default=0, alias="Version")
    tx_type: int = Field(..., alias="TxType")
    nonce: int = Field(default=0, alias="Nonce")
    chain_id: int = Field(default=0, alias="ChainID")
    payload: Any = Field(default=None, alias="Payload")
    attributes: str | list[Any] | None = Field(default=None, alias="Attributes")
    sigs: list[Sig] = Field(default_factory=list, alias="Sigs")
    hash: str = Field(..., alias="Hash")
    height: int | None = Field(default=None, alias="Height")

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        return normalize_hash(v)


class Block(_NodeModel):
    hash: str = Field(..., alias="Hash")
    size: int = Field(default=0, ge=0, alias="Size")
    header: Header = Field(..., alias="Header")
    transactions: list[Transaction] = Field(default_factory=list, alias="Transactions")

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        return normalize_hash(v)

    @property
    def height(self) -> int:
        return self.header.height


class BlockTxHashes(_NodeModel):
    hash: str = Field(..., alias="Hash")
    height: int = Field(..., ge=0, alias="Height")
    transactions: list[str] = Field(default_factory=list, alias="Transactions")

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        return normalize_hash(v)

    @field_validator("transactions")
    @classmethod
    def validate_tx_hashes(cls, v: list[str]) -> list[str]:
        return [normalize_hash(h) for h in v]


class NotifyEventInfo(_NodeModel):
    contract_address: str = Field(..., alias="ContractAddress")
    states: Any = Field(default=None, alias="States")


class SmartContractEvent(_NodeModel):
    tx_hash: str = Field(..., alias="TxHash")
    state: int = Field(..., alias="State")
    gas_consumed: int = Field(default=0, ge=0, alias="GasConsumed")
    notify: list[NotifyEventInfo] = Field(default_factory=list, alias="Notify")

    @field_validator("notify", mode="before")
    @classmethod
    def null_notify(cls, v: Any) -> Any:
        return [] if v is None else v


class MerkleProof(_NodeModel):
    type: str = Field(default="MerkleProof", alias="Type")
    transactions_root: str = Field(default="", alias="TransactionsRoot")
    block_height: int = Field(..., ge=0, alias="BlockHeight")
    cur_block_root: str = Field(default="", alias="CurBlockRoot")
    cur_block_height: int = Field(..., ge=0, alias="CurBlockHeight")
    target_hashes: list[str] = Field(default_factory=list, alias="TargetHashes")


class CrossStatesProof(_NodeModel):
    type: str = Field(default="MerkleProof", alias="Type")
    audit_path: str = Field(..., alias="AuditPath")


class MemPoolTxStateEntry(_NodeModel):
    type: int = Field(..., alias="Type")
    height: int = Field(default=0, ge=0, alias="Height")
    err_code: int = Field(default=0, alias="ErrCode")


class MemPoolTxState(_NodeModel):
    state: list[MemPoolTxStateEntry] = Field(default_factory=list, alias="State")


class MemPoolTxCount(_NodeModel):
    """Counts of transactions waiting in the node's pool."""

    verified: int = Field(..., ge=0)
    verifying: int = Field(..., ge=0)


class PreExecResult(_NodeModel):
    """Outcome of simulating a transaction without committing it."""

    state: int = Field(..., alias="State")
    gas: int = Field(default=0, ge=0, alias="Gas")
    result: Any = Field(default=None, alias="Result")
    notify: list[NotifyEventInfo] = Field(default_factory=list, alias="Notify")

    @field_validator("notify", mode="before")
    @classmethod
    def null_notify(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def succeeded(self) -> bool:
        return self.state == 1
