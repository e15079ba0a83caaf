"""
polyclient - Client for querying Poly chain nodes over RPC, REST or WebSocket.
"""

__version__ = "0.1.0"

from polyclient.client import ClientManager
from polyclient.config import Settings, get_settings
from polyclient.errors import (
    ClientError,
    DecodeError,
    NoAvailableClientError,
    NodeError,
    TransportError,
    WaitTimeoutError,
)
from polyclient.models import (
    Block,
    BlockTxHashes,
    CrossStatesProof,
    Header,
    MemPoolTxCount,
    MemPoolTxState,
    MemPoolTxStateEntry,
    MerkleProof,
    NotifyEventInfo,
    PreExecResult,
    SmartContractEvent,
    Transaction,
)
from polyclient.transports import RestClient, RpcClient, TransportClient, WSClient

__all__ = [
    "Block",
    "BlockTxHashes",
    "ClientError",
    "ClientManager",
    "CrossStatesProof",
    "DecodeError",
    "Header",
    "MemPoolTxCount",
    "MemPoolTxState",
    "MemPoolTxStateEntry",
    "MerkleProof",
    "NoAvailableClientError",
    "NodeError",
    "NotifyEventInfo",
    "PreExecResult",
    "RestClient",
    "RpcClient",
    "Settings",
    "SmartContractEvent",
    "Transaction",
    "TransportClient",
    "TransportError",
    "WSClient",
    "WaitTimeoutError",
    "get_settings",
]
