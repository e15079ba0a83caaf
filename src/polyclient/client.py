"""
Client manager: one entry point for querying a Poly node over any transport.

Every query follows the same steps:
1. Pick the active transport (explicit default, then RPC, REST, WebSocket)
2. Send the request with a fresh correlation id
3. Decode the raw reply into a domain value

Decode and transport errors reach the caller unchanged.
"""

from __future__ import annotations

import asyncio
import threading
from types import TracebackType

from loguru import logger

from polyclient import decoders
from polyclient.config import Settings
from polyclient.errors import ClientError, NoAvailableClientError, WaitTimeoutError
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
)
from polyclient.transports.base import TransportClient
from polyclient.transports.rest import DEFAULT_REST_ADDRESS, DEFAULT_REST_TIMEOUT, RestClient
from polyclient.transports.rpc import DEFAULT_RPC_ADDRESS, DEFAULT_RPC_TIMEOUT, RpcClient
from polyclient.transports.websocket import DEFAULT_WS_ADDRESS, DEFAULT_WS_TIMEOUT, WSClient

# Blocks wait_for_generate_block waits for when no count is given
DEFAULT_WAIT_BLOCK_COUNT = 2

# Seconds between two height polls in wait_for_generate_block
BLOCK_POLL_INTERVAL = 1.0


def _tx_bytes(tx: bytes | str) -> bytes:
    if isinstance(tx, bytes | bytearray):
        return bytes(tx)
    try:
        return bytes.fromhex(tx.removeprefix("0x"))
    except ValueError as e:
        raise ValueError(f"Transaction is not valid hex: {tx[:64]!r}") from e


class ClientManager:
    """
    Routes queries to one of up to three transports and decodes the replies.

    At most one transport of each kind is held; registering a kind again
    replaces the previous one. The manager can be shared between tasks and
    threads: the correlation counter is the only state it mutates per call.
    """

    def __init__(
        self,
        rpc: RpcClient | None = None,
        rest: RestClient | None = None,
        ws: WSClient | None = None,
        chain_id: int = 0,
    ):
        self.rpc = rpc
        self.rest = rest
        self.ws = ws
        self.default_client: TransportClient | None = None
        self.chain_id = chain_id
        self._qid = 0
        self._qid_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> ClientManager:
        """Build a manager with a transport for every address set in ``settings``."""
        manager = cls(chain_id=settings.chain_id)
        if settings.rpc_address:
            manager.new_rpc_client(settings.rpc_address, settings.request_timeout)
        if settings.rest_address:
            manager.new_rest_client(settings.rest_address, settings.request_timeout)
        if settings.ws_address:
            manager.new_websocket_client(settings.ws_address, settings.request_timeout)

        if settings.default_transport:
            transports: dict[str, TransportClient | None] = {
                "rpc": manager.rpc,
                "rest": manager.rest,
                "ws": manager.ws,
            }
            default = transports[settings.default_transport]
            if default is None:
                raise NoAvailableClientError(
                    f"default transport {settings.default_transport!r} has no address configured"
                )
            manager.set_default_client(default)

        return manager

    def new_rpc_client(
        self, address: str = DEFAULT_RPC_ADDRESS, timeout: float = DEFAULT_RPC_TIMEOUT
    ) -> RpcClient:
        self.rpc = RpcClient(address, timeout=timeout)
        logger.debug(f"RPC client set to {address}")
        return self.rpc

    def get_rpc_client(self) -> RpcClient | None:
        return self.rpc

    def new_rest_client(
        self, address: str = DEFAULT_REST_ADDRESS, timeout: float = DEFAULT_REST_TIMEOUT
    ) -> RestClient:
        self.rest = RestClient(address, timeout=timeout)
        logger.debug(f"REST client set to {address}")
        return self.rest

    def get_rest_client(self) -> RestClient | None:
        return self.rest

    def new_websocket_client(
        self, address: str = DEFAULT_WS_ADDRESS, timeout: float = DEFAULT_WS_TIMEOUT
    ) -> WSClient:
        self.ws = WSClient(address, timeout=timeout)
        logger.debug(f"WebSocket client set to {address}")
        return self.ws

    def get_websocket_client(self) -> WSClient | None:
        return self.ws

    def set_default_client(self, client: TransportClient | None) -> None:
        """Route every query to ``client`` regardless of the other transports."""
        self.default_client = client

    def _get_client(self) -> TransportClient | None:
        for client in (self.default_client, self.rpc, self.rest, self.ws):
            if client is not None:
                return client
        return None

    def _require_client(self) -> TransportClient:
        client = self._get_client()
        if client is None:
            raise NoAvailableClientError()
        return client

    def _next_qid(self) -> str:
        with self._qid_lock:
            self._qid += 1
            return str(self._qid)

    async def get_current_block_height(self) -> int:
        client = self._require_client()
        data = await client.get_current_block_height(self._next_qid())
        return decoders.get_uint32(data)

    async def get_current_block_hash(self) -> str:
        client = self._require_client()
        data = await client.get_current_block_hash(self._next_qid())
        return decoders.get_uint256(data)

    async def get_block_by_height(self, height: int) -> Block:
        client = self._require_client()
        data = await client.get_block_by_height(self._next_qid(), height)
        return decoders.get_block(data)

    async def get_block_info_by_height(self, height: int) -> bytes:
        """Node-specific block summary, returned as the raw reply."""
        client = self._require_client()
        return await client.get_block_info_by_height(self._next_qid(), height)

    async def get_block_by_hash(self, block_hash: str) -> Block:
        client = self._require_client()
        data = await client.get_block_by_hash(self._next_qid(), block_hash)
        return decoders.get_block(data)

    async def get_transaction(self, tx_hash: str) -> Transaction:
        client = self._require_client()
        data = await client.get_raw_transaction(self._next_qid(), tx_hash)
        return decoders.get_transaction(data)

    async def get_block_hash(self, height: int) -> str:
        client = self._require_client()
        data = await client.get_block_hash(self._next_qid(), height)
        return decoders.get_uint256(data)

    async def get_block_height_by_tx_hash(self, tx_hash: str) -> int:
        client = self._require_client()
        data = await client.get_block_height_by_tx_hash(self._next_qid(), tx_hash)
        return decoders.get_uint32(data)

    async def get_block_tx_hashes_by_height(self, height: int) -> BlockTxHashes:
        client = self._require_client()
        data = await client.get_block_tx_hashes_by_height(self._next_qid(), height)
        return decoders.get_block_tx_hashes(data)

    async def get_storage(self, contract_address: str, key: bytes) -> bytes:
        client = self._require_client()
        data = await client.get_storage(self._next_qid(), contract_address, key)
        return decoders.get_storage(data)

    async def get_smart_contract_event(self, tx_hash: str) -> SmartContractEvent | None:
        client = self._require_client()
        data = await client.get_smart_contract_event(self._next_qid(), tx_hash)
        return decoders.get_smart_contract_event(data)

    async def get_smart_contract_event_by_block(self, height: int) -> list[SmartContractEvent]:
        client = self._require_client()
        data = await client.get_smart_contract_event_by_block(self._next_qid(), height)
        return decoders.get_smart_contract_events(data)

    async def get_merkle_proof(self, block_height: int, root_height: int) -> MerkleProof:
        client = self._require_client()
        data = await client.get_merkle_proof(self._next_qid(), block_height, root_height)
        return decoders.get_merkle_proof(data)

    async def get_cross_states_proof(self, height: int, key: str) -> CrossStatesProof:
        client = self._require_client()
        data = await client.get_cross_states_proof(self._next_qid(), height, key)
        return decoders.get_cross_states_proof(data)

    async def get_header_by_height(self, height: int) -> Header:
        client = self._require_client()
        data = await client.get_header_by_height(self._next_qid(), height)
        return decoders.get_header(data)

    async def get_state_merkle_root(self, height: int) -> str:
        client = self._require_client()
        data = await client.get_state_merkle_root(self._next_qid(), height)
        return decoders.get_string(data)

    async def get_mem_pool_tx_state(self, tx_hash: str) -> MemPoolTxState:
        client = self._require_client()
        data = await client.get_mem_pool_tx_state(self._next_qid(), tx_hash)
        return decoders.get_mem_pool_tx_state(data)

    async def get_mem_pool_tx_count(self) -> MemPoolTxCount:
        client = self._require_client()
        data = await client.get_mem_pool_tx_count(self._next_qid())
        return decoders.get_mem_pool_tx_count(data)

    async def get_version(self) -> str:
        client = self._require_client()
        data = await client.get_version(self._next_qid())
        return decoders.get_string(data)

    async def get_network_id(self) -> int:
        client = self._require_client()
        data = await client.get_network_id(self._next_qid())
        return decoders.get_uint32(data)

    async def send_transaction(self, tx: bytes | str) -> str:
        """Submit a serialized transaction and return its hash."""
        client = self._require_client()
        data = await client.send_raw_transaction(self._next_qid(), _tx_bytes(tx), False)
        return decoders.get_uint256(data)

    async def pre_exec_transaction(self, tx: bytes | str) -> PreExecResult:
        """Simulate a serialized transaction without committing it."""
        client = self._require_client()
        data = await client.send_raw_transaction(self._next_qid(), _tx_bytes(tx), True)
        return decoders.get_pre_exec_result(data)

    async def wait_for_generate_block(
        self, timeout: float, block_count: int = DEFAULT_WAIT_BLOCK_COUNT
    ) -> bool:
        """
        Wait until the chain has grown by ``block_count`` blocks.

        The height is polled once per second for ``timeout`` seconds (at
        least one poll). A failed poll counts as a missed tick.

        Args:
            timeout: Polling window in seconds
            block_count: Blocks to wait for; values below 1 mean the default (2)

        Returns:
            True once the height has advanced far enough

        Raises:
            ClientError: If the starting height cannot be read
            WaitTimeoutError: If the window elapses first
        """
        count = block_count if block_count > 0 else DEFAULT_WAIT_BLOCK_COUNT
        start_height = await self.get_current_block_height()
        secs = max(int(timeout), 1)

        for tick in range(secs):
            await asyncio.sleep(BLOCK_POLL_INTERVAL)
            try:
                height = await self.get_current_block_height()
            except ClientError as e:
                logger.warning(f"Block height poll failed ({tick + 1}/{secs}): {e}")
                continue

            if height - start_height >= count:
                logger.debug(f"Chain advanced from {start_height} to {height}")
                return True

        raise WaitTimeoutError(f"timeout after {secs} (s)")

    async def close(self) -> None:
        """
        Close every held transport.

        A transport that fails to close does not keep the others open; the
        first failure is re-raised once all of them have been tried.
        """
        closed: set[int] = set()
        first_error: Exception | None = None
        for client in (self.default_client, self.rpc, self.rest, self.ws):
            if client is None or id(client) in closed:
                continue
            closed.add(id(client))
            try:
                await client.close()
            except Exception as e:
                logger.error(f"Failed to close {type(client).__name__}: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    async def __aenter__(self) -> ClientManager:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
