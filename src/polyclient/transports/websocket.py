"""
WebSocket transport to a Poly node.

All requests share one connection. Each request carries its correlation id
in ``Id``; a background reader task hands every reply to the request that is
waiting for the same ``Id``. When managers sharing one client hand out the
same correlation id concurrently, the later request gets a suffixed ``Id``.
Messages nobody waits for (subscription pushes, late replies) are dropped.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from typing import Any

import websockets
from loguru import logger
from websockets.asyncio.client import ClientConnection

from polyclient.decoders import get_uint32
from polyclient.errors import TransportError
from polyclient.transports.base import API_VERSION, TransportClient, parse_node_response

DEFAULT_WS_ADDRESS = "ws://127.0.0.1:20335"

# Time to wait for the reply to one request (seconds)
DEFAULT_WS_TIMEOUT = 30.0

# "0" asks for JSON, "1" for serialized hex
RAW_JSON = "0"


class WSClient(TransportClient):
    def __init__(self, address: str = DEFAULT_WS_ADDRESS, timeout: float = DEFAULT_WS_TIMEOUT):
        self.address = address
        self.timeout = timeout
        self._ws: ClientConnection | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._id_suffix = itertools.count(1)
        self._connect_lock = asyncio.Lock()

    def set_address(self, address: str) -> None:
        self.address = address

    def is_connected(self) -> bool:
        return (
            self._ws is not None
            and self._reader_task is not None
            and not self._reader_task.done()
        )

    async def connect(self) -> None:
        """Open the connection unless it is already up."""
        async with self._connect_lock:
            if self.is_connected():
                return

            try:
                self._ws = await websockets.connect(self.address, open_timeout=self.timeout)
            except (OSError, TimeoutError, websockets.exceptions.WebSocketException) as e:
                logger.error(f"WebSocket connect failed: {self.address} - {e}")
                raise TransportError(f"connect {self.address}: {e}") from e

            self._reader_task = asyncio.create_task(self._read_loop(self._ws))
            logger.info(f"Connected to {self.address}")

    async def _read_loop(self, ws: ClientConnection) -> None:
        try:
            async for message in ws:
                self._dispatch(message)
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
        finally:
            self._fail_pending("websocket connection closed")

    def _dispatch(self, message: str | bytes) -> None:
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring non-JSON WebSocket message: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring unexpected WebSocket message: {data!r}")
            return

        qid = str(data.get("Id", ""))
        future = self._pending.pop(qid, None)
        if future is None:
            logger.debug(f"Dropping unsolicited message: action={data.get('Action')} id={qid!r}")
            return
        if not future.done():
            future.set_result(data)

    def _fail_pending(self, reason: str) -> None:
        pending, self._pending = self._pending, {}
        for qid, future in pending.items():
            if not future.done():
                future.set_exception(TransportError(f"request {qid}: {reason}"))

    async def _send_ws_request(
        self, qid: str, action: str, params: dict[str, Any] | None = None
    ) -> bytes:
        await self.connect()
        assert self._ws is not None

        request_id = qid
        while request_id in self._pending:
            request_id = f"{qid}.{next(self._id_suffix)}"

        request = {"Action": action, "Id": request_id, "Version": API_VERSION, **(params or {})}
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        logger.debug(f"WebSocket request {request_id}: {action}")

        try:
            await self._ws.send(json.dumps(request))
            data = await asyncio.wait_for(future, self.timeout)
        except TimeoutError as e:
            logger.error(f"WebSocket request timed out: {action} (id {request_id})")
            raise TransportError(f"{action}: no reply within {self.timeout}s") from e
        except websockets.exceptions.ConnectionClosed as e:
            logger.error(f"WebSocket request failed: {action} - {e}")
            raise TransportError(f"{action}: {e}") from e
        finally:
            self._pending.pop(request_id, None)

        return parse_node_response(data, action)

    async def get_current_block_height(self, qid: str) -> bytes:
        return await self._send_ws_request(qid, "getblockheight")

    async def get_current_block_hash(self, qid: str) -> bytes:
        # No dedicated action: resolve the tip height first
        height = get_uint32(await self.get_current_block_height(qid))
        return await self.get_block_hash(qid, height)

    async def get_block_by_height(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(
            qid, "getblockbyheight", {"Height": height, "Raw": RAW_JSON}
        )

    async def get_block_by_hash(self, qid: str, block_hash: str) -> bytes:
        return await self._send_ws_request(
            qid, "getblockbyhash", {"Hash": block_hash, "Raw": RAW_JSON}
        )

    async def get_block_info_by_height(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(qid, "getblockinfobyheight", {"Height": height})

    async def get_raw_transaction(self, qid: str, tx_hash: str) -> bytes:
        return await self._send_ws_request(
            qid, "gettransaction", {"Hash": tx_hash, "Raw": RAW_JSON}
        )

    async def get_block_hash(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(qid, "getblockhash", {"Height": height})

    async def get_block_height_by_tx_hash(self, qid: str, tx_hash: str) -> bytes:
        return await self._send_ws_request(qid, "getblockheightbytxhash", {"Hash": tx_hash})

    async def get_block_tx_hashes_by_height(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(qid, "getblocktxsbyheight", {"Height": height})

    async def get_storage(self, qid: str, contract_address: str, key: bytes) -> bytes:
        return await self._send_ws_request(
            qid, "getstorage", {"Hash": contract_address, "Key": key.hex()}
        )

    async def get_smart_contract_event(self, qid: str, tx_hash: str) -> bytes:
        return await self._send_ws_request(qid, "getsmartcodeeventbyhash", {"Hash": tx_hash})

    async def get_smart_contract_event_by_block(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(qid, "getsmartcodeeventbyheight", {"Height": height})

    async def get_merkle_proof(self, qid: str, block_height: int, root_height: int) -> bytes:
        return await self._send_ws_request(
            qid, "getmerkleproof", {"BlockHeight": block_height, "RootHeight": root_height}
        )

    async def get_cross_states_proof(self, qid: str, height: int, key: str) -> bytes:
        return await self._send_ws_request(
            qid, "getcrossstatesproof", {"Height": height, "Key": key}
        )

    async def get_header_by_height(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(
            qid, "getheaderbyheight", {"Height": height, "Raw": RAW_JSON}
        )

    async def get_state_merkle_root(self, qid: str, height: int) -> bytes:
        return await self._send_ws_request(qid, "getstatemerkleroot", {"Height": height})

    async def get_mem_pool_tx_state(self, qid: str, tx_hash: str) -> bytes:
        return await self._send_ws_request(qid, "getmempooltxstate", {"Hash": tx_hash})

    async def get_mem_pool_tx_count(self, qid: str) -> bytes:
        return await self._send_ws_request(qid, "getmempooltxcount")

    async def get_version(self, qid: str) -> bytes:
        return await self._send_ws_request(qid, "getversion")

    async def get_network_id(self, qid: str) -> bytes:
        return await self._send_ws_request(qid, "getnetworkid")

    async def send_raw_transaction(self, qid: str, tx: bytes, is_pre_exec: bool) -> bytes:
        return await self._send_ws_request(
            qid,
            "sendrawtransaction",
            {"Data": tx.hex(), "PreExec": "1" if is_pre_exec else "0"},
        )

    async def close(self) -> None:
        ws, reader_task = self._ws, self._reader_task
        self._ws = None
        self._reader_task = None
        if ws is not None:
            await ws.close()
        if reader_task is not None:
            await reader_task
