"""
JSON-RPC transport to a Poly node.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from polyclient.errors import DecodeError, NodeError, TransportError
from polyclient.transports.base import TransportClient, encode_result

DEFAULT_RPC_ADDRESS = "http://127.0.0.1:20336"

# Timeout for RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Ask the node for JSON instead of serialized hex where it offers both
VERBOSE = 1


class RpcClient(TransportClient):
    """
    Transport using the node's JSON-RPC 2.0 endpoint.

    The request ``id`` is the correlation id supplied by the caller.
    """

    def __init__(self, address: str = DEFAULT_RPC_ADDRESS, timeout: float = DEFAULT_RPC_TIMEOUT):
        self.address = address.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout)

    def set_address(self, address: str) -> None:
        self.address = address.rstrip("/")

    async def _rpc_call(self, qid: str, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to the node.

        Args:
            qid: Correlation id, sent as the JSON-RPC ``id``
            method: RPC method name
            params: Method parameters

        Returns:
            The ``result`` field of the reply

        Raises:
            NodeError: On RPC errors reported by the node
            TransportError: On connection, timeout or malformed reply
        """
        payload = {
            "jsonrpc": "2.0",
            "id": qid,
            "method": method,
            "params": params or [],
        }
        logger.debug(f"RPC request {qid}: {method} {payload['params']}")

        try:
            response = await self.client.post(self.address, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise TransportError(f"{method}: timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise TransportError(f"{method}: {e}") from e
        except ValueError as e:
            logger.error(f"RPC reply is not JSON: {method} - {e}")
            raise TransportError(f"{method}: reply is not JSON") from e

        if not isinstance(data, dict):
            raise TransportError(f"{method}: malformed RPC reply: {data!r}")

        # The node reports errors as an integer code plus "desc"; standard
        # JSON-RPC servers use an {"code", "message"} object instead.
        error_info = data.get("error")
        if isinstance(error_info, dict):
            raise NodeError(
                error_info.get("code", "unknown"),
                error_info.get("message", str(error_info)),
                action=method,
            )
        if error_info:
            raise NodeError(error_info, str(data.get("desc", "")), action=method)

        return data.get("result")

    async def _request(self, qid: str, method: str, params: list | None = None) -> bytes:
        return encode_result(await self._rpc_call(qid, method, params))

    async def get_current_block_height(self, qid: str) -> bytes:
        # getblockcount counts the genesis block
        count = await self._rpc_call(qid, "getblockcount")
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise DecodeError(f"getblockcount: unexpected block count {count!r}")
        return encode_result(count - 1)

    async def get_current_block_hash(self, qid: str) -> bytes:
        return await self._request(qid, "getbestblockhash")

    async def get_block_by_height(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getblock", [height, VERBOSE])

    async def get_block_by_hash(self, qid: str, block_hash: str) -> bytes:
        return await self._request(qid, "getblock", [block_hash, VERBOSE])

    async def get_block_info_by_height(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getblockinfo", [height])

    async def get_raw_transaction(self, qid: str, tx_hash: str) -> bytes:
        return await self._request(qid, "getrawtransaction", [tx_hash, VERBOSE])

    async def get_block_hash(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getblockhash", [height])

    async def get_block_height_by_tx_hash(self, qid: str, tx_hash: str) -> bytes:
        return await self._request(qid, "getblockheightbytxhash", [tx_hash])

    async def get_block_tx_hashes_by_height(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getblocktxsbyheight", [height])

    async def get_storage(self, qid: str, contract_address: str, key: bytes) -> bytes:
        return await self._request(qid, "getstorage", [contract_address, key.hex()])

    async def get_smart_contract_event(self, qid: str, tx_hash: str) -> bytes:
        return await self._request(qid, "getsmartcodeevent", [tx_hash])

    async def get_smart_contract_event_by_block(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getsmartcodeevent", [height])

    async def get_merkle_proof(self, qid: str, block_height: int, root_height: int) -> bytes:
        return await self._request(qid, "getmerkleproof", [block_height, root_height])

    async def get_cross_states_proof(self, qid: str, height: int, key: str) -> bytes:
        return await self._request(qid, "getcrossstatesproof", [height, key])

    async def get_header_by_height(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getheaderbyheight", [height, VERBOSE])

    async def get_state_merkle_root(self, qid: str, height: int) -> bytes:
        return await self._request(qid, "getstatemerkleroot", [height])

    async def get_mem_pool_tx_state(self, qid: str, tx_hash: str) -> bytes:
        return await self._request(qid, "getmempooltxstate", [tx_hash])

    async def get_mem_pool_tx_count(self, qid: str) -> bytes:
        return await self._request(qid, "getmempooltxcount")

    async def get_version(self, qid: str) -> bytes:
        return await self._request(qid, "getversion")

    async def get_network_id(self, qid: str) -> bytes:
        return await self._request(qid, "getnetworkid")

    async def send_raw_transaction(self, qid: str, tx: bytes, is_pre_exec: bool) -> bytes:
        params: list[Any] = [tx.hex()]
        if is_pre_exec:
            params.append(1)
        return await self._request(qid, "sendrawtransaction", params)

    async def close(self) -> None:
        await self.client.aclose()
