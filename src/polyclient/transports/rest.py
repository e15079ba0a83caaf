"""
REST transport to a Poly node.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from polyclient.decoders import get_uint32
from polyclient.errors import TransportError
from polyclient.transports.base import API_VERSION, TransportClient, parse_node_response

DEFAULT_REST_ADDRESS = "http://127.0.0.1:20334"

DEFAULT_REST_TIMEOUT = 30.0


class RestClient(TransportClient):
    """
    Transport using the node's ``/api/v1`` REST endpoints.

    REST has no request id; the correlation id only shows up in the logs.
    """

    def __init__(self, address: str = DEFAULT_REST_ADDRESS, timeout: float = DEFAULT_REST_TIMEOUT):
        self.address = address.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout)

    def set_address(self, address: str) -> None:
        self.address = address.rstrip("/")

    async def _api_call(
        self,
        qid: str,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> bytes:
        """Make an API call to the node and unwrap the reply envelope."""
        if method not in ("GET", "POST"):
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = f"{self.address}/{endpoint}"
        logger.debug(f"REST request {qid}: {method} {endpoint}")

        try:
            if method == "GET":
                response = await self.client.get(url, params=params)
            else:
                response = await self.client.post(url, params=params, json=data)

            response.raise_for_status()
            body = response.json()

        except httpx.TimeoutException as e:
            logger.error(f"REST call timed out: {endpoint} - {e}")
            raise TransportError(f"{endpoint}: timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"REST call failed: {endpoint} - {e}")
            raise TransportError(f"{endpoint}: {e}") from e
        except ValueError as e:
            logger.error(f"REST reply is not JSON: {endpoint} - {e}")
            raise TransportError(f"{endpoint}: reply is not JSON") from e

        return parse_node_response(body, endpoint)

    async def get_current_block_height(self, qid: str) -> bytes:
        return await self._api_call(qid, "GET", "api/v1/block/height")

    async def get_current_block_hash(self, qid: str) -> bytes:
        # No dedicated endpoint: resolve the tip height first
        height = get_uint32(await self.get_current_block_height(qid))
        return await self.get_block_hash(qid, height)

    async def get_block_by_height(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/block/details/height/{height}")

    async def get_block_by_hash(self, qid: str, block_hash: str) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/block/details/hash/{block_hash}")

    async def get_block_info_by_height(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/block/info/height/{height}")

    async def get_raw_transaction(self, qid: str, tx_hash: str) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/transaction/{tx_hash}")

    async def get_block_hash(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/block/hash/{height}")

    async def get_block_height_by_tx_hash(self, qid: str, tx_hash: str) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/block/height/txhash/{tx_hash}")

    async def get_block_tx_hashes_by_height(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/block/transactions/height/{height}")

    async def get_storage(self, qid: str, contract_address: str, key: bytes) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/storage/{contract_address}/{key.hex()}")

    async def get_smart_contract_event(self, qid: str, tx_hash: str) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/smartcode/event/txhash/{tx_hash}")

    async def get_smart_contract_event_by_block(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/smartcode/event/transactions/{height}")

    async def get_merkle_proof(self, qid: str, block_height: int, root_height: int) -> bytes:
        return await self._api_call(
            qid, "GET", f"api/v1/merkleproof/{block_height}/{root_height}"
        )

    async def get_cross_states_proof(self, qid: str, height: int, key: str) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/crossstatesproof/{height}/{key}")

    async def get_header_by_height(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/header/height/{height}")

    async def get_state_merkle_root(self, qid: str, height: int) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/statemerkleroot/{height}")

    async def get_mem_pool_tx_state(self, qid: str, tx_hash: str) -> bytes:
        return await self._api_call(qid, "GET", f"api/v1/mempool/txstate/{tx_hash}")

    async def get_mem_pool_tx_count(self, qid: str) -> bytes:
        return await self._api_call(qid, "GET", "api/v1/mempool/txcount")

    async def get_version(self, qid: str) -> bytes:
        return await self._api_call(qid, "GET", "api/v1/version")

    async def get_network_id(self, qid: str) -> bytes:
        return await self._api_call(qid, "GET", "api/v1/networkid")

    async def send_raw_transaction(self, qid: str, tx: bytes, is_pre_exec: bool) -> bytes:
        params = {"preExec": "1"} if is_pre_exec else None
        data = {"Action": "sendrawtransaction", "Version": API_VERSION, "Data": tx.hex()}
        return await self._api_call(qid, "POST", "api/v1/transaction", params=params, data=data)

    async def close(self) -> None:
        await self.client.aclose()
