"""
Transport implementations.

Available transports:
- RpcClient: JSON-RPC 2.0 over HTTP
- RestClient: the node's /api/v1 REST endpoints
- WSClient: JSON actions over a single WebSocket connection
"""

from polyclient.transports.base import TransportClient
from polyclient.transports.rest import RestClient
from polyclient.transports.rpc import RpcClient
from polyclient.transports.websocket import WSClient

__all__ = [
    "RestClient",
    "RpcClient",
    "TransportClient",
    "WSClient",
]
