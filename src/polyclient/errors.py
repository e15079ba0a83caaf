"""
Exceptions raised by the client manager, the transports and the decoders.
"""

from __future__ import annotations


class ClientError(Exception):
    """Base class for every error raised by polyclient."""


class NoAvailableClientError(ClientError):
    """No transport client has been configured on the manager."""

    def __init__(self, message: str = "don't have available client of poly") -> None:
        super().__init__(message)


class TransportError(ClientError):
    """The underlying RPC/REST/WebSocket request failed."""


class NodeError(TransportError):
    """The node answered, but with a non-zero error code."""

    def __init__(self, code: int | str, desc: str, action: str = "") -> None:
        self.code = code
        self.desc = desc
        self.action = action
        prefix = f"{action}: " if action else ""
        super().__init__(f"{prefix}node error {code}: {desc}")


class DecodeError(ClientError):
    """A raw reply did not match the shape expected for the operation."""


class WaitTimeoutError(ClientError):
    """The block height did not advance far enough within the polling window."""
