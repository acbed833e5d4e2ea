"""
Secure WebSocket transport for the Volcengine speech endpoints.

Requires: websockets>=14.0
"""

import asyncio
import uuid
from typing import Dict, Mapping, Optional, Sequence

import websockets
from loguru import logger
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidStatus,
    WebSocketException,
)

from speechwire.config.schema import Credentials
from speechwire.protocol.errors import TransportError
from speechwire.transports.base import FrameTransport, Inbound


MAX_MESSAGE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_OPEN_TIMEOUT = 10.0


def build_auth_headers(credentials: Credentials, connect_id: Optional[str] = None) -> Dict[str, str]:
    """
    Build the four authentication headers of the WebSocket upgrade request.

    A fresh connection id is generated when none is given.
    """
    return {
        "X-Api-App-Key": credentials.app_id,
        "X-Api-Access-Key": credentials.access_token,
        "X-Api-Resource-Id": credentials.resource_id,
        "X-Api-Connect-Id": connect_id or str(uuid.uuid4()),
    }


class WebSocketTransport(FrameTransport):
    """
    FrameTransport over a `websockets` client connection.

    A close frame from the peer is reported once as Inbound CLOSE; after
    that receive() returns None.
    """

    def __init__(self, websocket, name: str = "WebSocketTransport"):
        self._websocket = websocket
        self._ended = False
        self._closed = False
        self.logger = logger.bind(component=name)

    @classmethod
    async def connect(
        cls,
        url: str,
        headers: Mapping[str, str],
        *,
        subprotocols: Optional[Sequence[str]] = None,
        max_size: int = MAX_MESSAGE_SIZE,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
    ) -> "WebSocketTransport":
        """
        Open a connection with custom upgrade headers.

        Raises:
            TransportError: Connect failure or handshake rejection
                (status_code carries the HTTP status when available)
        """
        logger.bind(component="WebSocketTransport").info(f"Connecting to {url}")
        try:
            websocket = await websockets.connect(
                url,
                additional_headers=dict(headers),
                subprotocols=list(subprotocols) if subprotocols else None,
                max_size=max_size,
                open_timeout=open_timeout,
            )
        except InvalidStatus as e:
            status = e.response.status_code
            raise TransportError(f"WebSocket connection failed: HTTP {status}", status_code=status) from e
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"WebSocket connection failed: {e}") from e

        transport = cls(websocket)
        response = getattr(websocket, "response", None)
        if response is not None:
            logid = response.headers.get("X-Tt-Logid", "unknown")
            transport.logger.info(f"Connected, logid: {logid}")
        return transport

    async def send(self, data: bytes) -> None:
        try:
            await self._websocket.send(data)
        except ConnectionClosed as e:
            raise TransportError(f"Failed to send frame: {e}") from e

    async def receive(self) -> Optional[Inbound]:
        if self._ended:
            return None
        try:
            data = await self._websocket.recv()
        except ConnectionClosed as e:
            self._ended = True
            if e.rcvd is not None:
                return Inbound.close()
            if isinstance(e, ConnectionClosedOK):
                return None
            raise TransportError(f"Failed to receive message: {e}") from e

        if isinstance(data, str):
            return Inbound.text(data)
        return Inbound.binary(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._websocket.close()
        except WebSocketException as e:
            self.logger.warning(f"Error closing connection: {e}")
