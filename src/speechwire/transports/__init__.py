"""
Transport implementations
"""

from speechwire.transports.base import FrameTransport, Inbound, InboundKind
from speechwire.transports.websocket import WebSocketTransport, build_auth_headers

__all__ = [
    "FrameTransport",
    "Inbound",
    "InboundKind",
    "WebSocketTransport",
    "build_auth_headers",
]
