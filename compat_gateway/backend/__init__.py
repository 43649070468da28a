"""Inference backend client package.

WHY: The gateway forwards every request to a remote model-inference
service. This package encapsulates all communication with it behind one
async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. BackendClient exposes
run() for full responses and open_stream() for streamed event bodies.

RULES:
- All backend HTTP calls go through BackendClient (no direct httpx elsewhere)
- Authentication is via Bearer token from config
"""

from compat_gateway.backend.client import BackendClient
from compat_gateway.errors import BackendError

__all__ = ["BackendClient", "BackendError"]
