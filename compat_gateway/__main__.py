"""Package entry point for ``python -m compat_gateway``.

WHY: Operators start the gateway with ``python -m compat_gateway`` without
needing a separate launcher script.

HOW: Delegates to the server's run_api(), which configures logging and
starts uvicorn.
"""

from compat_gateway.server.app import run_api

if __name__ == "__main__":
    run_api()
