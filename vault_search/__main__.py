"""Serve the search API.

Usage:
    python -m vault_search
"""

import uvicorn

from vault_search.config import get_settings


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the FastAPI app with uvicorn on the configured address."""
    settings = get_settings()
    uvicorn.run(
        "vault_search.api.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    run_server()
