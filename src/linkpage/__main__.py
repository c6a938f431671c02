"""Run the LinkPage API server with ``python -m linkpage``."""

import uvicorn

from .config import get_config


def main():
    """Start uvicorn with the configured host, port and reload settings."""
    config = get_config()
    uvicorn.run(
        "linkpage.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.auto_reload,
        workers=None if config.server.auto_reload else config.server.workers,
        log_level="debug" if config.server.debug else "info",
    )


if __name__ == "__main__":
    main()
