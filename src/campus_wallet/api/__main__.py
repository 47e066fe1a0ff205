"""
campus_wallet.api.__main__

Entrypoint: `python -m campus_wallet.api`.

Responsibilities:
- Build the portal app from environment settings (`CW_*`).
- Serve it with uvicorn, leaving log rendering to structlog.
"""

from __future__ import annotations

import uvicorn

from campus_wallet.api.app import create_app
from campus_wallet.observability.logging import get_logger
from campus_wallet.settings import get_settings

log = get_logger(__name__)


def main() -> None:
    settings = get_settings()
    portal = create_app(settings=settings)
    log.info(
        "portal_starting",
        env=settings.env,
        backend=settings.backend_base_url,
        storage=settings.storage_url.split("://", 1)[0],
    )

    # uvicorn's own dictConfig would replace the structlog handlers.
    uvicorn.run(
        portal,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
