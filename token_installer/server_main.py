from __future__ import annotations

import logging

import uvicorn

from token_installer.logging import setup_logging
from token_installer.settings import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    base_url = f"http://localhost:{settings.port}"
    logger.info("token installer listening", extra={"url": base_url})
    logger.info(
        "install URL example",
        extra={"url": f"{base_url}/install?shop=YOUR-STORE.myshopify.com"},
    )

    uvicorn.run(
        "token_installer.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
