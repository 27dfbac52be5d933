"""Run the Pokefolio API with uvicorn using the application settings."""
import logging

import uvicorn

from pokefolio.core.config import settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Serve ``pokefolio.api.main:app``; reload follows API_RELOAD."""
    logger.info(f"Serving Pokefolio API on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "pokefolio.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
