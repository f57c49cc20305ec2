"""Command line entry point for running the API server."""
import logging

import uvicorn

from config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Load settings, configure logging and serve the API."""
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings['log_level']),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    from api import create_app

    origins = [origin.strip() for origin in settings['allow_origin'].split(',') if origin.strip()]
    app = create_app(allow_origins=origins)

    logger.info(f"Starting API on {settings['host']}:{settings['port']}")
    uvicorn.run(
        app,
        host=settings['host'],
        port=settings['port'],
        log_level=settings['log_level'].lower()
    )


if __name__ == "__main__":
    main()
