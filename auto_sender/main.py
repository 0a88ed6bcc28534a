"""
Main entry point: runs the Auto-Sender API server with its scheduler.
"""

import uvicorn

from auto_sender.core.config import settings
from auto_sender.core.logging import setup_logging
from auto_sender.api.main import create_app


def main() -> None:
    setup_logging()
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
