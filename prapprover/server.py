"""
Run the PR Approver API with uvicorn.
"""

import os

import structlog
import uvicorn
from dotenv import load_dotenv

from prapprover.utils.log import configure_logging

logger = structlog.get_logger(__name__)


def main() -> None:
    load_dotenv()
    configure_logging(os.getenv("PRA_LOG_LEVEL", "INFO"), os.getenv("PRA_LOG_FORMAT", "json"))

    # Configuration from environment
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8500"))
    debug = os.getenv("API_DEBUG", "false").lower() == "true"

    logger.info(
        "Starting PR Approver API server",
        host=host,
        port=port,
        debug=debug
    )

    uvicorn.run(
        "prapprover.app.main:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )


if __name__ == "__main__":
    main()
