"""Main entry point - runs the MCP server over stdio."""

import logging
import sys

from dotenv import load_dotenv

from fibrous_mcp.config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    load_dotenv()
    settings = get_settings()

    # stdout carries the protocol; logs go to stderr
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    from fibrous_mcp.server import mcp

    logger.info("Starting Fibrous MCP server...")
    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")


if __name__ == "__main__":
    main()
