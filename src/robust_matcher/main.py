"""
Service entry point.

Provides main() for running the matcher as an HTTP service.
"""

from __future__ import annotations

import sys

import uvicorn

from robust_matcher.app import create_app
from robust_matcher.config import ConfigurationError, get_settings


def main() -> int:
    """
    Run the service with uvicorn.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        settings = get_settings()
    except ConfigurationError as e:
        # Logging isn't configured yet
        print(f"FATAL: Configuration error\n{e}", file=sys.stderr)
        return 1

    app = create_app()

    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level="warning",  # our JSON logger handles app logs
        access_log=False,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
