"""CLI entry point for bnsgateway."""

import logging
import os
import sys

from .config import WORKERS_ENV, get_config


def setup_logging(log_level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main() -> None:
    """Main entry point."""
    try:
        config = get_config()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.normalized_log_level)

    # Must be set before anything imports the metrics module
    os.environ[WORKERS_ENV] = str(config.workers)

    from .server import run_server
    from .store import RecordStoreError

    try:
        run_server(config)
    except RecordStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception:
        logging.getLogger(__name__).exception("Server error")
        sys.exit(1)
