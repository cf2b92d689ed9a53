"""
Run the CMS service with uvicorn.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import uvicorn

from vibeflare.config import get_settings

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="VibeFlare CMS server")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on code changes (development only)",
    )
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="Ignore configured backends and keep everything in memory",
    )
    args = parser.parse_args()

    if args.in_memory:
        # Reloader subprocesses only inherit the environment.
        os.environ["VIBEFLARE_USE_IN_MEMORY_BACKENDS"] = "true"
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    logger.info("Serving VibeFlare CMS on %s:%d", args.host, args.port)

    uvicorn.run(
        "vibeflare.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
