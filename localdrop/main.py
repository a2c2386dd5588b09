"""
LocalDrop — command-line entry point.

Shares the given files with a browser on the same network and keeps
serving until interrupted.

Usage:
    localdrop [--port 8080] [--storage-dir DIR] [--no-discovery] [FILE ...]
"""

import argparse
import logging
import sys
import time

from localdrop.config import API_HOST, API_PORT, DEFAULT_STORAGE_DIR, LOG_FORMAT, LOG_LEVEL
from localdrop.context import SessionContext
from localdrop.discovery.service import BeaconAdvertiser
from localdrop.errors import BindError, LocalDropError
from localdrop.server import ServerLifecycle

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="localdrop",
        description="Share files with a browser on your local network",
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="files to share")
    parser.add_argument("--host", default=API_HOST, help=f"bind address (default: {API_HOST})")
    parser.add_argument("-p", "--port", type=int, default=API_PORT, help=f"port (default: {API_PORT})")
    parser.add_argument(
        "--storage-dir",
        default=DEFAULT_STORAGE_DIR,
        help="where received files are saved",
    )
    parser.add_argument(
        "--no-discovery",
        action="store_true",
        help="do not advertise the service on the LAN",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    ctx = SessionContext(
        storage_dir=args.storage_dir,
        port=args.port,
        advertiser=None if args.no_discovery else BeaconAdvertiser(),
    )

    for path in args.files:
        try:
            ctx.manager.share_file(path)
        except LocalDropError as e:
            logger.error(f"Skipping {path}: {e.message}")

    server = ServerLifecycle(ctx, host=args.host, log_level=args.log_level)
    try:
        server.start()
    except BindError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        ctx.close()
        return 1

    # The address is resolved in the background; give it a moment
    for _ in range(20):
        if ctx.ip_url:
            break
        time.sleep(0.1)

    print("LocalDrop is running. Open one of these on your PC:")
    print(f"  {ctx.friendly_url}")
    print(f"  {ctx.ip_url or 'http://<this-device-ip>:' + str(ctx.address.port)}")
    print("Press Ctrl+C to stop.")

    try:
        while server.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()
        ctx.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
