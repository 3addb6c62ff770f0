"""
Command-line front end.

    radar-ip -m aa:bb:cc:dd:ee:ff -r 192.168.1.0/24 -k ~/.ssh/id_ed25519
    radar-ip --profile AI3 -m aa:bb:cc:dd:ee:ff

Exit codes: 0 found, 1 not found, 2 bad configuration or range,
3 scan deadline exceeded.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import build_request, load_settings
from .exceptions import ConfigError, InvalidRange, ScanTimeout
from .models import DEFAULT_PORT
from .profiles import DeviceProfile
from .scanner import Scanner, scan_with_deadline

logger = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG = 2
EXIT_TIMEOUT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="radar-ip",
        description="Scan an IP range via SSH and find which host owns a given MAC address",
    )
    parser.add_argument(
        "-m", "--target-mac",
        required=True,
        help="Target MAC address to search for (e.g. aa:bb:cc:dd:ee:ff)",
    )
    parser.add_argument(
        "-r", "--range",
        dest="ip_range",
        help="IP range in CIDR notation (e.g. 192.168.1.0/24); defaults to the profile's range",
    )
    parser.add_argument(
        "-k", "--key",
        dest="key_path",
        type=Path,
        help="Path to private key file for SSH authentication",
    )
    parser.add_argument(
        "-p", "--password",
        help="Password for SSH authentication (also used as key passphrase when --key is set)",
    )
    parser.add_argument(
        "-u", "--user",
        help="SSH username (default: root, or the profile's user)",
    )
    parser.add_argument(
        "--profile",
        type=str.upper,
        choices=[p.value for p in DeviceProfile],
        help="Device profile supplying default user, range and key variable",
    )
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="SSH port")
    parser.add_argument(
        "--timeout-sec",
        type=float,
        default=5,
        help="Per-host SSH timeout in seconds",
    )
    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=None,
        help="Maximum simultaneous SSH connections (default 50)",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Give up on the whole scan after this many seconds",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: RADAR_LOG_LEVEL or INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _emit(args, payload: dict, text: str, stream=None):
    if args.json:
        print(json.dumps(payload))
    else:
        print(text, file=stream or sys.stdout)


async def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run one scan, print the result. Returns the exit code."""
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
    except ConfigError as e:
        _emit(args, e.to_dict(), f"Error: {e}", sys.stderr)
        return EXIT_CONFIG

    logging.basicConfig(
        level=getattr(logging, args.log_level or settings.radar_log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        request = build_request(
            args.target_mac,
            settings,
            profile=DeviceProfile(args.profile) if args.profile else None,
            ip_range=args.ip_range,
            username=args.user,
            key_path=args.key_path,
            password=args.password,
            port=args.port,
            timeout=args.timeout_sec,
            max_concurrent=args.max_concurrent,
        )
    except ConfigError as e:
        _emit(args, e.to_dict(), f"Error: {e}", sys.stderr)
        return EXIT_CONFIG

    logger.debug(f"Probe config: {request.to_probe_config().to_dict()}")
    scanner = Scanner(
        request.to_probe_config(),
        request.target_mac,
        max_concurrent=request.max_concurrent,
    )

    try:
        result = await scan_with_deadline(scanner, request.ip_range, args.deadline)
    except InvalidRange as e:
        _emit(args, e.to_dict(), f"Error: {e}", sys.stderr)
        return EXIT_CONFIG
    except ScanTimeout as e:
        _emit(args, e.to_dict(), f"Error: {e}", sys.stderr)
        return EXIT_TIMEOUT

    if result.is_found:
        _emit(args, result.to_dict(), result.address)
        return EXIT_FOUND

    _emit(args, result.to_dict(), result.describe(), sys.stderr)
    return EXIT_NOT_FOUND


def run():
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
