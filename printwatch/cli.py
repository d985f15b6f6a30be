"""Command-line interface for printwatch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .adapters import COMMANDS, DeviceClient, build_ws_url
from .app import PrintWatchApp
from .config import WatchConfig, load_config, save_config
from .logging import configure_logging

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="printwatch", description="Live monitor for a networked 3D printer"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Connect to the device and render live state")

    send_parser = subparsers.add_parser("send", help="Send a single command and exit")
    send_parser.add_argument("action", choices=sorted(COMMANDS))
    send_parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for the device connection (default: 10)",
    )

    device_parser = subparsers.add_parser(
        "set-device", help="Store the device websocket URL in the configuration file"
    )
    device_parser.add_argument("url", help="e.g. ws://192.168.1.150:81/ or 192.168.1.150:81")

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


async def send_command(config: WatchConfig, action: str, *, timeout: float) -> bool:
    client = DeviceClient(
        config.device,
        reconnect_initial=config.resilience.reconnect_initial_seconds,
        reconnect_max=config.resilience.reconnect_max_seconds,
    )
    await client.connect()
    try:
        if not await client.wait_connected(timeout):
            LOGGER.error("Device at %s not reachable within %.1fs", client.url, timeout)
            return False
        client.send_command(action)
        await client.flush()
        return True
    finally:
        await client.close()


def set_device(config: WatchConfig, url: str) -> str:
    """Validate ``url``, store it under ``[device]`` and write the config file.

    Raises:
        ValueError: If the URL scheme is not ws, wss, http or https.
    """

    normalised = build_ws_url(url)
    config.raw.set("device", "url", normalised)
    config.device.url = normalised
    save_config(config)
    return normalised


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    if args.command == "set-device":
        try:
            url = set_device(config, args.url)
        except ValueError as exc:
            print(f"printwatch: {exc}", file=sys.stderr)
            return 1
        print(f"Device URL set to {url} in {config.path!s}")
        return 0

    try:
        build_ws_url(config.device.url)
    except ValueError as exc:
        print(f"printwatch: invalid [device] url: {exc}", file=sys.stderr)
        return 1

    if args.command == "start":
        PrintWatchApp.start(config)
        return 0

    if args.command == "send":
        configure_logging(config.logging.level, log_network=config.logging.log_network)
        sent = asyncio.run(send_command(config, args.action, timeout=args.timeout))
        return 0 if sent else 1

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
