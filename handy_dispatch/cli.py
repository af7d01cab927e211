"""Command-line interface for handy-dispatch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import HandyDispatchApp
from .config import EDITABLE_FIELDS, ConfigError, HandyConfig, load_config, update_setting
from .core import DispatchError
from .logging import configure_logging

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="handy-dispatch",
        description="Forward commands embedded in chat responses to a motion controller",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Listen for message events over HTTP")

    dispatch_parser = subparsers.add_parser(
        "dispatch", help="Extract and run the command embedded in TEXT"
    )
    dispatch_parser.add_argument("text", help="Generated text; use '-' to read stdin")

    motor_parser = subparsers.add_parser(
        "motor", help="Control the motor manually using speed and length"
    )
    motor_parser.add_argument("speed", type=float, help="Speed of the motor")
    motor_parser.add_argument("length", type=float, help="Length to move")
    motor_parser.add_argument(
        "--time", type=float, default=None, help="Run duration in seconds"
    )

    speed_parser = subparsers.add_parser("speed", help="Set device velocity (0-100)")
    speed_parser.add_argument("percent", type=float)

    stroke_parser = subparsers.add_parser(
        "stroke", help="Set device stroke length (0-100)"
    )
    stroke_parser.add_argument("percent", type=float)

    subparsers.add_parser("status", help="Report whether the device is connected")
    subparsers.add_parser("stop", help="Stop the device")

    set_parser = subparsers.add_parser("set", help="Change and persist a setting")
    set_parser.add_argument("field", choices=sorted(EDITABLE_FIELDS))
    set_parser.add_argument("value")

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


async def _run_dispatch(config: HandyConfig, text: str) -> int:
    async with HandyDispatchApp(config) as app:
        outcome = await app.dispatch_text(text)
        status = outcome.status.value
        print(status if outcome.error is None else f"{status}: {outcome.error}")
        if outcome.handle is not None:
            await outcome.handle.wait()
        return 0 if outcome.ok or outcome.error is None else 1


async def _run_motor(config: HandyConfig, speed: float, length: float, time: Optional[float]) -> int:
    async with HandyDispatchApp(config) as app:
        message = await app.motor_command(speed, length, time)
        print(message)
        handle = app.dispatcher.active_run
        if handle is not None:
            await handle.wait()
        return 0 if message.startswith("Motor command sent") else 1


async def _run_device(config: HandyConfig, action: str, value: Optional[float] = None) -> int:
    async with HandyDispatchApp(config) as app:
        if action == "status":
            connected = await app.check_connected()
            print("connected" if connected else "not connected")
            return 0 if connected else 1
        if action == "speed":
            await app.set_speed(value)
        elif action == "stroke":
            await app.set_stroke_length(value)
        elif action == "stop":
            await app.stop()
        print("ok")
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.command == "serve":
        HandyDispatchApp.start(config)
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    if args.command == "set":
        try:
            update_setting(config, args.field, args.value)
        except ConfigError as exc:
            LOGGER.error("%s", exc)
            return 1
        print(f"{args.field} updated")
        return 0

    configure_logging(
        config.logging.level,
        log_path=config.logging.path,
        log_network=config.logging.log_network,
    )

    try:
        if args.command == "dispatch":
            text = sys.stdin.read() if args.text == "-" else args.text
            return asyncio.run(_run_dispatch(config, text))
        if args.command == "motor":
            return asyncio.run(_run_motor(config, args.speed, args.length, args.time))
        if args.command in ("speed", "stroke"):
            return asyncio.run(_run_device(config, args.command, args.percent))
        if args.command in ("status", "stop"):
            return asyncio.run(_run_device(config, args.command))
    except DispatchError as exc:
        LOGGER.error("%s", exc)
        return 1

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
