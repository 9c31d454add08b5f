"""Entry point for gammapplet."""

from __future__ import annotations

import argparse
import copy
import logging
import sys
import tkinter as tk
import tomllib
from pathlib import Path

from gammapplet import __version__
from gammapplet.applet import AppletWindow
from gammapplet.config import Config, _get_state_dir, load_config
from gammapplet.input_adapter import InputAdapter
from gammapplet.log import setup_logger
from gammapplet.relay import GammaRelayClient, GammaRelayError
from gammapplet.sync import SyncEngine, SyncWorker

logger = logging.getLogger(__name__)


def _temperature(value: str) -> int:
    kelvin = int(value)
    if not 1000 <= kelvin <= 10000:
        raise argparse.ArgumentTypeError("must be within 1000 - 10000")
    return kelvin


def _brightness(value: str) -> float:
    brightness = float(value)
    if not 0.0 <= brightness <= 1.0:
        raise argparse.ArgumentTypeError("must be within 0.0 - 1.0")
    return brightness


def _gamma(value: str) -> float:
    gamma = float(value)
    if not 0.5 <= gamma <= 1.5:
        raise argparse.ArgumentTypeError("must be within 0.5 - 1.5")
    return gamma


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Every option defaults to None/False so that only flags actually given
    override the config file.
    """
    parser = argparse.ArgumentParser(
        prog="gammapplet",
        description="Popup sliders for wl-gammarelay (invert, temperature, brightness, gamma)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        metavar="FILE",
        type=Path,
        help="Config file to use instead of ~/.config/gammapplet/config.toml",
    )

    # Visibility
    parser.add_argument("-i", "--hide-invert", action="store_true", help="Hide the invert switch")
    parser.add_argument("-t", "--hide-temperature", action="store_true", help="Hide the temperature slider")
    parser.add_argument("-b", "--hide-brightness", action="store_true", help="Hide the brightness slider")
    parser.add_argument("-g", "--hide-gamma", action="store_true", help="Hide the gamma slider")
    parser.add_argument("-c", "--hide-caret", action="store_true", help="Hide the speech-bubble caret at the bottom")
    parser.add_argument("-l", "--hide-labels", action="store_true", help="Hide control labels")
    parser.add_argument("-v", "--hide-value", action="store_true", help="Hide the value text")
    parser.add_argument("-f", "--never-fade", action="store_true", help="Never fade out the window")

    # Geometry
    parser.add_argument("-p", "--outer-padding", type=int, metavar="PX", help="Window outer padding")
    parser.add_argument("-x", "--window-width", type=int, metavar="PX", help="Window width")
    parser.add_argument("-y", "--window-height", type=int, metavar="PX", help="Window height")

    # Reset targets
    parser.add_argument(
        "-T", "--default-temperature",
        type=_temperature,
        metavar="K",
        help="Reset value for temperature (1000 - 10000)",
    )
    parser.add_argument(
        "-B", "--default-brightness",
        type=_brightness,
        metavar="B",
        help="Reset value for brightness (0.0 - 1.0)",
    )
    parser.add_argument(
        "-G", "--default-gamma",
        type=_gamma,
        metavar="G",
        help="Reset value for gamma (0.5 - 1.5)",
    )

    # Sync
    parser.add_argument("--tick-ms", type=int, metavar="MS", help="Flush period in milliseconds")
    parser.add_argument(
        "--no-cross-invalidation",
        action="store_true",
        help="Only drop the flushed slider's pending input instead of all sliders'",
    )
    parser.add_argument("--debug", action="store_true", help="Log everything to stderr")
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command-line flags on top of a loaded config.

    Args:
        config: Configuration from load_config().
        args: Parsed command line.

    Returns:
        A new configuration dictionary; ``config`` is not modified.
    """
    config = copy.deepcopy(config)
    window = config["window"]

    for name in ("invert", "temperature", "brightness", "gamma", "caret", "labels", "value"):
        if getattr(args, f"hide_{name}"):
            window[f"show_{name}"] = False
    if args.never_fade:
        window["never_fade"] = True

    if args.outer_padding is not None:
        window["outer_padding"] = args.outer_padding
    if args.window_width is not None:
        window["width"] = args.window_width
    if args.window_height is not None:
        window["height"] = args.window_height

    for name in ("temperature", "brightness", "gamma"):
        value = getattr(args, f"default_{name}")
        if value is not None:
            config["defaults"][name] = value

    if args.tick_ms is not None:
        config["sync"]["tick_ms"] = max(1, args.tick_ms)
    if args.no_cross_invalidation:
        config["sync"]["cross_invalidation"] = False
    return config


def run_applet(config: Config) -> int:
    """Connect to the relay, show the window and sync until it closes.

    Returns:
        Exit code: 0 when the window closed normally, 1 on relay or display error.
    """
    relay_config = config["relay"]
    try:
        relay = GammaRelayClient.open(
            bus=relay_config["bus"],
            service=relay_config["service"],
            path=relay_config["path"],
            interface=relay_config["interface"],
            timeout=relay_config["timeout_s"] or None,
        )
    except GammaRelayError as e:
        logger.critical("main: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        engine = SyncEngine.from_relay(
            relay,
            config["defaults"],
            cross_invalidation=config["sync"]["cross_invalidation"],
        )
    except GammaRelayError as e:
        logger.critical("main: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        print("Is wl-gammarelay-rs running?", file=sys.stderr)
        relay.close()
        return 1

    worker = SyncWorker(engine, tick_ms=config["sync"]["tick_ms"])
    window = AppletWindow(config["window"], InputAdapter(worker.post), engine.startup_snapshot)
    worker.on_fatal = window.fail
    engine.on_display = window.show_value
    engine.on_value = window.set_slider

    worker.start()
    try:
        window.run()
    except tk.TclError as e:
        logger.critical("main: cannot open window: %s", e)
        print(f"Error: cannot open window: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("main: interrupted")
    finally:
        worker.stop()
        relay.close()

    if worker.error is not None:
        print(f"Error: {worker.error}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for gammapplet."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error: cannot load config {args.config}: {e}", file=sys.stderr)
        sys.exit(2)
    config = apply_overrides(config, args)

    log_file = Path(config["logging"]["file"]) if config["logging"]["file"] else _get_state_dir() / "gammapplet.log"
    setup_logger(config["logging"]["level"], log_file, debug=args.debug)
    logger.info("main: starting gammapplet %s", __version__)

    sys.exit(run_applet(config))


if __name__ == "__main__":
    main()
