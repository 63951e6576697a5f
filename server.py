#!/usr/bin/env python3
"""
HUD Caption – WebSocket Server
Accepts partial/final transcription fragments from a recognizer and streams
throttled, pre-wrapped text walls back for heads-up display rendering.
"""

import argparse
import logging
import sys
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve()
sys.path.insert(0, str(SCRIPT_PATH.parent))

from hudcaption.Config import load_config
from hudcaption.LoggingSetup import setup_logging
from hudcaption.server.ServerApp import ServerApp

DEFAULT_CONFIG_PATH = SCRIPT_PATH.parent / "config" / "hud_config.json"
DEFAULT_LOGS_DIR = SCRIPT_PATH.parent / "logs"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Serve throttled transcript text walls over WebSocket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH,
                        help="Path to hud_config.json")
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides config, 0 = any)")
    parser.add_argument("--logs-dir", type=Path, default=DEFAULT_LOGS_DIR,
                        help="Directory for rotating log files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    verbose = args.verbose or bool(config["logging"].get("verbose", False))
    setup_logging(args.logs_dir, verbose=verbose)
    logger = logging.getLogger("CaptionServer")

    app = ServerApp(config=config, host=args.host, port=args.port, verbose=verbose)
    try:
        app.start()
    except OSError as exc:
        logger.error(f"Could not bind caption server: {exc}")
        return 1

    logger.info(f"Caption server ready on ws://{args.host or config['server']['host']}:{app.port}")
    try:
        app.wait_for_shutdown()
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    finally:
        app.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
