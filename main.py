#!/usr/bin/env python3
"""
Framerz AR video overlay

Main entry point. Looks up the assets for a slug, tracks the printed target
through the camera and plays the linked video on top of it.

Usage:
    python main.py "https://example.com/?f=ABCDEF"
    python main.py --slug ABCDEF [--config CONFIG_PATH] [--device INDEX_OR_CLIP]

Controls:
    Click - Tap the play overlay (gesture platforms)
    Q/ESC - Quit

Environment (.env is loaded if present):
    FRAMERZ_API_URL     - Asset endpoint override
    FRAMERZ_USER_AGENT  - Environment signature for gesture detection
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from framerz.config import load_config
from framerz.pipeline.session import run_app
from framerz.ui import SURFACES, get_surface


# ============================================================
# LOGGING CONFIGURATION
# ============================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging."""
    logger.remove()  # Remove default handler

    # Console output with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )

    # File output
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )


# ============================================================
# ENTRY POINT
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Framerz AR video overlay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Page URL or query string carrying ?f=<slug>",
    )

    parser.add_argument(
        "--slug", "-s",
        type=str,
        default=None,
        help="Six-character experience slug (overrides the URL)",
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--device", "-d",
        type=str,
        default=None,
        help="Camera index or recorded clip to replay (default: from config)",
    )

    parser.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="Environment signature used for gesture detection",
    )

    gesture = parser.add_mutually_exclusive_group()
    gesture.add_argument(
        "--require-gesture",
        dest="require_gesture",
        action="store_const",
        const=True,
        default=None,
        help="Always show the tap-to-play overlay",
    )
    gesture.add_argument(
        "--no-gesture",
        dest="require_gesture",
        action="store_const",
        const=False,
        help="Never require a gesture before playback",
    )

    parser.add_argument(
        "--ui",
        type=str,
        default=None,
        choices=sorted(SURFACES.keys()),
        help="UI backend (default: from config)",
    )

    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Do not play the audio track",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default="logs/framerz.log",
        help="Log file path (default: logs/framerz.log)",
    )

    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    load_dotenv()
    setup_logging(args.log_level, args.log_file)

    config = load_config(args.config)
    if args.device is not None:
        config.camera_device = args.device
    if args.user_agent:
        config.user_agent = args.user_agent
    if args.require_gesture is not None:
        config.require_gesture = args.require_gesture
    if args.ui:
        config.ui = args.ui
    if args.no_audio:
        config.play_audio = False

    surface = get_surface(config.ui, config)
    try:
        code = run_app(config, surface, page_url=args.url, slug=args.slug)
    finally:
        surface.cleanup()

    sys.exit(code)


if __name__ == "__main__":
    main()
