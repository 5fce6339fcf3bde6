"""
CLI main entry point.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..services.pipeline import AmountDetectionPipeline
from .handlers import handle_image_request, handle_text_request

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="amount-detector",
        description="Extract, classify and source-link monetary amounts from bills and receipts",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # text command
    text_parser = subparsers.add_parser("text", help="Extract amounts from text")
    text_parser.add_argument(
        "text",
        type=str,
        help="Document text, or '-' to read from stdin",
    )

    # image command
    image_parser = subparsers.add_parser("image", help="Extract amounts from an image file")
    image_parser.add_argument(
        "path",
        type=Path,
        help="Path to the image (PNG/JPEG)",
    )

    # init-config command
    subparsers.add_parser("init-config", help="Write a default config file")

    # check-config command
    subparsers.add_parser("check-config", help="Validate configuration")

    return parser


def _print_payload(payload: dict) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _run_text(config: Config, text: str) -> int:
    async with AmountDetectionPipeline.from_config(config) as pipeline:
        status_code, payload = await handle_text_request(pipeline, {"text": text})
    _print_payload(payload)
    return 0 if status_code == 200 else 1


async def _run_image(config: Config, image: bytes) -> int:
    async with AmountDetectionPipeline.from_config(config) as pipeline:
        status_code, payload = await handle_image_request(pipeline, image)
    _print_payload(payload)
    return 0 if status_code == 200 else 1


def cmd_text(config: Config, text: str) -> int:
    """Run the text pipeline."""
    if text == "-":
        text = sys.stdin.read()
    return asyncio.run(_run_text(config, text))


def cmd_image(config: Config, path: Path) -> int:
    """Run the image pipeline on a file."""
    try:
        image = path.read_bytes()
    except OSError as e:
        print(f"❌ Cannot read image: {e}")
        return 1
    return asyncio.run(_run_image(config, image))


def cmd_init_config(config_path: Path) -> int:
    """Write a default configuration file."""
    if config_path.exists():
        print(f"❌ Config already exists: {config_path}")
        return 1
    create_default_config(config_path)
    print(f"✅ Wrote default config to {config_path}")
    return 0


def cmd_check_config(config: Config) -> int:
    """Print configuration problems."""
    errors = config.validate()
    for error in errors:
        print(f"❌ {error}")
    for warning in config.warnings():
        print(f"⚠️  {warning}")
    if not errors:
        print("✅ Configuration is valid")
    return 1 if errors else 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    if parsed.command == "check-config":
        return cmd_check_config(config)

    try:
        config.raise_if_invalid()
    except ConfigValidationError as e:
        print(f"❌ Invalid config: {e}")
        return 1

    for warning in config.warnings():
        logger.warning(warning)

    # Route to command
    if parsed.command == "text":
        return cmd_text(config, parsed.text)
    elif parsed.command == "image":
        return cmd_image(config, parsed.path)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
