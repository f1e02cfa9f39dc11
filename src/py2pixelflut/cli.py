"""
Command-Line Interface - Argument Parsing and Entry Point

Usage:
    python -m py2pixelflut --ip 127.0.0.1 --port 1234 size
    python -m py2pixelflut get 3 4
    python -m py2pixelflut put 3 4 ff0000
    python -m py2pixelflut invert --x 0 --y 0 --width 100 --height 100
    python -m py2pixelflut --help
"""

import sys
import argparse
import logging
import re
from typing import List, Optional

from py2pixelflut.client import PixelflutClient
from py2pixelflut.core.error_formatting import format_error
from py2pixelflut.core.errors import PixelflutError
from py2pixelflut.models.pixel import Pixel
from py2pixelflut.services.configuration_service import ConfigurationService, LOG_LEVELS
from py2pixelflut.utils.regions import invert_pixels, region_pixels

_COLOR = re.compile(r'[0-9a-fA-F]{6}(?:[0-9a-fA-F]{2})?')


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments to parse. If None, uses sys.argv[1:]
    """
    parser = argparse.ArgumentParser(
        description="Pixelflut canvas client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --ip 127.0.0.1 --port 1234 size
  %(prog)s get 3 4
  %(prog)s put 3 4 ff000080
  %(prog)s --batch-limit 500 invert --width 100 --height 100
        """
    )

    parser.add_argument("--config", type=str, default=None,
                        help="YAML configuration file")
    parser.add_argument("--ip", type=str, default=None,
                        help="Server IPv4 address (overrides config)")
    parser.add_argument("--port", type=str, default=None,
                        help="Server port (overrides config)")
    parser.add_argument("--buffer-size", type=int, default=None,
                        help="Bulk buffer size in bytes (overrides config)")
    parser.add_argument("--batch-limit", type=int, default=None,
                        help="Pipelined reads in flight, 0 = unlimited (overrides config)")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=list(LOG_LEVELS),
                        help="Set logging level (default: from config, else INFO)")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("size", help="Print the canvas size")

    get_cmd = commands.add_parser("get", help="Read one pixel")
    get_cmd.add_argument("x", type=int)
    get_cmd.add_argument("y", type=int)

    put_cmd = commands.add_parser("put", help="Set one pixel")
    put_cmd.add_argument("x", type=int)
    put_cmd.add_argument("y", type=int)
    put_cmd.add_argument("color", type=color_arg, help="RRGGBB or RRGGBBAA hex color")

    invert_cmd = commands.add_parser("invert", help="Invert the colors of a rectangle")
    invert_cmd.add_argument("--x", type=int, default=0)
    invert_cmd.add_argument("--y", type=int, default=0)
    invert_cmd.add_argument("--width", type=int, default=100)
    invert_cmd.add_argument("--height", type=int, default=100)
    invert_cmd.add_argument("--unbuffered", action="store_true",
                            help="Read and write pixel by pixel (slow)")

    return parser.parse_args(args)


def setup_logging(level: str):
    """Configure application logging.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), None)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def color_arg(text: str) -> str:
    """argparse type for RRGGBB or RRGGBBAA."""
    if not _COLOR.fullmatch(text):
        raise argparse.ArgumentTypeError(f"invalid color: {text}")
    return text


def parse_color(text: str, x: int = 0, y: int = 0) -> Pixel:
    """Build a Pixel at (x, y) from RRGGBB or RRGGBBAA."""
    channels = [int(text[i:i + 2], 16) for i in range(0, len(text), 2)]
    return Pixel(x, y, *channels)


def run_invert(client: PixelflutClient, args: argparse.Namespace) -> None:
    """Invert a rectangle, one round trip per pixel or through the bulk operations."""
    logger = logging.getLogger(__name__)

    if args.unbuffered:
        for y in range(args.y, args.y + args.height):
            for x in range(args.x, args.x + args.width):
                px = client.get_pixel(x, y)
                client.put_pixel(px.inverted())
            print(f"finished line {y}")
        return

    pixels = region_pixels(args.x, args.y, args.width, args.height)
    client.get_pixels(pixels)
    client.put_pixels(invert_pixels(pixels))
    logger.info(f"Inverted {len(pixels)} pixels")


def run_command(client: PixelflutClient, args: argparse.Namespace) -> None:
    if args.command == "size":
        width, height = client.get_size()
        print(f"SIZE {width} {height}")
    elif args.command == "get":
        px = client.get_pixel(args.x, args.y)
        print(f"PX {px.x} {px.y} {px.r:02x}{px.g:02x}{px.b:02x}")
    elif args.command == "put":
        px = parse_color(args.color, args.x, args.y)
        client.put_pixel(px, use_alpha=len(args.color) == 8)
    elif args.command == "invert":
        width, height = client.get_size()
        print(f"got SIZE {width} {height}")
        run_invert(client, args)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 = success, 1 = error)
    """
    parsed_args = parse_args(args)

    try:
        service = ConfigurationService()
        settings = service.load(parsed_args.config)
        settings = service.apply_overrides(
            settings,
            ip_address=parsed_args.ip,
            port=parsed_args.port,
            buffer_size=parsed_args.buffer_size,
            batch_limit=parsed_args.batch_limit,
            log_level=parsed_args.log_level,
        )
    except PixelflutError as e:
        print(format_error(e), file=sys.stderr)
        return 1

    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    logger.debug(f"Settings: {settings}")

    try:
        with PixelflutClient(settings) as client:
            run_command(client, parsed_args)
            logger.info(
                f"Done: {client.num_pixels_read} pixels read, "
                f"{client.num_pixels_written} pixels written"
            )
    except PixelflutError as e:
        print(format_error(e, use_colors=sys.stderr.isatty()), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
