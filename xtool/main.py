"""
xtool

A photo workflow tool (particularly useful for tricking raw processors into
handling files from unsupported cameras). Each subcommand drives an external
tool over a list of files and reports per-file results:

- camswap: swap in a different camera model / restore the original (exiftool)
- rmloc: remove all GPS metadata (exiftool)
- inspect: show GPS and camera-swap metadata (exiftool)
- neatimg: denoise with the NeatImage CLI
- x3fjpg: extract embedded JPEGs from Sigma X3F files (x3f_extract)

Exit status is 0 when every file succeeded, 1 if any failed or the
configuration is unusable, 2 for usage errors.
"""
from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from xtool import __version__
from xtool.scripts import ui
from xtool.scripts.camswap import camswap
from xtool.scripts.config import resolve_config
from xtool.scripts.context import RunContext
from xtool.scripts.errors import ConfigError, LaunchError, OutputDirError
from xtool.scripts.inspector import inspect
from xtool.scripts.neatimg import neatimg
from xtool.scripts.rmloc import rmloc
from xtool.scripts.x3fjpg import x3fjpg

PROJECT_URL = "https://www.github.com/cdzombak/xtool"
EXIFTOOL_COMMANDS = ("camswap", "rmloc", "inspect")

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _jpg_quality(value: str) -> int:
    try:
        q = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid -q: '{value}'")
    if q < 0 or q > 100:
        raise argparse.ArgumentTypeError(f"invalid -q: '{value}' (must be 0-100)")
    return q


def _add_common(p: argparse.ArgumentParser, tool: str) -> None:
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help=f"Print full {tool} output for each image; -vv also prints the {tool} commands.")
    p.add_argument("files", nargs="+", metavar="FILE", help="Image files to process")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="xtool", description="A photo workflow tool.")
    sub = ap.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    sub.add_parser("version", help="Print version and other information.")

    p = sub.add_parser("camswap", help="Swap in a different camera name.",
                       description="Swaps a different camera model into the given photos' EXIF data. "
                                   "Persists the original name in an XMP attribute for restoration with -r.")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("-c", dest="model", metavar="CAM_MODEL",
                      help="Camera model to swap in (or alias defined in camswap_aliases).")
    mode.add_argument("-r", dest="restore", action="store_true",
                      help="Restore the original camera name from xtool's XMP attribute.")
    p.add_argument("-s", dest="suffix", action="store_true",
                   help="Write modified images to new files named with a suffix derived from the camera name/alias.")
    p.add_argument("-d", dest="out_dir", type=ui.strip_quotes, default=None, help="Write modified images to this directory.")
    _add_common(p, "exiftool")

    p = sub.add_parser("rmloc", help="Remove all GPS metadata.")
    p.add_argument("-s", dest="suffix", action="store_true",
                   help="Write modified images to new files named with the suffix _noGPS.")
    p.add_argument("-d", dest="out_dir", type=ui.strip_quotes, default=None, help="Write modified images to this directory.")
    _add_common(p, "exiftool")

    p = sub.add_parser("inspect", help="Inspect image files for GPS or camera-swap data.")
    p.add_argument("-l", "-g", dest="location", action="store_true", help="Inspect image files for location/GPS data.")
    p.add_argument("-s", dest="swap", action="store_true", help="Inspect image files for camera-swap data.")
    _add_common(p, "exiftool")

    p = sub.add_parser("neatimg", help="Denoise images with NeatImage.")
    p.add_argument("-q", dest="jpg_quality", type=_jpg_quality, default=0,
                   help="Quality for JPEG compression. Defaults to neat_image.default_jpg_quality, then 80.")
    p.add_argument("-d", dest="out_dir", type=ui.strip_quotes, default=None, help="Write denoised images to this directory.")
    _add_common(p, "NeatImageCL")

    p = sub.add_parser("x3fjpg", help="Extract embedded JPEG from Sigma X3F files.")
    p.add_argument("-d", dest="out_dir", type=ui.strip_quotes, default=None, help="Write extracted JPEGs to this directory.")
    _add_common(p, "x3f_extract")

    return ap


def print_version() -> int:
    ui.console.print(f"[bold white]xtool {__version__}[/]")
    ui.console.print(f"[cyan]{PROJECT_URL}[/]")
    ui.console.print()
    ui.console.print("a photo workflow tool")
    ui.console.print()
    ui.console.print("(particularly useful for tricking DxO into")
    ui.console.print(" processing files from unsupported cameras)")
    ui.console.print()
    ui.console.print("[magenta]run `xtool --help` for usage.[/]")
    return EXIT_SUCCESS


def dispatch(args: argparse.Namespace) -> int:
    config = resolve_config(require_exiftool=args.command in EXIFTOOL_COMMANDS)
    ctx = RunContext(config=config, verbosity=args.verbose)

    if args.command == "camswap":
        result = camswap(ctx, args.files, model=args.model, restore=args.restore,
                         suffix=args.suffix, out_dir=args.out_dir)
    elif args.command == "rmloc":
        result = rmloc(ctx, args.files, suffix=args.suffix, out_dir=args.out_dir)
    elif args.command == "inspect":
        result = inspect(ctx, args.files, location=args.location, swap=args.swap)
    elif args.command == "neatimg":
        result = neatimg(ctx, args.files, jpg_quality=args.jpg_quality, out_dir=args.out_dir)
    else:
        result = x3fjpg(ctx, args.files, out_dir=args.out_dir)
    return result.exit_code()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "camswap" and not args.restore and not args.model:
        parser.error("camswap: -c requires a camera model or alias")
    if args.command == "version":
        return print_version()
    try:
        return dispatch(args)
    except (ConfigError, LaunchError, OutputDirError) as e:
        ui.print_error(str(e))
        return EXIT_FAILURE


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
