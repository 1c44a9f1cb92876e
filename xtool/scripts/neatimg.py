"""neatimg: denoise images with the NeatImage command-line tool.

Uses Smart Profile with auto fine tune and the default preset. Everything else
(output filename suffix, preset) comes from the Neat Image GUI settings. The
tool refuses to overwrite files, so output always goes to a new file.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence

from . import runner, ui
from .context import BatchResult, RunContext
from .errors import ToolError

OPERATION = "neatimg"

OUTPUT_FORMATS = {
    ".jpg": "JPG",
    ".jpeg": "JPG",
    ".tif": "TIF",
    ".tiff": "TIF",
    ".png": "PNG",
}


def neatimg_args(profiles_folder: str = "", out_dir: Optional[str] = None) -> List[str]:
    args = ["--smart-profile", "--no-overwrite", "--preserve-meta", "--output-bitdepth=M"]
    if profiles_folder:
        args.append(f"--profile-folder={Path(profiles_folder).absolute()}")
    if out_dir:
        args.append(f"--output-folder={out_dir}")
    else:
        args.append("--output-to-input-folder")
    return args


def file_args(filename: str, args: Sequence[str], jpg_quality: int) -> List[str]:
    """NeatImageCL <InputImage> [options]; output format follows the input's extension."""
    full = [filename, *args]
    fmt = OUTPUT_FORMATS.get(Path(filename).suffix.lower())
    if fmt:
        full.append(f"--output-format={fmt}")
    if fmt == "JPG":
        full.append(f"--jpeg-quality={jpg_quality}")
    return full


def neatimg(ctx: RunContext, files: Sequence[str], jpg_quality: int = 0,
            out_dir: Optional[str] = None) -> BatchResult:
    exe = ctx.config.neat_image_binary()
    quality = ctx.config.jpg_quality(jpg_quality)
    args = neatimg_args(ctx.config.neat_image.profiles_folder, out_dir)

    result = BatchResult()
    for filename in files:
        ui.print_file_start(filename)
        full_args = file_args(filename, args, quality)
        if ctx.echo_commands:
            ui.print_command(exe, full_args)
        try:
            out = runner.run(exe, full_args)
        except ToolError as e:
            result.failures[filename] = e
            ui.print_error(str(e))
            continue
        if ctx.verbose:
            ui.print_output(out)
        result.successes.append(filename)

    ui.print_summary(OPERATION, result.successes, result.failures)
    return result
