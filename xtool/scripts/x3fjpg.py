from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence

from . import runner, ui
from .context import BatchResult, RunContext
from .errors import OutputDirError, ToolError

OPERATION = "x3fjpg"


def x3f_args(out_dir: Optional[str] = None, verbosity: int = 0) -> List[str]:
    args = ["-jpg"]
    if out_dir:
        args += ["-o", out_dir]
    if verbosity == 0:
        args.append("-q")
    elif verbosity >= 2:
        args.append("-v")
    return args


def x3fjpg(ctx: RunContext, files: Sequence[str], out_dir: Optional[str] = None) -> BatchResult:
    """Extract the embedded JPEG from each Sigma X3F file with x3f_extract."""
    exe = ctx.config.x3f_extract_binary()
    if out_dir:
        try:
            Path(out_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirError(f"failed to ensure '{out_dir}' exists: {e.strerror or e}") from e
    args = x3f_args(out_dir, ctx.verbosity)

    result = BatchResult()
    for filename in files:
        ui.print_file_start(filename)
        full_args = [*args, filename]
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

    ui.print_summary(OPERATION, result.successes, result.failures, verb="extracted")
    return result
