"""exiftool invocation shared by camswap and rmloc."""
from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence
import os
import tempfile

from . import runner, ui
from .backups import exiftool_backup_path, relocate_backup
from .context import BatchResult, RunContext
from .errors import BackupRelocationError, BackupsConfigError, ToolError

CUSTOM_MODEL_TAG = "XtoolOriginalCameraModel"

XMP_CONFIG = f"""
%Image::ExifTool::UserDefined = (
    'Image::ExifTool::XMP::xmp' => {{
        {CUSTOM_MODEL_TAG} => {{ }},
    }},
);

1;
"""


@contextmanager
def xmp_config_file() -> Iterator[str]:
    """Temporary exiftool config declaring the custom XMP tag camswap uses."""
    fd, name = tempfile.mkstemp(prefix="xtool_xmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(XMP_CONFIG)
        yield name
    finally:
        try:
            os.remove(name)
        except FileNotFoundError:
            pass


def output_args(out_dir: Optional[str], suffix: Optional[str], suffix_in_dir: Optional[str] = None) -> List[str]:
    """exiftool -o arguments for writing to new files instead of editing in place.

    `suffix` is appended to the base name when writing beside the original;
    `suffix_in_dir` overrides the filename template used inside `out_dir`.
    """
    if out_dir and suffix is not None:
        template = suffix_in_dir if suffix_in_dir is not None else f"%d%f_{suffix}.%e"
        return ["-o", f"{out_dir}{os.sep}{template}"]
    if suffix is not None:
        return ["-o", f"%d%f_{suffix}.%e"]
    if out_dir:
        return ["-o", f"{out_dir}{os.sep}"]
    return []


def process_files(ctx: RunContext, args: Sequence[str], files: Sequence[str]) -> BatchResult:
    """Run exiftool once per file, in order, then relocate any backup it left.

    Tool and backup errors are recorded against the file and the batch goes
    on; a LaunchError propagates and ends the run.
    """
    result = BatchResult()
    exe = ctx.config.exiftool_bin

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

        backup = exiftool_backup_path(Path(filename))
        try:
            moved = relocate_backup(backup, Path(filename), ctx.start_time, ctx.backups)
        except BackupsConfigError as e:
            result.failures[filename] = BackupsConfigError(f"failed to get backups config: {e}")
            ui.print_error(str(result.failures[filename]))
            continue
        except BackupRelocationError as e:
            result.failures[filename] = e
            ui.print_error(str(e))
            continue
        if ctx.echo_commands:
            if moved is not None:
                ui.print_output(f"Moved exiftool backup file '{backup}' to '{moved}'.")
            elif not backup.exists():
                ui.print_output(f"exiftool backup file '{backup}' does not exist; nothing to do")

        result.successes.append(filename)

    return result
