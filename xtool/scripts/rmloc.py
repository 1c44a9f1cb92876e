from __future__ import annotations
from typing import List, Optional, Sequence

from . import ui
from .context import BatchResult, RunContext
from .exiftool import output_args, process_files

OPERATION = "rmloc"
NO_GPS_SUFFIX = "noGPS"


def rmloc_args(suffix: bool = False, out_dir: Optional[str] = None) -> List[str]:
    return ["-gps*="] + output_args(out_dir, NO_GPS_SUFFIX if suffix else None)


def rmloc(ctx: RunContext, files: Sequence[str], suffix: bool = False, out_dir: Optional[str] = None) -> BatchResult:
    """Remove all GPS tags from the given files."""
    result = process_files(ctx, rmloc_args(suffix=suffix, out_dir=out_dir), files)
    ui.print_summary(OPERATION, result.successes, result.failures)
    return result
