"""camswap: swap a different camera model into EXIF, keeping the original in XMP.

The original model is saved in XMP:XtoolOriginalCameraModel so `-r` can put
it back. exiftool's -if condition makes both directions refuse files that are
already in the requested state.
"""
from __future__ import annotations
from typing import List, Optional, Sequence

from . import ui
from .context import BatchResult, RunContext
from .exiftool import CUSTOM_MODEL_TAG, output_args, process_files, xmp_config_file

OPERATION = "camswap"
RESTORE_OPERATION = "camswap-restore"
UNSWAP_SUFFIX = "unswap"


def suffix_safe(name: str) -> str:
    return name.replace(" ", "-")


def swap_args(config_file: str, model: str, suffix_name: str, suffix: bool = False,
              out_dir: Optional[str] = None) -> List[str]:
    args = [
        "-config", config_file,
        f"-{CUSTOM_MODEL_TAG}<Model",
        f"-Model={model}",
        "-if", f"not ${CUSTOM_MODEL_TAG}",
    ]
    return args + output_args(out_dir, suffix_safe(suffix_name) if suffix else None)


def restore_args(config_file: str, suffix: bool = False, out_dir: Optional[str] = None) -> List[str]:
    args = [
        "-config", config_file,
        f"-Model<{CUSTOM_MODEL_TAG}",
        f"-{CUSTOM_MODEL_TAG}=",
        "-if", f"${CUSTOM_MODEL_TAG}",
    ]
    return args + output_args(out_dir, UNSWAP_SUFFIX if suffix else None,
                              suffix_in_dir=f"%f_{UNSWAP_SUFFIX}.%e")


def camswap(ctx: RunContext, files: Sequence[str], model: Optional[str] = None, restore: bool = False,
            suffix: bool = False, out_dir: Optional[str] = None) -> BatchResult:
    """Swap `model` (or an alias from camswap_aliases) into each file, or restore with `restore`."""
    if bool(model) == restore:
        raise ValueError("exactly one of model or restore is required")

    with xmp_config_file() as cfg:
        if restore:
            args = restore_args(cfg, suffix=suffix, out_dir=out_dir)
        else:
            # the suffix uses the name as typed, so aliases give short file names
            args = swap_args(cfg, ctx.config.resolve_alias(model), model, suffix=suffix, out_dir=out_dir)
        result = process_files(ctx, args, files)

    ui.print_summary(RESTORE_OPERATION if restore else OPERATION, result.successes, result.failures, label=OPERATION)
    return result
