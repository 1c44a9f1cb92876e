"""inspect: report camera-swap and GPS metadata without modifying anything."""
from __future__ import annotations
from typing import Any, Dict, List, Sequence

import orjson

from . import runner, ui
from .context import BatchResult, RunContext
from .errors import ToolError, XtoolError
from .exiftool import CUSTOM_MODEL_TAG

OPERATION = "inspect"

SWAP_ARGS = ["-j", "-f", "-Model", f"-{CUSTOM_MODEL_TAG}"]
LOCATION_ARGS = ["-j", "-gps*"]
# present in every -j record or harmless on its own
GPS_TAG_ALLOWLIST = ("GPSVersionID", "SourceFile")
MISSING = "-"  # exiftool -f placeholder


class InspectError(XtoolError):
    pass


def parse_single_record(output: str) -> Dict[str, Any]:
    """exiftool -j prints a JSON array; inspect always asks about exactly one file."""
    try:
        records = orjson.loads(output)
    except orjson.JSONDecodeError as e:
        raise InspectError(f"failed to parse exiftool result as JSON: {e}") from e
    if not isinstance(records, list):
        raise InspectError("invalid exiftool output: expected a JSON array")
    if len(records) != 1:
        raise InspectError(f"invalid exiftool output: expected 1 item, got {len(records)}")
    if not isinstance(records[0], dict):
        raise InspectError("invalid exiftool output: expected an object")
    return records[0]


def query(ctx: RunContext, args: Sequence[str], filename: str) -> Dict[str, Any]:
    full_args = [*args, filename]
    if ctx.echo_commands:
        ui.print_command(ctx.config.exiftool_bin, full_args)
    return parse_single_record(runner.run(ctx.config.exiftool_bin, full_args))


def gps_tags(metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in metadata.items() if k not in GPS_TAG_ALLOWLIST}


def report_swap(metadata: Dict[str, Any]) -> None:
    original = metadata.get(CUSTOM_MODEL_TAG)
    model = metadata.get("Model")
    if original is not None and str(original) != MISSING:
        ui.print_fact("Original Camera Model:", original)
        if model is not None:
            ui.print_fact("Swapped Camera Model:", model)
    else:
        ui.print_ok("No camera swap metadata.")
        if model is not None:
            ui.print_fact("Camera Model:", model)


def report_location(metadata: Dict[str, Any]) -> None:
    tags = gps_tags(metadata)
    if not tags:
        ui.print_ok("No GPS metadata.")
        return
    for k in sorted(tags):
        ui.print_fact(f"{k}:", tags[k])


def inspect(ctx: RunContext, files: Sequence[str], location: bool = False, swap: bool = False) -> BatchResult:
    """Print swap and/or GPS details for each file. With neither flag set, both are shown."""
    if not location and not swap:
        location = swap = True

    checks: List[tuple] = []
    if swap:
        checks.append((SWAP_ARGS, report_swap))
    if location:
        checks.append((LOCATION_ARGS, report_location))

    result = BatchResult()
    ui.console.print()
    for filename in files:
        ui.print_header(filename)
        failed = False
        for args, report in checks:
            try:
                metadata = query(ctx, args, filename)
            except (ToolError, InspectError) as e:
                prev = result.failures.get(filename)
                result.failures[filename] = e if prev is None else InspectError(f"{prev}; {e}")
                ui.print_error(f"\t{e}")
                failed = True
            else:
                report(metadata)
            ui.console.print()
        if not failed:
            result.successes.append(filename)

    ui.print_summary(OPERATION, result.successes, result.failures, verb="inspected")
    return result
