from __future__ import annotations
from pathlib import Path
from typing import List, Sequence
import subprocess

from .errors import LaunchError, ToolError


def tool_name(binary: str) -> str:
    return Path(binary).name or binary


def command_line(binary: str, args: Sequence[str]) -> List[str]:
    return [str(binary)] + [str(a) for a in args]


def run(binary: str, args: Sequence[str]) -> str:
    """Run `binary` with `args`, wait for it, and return its trimmed stdout+stderr.

    Raises ToolError on a non-zero exit and LaunchError if the process could
    not be started at all. There is no timeout.
    """
    name = tool_name(binary)
    try:
        proc = subprocess.run(command_line(binary, args), stdout=subprocess.PIPE, stderr=subprocess.STDOUT, shell=False)
    except OSError as e:
        raise LaunchError(name, e.strerror or str(e)) from e
    out = proc.stdout.decode("utf-8", "replace").strip()
    if proc.returncode != 0:
        raise ToolError(name, out, proc.returncode)
    return out
