"""Exception classes shared by the xtool subcommands.

- ConfigError: the user config or a required binary is unusable; aborts the run
- BackupsConfigError: a .xtoolbak.json policy file is unreadable or invalid
- BackupRelocationError: the exiftool backup could not be moved
- OutputDirError: an output directory could not be created; aborts the run
- ToolError: an external tool exited non-zero
- LaunchError: an external tool could not be started at all; aborts the run
"""
from __future__ import annotations
from typing import Optional


class XtoolError(Exception):
    """Base class for every error xtool reports to the user."""

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class ConfigError(XtoolError):
    pass


class BackupsConfigError(XtoolError):
    pass


class BackupRelocationError(XtoolError):
    pass


class OutputDirError(XtoolError):
    pass


class ToolError(XtoolError):
    """Raised when a tool ran to completion but reported failure via its exit status."""

    def __init__(self, tool: str, output: str, returncode: Optional[int] = None):
        self.tool = tool
        self.output = output
        self.returncode = returncode
        super().__init__(f"{tool} error: {output}" if output else f"{tool} exited with status {returncode}")


class LaunchError(XtoolError):
    """Raised when a tool binary could not be executed (missing, not executable, ...)."""

    def __init__(self, tool: str, reason: str):
        self.tool = tool
        super().__init__(f"failed to run {tool}: {reason}")
