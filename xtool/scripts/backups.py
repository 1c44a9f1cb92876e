"""Backup policy discovery and relocation of exiftool "_original" files.

A `.xtoolbak.json` file controls where exiftool's pre-edit copies end up:

    {"backups_location": "same_dir"}                              exiftool default, leave it
    {"backups_location": "sub_dir", "backups_folder": "bak"}      ./bak_<timestamp>/
    {"backups_location": "abs_path", "backups_folder": "/arch"}   /arch/<timestamp> <dirname>/

The nearest policy file at or above the edited file's directory applies. The
search stops at the home directory, a volume root, or the filesystem root.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional
import os
import shutil
import stat

import orjson

from .errors import BackupRelocationError, BackupsConfigError

BACKUPS_CONFIG_NAME = ".xtoolbak.json"

BACKUPS_LOC_SAME_DIR = "same_dir"
BACKUPS_LOC_SUB_DIR = "sub_dir"
BACKUPS_LOC_ABS_PATH = "abs_path"
BACKUPS_LOCATIONS = (BACKUPS_LOC_SAME_DIR, BACKUPS_LOC_SUB_DIR, BACKUPS_LOC_ABS_PATH)

# Directories directly below these are treated as volume roots.
MOUNT_ROOTS = ("/Volumes", "/mnt", "/media", "/usb")
MAX_SEARCH_DEPTH = 128
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
EXIFTOOL_BACKUP_SUFFIX = "_original"


@dataclass(frozen=True)
class BackupsConfig:
    backups_location: str = BACKUPS_LOC_SAME_DIR
    backups_folder: str = ""

    def validate(self) -> "BackupsConfig":
        loc = self.backups_location
        if loc not in BACKUPS_LOCATIONS:
            raise BackupsConfigError(
                f"backups_location must be one of ({', '.join(BACKUPS_LOCATIONS)}); got '{loc}'"
            )
        if loc == BACKUPS_LOC_SUB_DIR:
            if not self.backups_folder:
                raise BackupsConfigError(
                    "'backups_location: sub_dir' requires setting a backups_folder, to name the backups subdirectory"
                )
            if os.sep in self.backups_folder or (os.altsep and os.altsep in self.backups_folder):
                raise BackupsConfigError("backups_folder must be a simple directory name for 'backups_location: sub_dir'")
        if loc == BACKUPS_LOC_ABS_PATH:
            if not self.backups_folder:
                raise BackupsConfigError("'backups_location: abs_path' requires setting backups_folder to an absolute path")
            try:
                mode = os.stat(self.backups_folder).st_mode
            except OSError as e:
                raise BackupsConfigError(f"bad backups_folder '{self.backups_folder}': {e.strerror or e}") from e
            if not stat.S_ISDIR(mode):
                raise BackupsConfigError(f"bad backups_folder '{self.backups_folder}': is not a directory")
        return self

    def backups_dir(self, target_file: Path, run_start: datetime) -> Optional[Path]:
        """Directory the backup of `target_file` belongs in, or None to leave it in place."""
        ts = run_start.strftime(TIMESTAMP_FORMAT)
        parent = Path(os.path.abspath(target_file)).parent
        if self.backups_location == BACKUPS_LOC_SUB_DIR:
            return parent / f"{self.backups_folder}_{ts}"
        if self.backups_location == BACKUPS_LOC_ABS_PATH:
            return Path(self.backups_folder) / f"{ts} {parent.name}"
        return None


def parse_backups_config(raw: bytes, path: Path) -> BackupsConfig:
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise BackupsConfigError(f"failed to parse '{path}' as JSON: {e}") from e
    if not isinstance(data, dict):
        raise BackupsConfigError(f"failed to parse '{path}': expected a JSON object")
    location = data.get("backups_location", "")
    folder = data.get("backups_folder", "") or ""
    if not isinstance(location, str) or not isinstance(folder, str):
        raise BackupsConfigError(f"'{path}': backups_location and backups_folder must be strings")
    return BackupsConfig(backups_location=location, backups_folder=folder)


def _is_search_boundary(d: Path, home: Path) -> bool:
    if d == home or str(d) == d.anchor or str(d) == "/":
        return True
    return str(d.parent) in MOUNT_ROOTS


class BackupPolicyResolver:
    """Finds the backup policy for a file. Results are cached per directory
    for the lifetime of the resolver, which is one xtool invocation."""

    def __init__(self, home: Optional[Path] = None):
        self.home = Path(os.path.normpath(home or Path.home()))
        self._cache: Dict[Path, BackupsConfig] = {}

    def policy_dir(self, start: Path) -> Path:
        """Walk upward from `start`; return the directory whose marker (if any) applies."""
        d = start
        for _ in range(MAX_SEARCH_DEPTH + 1):
            if _is_search_boundary(d, self.home):
                return d
            if (d / BACKUPS_CONFIG_NAME).exists():
                return d
            d = d.parent
        raise BackupsConfigError(f"failed to find a backups config for '{start}' in {MAX_SEARCH_DEPTH} iterations")

    def resolve(self, file_path: Path) -> BackupsConfig:
        search_dir = Path(os.path.abspath(file_path)).parent
        cached = self._cache.get(search_dir)
        if cached is not None:
            return cached

        config_path = self.policy_dir(search_dir) / BACKUPS_CONFIG_NAME
        try:
            with open(config_path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            config = BackupsConfig()
        except OSError as e:
            raise BackupsConfigError(f"failed to read '{config_path}': {e.strerror or e}") from e
        else:
            config = parse_backups_config(raw, config_path)

        config.validate()
        self._cache[search_dir] = config
        return config


def exiftool_backup_path(target_file: Path) -> Path:
    return Path(f"{target_file}{EXIFTOOL_BACKUP_SUFFIX}")


def relocate_backup(backup_path: Path, target_file: Path, run_start: datetime,
                    resolver: BackupPolicyResolver) -> Optional[Path]:
    """Move exiftool's backup of `target_file` according to its backup policy.

    Returns the new location, or None when there was nothing to move (no
    backup was written, or the policy keeps backups beside the original).
    An existing file at the destination is never overwritten: with abs_path,
    two source directories sharing a name map to the same backups directory.
    """
    if not backup_path.exists():
        return None

    config = resolver.resolve(target_file)
    dest_dir = config.backups_dir(target_file, run_start)
    if dest_dir is None:
        return None

    # new directory gets the permission bits of the directory it is created in
    parent = dest_dir.parent
    try:
        parent_mode = stat.S_IMODE(parent.stat().st_mode)
        if not dest_dir.is_dir():
            os.makedirs(dest_dir, mode=parent_mode, exist_ok=True)
            # makedirs is filtered by the umask
            os.chmod(dest_dir, parent_mode)
    except OSError as e:
        raise BackupRelocationError(
            f"failed to prepare backups folder '{dest_dir}' "
            f"(the edit itself was applied): {e.strerror or e}"
        ) from e

    dest = dest_dir / Path(target_file).name
    if os.path.lexists(dest):
        raise BackupRelocationError(
            f"refusing to overwrite '{dest}' with backup file '{backup_path}' "
            f"(the edit itself was applied)"
        )
    try:
        shutil.move(str(backup_path), str(dest))
    except OSError as e:
        raise BackupRelocationError(
            f"failed to move backup file '{backup_path}' to the backups folder "
            f"(the edit itself was applied): {e.strerror or e}"
        ) from e
    return dest
