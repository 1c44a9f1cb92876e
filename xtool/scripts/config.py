from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import os
import shutil
import stat

import orjson

from .errors import ConfigError

DEFAULT_EXIFTOOL_NAME = "exiftool"
DEFAULT_NEAT_IMAGE_NAME = "NeatImage9CL"
DEFAULT_X3F_EXTRACT_NAME = "x3f_extract"
DEFAULT_JPG_QUALITY = 80

ConfigType = Dict[str, Any]


def config_candidates(home: Path) -> List[Path]:
    """Config file locations, highest priority first."""
    return [
        home / ".config" / "xtoolconfig.json",
        home / ".xtoolconfig.json",
    ]


def local_x3f_extract_path(home: Path) -> Path:
    return home / ".local" / "bin.xtool" / DEFAULT_X3F_EXTRACT_NAME


def which(program: str) -> Optional[str]:
    return shutil.which(program)


def is_exec_any(path: Path) -> bool:
    return bool(path.stat().st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


def validate_binary(path: str, description: str) -> str:
    """Ensure `path` exists and has at least one execute bit set. Returns the path."""
    p = Path(path)
    try:
        mode = p.stat().st_mode
    except OSError as e:
        raise ConfigError(f"bad path to {description} binary '{path}': {e.strerror or e}") from e
    if stat.S_ISDIR(mode) or not is_exec_any(p):
        raise ConfigError(f"{description} at '{path}' is not executable")
    return path


def load_config_file(path: Path) -> Optional[ConfigType]:
    """Read one candidate config file. Returns None if it does not exist."""
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ConfigError(f"failed to read xtoolconfig file '{path}': {e.strerror or e}") from e
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise ConfigError(f"failed to parse '{path}' as JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse '{path}': expected a JSON object")
    return data


def find_config(home: Path) -> tuple[Optional[Path], ConfigType]:
    """First existing candidate wins; files are never merged."""
    for candidate in config_candidates(home):
        data = load_config_file(candidate)
        if data is not None:
            return candidate, data
    return None, {}


@dataclass(frozen=True)
class NeatImageConfig:
    neat_image_bin: str = ""
    profiles_folder: str = ""
    default_jpg_quality: int = 0


@dataclass(frozen=True)
class AppConfig:
    exiftool_bin: str = ""
    camswap_aliases: Mapping[str, str] = field(default_factory=dict)
    neat_image: NeatImageConfig = field(default_factory=NeatImageConfig)
    x3f_extract_bin: str = ""
    deprecated_x3f_bin: str = ""
    home: Path = field(default_factory=Path.home)
    source: Optional[Path] = None

    def resolve_alias(self, name: str) -> str:
        """Map a camswap alias to its camera model; unknown names pass through."""
        return self.camswap_aliases.get(name) or name

    def neat_image_binary(self) -> str:
        path = self.neat_image.neat_image_bin
        if not path:
            path = which(DEFAULT_NEAT_IMAGE_NAME) or ""
            if not path:
                raise ConfigError(
                    f"neat_image.neat_image_bin was not specified in config and "
                    f"{DEFAULT_NEAT_IMAGE_NAME} is missing from $PATH"
                )
        return validate_binary(path, "NeatImage")

    def x3f_extract_binary(self) -> str:
        path = self.x3f_extract_bin or self.deprecated_x3f_bin
        if not path:
            path = which(DEFAULT_X3F_EXTRACT_NAME) or ""
        if not path:
            local = local_x3f_extract_path(self.home)
            if local.exists():
                path = str(local)
        if not path:
            raise ConfigError(
                f"x3f_extract_bin was not specified in config and "
                f"{DEFAULT_X3F_EXTRACT_NAME} is missing from $PATH"
            )
        return validate_binary(path, "x3f_extract")

    def jpg_quality(self, requested: int = 0) -> int:
        """Explicit request, then the configured default, then DEFAULT_JPG_QUALITY."""
        if requested:
            return requested
        q = self.neat_image.default_jpg_quality
        if q < 0 or q > 100:
            raise ConfigError(f"invalid neat_image.default_jpg_quality '{q}'")
        return q or DEFAULT_JPG_QUALITY


def _str_field(data: ConfigType, key: str, source: Optional[Path]) -> str:
    v = data.get(key, "")
    if v is None:
        return ""
    if not isinstance(v, str):
        raise ConfigError(f"'{key}' in '{source}' must be a string")
    return v


def _parse_neat_image(data: ConfigType, source: Optional[Path]) -> NeatImageConfig:
    section = data.get("neat_image") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'neat_image' in '{source}' must be an object")
    quality = section.get("default_jpg_quality", 0) or 0
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ConfigError(f"'neat_image.default_jpg_quality' in '{source}' must be an integer")
    return NeatImageConfig(
        neat_image_bin=_str_field(section, "neat_image_bin", source),
        profiles_folder=_str_field(section, "profiles_folder", source),
        default_jpg_quality=quality,
    )


def _parse_aliases(data: ConfigType, source: Optional[Path]) -> Dict[str, str]:
    aliases = data.get("camswap_aliases") or {}
    if not isinstance(aliases, dict):
        raise ConfigError(f"'camswap_aliases' in '{source}' must be an object")
    return {str(k): str(v) for k, v in aliases.items()}


def resolve_config(home: Optional[Path] = None, require_exiftool: bool = True) -> AppConfig:
    """Build the AppConfig for this invocation.

    Looks in ~/.config/xtoolconfig.json, then ~/.xtoolconfig.json. When no
    file provides exiftool_bin, exiftool is searched for on $PATH. Any problem
    raises ConfigError; nothing is partially applied.
    """
    home = Path(os.path.normpath(home or Path.home()))
    source, data = find_config(home)

    exiftool_bin = _str_field(data, "exiftool_bin", source)
    if require_exiftool:
        if not exiftool_bin:
            exiftool_bin = which(DEFAULT_EXIFTOOL_NAME) or ""
            if not exiftool_bin:
                raise ConfigError("exiftool_bin was not specified in config and exiftool is missing from $PATH")
        validate_binary(exiftool_bin, "exiftool")

    return AppConfig(
        exiftool_bin=exiftool_bin,
        camswap_aliases=_parse_aliases(data, source),
        neat_image=_parse_neat_image(data, source),
        x3f_extract_bin=_str_field(data, "x3f_extract_bin", source),
        deprecated_x3f_bin=_str_field(data, "x3f_bin", source),
        home=home,
        source=source,
    )
