import json
import os
from datetime import datetime
from pathlib import Path

import pytest

from xtool.scripts.backups import (
    BACKUPS_CONFIG_NAME,
    BackupPolicyResolver,
    BackupsConfig,
    _is_search_boundary,
    exiftool_backup_path,
    relocate_backup,
)
from xtool.scripts.errors import BackupRelocationError, BackupsConfigError

RUN_START = datetime(2024, 5, 6, 7, 8, 9)
TS = "2024-05-06T07-08-09"


def write_policy(directory: Path, data) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    p = directory / BACKUPS_CONFIG_NAME
    p.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return p


def make_photo(path: Path, with_backup: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"edited")
    if with_backup:
        exiftool_backup_path(path).write_bytes(b"original")
    return path


@pytest.fixture
def resolver(tmp_path):
    return BackupPolicyResolver(home=tmp_path / "elsewhere")


def test_default_policy_when_no_marker(tmp_path, resolver):
    config = resolver.resolve(tmp_path / "shoot" / "photo.jpg")
    assert config == BackupsConfig(backups_location="same_dir")


def test_nearest_ancestor_marker_wins(tmp_path, resolver):
    write_policy(tmp_path / "library", {"backups_location": "sub_dir", "backups_folder": "outer"})
    write_policy(tmp_path / "library" / "2024", {"backups_location": "sub_dir", "backups_folder": "inner"})
    (tmp_path / "library" / "2024" / "05").mkdir()

    deep = resolver.resolve(tmp_path / "library" / "2024" / "05" / "photo.jpg")
    shallow = resolver.resolve(tmp_path / "library" / "photo.jpg")

    assert deep.backups_folder == "inner"
    assert shallow.backups_folder == "outer"


def test_results_are_cached_per_directory(tmp_path, resolver):
    marker = write_policy(tmp_path / "shoot", {"backups_location": "sub_dir", "backups_folder": "bak"})

    first = resolver.resolve(tmp_path / "shoot" / "a.jpg")
    marker.unlink()
    second = resolver.resolve(tmp_path / "shoot" / "b.jpg")

    assert second is first
    # a fresh resolver (a new invocation) sees the filesystem again
    assert BackupPolicyResolver(home=tmp_path / "elsewhere").resolve(tmp_path / "shoot" / "b.jpg").backups_location == "same_dir"


def test_marker_in_home_is_read_but_not_above(tmp_path):
    home = tmp_path / "home"
    write_policy(tmp_path, {"backups_location": "sub_dir", "backups_folder": "above_home"})
    (home / "pics").mkdir(parents=True)
    resolver = BackupPolicyResolver(home=home)

    assert resolver.resolve(home / "pics" / "photo.jpg").backups_location == "same_dir"

    write_policy(home, {"backups_location": "sub_dir", "backups_folder": "in_home"})
    assert BackupPolicyResolver(home=home).resolve(home / "pics" / "photo.jpg").backups_folder == "in_home"


@pytest.mark.parametrize("directory,expected", [
    ("/", True),
    ("/mnt/card", True),
    ("/Volumes/SD", True),
    ("/media/usbstick", True),
    ("/usb/drive", True),
    ("/mnt/card/DCIM", False),
    ("/srv/photos", False),
])
def test_search_boundaries(tmp_path, directory, expected):
    assert _is_search_boundary(Path(directory), tmp_path / "home") is expected


def test_walk_is_bounded(tmp_path, resolver):
    deep = Path(tmp_path, *(["d"] * 140), "photo.jpg")
    with pytest.raises(BackupsConfigError, match="128 iterations"):
        resolver.resolve(deep)


@pytest.mark.parametrize("policy,message", [
    ({"backups_location": "elsewhere"}, "must be one of"),
    ({"backups_location": "sub_dir"}, "requires setting a backups_folder"),
    ({"backups_location": "sub_dir", "backups_folder": "a/b"}, "simple directory name"),
    ({"backups_location": "abs_path"}, "absolute path"),
    ({"backups_location": "abs_path", "backups_folder": "/definitely/not/here"}, "bad backups_folder"),
    ("{broken", "as JSON"),
])
def test_invalid_policies(tmp_path, resolver, policy, message):
    write_policy(tmp_path / "shoot", policy)
    with pytest.raises(BackupsConfigError, match=message):
        resolver.resolve(tmp_path / "shoot" / "photo.jpg")


def test_abs_path_must_be_a_directory(tmp_path, resolver):
    not_dir = tmp_path / "archive.txt"
    not_dir.write_text("", encoding="utf-8")
    write_policy(tmp_path / "shoot", {"backups_location": "abs_path", "backups_folder": str(not_dir)})

    with pytest.raises(BackupsConfigError, match="is not a directory"):
        resolver.resolve(tmp_path / "shoot" / "photo.jpg")


def test_unreadable_policy_is_distinct_from_absent(tmp_path, resolver):
    # a directory named like the marker exists but cannot be read as a file
    (tmp_path / "shoot" / BACKUPS_CONFIG_NAME).mkdir(parents=True)
    with pytest.raises(BackupsConfigError, match="failed to read"):
        resolver.resolve(tmp_path / "shoot" / "photo.jpg")


def test_relocate_into_timestamped_subdir(tmp_path, resolver):
    write_policy(tmp_path / "a" / "b", {"backups_location": "sub_dir", "backups_folder": "backups"})
    photo = make_photo(tmp_path / "a" / "b" / "photo.jpg")

    dest = relocate_backup(exiftool_backup_path(photo), photo, RUN_START, resolver)

    assert dest == tmp_path / "a" / "b" / f"backups_{TS}" / "photo.jpg"
    assert dest.read_bytes() == b"original"
    assert not exiftool_backup_path(photo).exists()
    assert photo.read_bytes() == b"edited"


def test_relocate_under_absolute_root(tmp_path, resolver):
    archive = tmp_path / "archive"
    archive.mkdir()
    write_policy(tmp_path / "x", {"backups_location": "abs_path", "backups_folder": str(archive)})
    photo = make_photo(tmp_path / "x" / "y" / "photo.jpg")

    dest = relocate_backup(exiftool_backup_path(photo), photo, RUN_START, resolver)

    assert dest == archive / f"{TS} y" / "photo.jpg"
    assert dest.read_bytes() == b"original"


def test_same_batch_shares_one_backups_dir(tmp_path, resolver):
    write_policy(tmp_path / "shoot", {"backups_location": "sub_dir", "backups_folder": "bak"})
    one = make_photo(tmp_path / "shoot" / "one.jpg")
    two = make_photo(tmp_path / "shoot" / "two.jpg")

    d1 = relocate_backup(exiftool_backup_path(one), one, RUN_START, resolver)
    d2 = relocate_backup(exiftool_backup_path(two), two, RUN_START, resolver)

    assert d1.parent == d2.parent
    assert sorted(p.name for p in d1.parent.iterdir()) == ["one.jpg", "two.jpg"]


def test_missing_backup_is_a_silent_noop(tmp_path, resolver):
    write_policy(tmp_path / "shoot", {"backups_location": "sub_dir", "backups_folder": "bak"})
    photo = make_photo(tmp_path / "shoot" / "photo.jpg", with_backup=False)
    before = sorted(p.name for p in photo.parent.iterdir())

    assert relocate_backup(exiftool_backup_path(photo), photo, RUN_START, resolver) is None
    assert sorted(p.name for p in photo.parent.iterdir()) == before


def test_same_dir_policy_leaves_backup_in_place(tmp_path, resolver):
    photo = make_photo(tmp_path / "shoot" / "photo.jpg")

    assert relocate_backup(exiftool_backup_path(photo), photo, RUN_START, resolver) is None
    assert exiftool_backup_path(photo).exists()


def test_backups_dir_copies_parent_mode_despite_umask(tmp_path, resolver):
    shoot = tmp_path / "shoot"
    write_policy(shoot, {"backups_location": "sub_dir", "backups_folder": "backups"})
    photo = make_photo(shoot / "photo.jpg")
    os.chmod(shoot, 0o775)

    old_umask = os.umask(0o022)
    try:
        dest = relocate_backup(exiftool_backup_path(photo), photo, RUN_START, resolver)
    finally:
        os.umask(old_umask)

    assert dest.parent == shoot / f"backups_{TS}"
    assert dest.parent.stat().st_mode & 0o777 == 0o775


def test_abs_path_name_clash_does_not_overwrite(tmp_path, resolver):
    archive = tmp_path / "archive"
    archive.mkdir()
    policy = {"backups_location": "abs_path", "backups_folder": str(archive)}
    write_policy(tmp_path / "a", policy)
    write_policy(tmp_path / "b", policy)
    first = make_photo(tmp_path / "a" / "y" / "photo.jpg")
    second = make_photo(tmp_path / "b" / "y" / "photo.jpg")
    exiftool_backup_path(second).write_bytes(b"second original")

    dest = relocate_backup(exiftool_backup_path(first), first, RUN_START, resolver)
    with pytest.raises(BackupRelocationError, match="refusing to overwrite"):
        relocate_backup(exiftool_backup_path(second), second, RUN_START, resolver)

    assert dest.read_bytes() == b"original"
    assert exiftool_backup_path(second).read_bytes() == b"second original"
