"""Preparation of the observer's working directory layout."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Union

log = logging.getLogger(__name__)

DEFAULT_ROOT = "/home/admin"
OWNER = "admin"

_LINKED = (
    ("data_log", "clog"),
    ("data_log", "ilog"),
    ("data_log", "slog"),
    ("data_file", "sort_dir"),
    ("data_file", "sstable"),
)


def _remove(path: Path) -> None:
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
    except OSError as exc:
        log.warning("cannot remove %s: %s", path, exc)


def _mkdirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log.warning("cannot create %s: %s", path, exc)


def _force_symlink(target: Path, link: Path) -> None:
    if link.is_dir() and not link.is_symlink():
        link = link / target.name
    try:
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(target)
    except OSError as exc:
        log.warning("cannot link %s -> %s: %s", link, target, exc)


def _chown_tree(root: Path, owner: str) -> None:
    try:
        import grp
        import pwd

        uid = pwd.getpwnam(owner).pw_uid
        gid = grp.getgrnam(owner).gr_gid
    except (ImportError, KeyError) as exc:
        log.warning("cannot resolve owner %s: %s", owner, exc)
        return
    paths = [root]
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        paths.extend(Path(dirpath, name) for name in dirnames + filenames)
    for path in paths:
        try:
            os.lchown(path, uid, gid)
        except OSError as exc:
            log.warning("cannot chown %s: %s", path, exc)


def init_dirs(root: Union[str, os.PathLike] = DEFAULT_ROOT) -> Path:
    """Reset log and store directories under ``root`` and link them to data dirs.

    Failures of individual steps are logged and do not stop the others.
    """
    root = Path(root)
    oceanbase = root / "oceanbase"

    _remove(oceanbase / "log")
    _mkdirs(root / "log")
    _force_symlink(root / "log", oceanbase / "log")

    store = oceanbase / "store"
    _remove(store)
    _mkdirs(store)
    for parent, name in _LINKED:
        target = root / parent / name
        _mkdirs(target)
        _force_symlink(target, store / name)

    _chown_tree(root, OWNER)
    return root