from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

DEFAULT_SHELL = ["cmd.exe", "/C"] if os.name == "nt" else ["sh", "-c"]


def _same_path(src: Path, dst: Path) -> bool:
    return os.path.abspath(src) == os.path.abspath(dst)


def prepare_path(dst: str | Path) -> Path:
    """Expand `~`, create parent dirs and remove whatever sits at `dst`."""

    d = Path(os.path.expanduser(str(dst)))
    d.parent.mkdir(parents=True, exist_ok=True)
    # lexists: also catches dangling symlinks
    if os.path.lexists(d):
        if d.is_dir() and not d.is_symlink():
            raise IsADirectoryError(f"Refusing to replace directory {d}")
        d.unlink()
    return d


def copy_file(src: str | Path, dst: str | Path) -> None:
    s = Path(src)
    if _same_path(s, Path(os.path.expanduser(str(dst)))):
        logger.debug("Skip copy, %s is its own destination", s)
        return
    if not s.is_file():
        raise FileNotFoundError(f"No such file: {src}")

    d = prepare_path(dst)
    shutil.copy2(s, d)
    logger.debug("Copied %s -> %s", s, d)


def link_file(src: str | Path, dst: str | Path) -> None:
    """Symlink `dst` to the absolute path of `src`.

    Windows gets a hard link, since symlinks there need extra privileges.
    """

    s = Path(src)
    if _same_path(s, Path(os.path.expanduser(str(dst)))):
        logger.debug("Skip link, %s is its own destination", s)
        return
    if not s.exists():
        raise FileNotFoundError(f"No such file: {src}")

    d = prepare_path(dst)
    target = s.resolve()
    if os.name == "nt":
        os.link(target, d)
    else:
        os.symlink(target, d)
    logger.debug("Linked %s -> %s", d, target)


def run_command(
    command: str,
    *,
    cwd: str | Path | None = None,
    shell: Sequence[str] = DEFAULT_SHELL,
) -> CmdResult:
    """Run a command line through the platform shell, output passed through."""

    return run_cmd([*shell, command], cwd=cwd, capture=False)
