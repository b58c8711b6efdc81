from __future__ import annotations

import os
from pathlib import Path

HOME_DIR = "home"
ROOT_DIR = "root"

_SEPARATORS = "/" + os.sep + (os.altsep or "")


class StagingError(ValueError):
    pass


def _expand_tilde(dst: str, home: Path) -> Path | None:
    if dst == "~":
        return home
    if len(dst) > 1 and dst[0] == "~" and dst[1] in _SEPARATORS:
        rest = dst[1:].lstrip(_SEPARATORS)
        return home / rest if rest else home
    return None


def _is_under(path: Path, parent: Path) -> bool:
    try:
        path.relative_to(parent)
    except ValueError:
        return False
    return True


def resolve_staging_path(dst: str, staging_root: str | Path) -> Path:
    """Map a destination path to its location inside a staging tree.

    The staging tree mirrors the remote namespace so that it can be sent in
    one batch:

        staging_root/
        ├── home/   ~/..., and relative destinations
        └── root/   absolute destinations, filesystem root stripped

    `~user/...` forms are not expanded and are treated as relative.
    """

    root = Path(staging_root)
    home = root / HOME_DIR

    expanded = _expand_tilde(dst, home)
    if expanded is not None:
        path = expanded
    elif not Path(dst).is_absolute():
        path = home / dst
    else:
        path = Path(dst)

    if _is_under(path, home):
        return path

    anchor = path.anchor
    if not anchor:
        raise StagingError(f"Failed to get root of {dst}")
    return root / ROOT_DIR / path.relative_to(anchor)


def resolve_remote_path(dst: str, install_dir: str) -> str:
    """Anchor a relative destination under the remote install directory.

    `foo` becomes `~/<install_dir>/foo`; tilde and absolute paths are left
    alone.
    """

    if dst.startswith("~") or Path(dst).is_absolute():
        return dst
    return f"~/{install_dir}/{dst}"
