from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Sequence

from .command import CommandError, run_cmd
from .local import copy_file
from .staging import HOME_DIR, ROOT_DIR, resolve_staging_path

logger = logging.getLogger(__name__)


class TransferError(RuntimeError):
    """One or more items of a staging tree could not be sent."""

    def __init__(self, failures: Sequence[CommandError]) -> None:
        self.failures = list(failures)
        super().__init__("\n".join(str(e) for e in self.failures))


def stage_file(src: str | Path, dst: str, staging_root: str | Path) -> Path:
    """Copy `src` into the staging tree at the spot matching `dst`."""

    staged = resolve_staging_path(dst, staging_root)
    copy_file(src, staged)
    return staged


def send_dir(
    src: Path,
    dst: str,
    host: str,
    *,
    scp: str = "scp",
    scp_args: Sequence[str] = (),
) -> List[CommandError]:
    """Copy the contents of `src` into `host:dst`, merging with what is there.

    Items are sent one by one; `scp -r src host:dst` would nest `src` itself
    under `dst`. A failed item does not stop the others. Returns the failures.
    """

    failures: List[CommandError] = []
    for item in sorted(src.iterdir()):
        try:
            run_cmd([scp, *scp_args, "-r", str(item), f"{host}:{dst}"])
        except CommandError as e:
            logger.warning("Failed to send %s: %s", item, e)
            failures.append(e)
    return failures


def send_staged_files(
    staging_root: str | Path,
    host: str,
    *,
    scp: str = "scp",
    scp_args: Sequence[str] = (),
) -> None:
    """Transfer a staging tree to `host` and empty it.

    Every item is attempted; failures are collected and raised together as
    `TransferError`. The tree is emptied either way, so a failed file is not
    sent again by the next flush.
    """

    root = Path(staging_root)
    failures: List[CommandError] = []
    try:
        for sub, remote in ((HOME_DIR, "~"), (ROOT_DIR, "/")):
            local = root / sub
            if local.is_dir() and any(local.iterdir()):
                logger.info("Sending %s to %s:%s", local, host, remote)
                failures.extend(send_dir(local, remote, host, scp=scp, scp_args=scp_args))
    finally:
        for sub in (HOME_DIR, ROOT_DIR):
            shutil.rmtree(root / sub, ignore_errors=True)
    if failures:
        raise TransferError(failures)


def send_command(
    command: str,
    host: str,
    *,
    ssh: str = "ssh",
    ssh_args: Sequence[str] = (),
) -> None:
    run_cmd([ssh, *ssh_args, host, command], capture=False)
