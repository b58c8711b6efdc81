from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .config import Settings
from .lib.local import copy_file, link_file, run_command
from .lib.ssh import send_command, send_staged_files, stage_file
from .lib.staging import resolve_remote_path

logger = logging.getLogger(__name__)


class Backend(Protocol):
    """Where actions land: the local machine or a remote host."""

    remote: bool
    host: str

    def describe_dst(self, dst: str) -> str:
        ...

    def copy(self, src: str, dst: str) -> None:
        ...

    def link(self, src: str, dst: str) -> None:
        ...

    def run(self, command: str) -> None:
        ...

    def flush(self) -> None:
        ...


class LocalBackend:
    remote = False
    host = ""

    def __init__(self, base_dir: str | Path, settings: Settings | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.settings = settings or Settings()

    def _resolve(self, path: str) -> Path:
        if path.startswith("~"):
            return Path(path)
        p = Path(path)
        return p if p.is_absolute() else self.base_dir / p

    def describe_dst(self, dst: str) -> str:
        return dst

    def copy(self, src: str, dst: str) -> None:
        copy_file(self._resolve(src), self._resolve(dst))

    def link(self, src: str, dst: str) -> None:
        link_file(self._resolve(src), self._resolve(dst))

    def run(self, command: str) -> None:
        run_command(command, cwd=self.base_dir, shell=self.settings.shell)

    def flush(self) -> None:
        return None


class RemoteBackend:
    """Stage files locally, then ship them to `host` with scp on flush."""

    remote = True

    def __init__(
        self,
        host: str,
        staging_root: str | Path,
        base_dir: str | Path,
        settings: Settings | None = None,
    ) -> None:
        if not host:
            raise ValueError("RemoteBackend requires a host")
        self.host = host
        self.staging_root = Path(staging_root)
        self.base_dir = Path(base_dir)
        self.settings = settings or Settings()

    def describe_dst(self, dst: str) -> str:
        return f"{self.host}:{resolve_remote_path(dst, self.settings.install_dir)}"

    def copy(self, src: str, dst: str) -> None:
        s = Path(src)
        if not s.is_absolute():
            s = self.base_dir / s
        staged = stage_file(s, resolve_remote_path(dst, self.settings.install_dir), self.staging_root)
        logger.debug("Staged %s at %s", s, staged)

    def link(self, src: str, dst: str) -> None:
        # Links cannot cross the wire.
        self.copy(src, dst)

    def run(self, command: str) -> None:
        send_command(
            f"cd {self.settings.install_dir} && {command}",
            self.host,
            ssh=self.settings.ssh_command,
            ssh_args=self.settings.ssh_args,
        )

    def flush(self) -> None:
        send_staged_files(
            self.staging_root,
            self.host,
            scp=self.settings.scp_command,
            scp_args=self.settings.scp_args,
        )
