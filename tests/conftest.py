"""
Shared test fixtures: a throwaway dotfile repo, a fake $HOME and a backend
that records what the pipeline asks of it.
"""

from __future__ import annotations

import io
import textwrap
from pathlib import Path

import pytest

from coliru.pipeline import Reporter

MANIFEST = textwrap.dedent(
    """\
    steps:
      - copy:
        - src: gitconfig
          dst: ~/.gitconfig
        tags: [ windows, linux, macos ]

      - link:
        - src: bashrc
          dst: ~/.bashrc
        - src: vimrc
          dst: ~/.vimrc
        run:
        - src: script.sh
          prefix: sh
          postfix: arg1 $COLIRU_RULES
        tags: [ linux, macos ]

      - link:
        - src: vimrc
          dst: ~/_vimrc
        run:
        - src: script.bat
          postfix: arg1 $COLIRU_RULES
        tags: [ windows ]
    """
)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point $HOME at an empty temporary directory."""
    h = tmp_path / "home"
    h.mkdir()
    monkeypatch.setenv("HOME", str(h))
    return h


@pytest.fixture
def dotfiles(tmp_path: Path) -> Path:
    """A dotfile repo with a manifest and the files it references."""
    repo = tmp_path / "dotfiles"
    repo.mkdir()
    (repo / "manifest.yml").write_text(MANIFEST)
    (repo / "gitconfig").write_text("git #1\n")
    (repo / "bashrc").write_text("bash #1\n")
    (repo / "vimrc").write_text("vim #1\n")
    (repo / "script.sh").write_text('echo "script.sh called with $@" > log.txt\n')
    (repo / "script.bat").write_text("echo script.bat called with %* > log.txt\n")
    return repo


class RecordingBackend:
    """Stands in for the local/remote executors; records every call."""

    def __init__(self, *, remote: bool = False, host: str = "", fail_on=()) -> None:
        self.remote = remote
        self.host = host or ("user@host" if remote else "")
        self.fail_on = set(fail_on)
        self.calls: list[tuple] = []

    def _check(self, key: str) -> None:
        if key in self.fail_on:
            raise RuntimeError(f"boom: {key}")

    def describe_dst(self, dst: str) -> str:
        return f"{self.host}:{dst}" if self.remote else dst

    def copy(self, src: str, dst: str) -> None:
        self.calls.append(("copy", src, dst))
        self._check(src)

    def link(self, src: str, dst: str) -> None:
        self.calls.append(("link", src, dst))
        self._check(src)

    def run(self, command: str) -> None:
        self.calls.append(("run", command))
        self._check(command)

    def flush(self) -> None:
        self.calls.append(("flush",))
        self._check("flush")


@pytest.fixture
def make_backend():
    return RecordingBackend


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def remote_backend() -> RecordingBackend:
    return RecordingBackend(remote=True)


class CapturingReporter(Reporter):
    def __init__(self) -> None:
        super().__init__(out=io.StringIO(), err=io.StringIO(), color=False)

    @property
    def lines(self) -> list[str]:
        return self.out.getvalue().splitlines()

    @property
    def error_lines(self) -> list[str]:
        return self.err.getvalue().splitlines()


@pytest.fixture
def reporter() -> CapturingReporter:
    return CapturingReporter()
