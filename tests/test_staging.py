"""
Tests for mapping destinations into the staging tree.
"""

import os
from pathlib import Path

import pytest

from coliru.lib.staging import resolve_remote_path, resolve_staging_path

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX path layout")

S = Path("/tmp/staging")


@posix_only
class TestResolveStagingPath:
    def test_tilde(self):
        assert resolve_staging_path("~/x", S) == S / "home" / "x"

    def test_nested_tilde(self):
        assert resolve_staging_path("~/.config/nvim/init.vim", S) == S / "home/.config/nvim/init.vim"

    def test_bare_tilde(self):
        assert resolve_staging_path("~", S) == S / "home"

    def test_relative(self):
        assert resolve_staging_path("x", S) == S / "home" / "x"
        assert resolve_staging_path("scripts/foo", S) == S / "home/scripts/foo"

    def test_absolute_root_is_stripped(self):
        assert resolve_staging_path("/x", S) == S / "root" / "x"
        assert resolve_staging_path("/etc/hosts", S) == S / "root/etc/hosts"

    def test_tilde_user_is_not_expanded(self):
        assert resolve_staging_path("~bob/x", S) == S / "home" / "~bob/x"

    def test_relative_staging_root(self):
        assert resolve_staging_path("/x", "stage") == Path("stage/root/x")
        assert resolve_staging_path("x", "stage") == Path("stage/home/x")

    def test_deterministic(self):
        assert resolve_staging_path("/a/b", S) == resolve_staging_path("/a/b", S)


@posix_only
class TestResolveRemotePath:
    def test_relative_goes_under_install_dir(self):
        assert resolve_remote_path("foo", ".coliru") == "~/.coliru/foo"

    def test_tilde_and_absolute_unchanged(self):
        assert resolve_remote_path("~/foo", ".coliru") == "~/foo"
        assert resolve_remote_path("/foo", ".coliru") == "/foo"

    def test_then_staged(self):
        dst = resolve_remote_path("scripts/foo", ".coliru")
        assert resolve_staging_path(dst, S) == S / "home/.coliru/scripts/foo"
