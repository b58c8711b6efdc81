"""
Tests for settings loading.
"""

from pathlib import Path

import pytest

from coliru.config import ConfigError, Settings, load_settings


class TestDefaults:
    def test_no_path(self):
        s = load_settings(None, env={})
        assert s.install_dir == ".coliru"
        assert s.ssh_command == "ssh"
        assert s.scp_command == "scp"
        assert s.ssh_args == []
        assert s.scp_args == []
        assert s.shell

    def test_bare_settings(self):
        assert Settings().install_dir == ".coliru"


class TestLoadSettings:
    def test_yaml(self, tmp_path: Path):
        p = tmp_path / "settings.yml"
        p.write_text(
            "remote:\n"
            "  install_dir: .dots\n"
            "  ssh_args: -p 2222 -o StrictHostKeyChecking=no\n"
            "  scp_args: [-P, '2222']\n"
            "local:\n"
            "  shell: [bash, -c]\n"
        )
        s = load_settings(str(p), env={})
        assert s.install_dir == ".dots"
        assert s.ssh_args == ["-p", "2222", "-o", "StrictHostKeyChecking=no"]
        assert s.scp_args == ["-P", "2222"]
        assert s.shell == ["bash", "-c"]

    def test_path_from_env(self, tmp_path: Path):
        p = tmp_path / "c.yaml"
        p.write_text("remote:\n  install_dir: .x\n")
        assert load_settings(None, env={"COLIRU_CONFIG": str(p)}).install_dir == ".x"

    def test_env_args_override(self, tmp_path: Path):
        p = tmp_path / "c.yaml"
        p.write_text("remote:\n  ssh_args: [-v]\n")
        s = load_settings(str(p), env={"COLIRU_SSH_ARGS": "-p 2222", "COLIRU_SCP_ARGS": "-P 2222"})
        assert s.ssh_args == ["-p", "2222"]
        assert s.scp_args == ["-P", "2222"]

    def test_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "nope.yml"), env={})

    def test_not_yaml(self, tmp_path: Path):
        p = tmp_path / "c.json"
        p.write_text("{}")
        with pytest.raises(ConfigError):
            load_settings(str(p), env={})

    def test_not_mapping(self, tmp_path: Path):
        p = tmp_path / "c.yml"
        p.write_text("- a\n")
        with pytest.raises(ConfigError):
            load_settings(str(p), env={})

    def test_bad_args_type(self, tmp_path: Path):
        p = tmp_path / "c.yml"
        p.write_text("remote:\n  ssh_args: {a: 1}\n")
        with pytest.raises(ConfigError):
            load_settings(str(p), env={}).ssh_args

    def test_not_utf8(self, tmp_path: Path):
        p = tmp_path / "c.yml"
        p.write_bytes(b"remote:\n  install_dir: \xff\n")
        with pytest.raises(ConfigError, match="not valid UTF-8"):
            load_settings(str(p), env={})
