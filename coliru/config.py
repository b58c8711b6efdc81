from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from .lib.local import DEFAULT_SHELL

logger = logging.getLogger(__name__)

CONFIG_ENV = "COLIRU_CONFIG"
SSH_ARGS_ENV = "COLIRU_SSH_ARGS"
SCP_ARGS_ENV = "COLIRU_SCP_ARGS"


class ConfigError(ValueError):
    pass


def _str_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"{name} must be a string or a list of strings")


@dataclass(frozen=True)
class Settings:
    raw: Dict[str, Any] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def install_dir(self) -> str:
        return str(((self.raw.get("remote") or {}).get("install_dir")) or ".coliru")

    @property
    def ssh_command(self) -> str:
        return str(((self.raw.get("remote") or {}).get("ssh")) or "ssh")

    @property
    def scp_command(self) -> str:
        return str(((self.raw.get("remote") or {}).get("scp")) or "scp")

    @property
    def ssh_args(self) -> List[str]:
        if SSH_ARGS_ENV in self.env:
            return shlex.split(self.env[SSH_ARGS_ENV])
        return _str_list((self.raw.get("remote") or {}).get("ssh_args"), "remote.ssh_args")

    @property
    def scp_args(self) -> List[str]:
        if SCP_ARGS_ENV in self.env:
            return shlex.split(self.env[SCP_ARGS_ENV])
        return _str_list((self.raw.get("remote") or {}).get("scp_args"), "remote.scp_args")

    @property
    def shell(self) -> List[str]:
        return _str_list((self.raw.get("local") or {}).get("shell"), "local.shell") or list(DEFAULT_SHELL)


def load_settings(path: str | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Load settings from a YAML file.

    `path` falls back to $COLIRU_CONFIG; with neither, defaults are used.
    """

    env = dict(os.environ if env is None else env)
    path = path or env.get(CONFIG_ENV)
    if not path:
        return Settings(raw={}, env=env)

    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(path)
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("settings file must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except UnicodeDecodeError as e:
        raise ConfigError(f"{p} is not valid UTF-8: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{p} must contain a mapping/object")

    logger.debug("Loaded settings from %s", p)
    return Settings(raw=raw, env=env)
