from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import yaml

from .tags import RuleLike, matches

logger = logging.getLogger(__name__)

RULES_TOKEN = "$COLIRU_RULES"

_STEP_KEYS = {"copy", "link", "run", "tags"}
_COPY_LINK_KEYS = {"src", "dst"}
_RUN_KEYS = {"src", "prefix", "postfix"}


class ManifestError(ValueError):
    pass


@dataclass(frozen=True)
class CopyLink:
    src: str
    dst: str


@dataclass(frozen=True)
class RunSpec:
    src: str
    prefix: str = ""
    postfix: str = ""

    def command(self, rules: Sequence[RuleLike]) -> str:
        """Build the command line, substituting the active tag rules."""
        postfix = self.postfix.replace(RULES_TOKEN, " ".join(str(r) for r in rules))
        return f"{self.prefix} {self.src} {postfix}"


@dataclass(frozen=True)
class Step:
    copy: Tuple[CopyLink, ...] = ()
    link: Tuple[CopyLink, ...] = ()
    run: Tuple[RunSpec, ...] = ()
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Manifest:
    steps: Tuple[Step, ...]
    base_dir: Path = field(default_factory=lambda: Path("."))

    def resolve(self, path: str | Path) -> Path:
        """Resolve a manifest-relative path against the manifest directory."""
        p = Path(path)
        if p.is_absolute():
            return p
        return self.base_dir / p


def _require_str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ManifestError(f"{where}: expected a string, got {type(value).__name__}")
    return value


def _require_mapping(value: Any, where: str, allowed: set) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ManifestError(f"{where}: expected a mapping, got {type(value).__name__}")
    unknown = sorted(str(k) for k in value if k not in allowed)
    if unknown:
        raise ManifestError(f"{where}: unknown field(s) {', '.join(unknown)}")
    return value


def _require_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ManifestError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _parse_copy_link(raw: Any, where: str) -> CopyLink:
    data = _require_mapping(raw, where, _COPY_LINK_KEYS)
    for key in ("src", "dst"):
        if key not in data:
            raise ManifestError(f"{where}: missing field '{key}'")
    return CopyLink(
        src=_require_str(data["src"], f"{where}.src"),
        dst=_require_str(data["dst"], f"{where}.dst"),
    )


def _parse_run(raw: Any, where: str) -> RunSpec:
    data = _require_mapping(raw, where, _RUN_KEYS)
    if "src" not in data:
        raise ManifestError(f"{where}: missing field 'src'")
    return RunSpec(
        src=_require_str(data["src"], f"{where}.src"),
        prefix=_require_str(data.get("prefix") or "", f"{where}.prefix"),
        postfix=_require_str(data.get("postfix") or "", f"{where}.postfix"),
    )


def _parse_step(raw: Any, where: str) -> Step:
    data = _require_mapping(raw, where, _STEP_KEYS)
    copies = _require_list(data.get("copy"), f"{where}.copy")
    links = _require_list(data.get("link"), f"{where}.link")
    runs = _require_list(data.get("run"), f"{where}.run")
    tags = _require_list(data.get("tags"), f"{where}.tags")
    return Step(
        copy=tuple(_parse_copy_link(c, f"{where}.copy[{i}]") for i, c in enumerate(copies)),
        link=tuple(_parse_copy_link(c, f"{where}.link[{i}]") for i, c in enumerate(links)),
        run=tuple(_parse_run(r, f"{where}.run[{i}]") for i, r in enumerate(runs)),
        tags=tuple(_require_str(t, f"{where}.tags[{i}]") for i, t in enumerate(tags)),
    )


def parse_manifest(text: str, base_dir: str | Path = ".") -> Manifest:
    """Parse manifest YAML text.

    The document must be a mapping with a `steps` list. Each step may carry
    `copy`, `link`, `run` and `tags`; all are optional.
    """

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a mapping/dict")
    if "steps" not in data:
        raise ManifestError("missing field 'steps'")
    unknown = sorted(str(k) for k in data if k != "steps")
    if unknown:
        raise ManifestError(f"unknown field(s) {', '.join(unknown)}")

    raw_steps = _require_list(data["steps"], "steps")
    steps = tuple(_parse_step(s, f"steps[{i}]") for i, s in enumerate(raw_steps))
    return Manifest(steps=steps, base_dir=Path(base_dir))


def parse_manifest_file(path: str | Path) -> Manifest:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(f"{p} is not valid UTF-8: {e}") from e
    base_dir = p.parent
    manifest = parse_manifest(text, base_dir=base_dir)
    logger.debug("Loaded %d step(s) from %s (base_dir=%s)", len(manifest.steps), p, base_dir)
    return manifest


def get_manifest_tags(manifest: Manifest) -> List[str]:
    tags = set()
    for step in manifest.steps:
        tags.update(step.tags)
    return sorted(tags)


def filter_steps(manifest: Manifest, rules: Sequence[RuleLike]) -> List[Step]:
    return [s for s in manifest.steps if matches(rules, s.tags)]
