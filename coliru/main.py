from __future__ import annotations

import argparse
import logging
import sys
import tempfile
from typing import List, Optional, Sequence

from . import __version__
from .backends import Backend, LocalBackend, RemoteBackend
from .config import ConfigError, load_settings
from .logging_utils import configure_logging
from .manifest import Manifest, ManifestError, get_manifest_tags, parse_manifest_file
from .pipeline import InstallReport, Reporter, run_manifest

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SOFT_ERRORS = 1
EXIT_FATAL = 2

HELP_EXAMPLES = """\
examples:
  # List tags in manifest
  coliru manifest.yml --list-tags

  # Preview installation steps with tags matching A && (B || C) && !D
  coliru manifest.yml --tag-rules A B,C ^D --dry-run

  # Install dotfiles on local machine
  coliru manifest.yml --tag-rules A B,C ^D

  # Install dotfiles to user@hostname over SSH
  coliru manifest.yml --tag-rules A B,C ^D --host user@hostname
"""


class FatalError(RuntimeError):
    pass


def load_manifest(path: str) -> Manifest:
    try:
        manifest = parse_manifest_file(path)
    except (OSError, ManifestError) as e:
        raise FatalError(f"Failed to parse {path}: {e}") from e
    if not manifest.base_dir.is_dir():
        raise FatalError(f"Failed to set working directory: {manifest.base_dir}")
    return manifest


def install(
    manifest: Manifest,
    *,
    tag_rules: Sequence[str] = (),
    host: str = "",
    dry_run: bool = False,
    copy: bool = False,
    config_path: Optional[str] = None,
    reporter: Optional[Reporter] = None,
) -> InstallReport:
    """Install a parsed manifest locally, or on `host` when one is given."""

    try:
        settings = load_settings(config_path)
    except (OSError, ConfigError) as e:
        raise FatalError(f"Failed to load settings: {e}") from e

    if not host:
        backend: Backend = LocalBackend(manifest.base_dir, settings)
        return run_manifest(manifest, tag_rules, backend, dry_run=dry_run, copy=copy, reporter=reporter)

    try:
        staging = tempfile.TemporaryDirectory(prefix="coliru-")
    except OSError as e:
        raise FatalError(f"Failed to create temporary directory: {e}") from e

    with staging as staging_root:
        logger.debug("Staging directory %s", staging_root)
        backend = RemoteBackend(host, staging_root, manifest.base_dir, settings)
        return run_manifest(manifest, tag_rules, backend, dry_run=dry_run, copy=copy, reporter=reporter)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="coliru",
        description="A minimal, flexible, dotfile installer",
        epilog=HELP_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("manifest", help="Path to the coliru manifest file")
    p.add_argument(
        "-t",
        "--tag-rules",
        nargs="*",
        action="extend",
        default=[],
        metavar="RULE",
        help="Tag rules to enforce (A B,C ^D means A and (B or C) and not D)",
    )
    p.add_argument("-l", "--list-tags", action="store_true", help="List available tags and quit")
    p.add_argument("-n", "--dry-run", action="store_true", help="Do a trial run without any permanent changes")
    p.add_argument("--host", default="", help="Install dotfiles on another machine over SSH")
    p.add_argument("--copy", action="store_true", help="Interpret link commands as copy commands")
    p.add_argument("--no-color", action="store_true", help="Disable color output")
    p.add_argument("--config", default=None, help="Path to a settings file (yaml)")
    p.add_argument("--log", default=None, help="Write a debug log to this path")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More diagnostics on stderr")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def run(args: argparse.Namespace) -> int:
    manifest = load_manifest(args.manifest)

    if args.list_tags:
        for tag in get_manifest_tags(manifest):
            print(tag)
        return EXIT_OK

    reporter = Reporter(color=False) if args.no_color else Reporter()
    report = install(
        manifest,
        tag_rules=args.tag_rules,
        host=args.host,
        dry_run=args.dry_run,
        copy=args.copy,
        config_path=args.config,
        reporter=reporter,
    )
    logger.info(
        "Ran steps %s, skipped %s, %d error(s)", report.ran_steps, report.skipped_steps, len(report.errors)
    )
    return EXIT_SOFT_ERRORS if report.had_errors else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    configure_logging(log_path=args.log, level=level)

    try:
        return run(args)
    except FatalError as e:
        logger.debug("Fatal error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL


if __name__ == "__main__":
    raise SystemExit(main())
