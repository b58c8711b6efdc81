from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, TextIO

from .backends import Backend
from .manifest import CopyLink, Manifest, Step
from .tags import RuleLike, TagRule, matches, parse_rules

logger = logging.getLogger(__name__)

_BOLD = "\033[1m"
_RED = "\033[31m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class ActionResult:
    step: int
    kind: str
    description: str
    error: Optional[str] = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class InstallReport:
    results: List[ActionResult] = field(default_factory=list)
    ran_steps: List[int] = field(default_factory=list)
    skipped_steps: List[int] = field(default_factory=list)

    @property
    def errors(self) -> List[ActionResult]:
        return [r for r in self.results if not r.ok]

    @property
    def had_errors(self) -> bool:
        return any(not r.ok for r in self.results)


class Reporter:
    """Prints what is about to happen, and what went wrong, to the user."""

    def __init__(
        self,
        out: TextIO | None = None,
        err: TextIO | None = None,
        color: bool | None = None,
    ) -> None:
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        if color is None:
            color = bool(getattr(self.out, "isatty", lambda: False)())
        self.color = color

    def _style(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + _RESET

    def announce(self, counter: str, text: str, *, dry_run: bool = False) -> None:
        line = f"{self._style(counter, _BOLD)} {text}"
        if dry_run:
            line += " (DRY RUN)"
        print(line, file=self.out, flush=True)

    def error(self, message: str) -> None:
        print(f"  {self._style('Error:', _BOLD, _RED)} {message}", file=self.err, flush=True)


class _StepRunner:
    def __init__(
        self,
        *,
        backend: Backend,
        rules: Sequence[TagRule],
        reporter: Reporter,
        report: InstallReport,
        dry_run: bool,
        copy: bool,
    ) -> None:
        self.backend = backend
        self.rules = rules
        self.reporter = reporter
        self.report = report
        self.dry_run = dry_run
        self.links_as_copies = copy or backend.remote

    def _record(self, step: int, kind: str, text: str, error: Optional[str] = None) -> None:
        self.report.results.append(
            ActionResult(step=step, kind=kind, description=text, error=error, dry_run=self.dry_run)
        )

    def _attempt(self, step: int, counter: str, kind: str, text: str, fn: Callable[[], None]) -> None:
        self.reporter.announce(counter, text, dry_run=self.dry_run)
        if self.dry_run:
            self._record(step, kind, text)
            return
        try:
            fn()
        except Exception as e:
            logger.debug("%s failed: %s", text, e, exc_info=True)
            self.reporter.error(str(e))
            self._record(step, kind, text, error=str(e))
        else:
            self._record(step, kind, text)

    def _flush(self, step: int) -> None:
        if not self.backend.remote or self.dry_run:
            return
        text = f"Transfer staged files to {self.backend.host}"
        try:
            self.backend.flush()
        except Exception as e:
            logger.debug("%s failed: %s", text, e, exc_info=True)
            msg = f"Failed to transfer staged files: {e}"
            self.reporter.error(msg)
            self._record(step, "transfer", text, error=msg)

    def _copies(self, step: int, counter: str, entries: Sequence[CopyLink]) -> None:
        for c in entries:
            text = f"Copy {c.src} to {self.backend.describe_dst(c.dst)}"
            self._attempt(step, counter, "copy", text, lambda c=c: self.backend.copy(c.src, c.dst))

    def _links(self, step: int, counter: str, entries: Sequence[CopyLink]) -> None:
        for c in entries:
            text = f"Link {c.src} to {c.dst}"
            self._attempt(step, counter, "link", text, lambda c=c: self.backend.link(c.src, c.dst))

    def run_step(self, step_no: int, counter: str, step: Step) -> None:
        self._copies(step_no, counter, step.copy)
        if self.links_as_copies:
            self._copies(step_no, counter, step.link)
        else:
            self._links(step_no, counter, step.link)
        self._flush(step_no)

        if not step.run:
            return

        if self.backend.remote:
            # Scripts go to the install dir under the same relative path.
            self._copies(step_no, counter, [CopyLink(src=r.src, dst=r.src) for r in step.run])
            self._flush(step_no)

        for r in step.run:
            cmd = r.command(self.rules)
            text = f"Run {cmd}"
            if self.backend.remote:
                text += f" on {self.backend.host}"
            self._attempt(step_no, counter, "run", text, lambda cmd=cmd: self.backend.run(cmd))


def run_manifest(
    manifest: Manifest,
    tag_rules: Sequence[RuleLike],
    backend: Backend,
    *,
    dry_run: bool = False,
    copy: bool = False,
    reporter: Optional[Reporter] = None,
) -> InstallReport:
    """Run the manifest steps matching `tag_rules`, in order.

    Steps that do not match are skipped silently. Counters are `[i/n]` over
    the matching steps only. A failing action is reported and recorded;
    it never stops the run.
    """

    rules = parse_rules(tag_rules)
    report = InstallReport()
    runner = _StepRunner(
        backend=backend,
        rules=rules,
        reporter=reporter or Reporter(),
        report=report,
        dry_run=dry_run,
        copy=copy,
    )

    selected = []
    for index, step in enumerate(manifest.steps, start=1):
        if matches(rules, step.tags):
            selected.append((index, step))
        else:
            logger.debug("Skipping step %d (tags %s)", index, list(step.tags))
            report.skipped_steps.append(index)

    for pos, (index, step) in enumerate(selected, start=1):
        logger.info("Running step %d", index)
        runner.run_step(index, f"[{pos}/{len(selected)}]", step)
        report.ran_steps.append(index)

    return report
