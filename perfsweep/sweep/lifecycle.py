"""Working-area preconditions and guaranteed finalization around a sweep."""

from __future__ import annotations

import logging
import shutil
import signal
import threading
import time
import zipfile
from collections.abc import Callable, Iterable
from pathlib import Path

from rich.console import Console

from perfsweep.config import ExecutionMode, SweepSettings
from perfsweep.errors import ResultsExistError
from perfsweep.sweep.ledger import DurationLedger
from perfsweep.sweep.report import render_report

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = ("SIGTERM", "SIGHUP")


def _exit_on_signal(signum, frame) -> None:
    logger.warning(f"Received signal {signum}, finishing up")
    raise SystemExit(128 + signum)


def archive_directory(directory: Path, archive: Path) -> Path:
    """Zip a directory tree; entries keep the directory name as their prefix.

    The archive is written under a temporary name and renamed when complete,
    so an interrupted run never leaves a truncated archive behind.
    """
    base = directory.parent
    partial = archive.with_name(archive.name + ".part")
    try:
        with zipfile.ZipFile(partial, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for path in sorted(directory.rglob("*")):
                zf.write(path, arcname=str(path.relative_to(base)))
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(archive)
    return archive


class LifecycleGuard:
    """Wraps a sweep so the report is always produced.

    Entering checks (Real mode) that no earlier results are in the way,
    creates the results directory and copies the driver files into it.
    Leaving, by any path including signals, archives the results and
    renders the report exactly once.
    """

    def __init__(
        self,
        settings: SweepSettings,
        ledger: DurationLedger,
        copy_files: Iterable[str | Path] = (),
        console: Console | None = None,
        clock: Callable[[], float] = time.time,
        handle_signals: bool = True,
    ):
        self.settings = settings
        self.ledger = ledger
        self.copy_files = [Path(p) for p in copy_files]
        self.console = console or Console(highlight=False)
        self._clock = clock
        self._handle_signals = handle_signals
        self._previous_handlers: dict[int, object] = {}
        self._start_time = clock()
        self._finalized = False
        self.report: str | None = None
        self.results_dir = Path(settings.results_dir)
        self.results_archive = Path(settings.results_archive)

    @property
    def real_mode(self) -> bool:
        return self.settings.mode is ExecutionMode.REAL

    def check_preconditions(self) -> None:
        """Refuse to start over results from an earlier sweep.

        Raises:
            ResultsExistError: If the results directory or archive exists
        """
        if self.results_dir.exists():
            raise ResultsExistError(f"Results directory {self.results_dir}")
        if self.results_archive.exists():
            raise ResultsExistError(f"The {self.results_archive} file")

    def prepare(self) -> None:
        self.results_dir.mkdir(parents=True)
        for path in self.copy_files:
            if path.is_file():
                shutil.copy2(path, self.results_dir / path.name)
            else:
                logger.warning(f"Cannot copy {path} into {self.results_dir}: not a file")

    def finalize(self) -> str:
        """Archive results (Real mode) and emit the report. Safe to call twice."""
        if self._finalized:
            return self.report or ""
        self._finalized = True

        ignored = self._ignore_signals()
        try:
            if self.real_mode and self.results_dir.is_dir():
                logger.info(f"Zipping {self.results_dir} directory...")
                archive_directory(self.results_dir, self.results_archive)
        finally:
            try:
                self.report = render_report(
                    self.ledger,
                    self.settings.mode,
                    self._clock() - self._start_time,
                )
                self.console.print(self.report, markup=False, emoji=False, soft_wrap=True)
            finally:
                self._restore(ignored)
        return self.report

    def __enter__(self) -> LifecycleGuard:
        self._start_time = self._clock()
        if self.real_mode:
            self.check_preconditions()
            self.prepare()
        self._install_signal_handlers()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.finalize()
        finally:
            self._restore_signal_handlers()
        return False

    def _install_signal_handlers(self) -> None:
        if not self._handle_signals or threading.current_thread() is not threading.main_thread():
            return
        for name in HANDLED_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous_handlers[signum] = signal.signal(signum, _exit_on_signal)

    def _ignore_signals(self) -> dict[int, object]:
        """Ignore interrupts while finalizing; returns the handlers to restore."""
        if not self._handle_signals or threading.current_thread() is not threading.main_thread():
            return {}
        previous = {}
        for name in ("SIGINT", *HANDLED_SIGNALS):
            signum = getattr(signal, name, None)
            if signum is not None:
                previous[signum] = signal.signal(signum, signal.SIG_IGN)
        return previous

    @staticmethod
    def _restore(handlers: dict[int, object]) -> None:
        for signum, handler in handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)

    def _restore_signal_handlers(self) -> None:
        self._restore(self._previous_handlers)
        self._previous_handlers.clear()
