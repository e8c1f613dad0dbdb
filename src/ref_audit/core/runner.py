"""Runner — drives discovery, loading and classification for one scan run.

Results are pushed to the caller as soon as each file is classified; the
run ends with exactly one terminal callback (``on_completed`` or
``on_failed``).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ALL_COMPLETED, FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Union

from ref_audit.core.classify import ExternalResolver, find_missing_references
from ref_audit.core.config import ScanConfiguration
from ref_audit.core.discover import iter_candidate_files
from ref_audit.errors import LoadError, OrchestratorError
from ref_audit.loaders import ParserRegistry, default_registry, load
from ref_audit.loaders.guid_index import build_guid_index
from ref_audit.model import LoadErrorKind, RunState
from ref_audit.model.scan_result import LoadDiagnostic, RunOutcome, ScanResult

_logger = logging.getLogger(__name__)

ResultCallback = Callable[[ScanResult], None]
CompletedCallback = Callable[[], None]
FailedCallback = Callable[[BaseException], None]
DiagnosticCallback = Callable[[LoadDiagnostic], None]

_FileOutcome = Union[ScanResult, LoadDiagnostic]

# In-flight work per worker when running with a pool.
_QUEUE_FACTOR = 2


class ScanHandle:
    """Caller-side view of a run: cooperative cancel and wait."""

    def __init__(self, emit_lock: threading.RLock) -> None:
        self._emit_lock = emit_lock
        self._cancel = threading.Event()
        self._done = threading.Event()
        self.outcome: RunOutcome | None = None

    def cancel(self) -> None:
        """Request a stop.  No result is emitted after this returns."""
        with self._emit_lock:
            self._cancel.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> RunOutcome | None:
        """Block until the run ends; return its outcome or None on timeout."""
        self._done.wait(timeout)
        return self.outcome

    def _finish(self, outcome: RunOutcome) -> None:
        self.outcome = outcome
        self._done.set()


class ScanOrchestrator:
    """One-shot state machine ``IDLE -> RUNNING -> {COMPLETED, FAILED}``.

    A finished orchestrator cannot be restarted; build a new one per scan.
    """

    def __init__(
        self,
        config: ScanConfiguration,
        on_result: ResultCallback,
        on_completed: CompletedCallback,
        on_failed: FailedCallback,
        *,
        on_diagnostic: DiagnosticCallback | None = None,
        registry: ParserRegistry | None = None,
        external: ExternalResolver | None = None,
        details: bool = True,
    ) -> None:
        self.config = config
        self.registry = registry if registry is not None else default_registry()
        self.external = external
        self.details = details
        self._on_result = on_result
        self._on_completed = on_completed
        self._on_failed = on_failed
        self._on_diagnostic = on_diagnostic
        self._emit_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self.state = RunState.IDLE
        self.handle = ScanHandle(self._emit_lock)
        self._scanned = 0
        self._skipped = 0

    # ── lifecycle ───────────────────────────────────────────────────

    def start(self) -> ScanHandle:
        """Run in a background thread and return the handle immediately."""
        self._enter_running()
        thread = threading.Thread(target=self._run, name="ref-audit-scan", daemon=True)
        thread.start()
        return self.handle

    def execute(self) -> RunOutcome:
        """Run in the calling thread and return the terminal outcome."""
        self._enter_running()
        return self._run()

    def _enter_running(self) -> None:
        with self._state_lock:
            if self.state is not RunState.IDLE:
                raise RuntimeError(
                    f"scan already {self.state.value}; create a new ScanOrchestrator"
                )
            self.state = RunState.RUNNING

    def _run(self) -> RunOutcome:
        try:
            if not self.config.is_empty:
                self._prepare_external()
                if self.config.jobs == 1:
                    self._run_sequential()
                else:
                    self._run_pool()
        except Exception as exc:
            _logger.exception("Scan failed after %d file(s)", self._scanned)
            return self._fail(exc)
        return self._complete()

    def _prepare_external(self) -> None:
        if self.external is not None or self.config.asset_root is None:
            return
        try:
            self.external = build_guid_index(self.config.asset_root)
        except OSError as exc:
            _logger.warning(
                "External references will not be checked — cannot index %s: %s",
                self.config.asset_root,
                exc,
            )

    # ── terminal transitions ────────────────────────────────────────

    def _complete(self) -> RunOutcome:
        with self._emit_lock:
            outcome = RunOutcome(
                RunState.COMPLETED,
                cancelled=self.handle.cancel_requested,
                files_scanned=self._scanned,
                files_skipped=self._skipped,
            )
            self.state = RunState.COMPLETED
            try:
                self._on_completed()
            finally:
                self.handle._finish(outcome)
        return outcome

    def _fail(self, exc: BaseException) -> RunOutcome:
        with self._emit_lock:
            outcome = RunOutcome(
                RunState.FAILED,
                error=exc,
                cancelled=self.handle.cancel_requested,
                files_scanned=self._scanned,
                files_skipped=self._skipped,
            )
            self.state = RunState.FAILED
            try:
                self._on_failed(exc)
            finally:
                self.handle._finish(outcome)
        return outcome

    # ── per-file work ───────────────────────────────────────────────

    def _scan_file(self, path: Path) -> _FileOutcome:
        """Load and classify one candidate.  Never raises for per-file faults."""
        try:
            doc = load(path, self.registry, max_bytes=self.config.max_file_bytes)
        except LoadError as exc:
            return LoadDiagnostic(str(path), exc.kind, exc.detail)
        try:
            missing = find_missing_references(
                doc.nodes, self.external, first_only=not self.details
            )
        except RecursionError:
            return LoadDiagnostic(
                str(path), LoadErrorKind.MALFORMED, "document nesting is too deep"
            )
        return ScanResult(str(path), bool(missing), tuple(missing) if self.details else ())

    def _emit(self, item: _FileOutcome) -> None:
        with self._emit_lock:
            if self.handle.cancel_requested:
                return
            if isinstance(item, ScanResult):
                self._scanned += 1
                self._on_result(item)
                return
            self._skipped += 1
            _logger.warning("Skipped %s (%s): %s", item.path, item.kind.value, item.message)
            if self._on_diagnostic is not None:
                self._on_diagnostic(item)

    def _run_sequential(self) -> None:
        for path in iter_candidate_files(self.config):
            if self.handle.cancel_requested:
                break
            self._emit(self._scan_file(path))

    def _run_pool(self) -> None:
        try:
            pool = ThreadPoolExecutor(
                max_workers=self.config.jobs, thread_name_prefix="ref-audit"
            )
        except ValueError as exc:
            raise OrchestratorError(
                f"cannot start worker pool with jobs={self.config.jobs}"
            ) from exc

        limit = self.config.jobs * _QUEUE_FACTOR
        pending: set[Future[_FileOutcome]] = set()
        try:
            for path in iter_candidate_files(self.config):
                if self.handle.cancel_requested:
                    break
                pending.add(pool.submit(self._scan_file, path))
                if len(pending) >= limit:
                    pending = self._drain(pending, FIRST_COMPLETED)
            if self.handle.cancel_requested:
                for fut in pending:
                    fut.cancel()
            self._drain(pending, ALL_COMPLETED)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    def _drain(
        self,
        pending: set[Future[_FileOutcome]],
        return_when: str,
    ) -> set[Future[_FileOutcome]]:
        """Wait per *return_when*, emit what finished, return the rest."""
        done, not_done = wait(pending, return_when=return_when)
        for fut in done:
            if fut.cancelled():
                continue
            self._emit(fut.result())
        return set(not_done)


def run(
    config: ScanConfiguration,
    on_result: ResultCallback,
    on_completed: CompletedCallback,
    on_failed: FailedCallback,
    *,
    on_diagnostic: DiagnosticCallback | None = None,
    registry: ParserRegistry | None = None,
    external: ExternalResolver | None = None,
    details: bool = True,
) -> ScanHandle:
    """Start a scan in the background and return its :class:`ScanHandle`.

    ``on_result`` receives one :class:`ScanResult` per classified file,
    then exactly one of ``on_completed()`` or ``on_failed(error)`` is called.
    Callbacks are never invoked concurrently.
    """
    orchestrator = ScanOrchestrator(
        config,
        on_result,
        on_completed,
        on_failed,
        on_diagnostic=on_diagnostic,
        registry=registry,
        external=external,
        details=details,
    )
    return orchestrator.start()
