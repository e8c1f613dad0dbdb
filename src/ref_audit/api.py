"""
ref_audit.api
=============

Programmatic entrypoints for embedding the scanner in other tools.

Goals:
  - No argparse / CLI dependencies
  - Push-based callbacks (``run``), a blocking iterator (``iter_results``)
    and a collected report (``scan_assets``) over the same orchestrator

Non-goals:
  - Repairing missing references
  - Persisting presets or results — callers handle storage

Usage::

    from ref_audit.api import scan_assets, iter_results

    report = scan_assets(["Assets/UI"], [".prefab"], asset_root=Path("Assets"))
    for path in report.missing_paths:
        print(path)
"""

from __future__ import annotations

import queue
from pathlib import Path
from typing import Any, Iterable, Iterator

from ref_audit.core.classify import ExternalResolver
from ref_audit.core.config import ScanConfiguration, default_jobs
from ref_audit.core.runner import ScanOrchestrator, run
from ref_audit.loaders import ParserRegistry
from ref_audit.model.scan_result import ScanReport, ScanResult

# Queue sentinel marking the end of a run.
_DONE = object()


def scan_assets(
    paths: Iterable[str | Path] | str | Path | ScanConfiguration,
    extensions: Iterable[str] | str | None = None,
    *,
    asset_root: Path | None = None,
    jobs: int | None = None,
    registry: ParserRegistry | None = None,
    external: ExternalResolver | None = None,
    details: bool = True,
) -> ScanReport:
    """Run one scan to completion in the calling thread and collect it.

    Parameters
    ----------
    paths:
        Root paths to walk, or a ready :class:`ScanConfiguration`.
    extensions:
        Extension filter; defaults to ``DEFAULT_EXTENSIONS``.
    asset_root:
        Managed asset root.  Roots outside it yield nothing, and its
        ``.meta`` files back the external reference lookup.
    jobs:
        Worker threads for load + classify.  Defaults to ``REF_AUDIT_JOBS``.

    Returns
    -------
    A :class:`ScanReport`.  A failed run still carries every result
    emitted before the fault, with ``outcome.error`` set.
    """
    if isinstance(paths, ScanConfiguration):
        config = paths
    else:
        config = ScanConfiguration.create(
            paths,
            extensions,
            asset_root=asset_root,
            jobs=jobs if jobs is not None else default_jobs(),
        )

    report = ScanReport()
    orchestrator = ScanOrchestrator(
        config,
        report.results.append,
        lambda: None,
        lambda exc: None,
        on_diagnostic=report.diagnostics.append,
        registry=registry,
        external=external,
        details=details,
    )
    report.outcome = orchestrator.execute()
    return report


def iter_results(
    config: ScanConfiguration,
    *,
    registry: ParserRegistry | None = None,
    external: ExternalResolver | None = None,
    details: bool = True,
) -> Iterator[ScanResult]:
    """Yield results as the background scan produces them.

    Raises the run's error after the last result if the run fails.
    Closing the iterator early cancels the scan.
    """
    events: queue.Queue[Any] = queue.Queue()
    failure: list[BaseException] = []

    def _failed(exc: BaseException) -> None:
        failure.append(exc)
        events.put(_DONE)

    handle = run(
        config,
        events.put,
        lambda: events.put(_DONE),
        _failed,
        registry=registry,
        external=external,
        details=details,
    )
    try:
        while True:
            item = events.get()
            if item is _DONE:
                break
            yield item
    finally:
        handle.cancel()
        handle.wait()
    if failure:
        raise failure[0]
