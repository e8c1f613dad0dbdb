"""Per-file scan results and the terminal outcome of a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from . import LoadErrorKind, RunState


@dataclass(frozen=True, slots=True)
class MissingReference:
    """Location of one unresolved reference inside a file."""

    object_id: int | None
    type_tag: str
    field_path: str
    target_file_id: int | None
    target_guid: str | None = None
    target_type: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "object_id": self.object_id,
            "type": self.type_tag,
            "field_path": self.field_path,
            "target_file_id": self.target_file_id,
        }
        if self.target_guid:
            d["target_guid"] = self.target_guid
        if self.target_type is not None:
            d["target_type"] = self.target_type
        return d


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome for exactly one classified file.  Emitted once, never mutated."""

    path: str
    has_missing_property: bool
    missing: tuple[MissingReference, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "path": self.path,
            "has_missing_property": self.has_missing_property,
        }
        if self.missing:
            d["missing"] = [m.to_dict() for m in self.missing]
        return d


@dataclass(frozen=True, slots=True)
class LoadDiagnostic:
    """A candidate that was skipped because it could not be loaded."""

    path: str
    kind: LoadErrorKind
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "kind": self.kind.value, "message": self.message}


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Terminal state of a run: ``COMPLETED`` (possibly cancelled) or ``FAILED``."""

    state: RunState
    error: BaseException | None = None
    cancelled: bool = False
    files_scanned: int = 0
    files_skipped: int = 0

    def __post_init__(self) -> None:
        if not self.state.is_terminal:
            raise ValueError(f"RunOutcome requires a terminal state, got {self.state.value!r}")
        if self.state is RunState.FAILED and self.error is None:
            raise ValueError("a FAILED outcome must carry the error")

    @property
    def ok(self) -> bool:
        return self.state is RunState.COMPLETED


@dataclass(slots=True)
class ScanReport:
    """Collected view of one run, assembled by the programmatic API."""

    results: list[ScanResult] = field(default_factory=list)
    diagnostics: list[LoadDiagnostic] = field(default_factory=list)
    outcome: RunOutcome | None = None

    @property
    def missing_paths(self) -> list[str]:
        return [r.path for r in self.results if r.has_missing_property]

    def to_dict(self) -> dict[str, Any]:
        outcome = self.outcome
        return {
            "schema_version": "scan_report_v1",
            "outcome": {
                "state": outcome.state.value if outcome else RunState.RUNNING.value,
                "cancelled": bool(outcome and outcome.cancelled),
                "error": str(outcome.error) if outcome and outcome.error else None,
            },
            "summary": {
                "files_scanned": len(self.results),
                "files_skipped": len(self.diagnostics),
                "files_with_missing": len(self.missing_paths),
            },
            "results": [r.to_dict() for r in sorted(self.results, key=lambda r: r.path)],
            "diagnostics": [
                d.to_dict() for d in sorted(self.diagnostics, key=lambda d: d.path)
            ],
        }
