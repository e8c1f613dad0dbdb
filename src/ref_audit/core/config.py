"""Scan configuration dataclass and JSON preset loading."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from ref_audit.contracts.load import validate_instance

# Extensions of the text-serialized object documents checked by default.
DEFAULT_EXTENSIONS: tuple[str, ...] = (".asset", ".mat", ".prefab", ".anim")

_JOBS_ENV = "REF_AUDIT_JOBS"


def default_jobs() -> int:
    """Worker count from ``REF_AUDIT_JOBS`` (default 1, i.e. sequential)."""
    raw = os.environ.get(_JOBS_ENV, "").strip()
    if not raw:
        return 1
    try:
        return max(1, int(raw))
    except ValueError:
        return 1


@dataclass(frozen=True)
class ScanConfiguration:
    """Immutable parameters for one scan.

    An empty ``check_asset_paths`` or ``check_file_extensions`` means the
    scan has no candidates and completes immediately.
    """

    check_asset_paths: tuple[str, ...] = ()
    check_file_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    asset_root: Path | None = None
    jobs: int = 1
    follow_symlinks: bool = False
    max_file_bytes: int = 64_000_000  # 64 MB safety limit

    @classmethod
    def create(
        cls,
        paths: Iterable[str | Path] | str | Path,
        extensions: Iterable[str] | str | None = None,
        **kwargs: Any,
    ) -> "ScanConfiguration":
        """Build a configuration from loose iterables.

        A single path or extension string counts as a one-element sequence.
        """
        if isinstance(paths, (str, os.PathLike)):
            paths = (paths,)
        if isinstance(extensions, str):
            extensions = (extensions,)
        exts = DEFAULT_EXTENSIONS if extensions is None else tuple(extensions)
        return cls(
            check_asset_paths=tuple(os.fspath(p) for p in paths),
            check_file_extensions=exts,
            **kwargs,
        )

    @property
    def is_empty(self) -> bool:
        return not self.check_asset_paths or not self.check_file_extensions

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "check_asset_paths": list(self.check_asset_paths),
            "check_file_extensions": list(self.check_file_extensions),
        }
        if self.asset_root is not None:
            d["asset_root"] = self.asset_root.as_posix()
        return d


def config_from_dict(data: dict[str, Any], **overrides: Any) -> ScanConfiguration:
    """Validate a preset dict against ``scan_config.schema.json`` and build a config.

    Raises ``jsonschema.ValidationError`` if the shape is wrong.
    """
    validate_instance(data, "scan_config.schema.json")
    kwargs: dict[str, Any] = {
        "check_asset_paths": tuple(data.get("check_asset_paths", ())),
        "check_file_extensions": tuple(data.get("check_file_extensions", ())),
    }
    if data.get("asset_root"):
        kwargs["asset_root"] = Path(data["asset_root"])
    if "jobs" in data:
        kwargs["jobs"] = int(data["jobs"])
    kwargs.update(overrides)
    return ScanConfiguration(**kwargs)


def load_preset(path: Path, **overrides: Any) -> ScanConfiguration:
    """Read a JSON preset file written by the operator's editor panel."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: preset must be a JSON object")
    return config_from_dict(data, **overrides)
