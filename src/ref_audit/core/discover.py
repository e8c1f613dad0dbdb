"""Candidate discovery — walk configured roots lazily, filter by extension."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from ref_audit.core.config import ScanConfiguration
from ref_audit.core.validate import valid_extensions, validate_root_path
from ref_audit.errors import OrchestratorError

_logger = logging.getLogger(__name__)

_DEFAULT_IGNORE_FILES = frozenset({".DS_Store", "Thumbs.db"})


def _is_ignored_dir(name: str) -> bool:
    # Hidden folders and folders ending in "~" are never imported by the editor.
    return name.startswith(".") or name.endswith("~")


def _walk(
    root: Path,
    directory: Path,
    cfg: ScanConfiguration,
    visited: set[Path],
) -> Iterator[Path]:
    """Depth-first walk of *directory* in sorted name order."""
    try:
        real = directory.resolve()
    except OSError:
        return
    if real in visited:
        return
    visited.add(real)
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except FileNotFoundError as exc:
        if not root.exists():
            raise OrchestratorError(f"scan root disappeared during the walk: {root}") from exc
        _logger.warning("Directory vanished during the walk — skipped: %s", directory)
        return
    except OSError as exc:
        _logger.warning("Cannot list %s — skipped: %s", directory, exc)
        return

    for p in entries:
        try:
            if p.is_symlink() and not cfg.follow_symlinks:
                continue
            if p.is_dir():
                if _is_ignored_dir(p.name):
                    continue
                yield from _walk(root, p, cfg, visited)
            elif p.is_file():
                yield p
        except OSError:
            continue


def iter_candidate_files(cfg: ScanConfiguration) -> Iterator[Path]:
    """Yield every candidate file under the configured roots, once each.

    The walk is lazy and deterministic for a given filesystem: roots in
    configuration order, entries in sorted name order, depth first.  A path
    reachable from overlapping roots is yielded only the first time.
    Invalid roots yield nothing; malformed extensions are ignored.

    Raises ``OrchestratorError`` if a root that was being walked disappears.
    """
    exts = valid_extensions(cfg.check_file_extensions)
    if not exts or not cfg.check_asset_paths:
        return

    seen: set[Path] = set()
    for raw in cfg.check_asset_paths:
        ok, reason = validate_root_path(raw, cfg.asset_root)
        if not ok:
            _logger.debug("Root %r yields no candidates: %s", raw, reason)
            continue
        root = Path(raw)
        files = _walk(root, root, cfg, set()) if root.is_dir() else iter((root,))
        for p in files:
            if p.name in _DEFAULT_IGNORE_FILES:
                continue
            if p.suffix.lower() not in exts:
                continue
            try:
                key = p.resolve()
            except OSError:
                continue
            if key in seen:
                continue
            seen.add(key)
            yield p
        if not root.exists():
            raise OrchestratorError(f"scan root disappeared during the walk: {root}")
