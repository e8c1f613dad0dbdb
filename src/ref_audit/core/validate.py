"""Advisory checks for configured root paths and extension filters.

Nothing here blocks a scan.  An invalid root simply yields no candidates and
an invalid extension is ignored when filtering; the reasons are meant for
display next to the offending entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ref_audit.core.config import ScanConfiguration

_SEPARATORS = ("/", "\\")


@dataclass(frozen=True, slots=True)
class ConfigWarning:
    """One advisory problem found in a configuration."""

    kind: str  # asset_root | root_path | extension | unknown_extension
    value: str
    reason: str


def _is_within(path: Path, root: Path) -> bool:
    try:
        return path.resolve().is_relative_to(root.resolve())
    except OSError:
        return False


def validate_root_path(path: str, asset_root: Path | None = None) -> tuple[bool, str]:
    """Check that *path* is non-empty, exists and lies inside *asset_root*.

    Returns ``(ok, reason)``; ``reason`` is empty when ``ok`` is True.
    """
    if not path or not path.strip():
        return False, "Path is empty"
    p = Path(path)
    if not p.exists():
        return False, f"{path} does not exist"
    if asset_root is not None and not _is_within(p, asset_root):
        return False, f"{path} is outside the asset root {asset_root.as_posix()}"
    return True, ""


def validate_extension(ext: str) -> tuple[bool, str]:
    """Check that *ext* looks like ``.prefab``: leading dot, no separators."""
    if not ext or not ext.strip():
        return False, "Extension is empty"
    if not ext.startswith("."):
        return False, f"{ext} must start with '.'"
    if len(ext) == 1:
        return False, "Extension has no characters after '.'"
    if any(sep in ext for sep in _SEPARATORS):
        return False, f"{ext} must not contain path separators"
    return True, ""


def valid_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lower-cased set of the well-formed entries of *extensions*."""
    return frozenset(e.lower() for e in extensions if validate_extension(e)[0])


def validate_config(
    config: ScanConfiguration,
    known_extensions: Iterable[str] | None = None,
) -> list[ConfigWarning]:
    """Collect every advisory warning for *config*, in configuration order.

    When *known_extensions* is given, well-formed extensions without a
    registered parser are reported as ``unknown_extension``.
    """
    warnings: list[ConfigWarning] = []
    if config.asset_root is not None and not config.asset_root.is_dir():
        warnings.append(
            ConfigWarning(
                "asset_root",
                config.asset_root.as_posix(),
                "Asset root is not a directory; cross-file references are not checked",
            )
        )
    for path in config.check_asset_paths:
        ok, reason = validate_root_path(path, config.asset_root)
        if not ok:
            warnings.append(ConfigWarning("root_path", path, reason))

    known = frozenset(e.lower() for e in known_extensions) if known_extensions else None
    for ext in config.check_file_extensions:
        ok, reason = validate_extension(ext)
        if not ok:
            warnings.append(ConfigWarning("extension", ext, reason))
        elif known is not None and ext.lower() not in known:
            warnings.append(
                ConfigWarning("unknown_extension", ext, f"No parser is registered for {ext}")
            )
    return warnings
