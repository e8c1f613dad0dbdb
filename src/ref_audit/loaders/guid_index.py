"""External reference lookup built from ``.meta`` sidecar files.

Every asset under the asset root has a ``<name>.meta`` sidecar whose
``guid:`` line is the identifier other files use to reference it.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Mapping

_logger = logging.getLogger(__name__)

_GUID_RE = re.compile(rb"^guid:[ \t]*([0-9a-fA-F]{32})[ \t]*\r?$", re.MULTILINE)


class GuidIndex:
    """Set of known guids, each mapped to the asset path it belongs to."""

    def __init__(self, entries: Mapping[str, Path] | None = None) -> None:
        self._by_guid: dict[str, Path] = {}
        for guid, path in (entries or {}).items():
            self.add(guid, path)

    def add(self, guid: str, path: Path) -> None:
        self._by_guid[guid.lower()] = path

    def resolve(self, guid: str) -> Path | None:
        return self._by_guid.get(guid.lower())

    def __contains__(self, guid: object) -> bool:
        return isinstance(guid, str) and guid.lower() in self._by_guid

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_guid)

    def __len__(self) -> int:
        return len(self._by_guid)


def read_meta_guid(meta_path: Path) -> str | None:
    """Return the guid declared in one ``.meta`` file, or None."""
    try:
        data = meta_path.read_bytes()
    except OSError as exc:
        _logger.warning("Cannot read %s — skipped: %s", meta_path, exc)
        return None
    m = _GUID_RE.search(data)
    return m.group(1).decode("ascii").lower() if m else None


def build_guid_index(asset_root: Path) -> GuidIndex:
    """Scan *asset_root* recursively for ``.meta`` files.

    Raises ``FileNotFoundError`` if *asset_root* is not a directory.
    """
    if not asset_root.is_dir():
        raise FileNotFoundError(f"asset root is not a directory: {asset_root}")

    index = GuidIndex()
    for meta in sorted(asset_root.rglob("*.meta")):
        guid = read_meta_guid(meta)
        if guid is None:
            _logger.debug("No guid in %s", meta)
            continue
        asset = meta.with_suffix("")
        previous = index.resolve(guid)
        if previous is not None and previous != asset:
            _logger.warning("Duplicate guid %s in %s and %s", guid, previous, asset)
        index.add(guid, asset)
    _logger.debug("Indexed %d guids under %s", len(index), asset_root)
    return index
