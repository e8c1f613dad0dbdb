"""Serialized tree loading: read one file and hand it to a parser plugin.

Parsers are looked up by file extension in a :class:`ParserRegistry`, so the
set of supported formats is injectable per scan rather than fixed.

Every failure to produce a :class:`~ref_audit.model.document.Document` is
raised as a :class:`~ref_audit.errors.LoadError` subclass, which the
orchestrator records and skips.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from ref_audit.errors import (
    LoadError,
    MalformedDocumentError,
    NoParserError,
    UnreadableFileError,
    UnsupportedFormatError,
)
from ref_audit.model.document import Document

_logger = logging.getLogger(__name__)


class Parser(Protocol):
    """Every parser plugin exposes ``id`` and ``parse()``."""

    id: str

    def parse(self, data: bytes, path: str) -> Document:
        """Turn raw file bytes into a document or raise ``LoadError``."""
        ...


class ParserRegistry:
    """Mapping from lower-cased extension (``".prefab"``) to parser."""

    def __init__(self, parsers: dict[str, Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for ext, parser in (parsers or {}).items():
            self.register(ext, parser)

    def register(self, ext: str, parser: Parser) -> None:
        if not ext.startswith("."):
            raise ValueError(f"extension must start with '.': {ext!r}")
        self._parsers[ext.lower()] = parser

    def register_many(self, exts: Iterable[str], parser: Parser) -> None:
        for ext in exts:
            self.register(ext, parser)

    def unregister(self, ext: str) -> None:
        self._parsers.pop(ext.lower(), None)

    def get(self, ext: str) -> Parser | None:
        return self._parsers.get(ext.lower())

    def copy(self) -> "ParserRegistry":
        return ParserRegistry(dict(self._parsers))

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset(self._parsers)

    def __contains__(self, ext: object) -> bool:
        return isinstance(ext, str) and ext.lower() in self._parsers

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._parsers))

    def __len__(self) -> int:
        return len(self._parsers)


def default_registry() -> ParserRegistry:
    """Fresh registry with the text-serialized document parser installed."""
    from ref_audit.loaders.unity_yaml import UNITY_EXTENSIONS, UnityYamlParser

    registry = ParserRegistry()
    registry.register_many(UNITY_EXTENSIONS, UnityYamlParser())
    return registry


def load(path: Path, registry: ParserRegistry, *, max_bytes: int | None = None) -> Document:
    """Read *path* and parse it with the parser registered for its extension.

    Raises
    ------
    NoParserError
        If no parser is registered for the extension.
    UnreadableFileError
        On permission or I/O errors.
    UnsupportedFormatError
        If the file is larger than *max_bytes*.
    MalformedDocumentError, UnsupportedFormatError
        As raised by the parser; unexpected parser exceptions are reported
        as malformed documents.
    """
    parser = registry.get(path.suffix)
    if parser is None:
        raise NoParserError(str(path), f"no parser registered for {path.suffix or '<none>'}")

    try:
        if max_bytes is not None:
            size = path.stat().st_size
            if size > max_bytes:
                raise UnsupportedFormatError(
                    str(path), f"file exceeds max_file_bytes ({size} > {max_bytes})"
                )
        data = path.read_bytes()
    except OSError as exc:
        raise UnreadableFileError(str(path), exc.strerror or str(exc)) from exc

    try:
        return parser.parse(data, str(path))
    except LoadError:
        raise
    except Exception as exc:
        _logger.debug("Parser '%s' failed on %s", parser.id, path, exc_info=True)
        raise MalformedDocumentError(str(path), f"{type(exc).__name__}: {exc}") from exc


__all__ = [
    "Parser",
    "ParserRegistry",
    "default_registry",
    "load",
]
