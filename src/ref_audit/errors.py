"""Exception hierarchy for ref_audit.

Per-file problems derive from :class:`LoadError` and are recovered by the
orchestrator.  :class:`OrchestratorError` ends a run as ``FAILED``.
"""

from __future__ import annotations

from ref_audit.model import LoadErrorKind


class RefAuditError(RuntimeError):
    """Base class for every error raised by ref_audit."""


class LoadError(RefAuditError):
    """A single candidate file could not be turned into a document."""

    kind: LoadErrorKind = LoadErrorKind.MALFORMED

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"{path}: {detail}")


class UnreadableFileError(LoadError):
    """Permission or I/O failure while reading the file."""

    kind = LoadErrorKind.UNREADABLE


class MalformedDocumentError(LoadError):
    """The file is readable but its content does not parse."""

    kind = LoadErrorKind.MALFORMED


class UnsupportedFormatError(LoadError):
    """Binary serialization or an unknown format version."""

    kind = LoadErrorKind.UNSUPPORTED


class NoParserError(LoadError):
    """No parser plugin is registered for the file's extension."""

    kind = LoadErrorKind.NO_PARSER


class OrchestratorError(RefAuditError):
    """Unrecoverable fault that terminates a scan run."""
