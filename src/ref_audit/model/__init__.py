"""Enums shared across the loader, classifier and orchestrator layers."""

from __future__ import annotations

from enum import Enum


class RefState(str, Enum):
    """Classification of a single reference-typed field."""

    NULL = "null"          # empty by design, never an error
    RESOLVED = "resolved"
    MISSING = "missing"


class RunState(str, Enum):
    """Lifecycle of one scan run: ``IDLE -> RUNNING -> {COMPLETED, FAILED}``."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


class LoadErrorKind(str, Enum):
    """Why a candidate file could not be classified."""

    UNREADABLE = "unreadable"
    MALFORMED = "malformed"
    UNSUPPORTED = "unsupported"
    NO_PARSER = "no_parser"
