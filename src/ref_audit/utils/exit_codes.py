"""Centralized exit-code contract for all CLI commands.

Code  Meaning
----  -------
  0   Success — no missing references (or no warnings for ``validate``)
  1   Violation — at least one file has a missing reference
  2   Error — usage error, unreadable preset, or a failed run
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1
    ERROR = 2
