"""Missing-reference classification over a parsed document tree.

A reference field is ``NULL`` when its identifier is empty (allowed by
design), ``RESOLVED`` when it points at an object defined in the same file
or at an external object the resolver knows, and ``MISSING`` otherwise.
Only resolvability is checked; the type of the target is not.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Protocol

from ref_audit.model import RefState
from ref_audit.model.document import (
    BUILTIN_GUIDS,
    FieldValue,
    NestedNode,
    PropertyNode,
    ReferenceHandle,
    Sequence,
)
from ref_audit.model.scan_result import MissingReference


class ExternalResolver(Protocol):
    """Anything that can answer "does this guid exist?" (e.g. ``GuidIndex``)."""

    def __contains__(self, guid: object) -> bool: ...


def classify_reference(
    ref: ReferenceHandle,
    local_ids: frozenset[int] | set[int],
    external: ExternalResolver | None = None,
) -> RefState:
    """Classify one reference handle.

    External references are ``RESOLVED`` when no resolver is supplied,
    since nothing can prove them missing.
    """
    if ref.is_null:
        return RefState.NULL
    if ref.is_external:
        guid = ref.guid.lower()
        if guid in BUILTIN_GUIDS or external is None or guid in external:
            return RefState.RESOLVED
        return RefState.MISSING
    return RefState.RESOLVED if ref.file_id in local_ids else RefState.MISSING


def _walk_value(value: FieldValue, path: str) -> Iterator[tuple[str, ReferenceHandle]]:
    if isinstance(value, ReferenceHandle):
        yield path, value
    elif isinstance(value, NestedNode):
        yield from _walk_fields(value.node, path)
    elif isinstance(value, Sequence):
        for i, item in enumerate(value):
            yield from _walk_value(item, f"{path}[{i}]")


def _walk_fields(node: PropertyNode, prefix: str) -> Iterator[tuple[str, ReferenceHandle]]:
    for name, value in node.fields.items():
        yield from _walk_value(value, f"{prefix}.{name}" if prefix else name)


def iter_references(
    nodes: Iterable[PropertyNode],
) -> Iterator[tuple[PropertyNode, str, ReferenceHandle]]:
    """Yield ``(top_level_node, field_path, handle)`` depth-first in field order."""
    for node in nodes:
        for path, ref in _walk_fields(node, ""):
            yield node, path, ref


def _local_ids(nodes: list[PropertyNode]) -> frozenset[int]:
    return frozenset(n.object_id for n in nodes if n.object_id is not None)


def find_missing_references(
    nodes: Iterable[PropertyNode],
    external: ExternalResolver | None = None,
    *,
    first_only: bool = False,
) -> list[MissingReference]:
    """Return every missing reference in *nodes*, in document order.

    With ``first_only`` the walk stops at the first hit.
    """
    nodes = list(nodes)
    local_ids = _local_ids(nodes)
    missing: list[MissingReference] = []
    for node, path, ref in iter_references(nodes):
        if classify_reference(ref, local_ids, external) is not RefState.MISSING:
            continue
        missing.append(
            MissingReference(
                object_id=node.object_id,
                type_tag=node.type_tag,
                field_path=path,
                target_file_id=ref.file_id,
                target_guid=ref.guid,
                target_type=ref.ref_type,
            )
        )
        if first_only:
            break
    return missing


def classify(
    nodes: Iterable[PropertyNode],
    external: ExternalResolver | None = None,
) -> bool:
    """True if any reference field in *nodes* is missing."""
    return bool(find_missing_references(nodes, external, first_only=True))
