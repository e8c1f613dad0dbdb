"""Generic in-memory document model produced by parser plugins.

A parsed file is a :class:`Document`: an ordered list of top-level
:class:`PropertyNode` objects.  Each node has a type tag and an ordered
mapping from field name to a ``FieldValue``, which is exactly one of
:class:`Scalar`, :class:`ReferenceHandle`, :class:`NestedNode` or
:class:`Sequence`.

Nodes are owned by the scan of the file that produced them and are never
shared between files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Union

# Guids that point at engine built-in resources.  They never have a
# ``.meta`` sidecar on disk but always resolve.
BUILTIN_GUIDS: frozenset[str] = frozenset(
    {
        "0000000000000000e000000000000000",
        "0000000000000000f000000000000000",
    }
)

NULL_GUID = "0" * 32


@dataclass(frozen=True, slots=True)
class Scalar:
    """Primitive value: str, int, float, bool or None."""

    value: Any = None


@dataclass(frozen=True, slots=True)
class ReferenceHandle:
    """Pointer to another object, in the same file or an external one.

    ``file_id`` of 0 (or ``None``) means the field is empty by design.
    ``guid`` is set for references into another file.
    """

    file_id: int | None
    guid: str | None = None
    ref_type: int | None = None

    @property
    def is_null(self) -> bool:
        if not self.file_id:
            return True
        return self.guid is not None and self.guid == NULL_GUID

    @property
    def is_external(self) -> bool:
        return bool(self.guid)


@dataclass(frozen=True, slots=True)
class NestedNode:
    """Inline sub-object stored by value inside its parent field."""

    node: "PropertyNode"


@dataclass(frozen=True, slots=True)
class Sequence:
    """Ordered list of field values."""

    items: tuple["FieldValue", ...] = ()

    def __iter__(self) -> Iterator["FieldValue"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


FieldValue = Union[Scalar, ReferenceHandle, NestedNode, Sequence]


@dataclass(slots=True)
class PropertyNode:
    """One serialized object: a type tag plus ordered named fields.

    ``object_id`` is the in-file identifier other objects use to reference
    this one; nested (inline) nodes have ``None``.
    """

    type_tag: str
    fields: dict[str, FieldValue] = field(default_factory=dict)
    object_id: int | None = None
    class_id: int | None = None
    stripped: bool = False


@dataclass(slots=True)
class Document:
    """All top-level objects parsed from one file."""

    path: str
    nodes: list[PropertyNode] = field(default_factory=list)

    def object_ids(self) -> frozenset[int]:
        return frozenset(n.object_id for n in self.nodes if n.object_id is not None)

    def __iter__(self) -> Iterator[PropertyNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)
