"""Parser for text-serialized object documents (Unity YAML flavour).

A file looks like::

    %YAML 1.1
    %TAG !u! tag:unity3d.com,2011:
    --- !u!1 &1001
    GameObject:
      m_Name: Button
      m_Component:
      - component: {fileID: 1002}
    --- !u!114 &1002
    MonoBehaviour:
      m_Script: {fileID: 11500000, guid: 5f7201a12d95ffc409449d95f23cf332, type: 3}

Each ``--- !u!<classID> &<fileID>`` header starts one object.  The header
is not valid YAML for a generic loader (``stripped`` suffixes, local tag
handles), so the file is split on headers first and every body is loaded
on its own with PyYAML.
"""

from __future__ import annotations

import re
from typing import Any

import yaml
from yaml.composer import ComposerError

from ref_audit.errors import MalformedDocumentError, UnsupportedFormatError
from ref_audit.model.document import (
    Document,
    FieldValue,
    NestedNode,
    PropertyNode,
    ReferenceHandle,
    Scalar,
    Sequence,
)

UNITY_EXTENSIONS: tuple[str, ...] = (
    ".asset",
    ".mat",
    ".prefab",
    ".anim",
    ".unity",
    ".controller",
    ".overridecontroller",
    ".physicmaterial",
)

SUPPORTED_YAML_MAJOR = 1

_HEADER_RE = re.compile(r"^--- !u!(-?\d+) &(-?\d+)(?P<stripped> stripped)?[ \t]*\r?$", re.MULTILINE)
_DOC_START_RE = re.compile(r"^---", re.MULTILINE)
_VERSION_RE = re.compile(r"^%YAML[ \t]+(\d+)\.(\d+)", re.MULTILINE)
_REFERENCE_KEYS = frozenset({"fileID", "guid", "type"})

# Sniff window for binary content.
_SNIFF_BYTES = 1024


class _AliasNotAllowed(ComposerError):
    pass


class _UnityLoader(yaml.SafeLoader):
    """Safe loader that keeps ``guid`` scalars as the raw string.

    A guid made only of digits would otherwise resolve to an int and lose
    its leading zeros.  Aliases are rejected: object bodies never use them,
    and expanding nested ones grows the tree exponentially.
    """

    def compose_node(self, parent, index):
        if self.check_event(yaml.AliasEvent):
            event = self.peek_event()
            raise _AliasNotAllowed(
                None, None, f"alias *{event.anchor} is not allowed", event.start_mark
            )
        return super().compose_node(parent, index)

    def construct_mapping(self, node, deep=False):
        mapping = super().construct_mapping(node, deep=deep)
        for key_node, value_node in node.value:
            if key_node.value == "guid" and isinstance(value_node, yaml.ScalarNode):
                mapping["guid"] = value_node.value
        return mapping


def _decode(data: bytes, path: str) -> str:
    if not data.strip():
        raise MalformedDocumentError(path, "file is empty")
    if b"\x00" in data[:_SNIFF_BYTES]:
        raise UnsupportedFormatError(path, "binary serialization is not supported")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise UnsupportedFormatError(path, f"not UTF-8 text ({exc.reason})") from exc


def _check_version(text: str, path: str) -> None:
    m = _VERSION_RE.search(text)
    if m is None:
        raise UnsupportedFormatError(path, "missing %YAML directive")
    major = int(m.group(1))
    if major != SUPPORTED_YAML_MAJOR:
        raise UnsupportedFormatError(path, f"unsupported YAML version {m.group(1)}.{m.group(2)}")


def _is_reference(value: dict) -> bool:
    return "fileID" in value and set(value) <= _REFERENCE_KEYS


def _to_reference(value: dict, path: str) -> ReferenceHandle:
    raw_id = value.get("fileID")
    try:
        file_id = int(raw_id) if raw_id is not None else None
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedDocumentError(path, f"fileID is not an integer: {raw_id!r}") from exc
    guid = value.get("guid")
    ref_type = value.get("type")
    return ReferenceHandle(
        file_id=file_id,
        guid=str(guid) if guid else None,
        ref_type=ref_type if isinstance(ref_type, int) else None,
    )


def _to_field(value: Any, path: str) -> FieldValue:
    if isinstance(value, dict):
        if _is_reference(value):
            return _to_reference(value, path)
        return NestedNode(PropertyNode(type_tag="", fields=_to_fields(value, path)))
    if isinstance(value, list):
        return Sequence(tuple(_to_field(v, path) for v in value))
    return Scalar(value)


def _to_fields(mapping: dict, path: str) -> dict[str, FieldValue]:
    return {str(k): _to_field(v, path) for k, v in mapping.items()}


def _parse_object(
    body: str,
    class_id: int,
    object_id: int,
    stripped: bool,
    path: str,
) -> PropertyNode:
    try:
        loaded = yaml.load(body, Loader=_UnityLoader)
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(path, f"object &{object_id}: {exc}") from exc

    if not isinstance(loaded, dict) or len(loaded) != 1:
        raise MalformedDocumentError(
            path, f"object &{object_id}: expected a single type key, got {type(loaded).__name__}"
        )
    ((type_tag, fields),) = loaded.items()
    if fields is None:
        fields = {}
    if not isinstance(fields, dict):
        raise MalformedDocumentError(path, f"object &{object_id}: fields of {type_tag} are not a mapping")
    return PropertyNode(
        type_tag=str(type_tag),
        fields=_to_fields(fields, path),
        object_id=object_id,
        class_id=class_id,
        stripped=stripped,
    )


class UnityYamlParser:
    """Parser plugin for ``.prefab``, ``.asset``, ``.mat``, ``.anim`` and friends."""

    id: str = "unity_yaml"

    def parse(self, data: bytes, path: str) -> Document:
        text = _decode(data, path)
        _check_version(text, path)

        headers = list(_HEADER_RE.finditer(text))
        doc_starts = len(_DOC_START_RE.findall(text))
        if doc_starts != len(headers):
            raise MalformedDocumentError(
                path, f"{doc_starts - len(headers)} document header(s) are not object headers"
            )

        doc = Document(path=path)
        for i, m in enumerate(headers):
            end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            body = text[m.end():end]
            doc.nodes.append(
                _parse_object(
                    body,
                    class_id=int(m.group(1)),
                    object_id=int(m.group(2)),
                    stripped=m.group("stripped") is not None,
                    path=path,
                )
            )
        return doc
