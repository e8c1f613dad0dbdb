"""Tests for missing-reference classification (core.classify)."""

from __future__ import annotations

from ref_audit.core.classify import (
    classify,
    classify_reference,
    find_missing_references,
    iter_references,
)
from ref_audit.loaders.guid_index import GuidIndex
from ref_audit.model import RefState
from ref_audit.model.document import (
    NULL_GUID,
    NestedNode,
    PropertyNode,
    ReferenceHandle,
    Scalar,
    Sequence,
)

OTHER_GUID = "0123456789abcdef0123456789abcdef"


def _node(object_id, type_tag="MonoBehaviour", **fields) -> PropertyNode:
    return PropertyNode(type_tag=type_tag, fields=fields, object_id=object_id)


class TestClassifyReference:
    def test_zero_file_id_is_null(self):
        assert classify_reference(ReferenceHandle(0), frozenset()) is RefState.NULL

    def test_none_file_id_is_null(self):
        assert classify_reference(ReferenceHandle(None), frozenset()) is RefState.NULL

    def test_null_guid_is_null(self):
        ref = ReferenceHandle(11500000, NULL_GUID, 3)
        assert classify_reference(ref, frozenset(), GuidIndex()) is RefState.NULL

    def test_local_resolved(self):
        assert classify_reference(ReferenceHandle(7), frozenset({7})) is RefState.RESOLVED

    def test_local_missing(self):
        assert classify_reference(ReferenceHandle(42), frozenset({7})) is RefState.MISSING

    def test_external_without_resolver_is_resolved(self):
        ref = ReferenceHandle(11500000, OTHER_GUID, 3)
        assert classify_reference(ref, frozenset()) is RefState.RESOLVED

    def test_external_known_guid(self):
        ref = ReferenceHandle(11500000, OTHER_GUID.upper(), 3)
        assert classify_reference(ref, frozenset(), {OTHER_GUID}) is RefState.RESOLVED

    def test_external_unknown_guid(self):
        ref = ReferenceHandle(11500000, OTHER_GUID, 3)
        assert classify_reference(ref, frozenset(), GuidIndex()) is RefState.MISSING

    def test_builtin_guid_always_resolves(self):
        ref = ReferenceHandle(10303, "0000000000000000f000000000000000", 0)
        assert classify_reference(ref, frozenset(), GuidIndex()) is RefState.RESOLVED


class TestClassify:
    def test_no_reference_fields(self):
        nodes = [_node(1, m_Name=Scalar("x"), m_Enabled=Scalar(1))]
        assert classify(nodes) is False

    def test_empty_document(self):
        assert classify([]) is False

    def test_single_unresolved_reference(self):
        assert classify([_node(1, target=ReferenceHandle(42))]) is True

    def test_single_null_reference(self):
        assert classify([_node(1, target=ReferenceHandle(0))]) is False

    def test_reference_to_sibling_object(self):
        nodes = [_node(1, target=ReferenceHandle(2)), _node(2, type_tag="Transform")]
        assert classify(nodes) is False

    def test_self_reference_resolves(self):
        assert classify([_node(1, me=ReferenceHandle(1))]) is False

    def test_inside_nested_node(self):
        inner = PropertyNode("", {"deep": ReferenceHandle(99)})
        assert classify([_node(1, data=NestedNode(inner))]) is True

    def test_inside_sequence(self):
        seq = Sequence((ReferenceHandle(0), ReferenceHandle(1), ReferenceHandle(404)))
        assert classify([_node(1, items=seq)]) is True

    def test_nested_node_ids_are_not_targets(self):
        inner = PropertyNode("", {"x": Scalar(1)}, object_id=None)
        nodes = [_node(1, a=NestedNode(inner), b=ReferenceHandle(5))]
        assert classify(nodes) is True

    def test_external_resolver_applied(self):
        nodes = [_node(1, script=ReferenceHandle(11500000, OTHER_GUID, 3))]
        assert classify(nodes, GuidIndex()) is True
        assert classify(nodes, GuidIndex({OTHER_GUID: "Assets/S.cs"})) is False


class TestFindMissingReferences:
    def _nodes(self):
        return [
            _node(
                1,
                a=ReferenceHandle(404),
                list=Sequence((NestedNode(PropertyNode("", {"ref": ReferenceHandle(505)})),)),
            ),
            _node(2, type_tag="Animator", ctrl=ReferenceHandle(9000000, OTHER_GUID, 2)),
        ]

    def test_reports_every_miss_in_document_order(self):
        missing = find_missing_references(self._nodes(), GuidIndex())
        assert [(m.object_id, m.field_path) for m in missing] == [
            (1, "a"),
            (1, "list[0].ref"),
            (2, "ctrl"),
        ]
        assert missing[2].type_tag == "Animator"
        assert missing[2].target_guid == OTHER_GUID
        assert missing[2].target_type == 2
        assert missing[2].to_dict()["target_type"] == 2
        assert "target_type" not in missing[0].to_dict()
        assert missing[1].target_file_id == 505

    def test_first_only_stops_early(self):
        missing = find_missing_references(self._nodes(), GuidIndex(), first_only=True)
        assert len(missing) == 1
        assert missing[0].field_path == "a"

    def test_iter_references_yields_all_handles(self):
        paths = [p for _, p, _ in iter_references(self._nodes())]
        assert paths == ["a", "list[0].ref", "ctrl"]
