"""
Triple Storage Tests
====================

Tests for the TripleGraph and the PropertyStore adapter.

STORAGE CONTRACT VERIFICATION:
==============================
These tests verify that the storage layer:
1. Treats statements as a set (re-adding is a no-op)
2. Answers queries in insertion order
3. Replaces every prior statement of a property on write
4. Removes orphaned blank nodes together with their statements
5. Drops unreadable sub-entities without failing the whole read
"""

import pytest

from spdxgraph.contracts.base import (
    URIRef, BNode, Literal, InvalidModelError, ErrorCode,
    SPDX_NAMESPACE, predicate,
)
from spdxgraph.contracts.events import AuditEventType
from spdxgraph.observability import AuditLog
from spdxgraph.storage import TripleGraph, PropertyStore

EX = "http://example.org/doc#"


def uri(name: str) -> URIRef:
    return URIRef(EX + name)


def spdx(name: str) -> URIRef:
    return predicate(SPDX_NAMESPACE, name)


class TestTripleGraph:

    def test_add_is_idempotent(self):
        """Adding the same statement twice stores it once."""
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileName"), Literal("foo.c"))
        graph.add(uri("a"), spdx("fileName"), Literal("foo.c"))

        assert len(graph) == 1
        assert (uri("a"), spdx("fileName"), Literal("foo.c")) in graph

    def test_objects_in_insertion_order(self):
        """Objects come back in the order they were added."""
        graph = TripleGraph()
        for name in ("zeta", "alpha", "mid"):
            graph.add(uri("a"), spdx("fileContributor"), Literal(name))

        assert graph.objects(uri("a"), spdx("fileContributor")) == [
            Literal("zeta"), Literal("alpha"), Literal("mid")
        ]

    def test_order_independent_of_shared_objects(self):
        """A literal already used by another subject keeps per-statement order."""
        graph = TripleGraph()
        graph.add(uri("b"), spdx("fileContributor"), Literal("second"))
        graph.add(uri("a"), spdx("fileContributor"), Literal("first"))
        graph.add(uri("a"), spdx("fileContributor"), Literal("second"))

        assert graph.objects(uri("a"), spdx("fileContributor")) == [
            Literal("first"), Literal("second")
        ]

    def test_subjects_lookup(self):
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileName"), Literal("foo.c"))
        graph.add(uri("b"), spdx("fileName"), Literal("foo.c"))
        graph.add(uri("c"), spdx("fileName"), Literal("bar.c"))

        assert graph.subjects(spdx("fileName"), Literal("foo.c")) == [uri("a"), uri("b")]
        assert graph.subjects(spdx("fileName"), Literal("missing")) == []

    def test_value_returns_first_or_none(self):
        graph = TripleGraph()
        assert graph.value(uri("a"), spdx("fileName")) is None

        graph.add(uri("a"), spdx("fileName"), Literal("foo.c"))
        assert graph.value(uri("a"), spdx("fileName")) == Literal("foo.c")

    def test_remove_by_predicate(self):
        """Removing without an object drops every statement of the predicate."""
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileContributor"), Literal("x"))
        graph.add(uri("a"), spdx("fileContributor"), Literal("y"))
        graph.add(uri("a"), spdx("fileName"), Literal("foo.c"))

        removed = graph.remove(uri("a"), spdx("fileContributor"))

        assert removed == 2
        assert graph.objects(uri("a"), spdx("fileContributor")) == []
        assert graph.value(uri("a"), spdx("fileName")) == Literal("foo.c")

    def test_remove_single_statement(self):
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileContributor"), Literal("x"))
        graph.add(uri("a"), spdx("fileContributor"), Literal("y"))

        assert graph.remove(uri("a"), spdx("fileContributor"), Literal("x")) == 1
        assert graph.objects(uri("a"), spdx("fileContributor")) == [Literal("y")]

    def test_remove_unknown_subject(self):
        graph = TripleGraph()
        assert graph.remove(uri("nothing"), spdx("fileName")) == 0

    def test_orphaned_blank_node_is_collected(self):
        """A blank node losing its last reference loses its own statements."""
        graph = TripleGraph()
        checksum = BNode("_:ck")
        nested = BNode("_:nested")
        graph.add(uri("a"), spdx("checksum"), checksum)
        graph.add(checksum, spdx("checksumValue"), Literal("abc"))
        graph.add(checksum, spdx("nested"), nested)
        graph.add(nested, spdx("checksumValue"), Literal("def"))

        graph.remove(uri("a"), spdx("checksum"))

        assert len(graph) == 0
        assert not graph.has_subject(checksum)
        assert not graph.has_subject(nested)

    def test_shared_blank_node_survives(self):
        """A blank node still referenced elsewhere is kept."""
        graph = TripleGraph()
        checksum = BNode("_:ck")
        graph.add(uri("a"), spdx("checksum"), checksum)
        graph.add(uri("b"), spdx("checksum"), checksum)
        graph.add(checksum, spdx("checksumValue"), Literal("abc"))

        graph.remove(uri("a"), spdx("checksum"))

        assert graph.value(checksum, spdx("checksumValue")) == Literal("abc")
        assert graph.objects(uri("b"), spdx("checksum")) == [checksum]

    def test_named_node_is_not_collected(self):
        """Removing a reference never deletes a named node's statements."""
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileDependency"), uri("b"))
        graph.add(uri("b"), spdx("fileName"), Literal("b.c"))

        graph.remove(uri("a"), spdx("fileDependency"))

        assert graph.value(uri("b"), spdx("fileName")) == Literal("b.c")

    def test_remove_subject(self):
        """Every statement of the subject goes, with its orphaned blank nodes."""
        graph = TripleGraph()
        checksum = BNode("_:ck")
        graph.add(uri("a"), spdx("fileName"), Literal("a.c"))
        graph.add(uri("a"), spdx("checksum"), checksum)
        graph.add(checksum, spdx("checksumValue"), Literal("abc"))
        graph.add(uri("a"), spdx("fileDependency"), uri("b"))
        graph.add(uri("b"), spdx("fileName"), Literal("b.c"))

        assert graph.remove_subject(uri("a")) == 3

        assert not graph.has_subject(uri("a"))
        assert not graph.has_subject(checksum)
        assert graph.value(uri("b"), spdx("fileName")) == Literal("b.c")
        assert graph.remove_subject(uri("a")) == 0

    def test_describe_follows_blank_nodes(self):
        graph = TripleGraph()
        checksum = BNode("_:ck")
        graph.add(uri("a"), spdx("fileName"), Literal("a.c"))
        graph.add(uri("a"), spdx("checksum"), checksum)
        graph.add(checksum, spdx("checksumValue"), Literal("abc"))
        graph.add(uri("a"), spdx("fileDependency"), uri("b"))
        graph.add(uri("b"), spdx("fileName"), Literal("b.c"))

        assert graph.describe(uri("a")) == [
            (uri("a"), spdx("fileName"), Literal("a.c")),
            (uri("a"), spdx("checksum"), checksum),
            (uri("a"), spdx("fileDependency"), uri("b")),
            (checksum, spdx("checksumValue"), Literal("abc")),
        ]
        assert graph.describe(uri("missing")) == []

    def test_triples_pattern(self):
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileName"), Literal("a.c"))
        graph.add(uri("b"), spdx("fileName"), Literal("b.c"))
        graph.add(uri("a"), spdx("noticeText"), Literal("n"))

        assert list(graph.triples(subject=uri("a"))) == [
            (uri("a"), spdx("fileName"), Literal("a.c")),
            (uri("a"), spdx("noticeText"), Literal("n")),
        ]
        assert len(list(graph.triples(pred=spdx("fileName")))) == 2
        assert list(graph.triples(obj=Literal("b.c"))) == [
            (uri("b"), spdx("fileName"), Literal("b.c"))
        ]
        assert list(graph.triples(subject=uri("missing"))) == []

    def test_has_subject(self):
        graph = TripleGraph()
        graph.add(uri("a"), spdx("fileDependency"), uri("b"))

        assert graph.has_subject(uri("a"))
        assert not graph.has_subject(uri("b"))


class TestPropertyStore:

    def test_single_value_round_trip(self):
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))

        store.write_single_value(SPDX_NAMESPACE, "noticeText", "notice")
        assert store.read_single_value(SPDX_NAMESPACE, "noticeText") == "notice"

        store.write_single_value(SPDX_NAMESPACE, "noticeText", "changed")
        assert graph.objects(uri("a"), spdx("noticeText")) == [Literal("changed")]

    def test_writing_none_removes(self):
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))
        store.write_single_value(SPDX_NAMESPACE, "noticeText", "notice")

        store.write_single_value(SPDX_NAMESPACE, "noticeText", None)

        assert store.read_single_value(SPDX_NAMESPACE, "noticeText") is None
        assert len(graph) == 0

    def test_empty_string_is_not_absent(self):
        """An empty literal is a value; it does not read back as None."""
        store = PropertyStore(TripleGraph(), uri("a"))
        store.write_single_value(SPDX_NAMESPACE, "noticeText", "")

        assert store.read_single_value(SPDX_NAMESPACE, "noticeText") == ""

    def test_multiple_values_replace(self):
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))
        store.write_multiple_values(SPDX_NAMESPACE, "fileContributor", ["x", "y"])
        store.write_multiple_values(SPDX_NAMESPACE, "fileContributor", ["z"])

        assert store.read_multiple_values(SPDX_NAMESPACE, "fileContributor") == ["z"]

    def test_uri_values_ignore_literals(self):
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))
        store.write_multiple_uri_values(SPDX_NAMESPACE, "fileType", [SPDX_NAMESPACE + "fileType_source"])
        graph.add(uri("a"), spdx("fileType"), Literal("text"))

        assert store.read_multiple_uri_values(SPDX_NAMESPACE, "fileType") == [
            SPDX_NAMESPACE + "fileType_source"
        ]

    def test_typed_read_drops_failures(self):
        """A reader failure drops that entry only, and is audited."""
        graph = TripleGraph()
        audit = AuditLog()
        store = PropertyStore(graph, uri("a"), audit)
        graph.add(uri("a"), spdx("checksum"), BNode("_:good"))
        graph.add(uri("a"), spdx("checksum"), BNode("_:bad"))
        graph.add(uri("a"), spdx("checksum"), Literal("not a node"))

        def reader(node):
            if node == BNode("_:bad"):
                raise InvalidModelError(ErrorCode.INVALID_CHECKSUM, "bad checksum")
            return node.value

        values = store.read_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", reader)

        assert values == ["_:good"]
        drops = audit.get_entries(AuditEventType.REFRESH_DROP)
        assert len(drops) == 2
        assert drops[0].get_metadata("reason") == "INVALID_CHECKSUM: bad checksum"

    def test_typed_read_propagates_other_errors(self):
        """Only model errors are dropped; programming errors surface."""
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))
        graph.add(uri("a"), spdx("checksum"), BNode("_:x"))

        def reader(node):
            raise KeyError(node)

        with pytest.raises(KeyError):
            store.read_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", reader)

    def test_single_typed_sub_entity(self):
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))
        store.write_single_typed_sub_entity(SPDX_NAMESPACE, "licenseConcluded", uri("lic"), lambda n: n)

        assert store.read_single_typed_sub_entity(SPDX_NAMESPACE, "licenseConcluded", lambda n: n) == uri("lic")

        store.write_single_typed_sub_entity(SPDX_NAMESPACE, "licenseConcluded", None, lambda n: n)
        assert store.read_single_typed_sub_entity(SPDX_NAMESPACE, "licenseConcluded", lambda n: n) is None

    def test_rereading_reports_drop_once(self):
        """An unreadable value is audited once however often it is read."""
        graph = TripleGraph()
        audit = AuditLog()
        store = PropertyStore(graph, uri("a"), audit)
        graph.add(uri("a"), spdx("checksum"), BNode("_:bad"))

        def reader(node):
            raise InvalidModelError(ErrorCode.INVALID_CHECKSUM, "bad checksum")

        for _ in range(5):
            assert store.read_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", reader) == []

        assert len(audit.get_entries(AuditEventType.REFRESH_DROP)) == 1

        graph.add(uri("a"), spdx("checksum"), BNode("_:worse"))
        store.read_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", reader)
        assert len(audit.get_entries(AuditEventType.REFRESH_DROP)) == 2

    def test_failed_typed_write_keeps_prior_values(self):
        """A writer failing midway leaves the property and graph untouched."""
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))

        def writer(value):
            if value == "bad":
                raise InvalidModelError(ErrorCode.INVALID_CHECKSUM, "bad checksum")
            node = BNode.for_content("checksum", value)
            graph.add(node, spdx("checksumValue"), Literal(value))
            return node

        store.write_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", ["old"], writer)
        before = set(graph.triples())

        with pytest.raises(InvalidModelError):
            store.write_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", ["new", "bad"], writer)

        assert set(graph.triples()) == before

    def test_typed_rewrite_keeps_shared_value_node(self):
        """A value present before and after a rewrite keeps its statements."""
        graph = TripleGraph()
        store = PropertyStore(graph, uri("a"))

        def writer(value):
            node = BNode.for_content("checksum", value)
            graph.add(node, spdx("checksumValue"), Literal(value))
            return node

        store.write_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", ["x", "y"], writer)
        store.write_multiple_typed_sub_entities(SPDX_NAMESPACE, "checksum", ["y"], writer)

        kept = BNode.for_content("checksum", "y")
        assert graph.objects(uri("a"), spdx("checksum")) == [kept]
        assert graph.value(kept, spdx("checksumValue")) == Literal("y")
        assert not graph.has_subject(BNode.for_content("checksum", "x"))
