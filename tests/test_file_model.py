"""
File Model Tests
================

Equivalence, cloning, verification, duplicate lookup and the legacy
file-dependency list.
"""

import pytest

from spdxgraph.contracts.base import InvalidModelError, ErrorCode, SPDX_NAMESPACE, predicate
from spdxgraph.contracts.events import AuditEventType
from spdxgraph.core.checksum import Checksum, ChecksumAlgorithm
from spdxgraph.core.entity import Element
from spdxgraph.core.file import File, FileType, find_file_node
from spdxgraph.core.license import SimpleLicense
from spdxgraph.core.project import DoapProject
from spdxgraph.core.relationship import Relationship, RelationshipType
from spdxgraph.engine import ModelContainer

NAMESPACE = "http://example.org/spdxdocs/model-test"
SHA1_A = "a" * 40
SHA1_B = "b" * 40
MD5 = "d41d8cd98f00b204e9800998ecf8427e"


def create_file(name: str, sha1: str = SHA1_A, **kwargs) -> File:
    return File(name=name, checksums=[Checksum.sha1(sha1)], **kwargs)


class TestVerify:

    def test_valid_file(self):
        """A named file with a SHA-1 checksum and nothing else is valid."""
        a = File(name="foo.c", checksums=[Checksum.sha1(SHA1_A)])
        assert a.verify() == []

    def test_missing_checksums(self):
        """No checksum: both the checksum and the SHA-1 rules fire."""
        b = File(name="foo.c")
        assert b.verify() == [
            "Missing required checksum for file foo.c",
            "Missing required SHA1 hashcode value for foo.c",
        ]

    def test_scenario_files_not_equivalent(self):
        a = File(name="foo.c", checksums=[Checksum.sha1(SHA1_A)])
        b = File(name="foo.c")
        assert not a.equivalent(b)
        assert not b.equivalent(a)

    def test_md5_only_fails_sha1_rule(self):
        f = File(name="x.c", checksums=[Checksum(ChecksumAlgorithm.MD5, MD5)])
        assert f.verify() == ["Missing required SHA1 hashcode value for x.c"]

    def test_unnamed_file(self):
        f = File()
        assert f.verify() == [
            "Missing required name for File UNKNOWN",
            "Missing required checksum for file UNKNOWN",
            "Missing required SHA1 hashcode value for UNKNOWN",
        ]

    def test_rules_accumulate(self):
        f = File(
            name="bad.c",
            checksums=[Checksum.sha1("xyz")],
            artifact_of=[DoapProject(None)],
            license_info_from_files=[SimpleLicense("not valid")]
        )
        findings = f.verify()

        assert "Invalid license id: not valid" in findings
        assert "Invalid checksum value for SHA1: xyz is not hexadecimal" in findings
        assert "Missing required name for project" in findings

    def test_dependency_findings_are_prefixed(self):
        dependency = File(name="dep.c")
        f = create_file("main.c")
        f.set_file_dependencies([dependency])

        assert f.verify() == [
            "Invalid file dependency for file named dep.c: Missing required checksum for file dep.c",
            "Invalid file dependency for file named dep.c: Missing required SHA1 hashcode value for dep.c",
        ]

    def test_verify_terminates_on_cycles(self):
        a = File(name="a.c")
        b = create_file("b.c")
        a.set_file_dependencies([b])
        b.set_file_dependencies([a])

        findings = a.verify()

        assert "Missing required checksum for file a.c" in findings
        assert len(findings) == 2

    def test_shared_dependency_reported_on_every_path(self):
        """A dependency reached directly and through another file is reported under both."""
        a, b = create_file("a.c"), create_file("b.c", SHA1_B)
        c = File(name="c.c")
        b.set_file_dependencies([c])
        a.set_file_dependencies([b, c])
        ancestors = set()

        findings = a.verify(ancestors)

        through_b = "Invalid file dependency for file named b.c: Invalid file dependency for file named c.c: "
        direct = "Invalid file dependency for file named c.c: "
        assert findings == [
            through_b + "Missing required checksum for file c.c",
            through_b + "Missing required SHA1 hashcode value for c.c",
            direct + "Missing required checksum for file c.c",
            direct + "Missing required SHA1 hashcode value for c.c",
        ]
        assert ancestors == set()

    def test_verify_attached(self):
        container = ModelContainer(NAMESPACE)
        f = create_file("foo.c")
        container.add_element(f)
        assert f.verify() == []


class TestEquivalence:

    def test_reflexive(self):
        f = create_file("foo.c", file_types=[FileType.SOURCE])
        assert f.equivalent(f)

    def test_ignores_identifier(self):
        a = create_file("foo.c", identifier="SPDXRef-1")
        b = create_file("foo.c", identifier="SPDXRef-99")
        assert a.equivalent(b)

    def test_checksums_unordered_and_case_insensitive(self):
        a = File(name="f", checksums=[Checksum.sha1(SHA1_A), Checksum(ChecksumAlgorithm.MD5, MD5)])
        b = File(name="f", checksums=[Checksum(ChecksumAlgorithm.MD5, MD5.upper()), Checksum.sha1(SHA1_A)])
        assert a.equivalent(b)

    def test_file_types_order_sensitive(self):
        a = create_file("f", file_types=[FileType.SOURCE, FileType.TEXT])
        b = create_file("f", file_types=[FileType.TEXT, FileType.SOURCE])
        assert not a.equivalent(b)

    def test_contributors_order_sensitive(self):
        a = create_file("f", file_contributors=["x", "y"])
        b = create_file("f", file_contributors=["y", "x"])
        assert not a.equivalent(b)

    def test_projects_unordered(self):
        p1, p2 = DoapProject("one"), DoapProject("two", "http://two.org")
        a = create_file("f", artifact_of=[p1, p2])
        b = create_file("f", artifact_of=[p2, p1])
        assert a.equivalent(b)

    def test_notice_null_vs_empty(self):
        assert not create_file("f", notice_text="").equivalent(create_file("f"))
        assert create_file("f").equivalent(create_file("f"))

    def test_differs_from_plain_element(self):
        f = create_file("f")
        assert not f.equivalent(Element(name="f"))
        assert not Element(name="f").equivalent(f)

    def test_dependencies_compared_structurally(self):
        a = create_file("main.c")
        b = create_file("main.c")
        a.set_file_dependencies([create_file("dep.c", SHA1_B)])
        b.set_file_dependencies([create_file("dep.c", SHA1_B)])
        assert a.equivalent(b)

        b.set_file_dependencies([create_file("other.c", SHA1_B)])
        assert not a.equivalent(b)

    def test_cyclic_dependencies_terminate(self):
        a1, b1 = create_file("a.c"), create_file("b.c", SHA1_B)
        a1.set_file_dependencies([b1])
        b1.set_file_dependencies([a1])
        a2, b2 = create_file("a.c"), create_file("b.c", SHA1_B)
        a2.set_file_dependencies([b2])
        b2.set_file_dependencies([a2])

        assert a1.equivalent(a2)
        assert b2.equivalent(b1)

    def test_self_dependency(self):
        a = create_file("a.c")
        a.set_file_dependencies([a])
        b = create_file("a.c")
        b.set_file_dependencies([b])
        assert a.equivalent(b)


class TestClone:

    def test_clone_is_detached_without_identifier(self):
        container = ModelContainer(NAMESPACE)
        f = create_file("foo.c", file_types=[FileType.SOURCE], notice_text="n")
        container.add_element(f)

        copy = f.clone()

        assert copy is not f
        assert not copy.is_attached
        assert copy.identifier is None
        assert copy.equivalent(f)

    def test_clone_is_deep(self):
        dependency = create_file("dep.c", SHA1_B)
        f = create_file("main.c", file_contributors=["x"])
        f.set_file_dependencies([dependency])

        copy = f.clone()
        copy.file_contributors.append("y")
        copy.file_dependencies[0].set_name("changed.c")

        assert f.file_contributors == ["x"]
        assert copy.file_dependencies[0] is not dependency
        assert dependency.name == "dep.c"

    def test_clone_breaks_cycles(self):
        a, b = create_file("a.c"), create_file("b.c", SHA1_B)
        a.set_file_dependencies([b])
        b.set_file_dependencies([a])

        copy = a.clone()

        copied_b = copy.file_dependencies[0]
        assert copied_b.name == "b.c"
        assert copied_b.file_dependencies[0] is copy
        assert copy.equivalent(a)

    def test_clone_shares_one_copy_per_object(self):
        shared = create_file("shared.c", SHA1_B)
        related = Element(name="pkg")
        f = create_file("main.c", relationships=[Relationship(related, RelationshipType.CONTAINED_BY)])
        f.set_file_dependencies([shared, shared])

        copy = f.clone()

        assert copy.file_dependencies[0] is copy.file_dependencies[1]
        assert copy.relationships[0].related_element is not related
        assert copy.relationships[0].related_element.name == "pkg"

    def test_clone_can_attach_elsewhere(self):
        source = ModelContainer(NAMESPACE)
        target = ModelContainer(NAMESPACE + "-other")
        f = create_file("foo.c")
        source.add_element(f)

        copy = f.clone()
        node = target.add_element(copy)

        assert copy.container is target
        assert node == target.element_uri(copy.identifier)


class TestDuplicateLookup:

    def test_same_name_and_sha1_reuses_node(self):
        container = ModelContainer(NAMESPACE)
        first = create_file("foo.c", identifier="SPDXRef-first")
        node = container.add_element(first)

        second = create_file("foo.c", SHA1_A.upper(), identifier="SPDXRef-second", notice_text="merged")
        merged = container.add_element(second)

        assert merged == node
        assert second.identifier == "SPDXRef-first"
        assert len(container.files()) == 1
        assert first.notice_text == "merged"
        assert container.audit.get_entries(AuditEventType.DUPLICATE_MERGE)

    def test_different_sha1_is_new_node(self):
        container = ModelContainer(NAMESPACE)
        node = container.add_element(create_file("foo.c"))

        other = container.add_element(create_file("foo.c", SHA1_B))

        assert other != node
        assert len(container.files()) == 2

    def test_no_sha1_never_matches(self):
        container = ModelContainer(NAMESPACE)
        container.add_element(File(name="foo.c", checksums=[Checksum(ChecksumAlgorithm.MD5, MD5)]))

        assert find_file_node(container, "foo.c", "") is None
        assert container.find_file_node(File(name="foo.c")) is None

    def test_only_first_name_match_is_examined(self):
        """Files sharing a name are not disambiguated beyond the first match."""
        container = ModelContainer(NAMESPACE)
        container.add_element(create_file("foo.c", SHA1_A))
        container.add_element(create_file("foo.c", SHA1_B))

        assert find_file_node(container, "foo.c", SHA1_A) is not None
        assert find_file_node(container, "foo.c", SHA1_B) is None

    def test_unknown_name(self):
        container = ModelContainer(NAMESPACE)
        assert find_file_node(container, "missing.c", SHA1_A) is None


class TestFileDependencies:

    def test_dependencies_receive_identifiers(self):
        container = ModelContainer(NAMESPACE)
        dependency = create_file("dep.c", SHA1_B)
        f = create_file("main.c")
        container.add_element(f)

        f.set_file_dependencies([dependency])

        assert dependency.is_attached
        assert dependency.identifier is not None
        assert container.graph.objects(f.node, predicate(SPDX_NAMESPACE, "fileDependency")) == [
            dependency.node
        ]

    def test_dependencies_attach_with_owner(self):
        container = ModelContainer(NAMESPACE)
        dependency = create_file("dep.c", SHA1_B)
        f = create_file("main.c")
        f.set_file_dependencies([dependency])

        container.add_element(f)

        assert dependency.container is container

    def test_cyclic_dependencies_round_trip(self):
        container = ModelContainer(NAMESPACE)
        a, b = create_file("a.c"), create_file("b.c", SHA1_B)
        a.set_file_dependencies([b])
        b.set_file_dependencies([a])
        node = container.add_element(a)

        reader = ModelContainer(NAMESPACE, graph=container.graph)
        restored = reader.resolve_node(node)

        restored_b = restored.file_dependencies[0]
        assert restored_b.name == "b.c"
        assert restored_b.file_dependencies[0] is restored
        assert restored.equivalent(a)

    def test_rejects_non_file(self):
        f = create_file("main.c")
        with pytest.raises(InvalidModelError) as exc:
            f.set_file_dependencies([Element(name="pkg")])
        assert exc.value.code == ErrorCode.INVALID_DEPENDENCY

    def test_rejects_dependency_from_other_container(self):
        first, second = ModelContainer(NAMESPACE), ModelContainer(NAMESPACE + "-2")
        foreign = create_file("dep.c", SHA1_B)
        second.add_element(foreign)
        f = create_file("main.c")
        first.add_element(f)

        with pytest.raises(InvalidModelError) as exc:
            f.set_file_dependencies([foreign])

        assert exc.value.code == ErrorCode.ALREADY_ATTACHED
        assert f.file_dependencies == []

    def test_rejected_dependencies_keep_prior_list(self):
        """A foreign file reached through a new dependency changes nothing."""
        first, second = ModelContainer(NAMESPACE), ModelContainer(NAMESPACE + "-2")
        foreign = create_file("foreign.c", SHA1_B)
        second.add_element(foreign)
        old = create_file("old.c", "c" * 40)
        f = create_file("main.c")
        f.set_file_dependencies([old])
        first.add_element(f)
        before = set(first.graph.triples())
        middle = create_file("middle.c", "d" * 40)
        middle.set_file_dependencies([foreign])

        with pytest.raises(InvalidModelError) as exc:
            f.set_file_dependencies([create_file("new.c", "e" * 40), middle])

        assert exc.value.code == ErrorCode.ALREADY_ATTACHED
        assert f.file_dependencies == [old]
        assert not middle.is_attached
        assert set(first.graph.triples()) == before

    def test_dependencies_separate_from_relationships(self):
        container = ModelContainer(NAMESPACE)
        f = create_file("main.c")
        f.set_file_dependencies([create_file("dep.c", SHA1_B)])
        container.add_element(f)

        assert f.relationships == []
        assert len(f.file_dependencies) == 1


class TestOrdering:

    def test_files_sort_by_name(self):
        files = [create_file("c.c"), File(), create_file("a.c")]
        assert [f.name for f in sorted(files)] == [None, "a.c", "c.c"]
