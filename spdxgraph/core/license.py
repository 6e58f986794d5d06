"""
License expression values.

The expression grammar is not parsed here; these classes only model an
already-built expression tree and map it to and from graph nodes.

Variants:
    SimpleLicense          a single license id (MIT, Apache-2.0, LicenseRef-x)
    ConjunctiveLicenseSet  all members apply (AND)
    DisjunctiveLicenseSet  any member applies (OR)
    WithExceptionOperator  license WITH exception
    NoneLicense            explicit NONE
    NoAssertionLicense     explicit NOASSERTION
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import FrozenSet, List
import re

from ..contracts.base import (
    BNode, Node, URIRef, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, LISTED_LICENSE_NAMESPACE, RDF_TYPE,
    CLASS_LICENSE, CLASS_CONJUNCTIVE_LICENSE_SET, CLASS_DISJUNCTIVE_LICENSE_SET,
    CLASS_WITH_EXCEPTION_OPERATOR, CLASS_LICENSE_EXCEPTION,
    PROP_LICENSE_ID, PROP_LICENSE_SET_MEMBER, PROP_LICENSE_EXCEPTION,
    PROP_LICENSE_EXCEPTION_ID,
    URI_NONE_LICENSE, URI_NOASSERTION_LICENSE,
)
from ..storage import PropertyStore, TripleGraph

_LICENSE_ID = re.compile(r'^[A-Za-z0-9.+\-]+$')

# Graph classes that carry a plain licenseId
_SIMPLE_LICENSE_CLASSES = frozenset({
    CLASS_LICENSE, "ListedLicense", "ExtractedLicensingInfo", "SimpleLicensingInfo",
})


class AnyLicenseInfo(ABC):
    """Common contract of every license expression node."""

    @abstractmethod
    def to_node(self, graph: TripleGraph) -> Node:
        """Write this expression into the graph and return its node."""

    @abstractmethod
    def clone(self) -> AnyLicenseInfo:
        """Return an independent copy."""

    def verify(self) -> List[str]:
        return []

    def equivalent(self, other: object) -> bool:
        # Expression values are immutable; set members compare unordered
        return self == other


def _require_id(value: object, label: str) -> None:
    if not value or not isinstance(value, str):
        raise InvalidModelError(ErrorCode.INVALID_LICENSE, f"{label} must be a non-empty string")


@dataclass(frozen=True)
class SimpleLicense(AnyLicenseInfo):
    license_id: str

    def __post_init__(self):
        _require_id(self.license_id, "License id")

    def __str__(self) -> str:
        return self.license_id

    def verify(self) -> List[str]:
        if not _LICENSE_ID.match(self.license_id):
            return [f"Invalid license id: {self.license_id}"]
        return []

    def clone(self) -> SimpleLicense:
        return SimpleLicense(self.license_id)

    def to_node(self, graph: TripleGraph) -> Node:
        node = BNode.for_content(CLASS_LICENSE, self.license_id)
        graph.add(node, RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_LICENSE))
        PropertyStore(graph, node).write_single_value(SPDX_NAMESPACE, PROP_LICENSE_ID, self.license_id)
        return node


@dataclass(frozen=True)
class _LicenseSet(AnyLicenseInfo):
    members: FrozenSet[AnyLicenseInfo] = field(default_factory=frozenset)

    _operator = ""
    _class_name = ""

    def __post_init__(self):
        members = frozenset(self.members)
        for member in members:
            if not isinstance(member, AnyLicenseInfo):
                raise InvalidModelError(
                    ErrorCode.INVALID_LICENSE,
                    f"License set member must be a license expression, got {member!r}"
                )
        object.__setattr__(self, 'members', members)

    def __str__(self) -> str:
        return "(" + f" {self._operator} ".join(sorted(str(m) for m in self.members)) + ")"

    def verify(self) -> List[str]:
        findings = []
        for member in sorted(self.members, key=str):
            findings.extend(member.verify())
        return findings

    def clone(self) -> _LicenseSet:
        return type(self)(frozenset(m.clone() for m in self.members))

    def to_node(self, graph: TripleGraph) -> Node:
        node = BNode.for_content(self._class_name, *sorted(str(m) for m in self.members))
        graph.add(node, RDF_TYPE, URIRef(SPDX_NAMESPACE + self._class_name))
        PropertyStore(graph, node).write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, PROP_LICENSE_SET_MEMBER,
            sorted(self.members, key=str), lambda m: m.to_node(graph)
        )
        return node


@dataclass(frozen=True)
class ConjunctiveLicenseSet(_LicenseSet):
    _operator = "AND"
    _class_name = CLASS_CONJUNCTIVE_LICENSE_SET


@dataclass(frozen=True)
class DisjunctiveLicenseSet(_LicenseSet):
    _operator = "OR"
    _class_name = CLASS_DISJUNCTIVE_LICENSE_SET


@dataclass(frozen=True)
class WithExceptionOperator(AnyLicenseInfo):
    license: SimpleLicense
    exception_id: str

    def __post_init__(self):
        if not isinstance(self.license, SimpleLicense):
            raise InvalidModelError(
                ErrorCode.INVALID_LICENSE, "WITH operator requires a simple license"
            )
        _require_id(self.exception_id, "License exception id")

    def __str__(self) -> str:
        return f"{self.license} WITH {self.exception_id}"

    def verify(self) -> List[str]:
        findings = self.license.verify()
        if not _LICENSE_ID.match(self.exception_id):
            findings.append(f"Invalid license exception id: {self.exception_id}")
        return findings

    def clone(self) -> WithExceptionOperator:
        return WithExceptionOperator(self.license.clone(), self.exception_id)

    def to_node(self, graph: TripleGraph) -> Node:
        node = BNode.for_content(CLASS_WITH_EXCEPTION_OPERATOR, self.license.license_id, self.exception_id)
        graph.add(node, RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_WITH_EXCEPTION_OPERATOR))
        exception_node = BNode.for_content(CLASS_LICENSE_EXCEPTION, self.exception_id)
        graph.add(exception_node, RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_LICENSE_EXCEPTION))
        PropertyStore(graph, exception_node).write_single_value(
            SPDX_NAMESPACE, PROP_LICENSE_EXCEPTION_ID, self.exception_id
        )
        store = PropertyStore(graph, node)
        store.write_single_typed_sub_entity(
            SPDX_NAMESPACE, PROP_LICENSE_SET_MEMBER, self.license, lambda m: m.to_node(graph)
        )
        store.write_single_typed_sub_entity(
            SPDX_NAMESPACE, PROP_LICENSE_EXCEPTION, exception_node, lambda n: n
        )
        return node


@dataclass(frozen=True)
class NoneLicense(AnyLicenseInfo):

    def __str__(self) -> str:
        return "NONE"

    def clone(self) -> NoneLicense:
        return NoneLicense()

    def to_node(self, graph: TripleGraph) -> Node:
        return URI_NONE_LICENSE


@dataclass(frozen=True)
class NoAssertionLicense(AnyLicenseInfo):

    def __str__(self) -> str:
        return "NOASSERTION"

    def clone(self) -> NoAssertionLicense:
        return NoAssertionLicense()

    def to_node(self, graph: TripleGraph) -> Node:
        return URI_NOASSERTION_LICENSE


# =============================================================================
# GRAPH READS
# =============================================================================

def license_from_node(graph: TripleGraph, node: Node) -> AnyLicenseInfo:
    """
    Rebuild a license expression from its graph node.

    Raises InvalidModelError for nodes that are not license expressions.
    """
    if node == URI_NONE_LICENSE:
        return NoneLicense()
    if node == URI_NOASSERTION_LICENSE:
        return NoAssertionLicense()

    store = PropertyStore(graph, node)
    type_node = graph.value(node, RDF_TYPE)
    class_name = None
    if isinstance(type_node, URIRef) and type_node.value.startswith(SPDX_NAMESPACE):
        class_name = type_node.value[len(SPDX_NAMESPACE):]

    if class_name is None and isinstance(node, URIRef) \
            and node.value.startswith(LISTED_LICENSE_NAMESPACE):
        # Bare reference to a listed license
        return SimpleLicense(node.value[len(LISTED_LICENSE_NAMESPACE):])

    if class_name in _SIMPLE_LICENSE_CLASSES:
        license_id = store.read_single_value(SPDX_NAMESPACE, PROP_LICENSE_ID)
        if license_id is None and isinstance(node, URIRef) \
                and node.value.startswith(LISTED_LICENSE_NAMESPACE):
            license_id = node.value[len(LISTED_LICENSE_NAMESPACE):]
        return SimpleLicense(license_id)

    if class_name in (CLASS_CONJUNCTIVE_LICENSE_SET, CLASS_DISJUNCTIVE_LICENSE_SET):
        members = _read_members(graph, store)
        if class_name == CLASS_CONJUNCTIVE_LICENSE_SET:
            return ConjunctiveLicenseSet(frozenset(members))
        return DisjunctiveLicenseSet(frozenset(members))

    if class_name == CLASS_WITH_EXCEPTION_OPERATOR:
        members = _read_members(graph, store)
        exception_node = graph.value(node, URIRef(SPDX_NAMESPACE + PROP_LICENSE_EXCEPTION))
        if len(members) != 1 or not isinstance(members[0], SimpleLicense) or exception_node is None:
            raise InvalidModelError(ErrorCode.INVALID_LICENSE, f"Malformed WITH operator at {node}")
        exception_id = PropertyStore(graph, exception_node).read_single_value(
            SPDX_NAMESPACE, PROP_LICENSE_EXCEPTION_ID
        )
        return WithExceptionOperator(members[0], exception_id)

    raise InvalidModelError(ErrorCode.INVALID_LICENSE, f"Node {node} is not a license expression")


def _read_members(graph: TripleGraph, store: PropertyStore) -> List[AnyLicenseInfo]:
    return store.read_multiple_typed_sub_entities(
        SPDX_NAMESPACE, PROP_LICENSE_SET_MEMBER, lambda n: license_from_node(graph, n)
    )
