"""
DOAP project reference (the legacy artifactOf target of a file).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from ..contracts.base import (
    BNode, Node, URIRef, ErrorCode, InvalidModelError,
    DOAP_NAMESPACE, RDF_TYPE, CLASS_DOAP_PROJECT,
    PROP_PROJECT_NAME, PROP_PROJECT_HOMEPAGE,
)
from ..storage import PropertyStore, TripleGraph


@dataclass(frozen=True)
class DoapProject:
    """
    Project a file originates from.

    project_uri names the project node in the graph. It is a graph handle,
    not part of the project's value, and is ignored by equivalent().
    """
    name: Optional[str]
    homepage: Optional[str] = None
    project_uri: Optional[str] = None

    def __post_init__(self):
        for label, value in (("name", self.name), ("homepage", self.homepage),
                             ("project_uri", self.project_uri)):
            if value is not None and not isinstance(value, str):
                raise InvalidModelError(
                    ErrorCode.INVALID_PROJECT,
                    f"Project {label} must be a string, got {type(value).__name__}"
                )

    def verify(self) -> List[str]:
        if not self.name:
            return ["Missing required name for project"]
        return []

    def equivalent(self, other: object) -> bool:
        return (
            isinstance(other, DoapProject)
            and self.name == other.name
            and self.homepage == other.homepage
        )

    def clone(self) -> DoapProject:
        return DoapProject(self.name, self.homepage, self.project_uri)

    def to_node(self, graph: TripleGraph) -> Node:
        if self.project_uri:
            node = URIRef(self.project_uri)
        else:
            node = BNode.for_content(CLASS_DOAP_PROJECT, self.name or "", self.homepage or "")
        graph.add(node, RDF_TYPE, URIRef(DOAP_NAMESPACE + CLASS_DOAP_PROJECT))
        store = PropertyStore(graph, node)
        store.write_single_value(DOAP_NAMESPACE, PROP_PROJECT_NAME, self.name)
        store.write_single_value(DOAP_NAMESPACE, PROP_PROJECT_HOMEPAGE, self.homepage)
        return node

    @staticmethod
    def from_node(graph: TripleGraph, node: Node) -> DoapProject:
        type_node = graph.value(node, RDF_TYPE)
        if type_node != URIRef(DOAP_NAMESPACE + CLASS_DOAP_PROJECT):
            raise InvalidModelError(ErrorCode.INVALID_PROJECT, f"Node {node} is not a DOAP project")
        store = PropertyStore(graph, node)
        return DoapProject(
            name=store.read_single_value(DOAP_NAMESPACE, PROP_PROJECT_NAME),
            homepage=store.read_single_value(DOAP_NAMESPACE, PROP_PROJECT_HOMEPAGE),
            project_uri=node.value if isinstance(node, URIRef) else None
        )
