"""
Model Container

Owns one triple graph and the entities materialized from it.

DESIGN PRINCIPLES:
==================
1. The graph is the source of truth; entities are cached views of nodes
2. One entity per node: the arena maps each node to the instance that
   represents it, so shared references and cycles resolve to one object
3. Element identifiers are graph-local and allocated on demand
4. Every materialization, drop and merge is traceable through the audit log
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from .contracts.base import (
    Node, URIRef, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, RDF_TYPE, CLASS_SPDX_ELEMENT, CLASS_SPDX_FILE,
)
from .contracts.events import AuditEventType
from .core.entity import Element
from .core.file import File, find_file_node
from .core.model_object import ModelObject
from .observability import AuditLog
from .storage import TripleGraph


@dataclass
class ModelConfig:
    """Per-container synchronization settings."""
    refresh_on_get: bool = True
    identifier_prefix: str = "SPDXRef-"
    enable_audit: bool = True


# Graph classes that resolve_node can materialize
_ENTITY_TYPES = {
    URIRef(SPDX_NAMESPACE + CLASS_SPDX_FILE): File,
    URIRef(SPDX_NAMESPACE + CLASS_SPDX_ELEMENT): Element,
}


class ModelContainer:
    """
    A document namespace, its graph and the entities bound to it.

    Entities attach through add_element(); entities already described by the
    graph are obtained through resolve_node() or files().
    """

    def __init__(
        self,
        document_namespace: str,
        config: Optional[ModelConfig] = None,
        graph: Optional[TripleGraph] = None
    ):
        if not document_namespace:
            raise ValueError("document_namespace is required")
        self._namespace = document_namespace.rstrip("#")
        self._config = config or ModelConfig()
        self._graph = graph if graph is not None else TripleGraph()
        self._audit = AuditLog(enabled=self._config.enable_audit)
        self._arena: Dict[Node, ModelObject] = {}
        self._next_id = 1

    def __repr__(self) -> str:
        return f"ModelContainer({self._namespace!r}, {len(self._graph)} statements)"

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def config(self) -> ModelConfig:
        return self._config

    @property
    def graph(self) -> TripleGraph:
        return self._graph

    @property
    def audit(self) -> AuditLog:
        return self._audit

    # =========================================================================
    # IDENTIFIERS
    # =========================================================================

    def element_uri(self, identifier: str) -> URIRef:
        return URIRef(f"{self._namespace}#{identifier}")

    def identifier_for(self, node: Node) -> Optional[str]:
        """Identifier of an element node of this document, or None."""
        if not isinstance(node, URIRef):
            return None
        prefix = self._namespace + "#"
        if node.value.startswith(prefix):
            return node.value[len(prefix):]
        return None

    def allocate_identifier(self) -> str:
        """Next `<prefix><n>` identifier not yet used in this container."""
        while True:
            identifier = f"{self._config.identifier_prefix}{self._next_id}"
            self._next_id += 1
            uri = self.element_uri(identifier)
            if not self._graph.has_subject(uri) and uri not in self._arena:
                break
        self._audit.record(
            AuditEventType.IDENTIFIER_ALLOCATED,
            action="allocate identifier",
            entity_id=identifier
        )
        return identifier

    # =========================================================================
    # ENTITY ARENA
    # =========================================================================

    def register(self, node: Node, entity: ModelObject) -> None:
        """Bind an entity to a node; the first entity registered wins."""
        self._arena.setdefault(node, entity)

    def unregister(self, node: Node, entity: ModelObject) -> None:
        """Drop a node's binding if `entity` holds it."""
        if self._arena.get(node) is entity:
            del self._arena[node]

    def resolve_node(self, node: Node) -> ModelObject:
        """
        The entity for a graph node.

        Nodes seen before return the same instance. Otherwise the entity is
        built from the node's rdf:type; unknown types raise UNKNOWN_NODE_TYPE.
        """
        entity = self._arena.get(node)
        if entity is not None:
            return entity
        type_node = self._graph.value(node, RDF_TYPE)
        entity_type = _ENTITY_TYPES.get(type_node)
        if entity_type is None:
            raise InvalidModelError(
                ErrorCode.UNKNOWN_NODE_TYPE,
                f"Cannot build an element for {node} of type {type_node}"
            )
        return entity_type.from_node(self, node)

    def add_element(self, element: ModelObject) -> Node:
        """Attach an element (merging with a duplicate if one exists)."""
        return element.attach(self)

    def find_file_node(self, file: File) -> Optional[Node]:
        """Existing node describing the same file (name and SHA-1), if any."""
        return find_file_node(self, file.get_name(), file.sha1)

    def files(self) -> List[File]:
        """Every file described by the graph, in graph order."""
        file_nodes = self._graph.subjects(RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_SPDX_FILE))
        return [self.resolve_node(node) for node in file_nodes]
