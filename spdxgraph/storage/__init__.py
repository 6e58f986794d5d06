"""
Triple Storage Layer

RESPONSIBILITY: Hold (subject, predicate, object) statements and expose
typed get/set of properties against one subject
ALLOWED INPUTS: Graph terms from contracts
OUTPUTS: Terms, plain strings, or values built by caller-supplied readers

WHAT THIS LAYER MUST NOT DO:
============================
- Interpret entity semantics (no knowledge of files, checksums, ...)
- Cache property values (entities own their caches)
- Provide locking or isolation (last writer wins)

BOUNDARY ENFORCEMENT:
=====================
- Every write replaces ALL prior statements for its (subject, predicate)
- Blank nodes left without any incoming statement are removed together
  with their own statements
- Statement order is insertion order, tracked per statement
"""

from __future__ import annotations
from itertools import count
from typing import Callable, Collection, Iterator, List, Optional, Tuple, TypeVar
import logging

import networkx as nx

from ..contracts.base import (
    URIRef, BNode, Literal, Node, Term,
    InvalidModelError, predicate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Triple = Tuple[Node, URIRef, Term]


# =============================================================================
# TRIPLE GRAPH
# =============================================================================

class TripleGraph:
    """
    Set of RDF-style statements stored on a networkx MultiDiGraph.

    A statement (s, p, o) is the edge s -> o keyed by p. Each edge carries
    a `seq` attribute with its insertion sequence, which defines the graph
    iteration order used by every query.
    """

    def __init__(self):
        self._graph = nx.MultiDiGraph()
        self._seq = count()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, subject: Node, pred: URIRef, obj: Term) -> None:
        """Add a statement. Re-adding an existing statement is a no-op."""
        if self._graph.has_edge(subject, obj, key=pred):
            return
        self._graph.add_edge(subject, obj, key=pred, seq=next(self._seq))

    def remove(
        self,
        subject: Node,
        pred: URIRef,
        obj: Optional[Term] = None,
        keep: Collection[Term] = ()
    ) -> int:
        """
        Remove statements matching (subject, pred, obj); obj=None matches all.

        Objects listed in `keep` are not collected even if orphaned.
        Returns the number of statements removed, not counting the
        statements of orphaned blank nodes.
        """
        if subject not in self._graph:
            return 0
        targets = [
            v for _, v, k in self._graph.out_edges(subject, keys=True)
            if k == pred and (obj is None or v == obj)
        ]
        for v in targets:
            self._graph.remove_edge(subject, v, key=pred)
            if v not in keep:
                self.collect(v)
        return len(targets)

    def remove_subject(self, subject: Node) -> int:
        """Remove every statement about a subject; returns the count."""
        if subject not in self._graph:
            return 0
        preds = {k for _, _, k in self._graph.out_edges(subject, keys=True)}
        removed = sum(self.remove(subject, pred) for pred in preds)
        self.collect(subject)
        return removed

    def clear(self) -> None:
        self._graph.clear()

    def collect(self, term: Term) -> None:
        """Drop a node that no statement refers to any more."""
        if term not in self._graph:
            return
        if isinstance(term, BNode):
            if self._graph.in_degree(term) > 0:
                return
            for _, v, k in list(self._graph.out_edges(term, keys=True)):
                self._graph.remove_edge(term, v, key=k)
                self.collect(v)
        if self._graph.degree(term) == 0:
            self._graph.remove_node(term)

    # -------------------------------------------------------------------------
    # Queries (insertion order)
    # -------------------------------------------------------------------------

    def objects(self, subject: Node, pred: URIRef) -> List[Term]:
        if subject not in self._graph:
            return []
        edges = [
            (d["seq"], v) for _, v, k, d in self._graph.out_edges(subject, keys=True, data=True)
            if k == pred
        ]
        return [v for _, v in sorted(edges, key=lambda e: e[0])]

    def subjects(self, pred: URIRef, obj: Term) -> List[Node]:
        if obj not in self._graph:
            return []
        edges = [
            (d["seq"], u) for u, _, k, d in self._graph.in_edges(obj, keys=True, data=True)
            if k == pred
        ]
        return [u for _, u in sorted(edges, key=lambda e: e[0])]

    def value(self, subject: Node, pred: URIRef) -> Optional[Term]:
        """First object for (subject, pred), or None."""
        found = self.objects(subject, pred)
        return found[0] if found else None

    def triples(
        self,
        subject: Optional[Node] = None,
        pred: Optional[URIRef] = None,
        obj: Optional[Term] = None
    ) -> Iterator[Triple]:
        """Iterate statements matching a pattern; None is a wildcard."""
        if subject is not None:
            if subject not in self._graph:
                return
            edges = self._graph.out_edges(subject, keys=True, data=True)
        elif obj is not None:
            if obj not in self._graph:
                return
            edges = self._graph.in_edges(obj, keys=True, data=True)
        else:
            edges = self._graph.edges(keys=True, data=True)

        matched = [
            (d["seq"], (u, k, v)) for u, v, k, d in edges
            if (pred is None or k == pred) and (obj is None or v == obj)
        ]
        for _, triple in sorted(matched, key=lambda m: m[0]):
            yield triple

    def has_subject(self, subject: Node) -> bool:
        return subject in self._graph and self._graph.out_degree(subject) > 0

    def __contains__(self, triple: Triple) -> bool:
        s, p, o = triple
        return self._graph.has_edge(s, o, key=p)

    def describe(self, subject: Node) -> List[Triple]:
        """Statements of a subject and of the blank nodes it reaches, in order."""
        statements = []
        pending = [subject]
        seen = set()
        while pending:
            node = pending.pop(0)
            if node in seen:
                continue
            seen.add(node)
            for statement in self.triples(subject=node):
                statements.append(statement)
                if isinstance(statement[2], BNode):
                    pending.append(statement[2])
        return statements

    def __len__(self) -> int:
        return self._graph.number_of_edges()


# =============================================================================
# PROPERTY STORE ADAPTER
# =============================================================================

class PropertyStore:
    """
    Typed property access against one subject of a TripleGraph.

    Properties are keyed by (namespace, property-name). Sub-entity reads
    take a reader callable (node -> value); a reader raising
    InvalidModelError drops that one entry and the rest are kept.
    """

    def __init__(self, graph: TripleGraph, node: Node, audit=None):
        self._graph = graph
        self._node = node
        self._audit = audit

    @property
    def node(self) -> Node:
        return self._node

    @property
    def graph(self) -> TripleGraph:
        return self._graph

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def read_single_value(self, namespace: str, name: str) -> Optional[str]:
        for obj in self._graph.objects(self._node, predicate(namespace, name)):
            if isinstance(obj, (Literal, URIRef)):
                return obj.value
        return None

    def read_multiple_values(self, namespace: str, name: str) -> List[str]:
        return [
            obj.value for obj in self._graph.objects(self._node, predicate(namespace, name))
            if isinstance(obj, Literal)
        ]

    def read_multiple_uri_values(self, namespace: str, name: str) -> List[str]:
        return [
            obj.value for obj in self._graph.objects(self._node, predicate(namespace, name))
            if isinstance(obj, URIRef)
        ]

    def read_multiple_typed_sub_entities(
        self,
        namespace: str,
        name: str,
        reader: Callable[[Node], T]
    ) -> List[T]:
        values = []
        for obj in self._graph.objects(self._node, predicate(namespace, name)):
            if isinstance(obj, Literal):
                self.report_drop(name, obj, "literal where a resource was expected")
                continue
            try:
                values.append(reader(obj))
            except InvalidModelError as e:
                self.report_drop(name, obj, str(e))
        return values

    def read_single_typed_sub_entity(
        self,
        namespace: str,
        name: str,
        reader: Callable[[Node], T]
    ) -> Optional[T]:
        values = self.read_multiple_typed_sub_entities(namespace, name, reader)
        return values[0] if values else None

    # -------------------------------------------------------------------------
    # Writes (replace all prior statements for the predicate)
    # -------------------------------------------------------------------------

    def write_single_value(self, namespace: str, name: str, value: Optional[str]) -> None:
        pred = predicate(namespace, name)
        self._graph.remove(self._node, pred)
        if value is not None:
            self._graph.add(self._node, pred, Literal(value))

    def write_multiple_values(self, namespace: str, name: str, values: List[str]) -> None:
        pred = predicate(namespace, name)
        self._graph.remove(self._node, pred)
        for value in values:
            self._graph.add(self._node, pred, Literal(value))

    def write_multiple_uri_values(self, namespace: str, name: str, uris: List[str]) -> None:
        pred = predicate(namespace, name)
        self._graph.remove(self._node, pred)
        for uri in uris:
            self._graph.add(self._node, pred, URIRef(uri))

    def write_multiple_typed_sub_entities(
        self,
        namespace: str,
        name: str,
        values: List[T],
        writer: Callable[[T], Node]
    ) -> None:
        # Object nodes are built before any prior statement is removed, so a
        # failing writer leaves the property as it was.
        pred = predicate(namespace, name)
        nodes = []
        try:
            for value in values:
                nodes.append(writer(value))
        except InvalidModelError:
            for node in nodes:
                self._graph.collect(node)
            raise
        self._graph.remove(self._node, pred, keep=set(nodes))
        for node in nodes:
            self._graph.add(self._node, pred, node)

    def write_single_typed_sub_entity(
        self,
        namespace: str,
        name: str,
        value: Optional[T],
        writer: Callable[[T], Node]
    ) -> None:
        self.write_multiple_typed_sub_entities(
            namespace, name, [] if value is None else [value], writer
        )

    def report_drop(self, name: str, obj: Term, reason: str) -> None:
        """
        Log and audit an unreadable value of this subject.

        With an audit log attached, each (subject, property, value) is
        reported once however often it is re-read.
        """
        if self._audit is not None and not self._audit.record_drop(
            entity_id=str(self._node),
            name=name,
            value=str(obj),
            reason=reason
        ):
            return
        logger.error("Dropping invalid %s value %s on %s: %s", name, obj, self._node, reason)
