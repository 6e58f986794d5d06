"""
Graph-Synchronized Model Object

Base contract for entities whose source of truth is a TripleGraph.

SYNCHRONIZATION RULES:
======================
1. Refreshing getters re-read the graph when the object is attached and the
   refresh policy (explicit argument, else the container's refresh_on_get)
   allows it. Collections are only replaced when the fresh value is not
   equivalent to the cached one.
2. Write-through setters normalize input, update the cache and, when
   attached, immediately replace the statements for that property.
3. Equivalence, cloning and verification carry visited/memo/ancestor state
   so that self-referential entity graphs terminate.
4. A failed attach leaves the object detached and the graph unchanged.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar
import logging

from ..contracts.base import (
    Node, URIRef, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, RDF_TYPE,
)
from ..contracts.events import AuditEventType
from ..storage import PropertyStore

if TYPE_CHECKING:
    from ..engine import ModelContainer

logger = logging.getLogger(__name__)

T = TypeVar("T")

VisitedPairs = Set[Tuple[int, int]]
CloneMemo = Dict[int, object]


def lists_equivalent(
    a: Sequence[T],
    b: Sequence[T],
    compare: Callable[[T, T], bool]
) -> bool:
    """
    Unordered equivalence of two collections.

    Every element of each side must have an equivalent on the other side.
    Order and duplicates are tolerated.
    """
    for x in a:
        if not any(x is y or compare(x, y) for y in b):
            return False
    for y in b:
        if not any(x is y or compare(y, x) for x in a):
            return False
    return True


def merge_on_change(
    cached: List[T],
    fresh: List[T],
    compare: Callable[[T, T], bool]
) -> List[T]:
    """Keep the cached collection unless the fresh one differs."""
    if lists_equivalent(fresh, cached, compare):
        return cached
    return fresh


def clone_value(value: Optional[T], owner: object) -> Optional[T]:
    """
    Clone one value object.

    A construction failure is logged and yields None for this one value.
    """
    if value is None:
        return None
    try:
        return value.clone()
    except InvalidModelError as e:
        logger.error("Error cloning %r of %r: %s", value, owner, e)
        return None


def clone_values(values: Sequence[T], owner: object) -> List[T]:
    cloned = (clone_value(v, owner) for v in values)
    return [c for c in cloned if c is not None]


class ModelObject:
    """
    An entity bound (or bindable) to one node of a container's graph.

    Subclasses declare their graph class in `_class_name` and implement
    populate_model() / refresh() / _equivalent_fields() / _clone_detached().
    """

    _class_name: str = ""

    def __init__(self):
        self._container: Optional[ModelContainer] = None
        self._node: Optional[Node] = None
        self._store: Optional[PropertyStore] = None

    # -------------------------------------------------------------------------
    # Attachment
    # -------------------------------------------------------------------------

    @property
    def node(self) -> Optional[Node]:
        return self._node

    @property
    def container(self) -> Optional[ModelContainer]:
        return self._container

    @property
    def is_attached(self) -> bool:
        return self._store is not None

    @property
    def type_uri(self) -> URIRef:
        return URIRef(SPDX_NAMESPACE + self._class_name)

    def attach(self, container: ModelContainer) -> Node:
        """
        Materialize this object into the container's graph.

        If the container already holds a duplicate of this object, that node
        is reused and updated in place. Returns the node.

        Raises ALREADY_ATTACHED if this object, or a detached element it
        references, is attached to another container.
        """
        if self._container is container:
            return self._node
        self.check_attachable(container)

        duplicate = self.find_duplicate_node(container)
        node = duplicate if duplicate is not None else self.allocate_node(container)
        prior = container.graph.describe(node)

        self._bind(container, node)
        container.register(node, self)
        try:
            container.graph.add(node, RDF_TYPE, self.type_uri)
            self.populate_model()
        except InvalidModelError:
            # Put the node back as it was and leave this object detached
            container.graph.remove_subject(node)
            for statement in prior:
                container.graph.add(*statement)
            container.unregister(node, self)
            self._unbind()
            raise

        if duplicate is not None:
            container.audit.record(
                AuditEventType.DUPLICATE_MERGE,
                action=f"merge {self._class_name}",
                entity_id=str(node)
            )
        container.audit.record(
            AuditEventType.MATERIALIZE,
            action=f"materialize {self._class_name}",
            entity_id=str(node)
        )
        return node

    def _bind(self, container: ModelContainer, node: Node) -> None:
        self._container = container
        self._node = node
        self._store = PropertyStore(container.graph, node, container.audit)

    def _unbind(self) -> None:
        self._container = None
        self._node = None
        self._store = None

    def check_attachable(self, container: ModelContainer, seen: Optional[Set[int]] = None) -> None:
        """
        Raise ALREADY_ATTACHED if attaching this object to `container` would
        reach an element attached to a different container.

        Detached referenced elements are attached along with their referrer,
        so they are checked transitively.
        """
        seen = set() if seen is None else seen
        if id(self) in seen or self._container is container:
            return
        seen.add(id(self))
        if self._container is not None:
            raise InvalidModelError(
                ErrorCode.ALREADY_ATTACHED,
                f"{self!r} is already attached to another container"
            )
        for element in self.referenced_elements():
            element.check_attachable(container, seen)

    def referenced_elements(self) -> List[ModelObject]:
        """Elements that are attached together with this one."""
        return []

    def find_duplicate_node(self, container: ModelContainer) -> Optional[Node]:
        """Node of an existing object this one duplicates, if any."""
        return None

    def allocate_node(self, container: ModelContainer) -> Node:
        raise NotImplementedError

    def populate_model(self) -> None:
        """Write every cached field into the graph."""
        raise NotImplementedError

    def refresh(self) -> None:
        """Re-read every field from the graph."""
        raise NotImplementedError

    def _should_refresh(self, refresh: Optional[bool]) -> bool:
        if self._store is None:
            return False
        if refresh is None:
            return self._container.config.refresh_on_get
        return refresh

    # -------------------------------------------------------------------------
    # Equivalence / clone / verify
    # -------------------------------------------------------------------------

    def equivalent(self, other: object, visited: Optional[VisitedPairs] = None) -> bool:
        """
        Structural, identifier-independent comparison.

        A pair already under comparison is assumed equivalent, which makes
        the comparison terminate on cyclic entity graphs.
        """
        if self is other:
            return True
        if type(other) is not type(self):
            return False
        visited = set() if visited is None else visited
        key = (id(self), id(other))
        if key in visited:
            return True
        visited.add(key)
        return self._equivalent_fields(other, visited)

    def _equivalent_fields(self, other: ModelObject, visited: VisitedPairs) -> bool:
        raise NotImplementedError

    def clone(self, memo: Optional[CloneMemo] = None):
        """
        Detached deep copy. Returns None if the copy cannot be constructed.

        Objects reached twice (including through cycles) are cloned once.
        """
        memo = {} if memo is None else memo
        if id(self) in memo:
            return memo[id(self)]
        try:
            return self._clone_detached(memo)
        except InvalidModelError as e:
            logger.error("Error cloning %r: %s", self, e)
            if self._container is not None:
                self._container.audit.record(
                    AuditEventType.CLONE_FAILURE,
                    action=f"clone {self._class_name}",
                    entity_id=str(self._node),
                    metadata=(("reason", str(e)),)
                )
            return None

    def _clone_detached(self, memo: CloneMemo):
        raise NotImplementedError

    def verify(self, ancestors: Optional[Set[int]] = None) -> List[str]:
        """
        Human-readable problems with this object; empty when valid.

        `ancestors` holds the objects on the current verification path, so
        a cycle stops where it closes while shared objects reached along
        different paths are each reported.
        """
        raise NotImplementedError
