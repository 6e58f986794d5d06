"""
Elements and Items

Element: anything with an identifier, a name, a comment, annotations and
relationships. Item: an element that also carries license information.

Every field follows the synchronization rules of ModelObject: refreshing
getters take an optional `refresh` flag, setters write through.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable, List, Optional, Set

from ..contracts.base import (
    Node, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, RDFS_NAMESPACE, CLASS_SPDX_ELEMENT,
    PROP_NAME, PROP_COMMENT, PROP_ANNOTATION, PROP_RELATIONSHIP,
    PROP_LICENSE_CONCLUDED, PROP_LICENSE_INFO_FROM_FILES,
    PROP_COPYRIGHT_TEXT, PROP_LICENSE_COMMENT,
)
from .annotation import Annotation
from .license import AnyLicenseInfo, license_from_node
from .model_object import (
    CloneMemo, ModelObject, VisitedPairs,
    clone_value, clone_values, lists_equivalent, merge_on_change,
)
from .relationship import Relationship

if TYPE_CHECKING:
    from ..engine import ModelContainer


def value_equivalent(x, y) -> bool:
    return x.equivalent(y)


def checked_list(values: Optional[Iterable], kind: type, code: ErrorCode) -> list:
    """Normalize a collection argument: None -> [], wrong element type -> error."""
    if values is None:
        return []
    if isinstance(values, str):
        raise InvalidModelError(code, f"Expected a collection of {kind.__name__}, got {values!r}")
    result = list(values)
    for value in result:
        if not isinstance(value, kind):
            raise InvalidModelError(code, f"Expected {kind.__name__}, got {value!r}")
    return result


class Element(ModelObject):
    """A named, identifiable node of a document."""

    _class_name = CLASS_SPDX_ELEMENT
    _name_property = PROP_NAME

    def __init__(
        self,
        name: Optional[str] = None,
        identifier: Optional[str] = None,
        comment: Optional[str] = None,
        annotations: Optional[Iterable[Annotation]] = None,
        relationships: Optional[Iterable[Relationship]] = None
    ):
        super().__init__()
        self._identifier = identifier
        self._name = name
        self._comment = comment
        self._annotations = checked_list(annotations, Annotation, ErrorCode.INVALID_ANNOTATION)
        self._relationships = checked_list(relationships, Relationship, ErrorCode.INVALID_RELATIONSHIP)

    @classmethod
    def from_node(cls, container: ModelContainer, node: Node):
        """
        Reconstruct an element from an existing graph node.

        The element is registered with the container before its fields are
        read, so references back to this node resolve to this instance.
        """
        entity = cls()
        entity._bind(container, node)
        container.register(node, entity)
        entity.refresh()
        return entity

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._identifier or '-'}, {self._name!r})"

    # -------------------------------------------------------------------------
    # Attachment
    # -------------------------------------------------------------------------

    def _bind(self, container: ModelContainer, node: Node) -> None:
        super()._bind(container, node)
        identifier = container.identifier_for(node)
        if identifier is not None:
            self._identifier = identifier

    def attach(self, container: ModelContainer) -> Node:
        identifier = self._identifier
        try:
            return super().attach(container)
        except InvalidModelError:
            if not self.is_attached:
                self._identifier = identifier
            raise

    def referenced_elements(self) -> List[ModelObject]:
        return [
            r.related_element for r in self._relationships
            if r.related_element is not None
        ]

    def allocate_node(self, container: ModelContainer) -> Node:
        if self._identifier is None:
            self._identifier = container.allocate_identifier()
        node = container.element_uri(self._identifier)
        if container.graph.has_subject(node):
            raise InvalidModelError(
                ErrorCode.IDENTIFIER_CONFLICT,
                f"Identifier {self._identifier} is already used in {container.namespace}"
            )
        return node

    def populate_model(self) -> None:
        self._store.write_single_value(SPDX_NAMESPACE, self._name_property, self._name)
        self._store.write_single_value(RDFS_NAMESPACE, PROP_COMMENT, self._comment)
        self._write_annotations()
        self._write_relationships(self._relationships)

    def refresh(self) -> None:
        self.get_name(refresh=True)
        self.get_comment(refresh=True)
        self.get_annotations(refresh=True)
        self.get_relationships(refresh=True)

    # -------------------------------------------------------------------------
    # Identifier (graph-local, never compared)
    # -------------------------------------------------------------------------

    @property
    def identifier(self) -> Optional[str]:
        return self._identifier

    @identifier.setter
    def identifier(self, value: Optional[str]) -> None:
        if self.is_attached and value != self._identifier:
            raise InvalidModelError(
                ErrorCode.IDENTIFIER_CONFLICT,
                f"Cannot change identifier of attached element {self._identifier}"
            )
        self._identifier = value

    # -------------------------------------------------------------------------
    # Name / comment
    # -------------------------------------------------------------------------

    def get_name(self, refresh: Optional[bool] = None) -> Optional[str]:
        if self._should_refresh(refresh):
            self._name = self._store.read_single_value(SPDX_NAMESPACE, self._name_property)
        return self._name

    def set_name(self, name: Optional[str]) -> None:
        self._name = name
        if self.is_attached:
            self._store.write_single_value(SPDX_NAMESPACE, self._name_property, name)

    @property
    def name(self) -> Optional[str]:
        return self.get_name()

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self.set_name(value)

    def get_comment(self, refresh: Optional[bool] = None) -> Optional[str]:
        if self._should_refresh(refresh):
            self._comment = self._store.read_single_value(RDFS_NAMESPACE, PROP_COMMENT)
        return self._comment

    def set_comment(self, comment: Optional[str]) -> None:
        self._comment = comment
        if self.is_attached:
            self._store.write_single_value(RDFS_NAMESPACE, PROP_COMMENT, comment)

    @property
    def comment(self) -> Optional[str]:
        return self.get_comment()

    @comment.setter
    def comment(self, value: Optional[str]) -> None:
        self.set_comment(value)

    # -------------------------------------------------------------------------
    # Annotations
    # -------------------------------------------------------------------------

    def get_annotations(self, refresh: Optional[bool] = None) -> List[Annotation]:
        if self._should_refresh(refresh):
            graph = self._container.graph
            fresh = self._store.read_multiple_typed_sub_entities(
                SPDX_NAMESPACE, PROP_ANNOTATION, lambda n: Annotation.from_node(graph, n)
            )
            self._annotations = merge_on_change(self._annotations, fresh, value_equivalent)
        return self._annotations

    def set_annotations(self, annotations: Optional[Iterable[Annotation]]) -> None:
        self._annotations = checked_list(annotations, Annotation, ErrorCode.INVALID_ANNOTATION)
        if self.is_attached:
            self._write_annotations()

    def _write_annotations(self) -> None:
        graph = self._container.graph
        self._store.write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, PROP_ANNOTATION, self._annotations, lambda a: a.to_node(graph)
        )

    @property
    def annotations(self) -> List[Annotation]:
        return self.get_annotations()

    @annotations.setter
    def annotations(self, value: Optional[Iterable[Annotation]]) -> None:
        self.set_annotations(value)

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def get_relationships(self, refresh: Optional[bool] = None) -> List[Relationship]:
        if self._should_refresh(refresh):
            container = self._container
            fresh = self._store.read_multiple_typed_sub_entities(
                SPDX_NAMESPACE, PROP_RELATIONSHIP, lambda n: Relationship.from_node(container, n)
            )
            self._relationships = merge_on_change(
                self._relationships, fresh, lambda x, y: x.equivalent(y)
            )
        return self._relationships

    def set_relationships(self, relationships: Optional[Iterable[Relationship]]) -> None:
        """
        Replace the relationships.

        When attached, related elements are attached to the same container.
        If that fails, the cached and stored relationships are unchanged.
        """
        relationships = checked_list(relationships, Relationship, ErrorCode.INVALID_RELATIONSHIP)
        if self.is_attached:
            seen = set()
            for relationship in relationships:
                if relationship.related_element is not None:
                    relationship.related_element.check_attachable(self._container, seen)
            self._write_relationships(relationships)
        self._relationships = relationships

    def _write_relationships(self, relationships: List[Relationship]) -> None:
        container = self._container
        self._store.write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, PROP_RELATIONSHIP, relationships, lambda r: r.to_node(container)
        )

    @property
    def relationships(self) -> List[Relationship]:
        return self.get_relationships()

    @relationships.setter
    def relationships(self, value: Optional[Iterable[Relationship]]) -> None:
        self.set_relationships(value)

    # -------------------------------------------------------------------------
    # Equivalence / clone / verify
    # -------------------------------------------------------------------------

    def _equivalent_fields(self, other: Element, visited: VisitedPairs) -> bool:
        return (
            self.get_name() == other.get_name()
            and self.get_comment() == other.get_comment()
            and lists_equivalent(self.get_annotations(), other.get_annotations(), value_equivalent)
            and lists_equivalent(
                self.get_relationships(), other.get_relationships(),
                lambda x, y: x.equivalent(y, visited)
            )
        )

    def _clone_relationships(self, memo: CloneMemo) -> List[Relationship]:
        return [r.clone(memo) for r in self.get_relationships()]

    def _clone_detached(self, memo: CloneMemo) -> Element:
        copy = Element(
            name=self.get_name(),
            comment=self.get_comment(),
            annotations=clone_values(self.get_annotations(), self)
        )
        memo[id(self)] = copy
        copy.set_relationships(self._clone_relationships(memo))
        return copy

    def verify(self, ancestors: Optional[Set[int]] = None) -> List[str]:
        findings = []
        if not self.get_name():
            findings.append(f"Missing required name for {self._class_name} {self._identifier or 'UNKNOWN'}")
        for annotation in self.get_annotations():
            findings.extend(annotation.verify())
        for relationship in self.get_relationships():
            findings.extend(relationship.verify())
        return findings


class Item(Element):
    """An element carrying concluded and detected license information."""

    _license_info_property = PROP_LICENSE_INFO_FROM_FILES

    def __init__(
        self,
        name: Optional[str] = None,
        identifier: Optional[str] = None,
        comment: Optional[str] = None,
        annotations: Optional[Iterable[Annotation]] = None,
        relationships: Optional[Iterable[Relationship]] = None,
        license_concluded: Optional[AnyLicenseInfo] = None,
        license_info_from_files: Optional[Iterable[AnyLicenseInfo]] = None,
        copyright_text: Optional[str] = None,
        license_comment: Optional[str] = None
    ):
        super().__init__(name, identifier, comment, annotations, relationships)
        if license_concluded is not None and not isinstance(license_concluded, AnyLicenseInfo):
            raise InvalidModelError(
                ErrorCode.INVALID_LICENSE, f"Expected a license expression, got {license_concluded!r}"
            )
        self._license_concluded = license_concluded
        self._license_info_from_files = checked_list(
            license_info_from_files, AnyLicenseInfo, ErrorCode.INVALID_LICENSE
        )
        self._copyright_text = copyright_text
        self._license_comment = license_comment

    def populate_model(self) -> None:
        super().populate_model()
        self._write_license_concluded()
        self._write_license_info_from_files()
        self._store.write_single_value(SPDX_NAMESPACE, PROP_COPYRIGHT_TEXT, self._copyright_text)
        self._store.write_single_value(SPDX_NAMESPACE, PROP_LICENSE_COMMENT, self._license_comment)

    def refresh(self) -> None:
        super().refresh()
        self.get_license_concluded(refresh=True)
        self.get_license_info_from_files(refresh=True)
        self.get_copyright_text(refresh=True)
        self.get_license_comment(refresh=True)

    def _read_license(self, node: Node) -> AnyLicenseInfo:
        return license_from_node(self._container.graph, node)

    def _write_license(self, license_info: AnyLicenseInfo) -> Node:
        return license_info.to_node(self._container.graph)

    # -------------------------------------------------------------------------
    # Concluded license
    # -------------------------------------------------------------------------

    def get_license_concluded(self, refresh: Optional[bool] = None) -> Optional[AnyLicenseInfo]:
        if self._should_refresh(refresh):
            fresh = self._store.read_single_typed_sub_entity(
                SPDX_NAMESPACE, PROP_LICENSE_CONCLUDED, self._read_license
            )
            if fresh != self._license_concluded:
                self._license_concluded = fresh
        return self._license_concluded

    def set_license_concluded(self, license_info: Optional[AnyLicenseInfo]) -> None:
        if license_info is not None and not isinstance(license_info, AnyLicenseInfo):
            raise InvalidModelError(
                ErrorCode.INVALID_LICENSE, f"Expected a license expression, got {license_info!r}"
            )
        self._license_concluded = license_info
        if self.is_attached:
            self._write_license_concluded()

    def _write_license_concluded(self) -> None:
        self._store.write_single_typed_sub_entity(
            SPDX_NAMESPACE, PROP_LICENSE_CONCLUDED, self._license_concluded, self._write_license
        )

    @property
    def license_concluded(self) -> Optional[AnyLicenseInfo]:
        return self.get_license_concluded()

    @license_concluded.setter
    def license_concluded(self, value: Optional[AnyLicenseInfo]) -> None:
        self.set_license_concluded(value)

    # -------------------------------------------------------------------------
    # License info found in the item
    # -------------------------------------------------------------------------

    def get_license_info_from_files(self, refresh: Optional[bool] = None) -> List[AnyLicenseInfo]:
        if self._should_refresh(refresh):
            fresh = self._store.read_multiple_typed_sub_entities(
                SPDX_NAMESPACE, self._license_info_property, self._read_license
            )
            self._license_info_from_files = merge_on_change(
                self._license_info_from_files, fresh, value_equivalent
            )
        return self._license_info_from_files

    def set_license_info_from_files(self, license_infos: Optional[Iterable[AnyLicenseInfo]]) -> None:
        self._license_info_from_files = checked_list(
            license_infos, AnyLicenseInfo, ErrorCode.INVALID_LICENSE
        )
        if self.is_attached:
            self._write_license_info_from_files()

    def _write_license_info_from_files(self) -> None:
        self._store.write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, self._license_info_property,
            self._license_info_from_files, self._write_license
        )

    @property
    def license_info_from_files(self) -> List[AnyLicenseInfo]:
        return self.get_license_info_from_files()

    @license_info_from_files.setter
    def license_info_from_files(self, value: Optional[Iterable[AnyLicenseInfo]]) -> None:
        self.set_license_info_from_files(value)

    # -------------------------------------------------------------------------
    # Copyright / license comment
    # -------------------------------------------------------------------------

    def get_copyright_text(self, refresh: Optional[bool] = None) -> Optional[str]:
        if self._should_refresh(refresh):
            self._copyright_text = self._store.read_single_value(SPDX_NAMESPACE, PROP_COPYRIGHT_TEXT)
        return self._copyright_text

    def set_copyright_text(self, text: Optional[str]) -> None:
        self._copyright_text = text
        if self.is_attached:
            self._store.write_single_value(SPDX_NAMESPACE, PROP_COPYRIGHT_TEXT, text)

    @property
    def copyright_text(self) -> Optional[str]:
        return self.get_copyright_text()

    @copyright_text.setter
    def copyright_text(self, value: Optional[str]) -> None:
        self.set_copyright_text(value)

    def get_license_comment(self, refresh: Optional[bool] = None) -> Optional[str]:
        if self._should_refresh(refresh):
            self._license_comment = self._store.read_single_value(SPDX_NAMESPACE, PROP_LICENSE_COMMENT)
        return self._license_comment

    def set_license_comment(self, comment: Optional[str]) -> None:
        self._license_comment = comment
        if self.is_attached:
            self._store.write_single_value(SPDX_NAMESPACE, PROP_LICENSE_COMMENT, comment)

    @property
    def license_comment(self) -> Optional[str]:
        return self.get_license_comment()

    @license_comment.setter
    def license_comment(self, value: Optional[str]) -> None:
        self.set_license_comment(value)

    # -------------------------------------------------------------------------
    # Equivalence / clone / verify
    # -------------------------------------------------------------------------

    def _equivalent_fields(self, other: Item, visited: VisitedPairs) -> bool:
        if not super()._equivalent_fields(other, visited):
            return False
        concluded = self.get_license_concluded()
        other_concluded = other.get_license_concluded()
        if concluded is None or other_concluded is None:
            if concluded is not other_concluded:
                return False
        elif not concluded.equivalent(other_concluded):
            return False
        return (
            lists_equivalent(
                self.get_license_info_from_files(), other.get_license_info_from_files(),
                value_equivalent
            )
            and self.get_copyright_text() == other.get_copyright_text()
            and self.get_license_comment() == other.get_license_comment()
        )

    def _clone_license_concluded(self) -> Optional[AnyLicenseInfo]:
        return clone_value(self.get_license_concluded(), self)

    def _clone_license_info_from_files(self) -> List[AnyLicenseInfo]:
        return clone_values(self.get_license_info_from_files(), self)

    def _clone_detached(self, memo: CloneMemo) -> Item:
        copy = Item(
            name=self.get_name(),
            comment=self.get_comment(),
            annotations=clone_values(self.get_annotations(), self),
            license_concluded=self._clone_license_concluded(),
            license_info_from_files=self._clone_license_info_from_files(),
            copyright_text=self.get_copyright_text(),
            license_comment=self.get_license_comment()
        )
        memo[id(self)] = copy
        copy.set_relationships(self._clone_relationships(memo))
        return copy

    def verify(self, ancestors: Optional[Set[int]] = None) -> List[str]:
        findings = super().verify(ancestors)
        concluded = self.get_license_concluded()
        if concluded is not None:
            findings.extend(concluded.verify())
        for license_info in self.get_license_info_from_files():
            findings.extend(license_info.verify())
        return findings
