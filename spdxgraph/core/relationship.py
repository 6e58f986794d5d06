"""
Relationship between an element and another element.

The related element is a shared reference: it is resolved through the
container's arena on read and attached (allocating an identifier if needed)
on write. Relationship graphs may be cyclic.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from ..contracts.base import (
    BNode, Node, URIRef, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, RDFS_NAMESPACE, RDF_TYPE, CLASS_RELATIONSHIP,
    PROP_RELATIONSHIP_TYPE, PROP_RELATED_ELEMENT, PROP_COMMENT,
)
from ..storage import PropertyStore
from .model_object import CloneMemo, ModelObject, VisitedPairs

if TYPE_CHECKING:
    from ..engine import ModelContainer


class RelationshipType(Enum):
    DESCRIBES = "relationshipType_describes"
    DESCRIBED_BY = "relationshipType_describedBy"
    CONTAINS = "relationshipType_contains"
    CONTAINED_BY = "relationshipType_containedBy"
    DEPENDS_ON = "relationshipType_dependsOn"
    DEPENDENCY_OF = "relationshipType_dependencyOf"
    GENERATES = "relationshipType_generates"
    GENERATED_FROM = "relationshipType_generatedFrom"
    ANCESTOR_OF = "relationshipType_ancestorOf"
    DESCENDANT_OF = "relationshipType_descendantOf"
    VARIANT_OF = "relationshipType_variantOf"
    DISTRIBUTION_ARTIFACT = "relationshipType_distributionArtifact"
    PATCH_FOR = "relationshipType_patchFor"
    PATCH_APPLIED = "relationshipType_patchApplied"
    COPY_OF = "relationshipType_copyOf"
    FILE_ADDED = "relationshipType_fileAdded"
    FILE_DELETED = "relationshipType_fileDeleted"
    FILE_MODIFIED = "relationshipType_fileModified"
    EXPANDED_FROM_ARCHIVE = "relationshipType_expandedFromArchive"
    DYNAMIC_LINK = "relationshipType_dynamicLink"
    STATIC_LINK = "relationshipType_staticLink"
    DATA_FILE = "relationshipType_dataFile"
    TEST_CASE = "relationshipType_testcaseOf"
    BUILD_TOOL = "relationshipType_buildToolOf"
    DOCUMENTATION = "relationshipType_documentation"
    METAFILE_OF = "relationshipType_metafileOf"
    PACKAGE_OF = "relationshipType_packageOf"
    AMENDS = "relationshipType_amends"
    PREREQUISITE_FOR = "relationshipType_prerequisiteFor"
    HAS_PREREQUISITE = "relationshipType_hasPrerequisite"
    OTHER = "relationshipType_other"

    @property
    def uri(self) -> str:
        return SPDX_NAMESPACE + self.value

    @staticmethod
    def from_uri(uri: str) -> RelationshipType:
        for relationship_type in RelationshipType:
            if relationship_type.uri == uri:
                return relationship_type
        raise InvalidModelError(ErrorCode.INVALID_RELATIONSHIP, f"Unknown relationship type: {uri}")


class Relationship:
    """Typed, optionally commented link to a related element."""

    def __init__(
        self,
        related_element: Optional[ModelObject],
        relationship_type: RelationshipType,
        comment: Optional[str] = None
    ):
        if not isinstance(relationship_type, RelationshipType):
            raise InvalidModelError(
                ErrorCode.INVALID_RELATIONSHIP,
                f"Relationship type must be a RelationshipType, got {relationship_type!r}"
            )
        if related_element is not None and not isinstance(related_element, ModelObject):
            raise InvalidModelError(
                ErrorCode.INVALID_RELATIONSHIP,
                f"Related element must be a model object, got {related_element!r}"
            )
        self.related_element = related_element
        self.relationship_type = relationship_type
        self.comment = comment

    def __repr__(self) -> str:
        return f"Relationship({self.relationship_type.name}, {self.related_element!r})"

    def verify(self) -> List[str]:
        # The related element is verified as an element of its own document
        if self.related_element is None:
            return [f"Missing related element in {self.relationship_type.name} relationship"]
        return []

    def equivalent(self, other: object, visited: Optional[VisitedPairs] = None) -> bool:
        if not isinstance(other, Relationship):
            return False
        if self.relationship_type != other.relationship_type or self.comment != other.comment:
            return False
        if self.related_element is None or other.related_element is None:
            return self.related_element is None and other.related_element is None
        return self.related_element.equivalent(other.related_element, visited)

    def clone(self, memo: Optional[CloneMemo] = None) -> Relationship:
        memo = {} if memo is None else memo
        related = None
        if self.related_element is not None:
            related = self.related_element.clone(memo)
        return Relationship(related, self.relationship_type, self.comment)

    # -------------------------------------------------------------------------
    # Graph mapping
    # -------------------------------------------------------------------------

    def to_node(self, container: ModelContainer) -> Node:
        related_node = None
        if self.related_element is not None:
            related_node = container.add_element(self.related_element)
        node = BNode.for_content(
            CLASS_RELATIONSHIP,
            self.relationship_type.value, str(related_node or ""), self.comment or ""
        )
        graph = container.graph
        graph.add(node, RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_RELATIONSHIP))
        store = PropertyStore(graph, node)
        store.write_multiple_uri_values(SPDX_NAMESPACE, PROP_RELATIONSHIP_TYPE, [self.relationship_type.uri])
        store.write_single_typed_sub_entity(
            SPDX_NAMESPACE, PROP_RELATED_ELEMENT, related_node, lambda n: n
        )
        store.write_single_value(RDFS_NAMESPACE, PROP_COMMENT, self.comment)
        return node

    @staticmethod
    def from_node(container: ModelContainer, node: Node) -> Relationship:
        store = PropertyStore(container.graph, node, container.audit)
        type_uris = store.read_multiple_uri_values(SPDX_NAMESPACE, PROP_RELATIONSHIP_TYPE)
        if not type_uris:
            raise InvalidModelError(ErrorCode.INVALID_RELATIONSHIP, f"Relationship {node} has no type")
        related = store.read_single_typed_sub_entity(
            SPDX_NAMESPACE, PROP_RELATED_ELEMENT, container.resolve_node
        )
        return Relationship(
            related_element=related,
            relationship_type=RelationshipType.from_uri(type_uris[0]),
            comment=store.read_single_value(RDFS_NAMESPACE, PROP_COMMENT)
        )
