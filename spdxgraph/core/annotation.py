"""
Annotation value object.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..contracts.base import (
    BNode, Node, URIRef, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, RDFS_NAMESPACE, RDF_TYPE, CLASS_ANNOTATION,
    PROP_ANNOTATOR, PROP_ANNOTATION_TYPE, PROP_ANNOTATION_DATE, PROP_COMMENT,
)
from ..storage import PropertyStore, TripleGraph


class AnnotationType(Enum):
    REVIEW = "annotationType_review"
    OTHER = "annotationType_other"

    @property
    def uri(self) -> str:
        return SPDX_NAMESPACE + self.value

    @staticmethod
    def from_uri(uri: str) -> AnnotationType:
        for annotation_type in AnnotationType:
            if annotation_type.uri == uri:
                return annotation_type
        raise InvalidModelError(ErrorCode.INVALID_ANNOTATION, f"Unknown annotation type: {uri}")


@dataclass(frozen=True)
class Annotation:
    """A dated remark made by an annotator about an element."""
    annotator: Optional[str]
    annotation_type: AnnotationType
    date: Optional[str] = None          # ISO 8601, kept as written
    comment: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.annotation_type, AnnotationType):
            raise InvalidModelError(
                ErrorCode.INVALID_ANNOTATION,
                f"Annotation type must be an AnnotationType, got {self.annotation_type!r}"
            )

    def verify(self) -> List[str]:
        findings = []
        if not self.annotator:
            findings.append("Missing required annotator")
        if not self.date:
            findings.append("Missing required annotation date")
        if not self.comment:
            findings.append("Missing required annotation comment")
        return findings

    def equivalent(self, other: object) -> bool:
        return self == other

    def clone(self) -> Annotation:
        return Annotation(self.annotator, self.annotation_type, self.date, self.comment)

    def to_node(self, graph: TripleGraph) -> Node:
        node = BNode.for_content(
            CLASS_ANNOTATION,
            self.annotator or "", self.annotation_type.value, self.date or "", self.comment or ""
        )
        graph.add(node, RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_ANNOTATION))
        store = PropertyStore(graph, node)
        store.write_single_value(SPDX_NAMESPACE, PROP_ANNOTATOR, self.annotator)
        store.write_multiple_uri_values(SPDX_NAMESPACE, PROP_ANNOTATION_TYPE, [self.annotation_type.uri])
        store.write_single_value(SPDX_NAMESPACE, PROP_ANNOTATION_DATE, self.date)
        store.write_single_value(RDFS_NAMESPACE, PROP_COMMENT, self.comment)
        return node

    @staticmethod
    def from_node(graph: TripleGraph, node: Node) -> Annotation:
        store = PropertyStore(graph, node)
        type_uris = store.read_multiple_uri_values(SPDX_NAMESPACE, PROP_ANNOTATION_TYPE)
        if not type_uris:
            raise InvalidModelError(ErrorCode.INVALID_ANNOTATION, f"Annotation {node} has no type")
        return Annotation(
            annotator=store.read_single_value(SPDX_NAMESPACE, PROP_ANNOTATOR),
            annotation_type=AnnotationType.from_uri(type_uris[0]),
            date=store.read_single_value(SPDX_NAMESPACE, PROP_ANNOTATION_DATE),
            comment=store.read_single_value(RDFS_NAMESPACE, PROP_COMMENT)
        )
