"""
Base Contracts and Shared Types

These are the foundational types used across all layers: graph terms,
namespace and property constants, and the explicit error taxonomy.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Graph terms are frozen dataclasses so they can be used as graph nodes
- Nothing here touches a graph or a container
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Union
import hashlib
import uuid


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for construction and write failures.
    Validity problems are NOT errors - they are reported by verify().
    """
    # Malformed values
    INVALID_FILE_TYPE = auto()
    INVALID_CHECKSUM = auto()
    INVALID_LICENSE = auto()
    INVALID_PROJECT = auto()
    INVALID_ANNOTATION = auto()
    INVALID_RELATIONSHIP = auto()
    INVALID_DEPENDENCY = auto()
    INVALID_CONTRIBUTOR = auto()

    # Graph / container errors
    UNKNOWN_NODE_TYPE = auto()
    IDENTIFIER_CONFLICT = auto()
    ALREADY_ATTACHED = auto()


class InvalidModelError(Exception):
    """Typed failure raised when a model object cannot be built or written."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.name}: {self.message}"


# =============================================================================
# GRAPH TERMS (Immutable, hashable)
# =============================================================================

@dataclass(frozen=True)
class URIRef:
    """Named graph resource."""
    value: str

    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("URIRef value must be a non-empty string")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BNode:
    """Anonymous graph resource, meaningful only inside one graph."""
    value: str

    @staticmethod
    def fresh() -> BNode:
        return BNode(value=f"_:b{uuid.uuid4().hex[:12]}")

    @staticmethod
    def for_content(kind: str, *parts: str) -> BNode:
        """
        Generate a deterministic blank node from content.

        Writing the same value twice yields the same node, so repeated
        writes leave an identical graph behind.
        """
        content = "|".join((kind,) + parts)
        content_hash = hashlib.sha256(content.encode('utf-8')).hexdigest()
        return BNode(value=f"_:{kind.lower()}_{content_hash[:16]}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Literal:
    """Plain string literal."""
    value: str

    def __str__(self) -> str:
        return self.value


Node = Union[URIRef, BNode]
Term = Union[URIRef, BNode, Literal]


# =============================================================================
# NAMESPACES
# =============================================================================

SPDX_NAMESPACE = "http://spdx.org/rdf/terms#"
DOAP_NAMESPACE = "http://usefulinc.com/ns/doap#"
RDFS_NAMESPACE = "http://www.w3.org/2000/01/rdf-schema#"
RDF_NAMESPACE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
LISTED_LICENSE_NAMESPACE = "http://spdx.org/licenses/"

RDF_TYPE = URIRef(RDF_NAMESPACE + "type")


def predicate(namespace: str, name: str) -> URIRef:
    """Build the predicate URI for a (namespace, property-name) pair."""
    return URIRef(namespace + name)


# =============================================================================
# PROPERTY NAMES
# =============================================================================

# Element
PROP_NAME = "name"
PROP_COMMENT = "comment"                  # rdfs namespace
PROP_ANNOTATION = "annotation"
PROP_RELATIONSHIP = "relationship"

# Item
PROP_LICENSE_CONCLUDED = "licenseConcluded"
PROP_LICENSE_INFO_FROM_FILES = "licenseInfoFromFiles"
PROP_COPYRIGHT_TEXT = "copyrightText"
PROP_LICENSE_COMMENT = "licenseComments"

# File
PROP_FILE_NAME = "fileName"
PROP_FILE_TYPE = "fileType"
PROP_FILE_CHECKSUM = "checksum"
PROP_FILE_CONTRIBUTOR = "fileContributor"
PROP_FILE_NOTICE = "noticeText"
PROP_FILE_ARTIFACTOF = "artifactOf"
PROP_FILE_FILE_DEPENDENCY = "fileDependency"
PROP_FILE_SEEN_LICENSE = "licenseInfoInFile"

# Checksum
PROP_CHECKSUM_ALGORITHM = "algorithm"
PROP_CHECKSUM_VALUE = "checksumValue"

# Annotation
PROP_ANNOTATOR = "annotator"
PROP_ANNOTATION_TYPE = "annotationType"
PROP_ANNOTATION_DATE = "annotationDate"

# Relationship
PROP_RELATIONSHIP_TYPE = "relationshipType"
PROP_RELATED_ELEMENT = "relatedSpdxElement"

# License
PROP_LICENSE_ID = "licenseId"
PROP_LICENSE_SET_MEMBER = "member"
PROP_LICENSE_EXCEPTION = "licenseException"
PROP_LICENSE_EXCEPTION_ID = "licenseExceptionId"

# DOAP project
PROP_PROJECT_NAME = "name"
PROP_PROJECT_HOMEPAGE = "homepage"

# =============================================================================
# CLASS NAMES
# =============================================================================

CLASS_SPDX_ELEMENT = "SpdxElement"
CLASS_SPDX_FILE = "File"
CLASS_CHECKSUM = "Checksum"
CLASS_ANNOTATION = "Annotation"
CLASS_RELATIONSHIP = "Relationship"
CLASS_LICENSE = "License"
CLASS_CONJUNCTIVE_LICENSE_SET = "ConjunctiveLicenseSet"
CLASS_DISJUNCTIVE_LICENSE_SET = "DisjunctiveLicenseSet"
CLASS_WITH_EXCEPTION_OPERATOR = "WithExceptionOperator"
CLASS_LICENSE_EXCEPTION = "LicenseException"
CLASS_DOAP_PROJECT = "Project"

URI_NONE_LICENSE = URIRef(SPDX_NAMESPACE + "none")
URI_NOASSERTION_LICENSE = URIRef(SPDX_NAMESPACE + "noassertion")


# =============================================================================
# TAG PARSING POLICY
# =============================================================================

class OnUnrecognized(Enum):
    """
    What to do with an enumerated tag that does not map to a known value.

    DROP is used when refreshing from a graph authored elsewhere.
    REJECT is used when this program constructs or writes a value.
    """
    DROP = "drop"
    REJECT = "reject"
