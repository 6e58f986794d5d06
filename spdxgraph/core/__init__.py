"""
Core Entity Model

RESPONSIBILITY: SPDX elements, items and files kept in sync with a graph
ALLOWED INPUTS: Caller-supplied field values, nodes of a container's graph
OUTPUTS: Entities, value objects, verification findings

WHAT THIS LAYER MUST NOT DO:
============================
- Parse or serialize any on-disk document format
- Interpret license expressions beyond their structure
- Raise for validity problems (verify() returns findings)

BOUNDARY ENFORCEMENT:
=====================
- Value objects are immutable and validated on construction
- Entities read and write the graph only through PropertyStore
- Identifiers never take part in equivalence
"""

from .annotation import Annotation, AnnotationType
from .checksum import Checksum, ChecksumAlgorithm
from .entity import Element, Item
from .file import File, FileType, find_file_node, parse_file_type
from .license import (
    AnyLicenseInfo, SimpleLicense, ConjunctiveLicenseSet, DisjunctiveLicenseSet,
    WithExceptionOperator, NoneLicense, NoAssertionLicense, license_from_node,
)
from .model_object import ModelObject
from .project import DoapProject
from .relationship import Relationship, RelationshipType

__all__ = [
    "Annotation", "AnnotationType",
    "Checksum", "ChecksumAlgorithm",
    "Element", "Item",
    "File", "FileType", "find_file_node", "parse_file_type",
    "AnyLicenseInfo", "SimpleLicense", "ConjunctiveLicenseSet", "DisjunctiveLicenseSet",
    "WithExceptionOperator", "NoneLicense", "NoAssertionLicense", "license_from_node",
    "ModelObject",
    "DoapProject",
    "Relationship", "RelationshipType",
]
