"""
SPDX Graph Model

Python object model for SPDX file metadata whose source of truth is a
triple graph. Entities cache their fields, refresh them from the graph on
read and write every change straight back.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Graph terms, namespaces, error codes, audit entry type

2. STORAGE (storage/)
   - TripleGraph on networkx and the per-subject PropertyStore adapter
   - MUST NOT: Know anything about SPDX entities

3. CORE (core/)
   - Value objects (checksums, projects, annotations, licenses)
   - Entities (Element, Item, File) and relationships

4. OBSERVABILITY (observability/)
   - Append-only audit log of materializations, drops and merges

5. ENGINE (engine.py)
   - ModelContainer: graph, configuration, identifier allocation and the
     node -> entity arena

CONSTRAINTS ENFORCED:
=====================
- Writes replace every prior statement of the written property
- Unknown values read from the graph are dropped and logged; unknown values
  supplied by callers are rejected
- Equivalence, clone and verify terminate on cyclic entity graphs
"""

from .contracts import ErrorCode, InvalidModelError, OnUnrecognized
from .core import (
    Annotation, AnnotationType, Checksum, ChecksumAlgorithm, DoapProject,
    Element, Item, File, FileType, Relationship, RelationshipType,
    SimpleLicense, ConjunctiveLicenseSet, DisjunctiveLicenseSet,
    WithExceptionOperator, NoneLicense, NoAssertionLicense,
)
from .engine import ModelConfig, ModelContainer
from .storage import TripleGraph, PropertyStore

__version__ = "0.1.0"

__all__ = [
    "ErrorCode", "InvalidModelError", "OnUnrecognized",
    "Annotation", "AnnotationType", "Checksum", "ChecksumAlgorithm", "DoapProject",
    "Element", "Item", "File", "FileType", "Relationship", "RelationshipType",
    "SimpleLicense", "ConjunctiveLicenseSet", "DisjunctiveLicenseSet",
    "WithExceptionOperator", "NoneLicense", "NoAssertionLicense",
    "ModelConfig", "ModelContainer",
    "TripleGraph", "PropertyStore",
]
