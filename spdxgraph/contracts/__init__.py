"""
Contracts Module

Graph terms, namespace constants and error types shared by every layer.

DESIGN PRINCIPLES:
==================
1. All term types are immutable (frozen dataclasses)
2. Construction failures are typed (InvalidModelError + ErrorCode)
3. Validity findings are data (lists of strings), never exceptions
"""

from .base import (
    ErrorCode, InvalidModelError,
    URIRef, BNode, Literal, Node, Term,
    OnUnrecognized,
)

__all__ = [
    "ErrorCode", "InvalidModelError",
    "URIRef", "BNode", "Literal", "Node", "Term",
    "OnUnrecognized",
]
