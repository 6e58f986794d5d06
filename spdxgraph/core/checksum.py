"""
Checksum value object.

An (algorithm, hex value) pair stored as a content-addressed blank node.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List
import re

from ..contracts.base import (
    BNode, Node, URIRef, ErrorCode, InvalidModelError,
    SPDX_NAMESPACE, RDF_TYPE, CLASS_CHECKSUM,
    PROP_CHECKSUM_ALGORITHM, PROP_CHECKSUM_VALUE,
)
from ..storage import PropertyStore, TripleGraph


class ChecksumAlgorithm(Enum):
    """Supported digest algorithms, valued by their SPDX URI suffix."""
    SHA1 = "checksumAlgorithm_sha1"
    SHA224 = "checksumAlgorithm_sha224"
    SHA256 = "checksumAlgorithm_sha256"
    SHA384 = "checksumAlgorithm_sha384"
    SHA512 = "checksumAlgorithm_sha512"
    MD2 = "checksumAlgorithm_md2"
    MD4 = "checksumAlgorithm_md4"
    MD5 = "checksumAlgorithm_md5"
    MD6 = "checksumAlgorithm_md6"

    @property
    def uri(self) -> str:
        return SPDX_NAMESPACE + self.value

    @staticmethod
    def from_uri(uri: str) -> ChecksumAlgorithm:
        if uri.startswith(SPDX_NAMESPACE):
            suffix = uri[len(SPDX_NAMESPACE):]
            for algorithm in ChecksumAlgorithm:
                if algorithm.value == suffix:
                    return algorithm
        raise InvalidModelError(ErrorCode.INVALID_CHECKSUM, f"Unknown checksum algorithm: {uri}")


# Hex digest lengths; MD6 output length is variable
_DIGEST_LENGTHS = {
    ChecksumAlgorithm.SHA1: 40,
    ChecksumAlgorithm.SHA224: 56,
    ChecksumAlgorithm.SHA256: 64,
    ChecksumAlgorithm.SHA384: 96,
    ChecksumAlgorithm.SHA512: 128,
    ChecksumAlgorithm.MD2: 32,
    ChecksumAlgorithm.MD4: 32,
    ChecksumAlgorithm.MD5: 32,
}

_HEX = re.compile(r'^[0-9a-fA-F]+$')


@dataclass(frozen=True)
class Checksum:
    """Immutable checksum. The value is kept verbatim; verify() judges it."""
    algorithm: ChecksumAlgorithm
    value: str

    def __post_init__(self):
        if not isinstance(self.algorithm, ChecksumAlgorithm):
            raise InvalidModelError(
                ErrorCode.INVALID_CHECKSUM,
                f"Checksum algorithm must be a ChecksumAlgorithm, got {self.algorithm!r}"
            )
        if not isinstance(self.value, str):
            raise InvalidModelError(
                ErrorCode.INVALID_CHECKSUM,
                f"Checksum value must be a string, got {type(self.value).__name__}"
            )

    @staticmethod
    def sha1(value: str) -> Checksum:
        return Checksum(ChecksumAlgorithm.SHA1, value)

    def verify(self) -> List[str]:
        if not self.value:
            return [f"Missing required checksum value for {self.algorithm.name}"]
        if not _HEX.match(self.value):
            return [f"Invalid checksum value for {self.algorithm.name}: {self.value} is not hexadecimal"]
        expected = _DIGEST_LENGTHS.get(self.algorithm)
        if expected is not None and len(self.value) != expected:
            return [
                f"Invalid checksum value for {self.algorithm.name}: "
                f"expected {expected} hex digits, found {len(self.value)}"
            ]
        return []

    def equivalent(self, other: object) -> bool:
        # Hex digests compare case-insensitively
        return (
            isinstance(other, Checksum)
            and self.algorithm == other.algorithm
            and self.value.lower() == other.value.lower()
        )

    def clone(self) -> Checksum:
        return Checksum(self.algorithm, self.value)

    # -------------------------------------------------------------------------
    # Graph mapping
    # -------------------------------------------------------------------------

    def to_node(self, graph: TripleGraph) -> Node:
        node = BNode.for_content(CLASS_CHECKSUM, self.algorithm.value, self.value)
        graph.add(node, RDF_TYPE, URIRef(SPDX_NAMESPACE + CLASS_CHECKSUM))
        store = PropertyStore(graph, node)
        store.write_multiple_uri_values(SPDX_NAMESPACE, PROP_CHECKSUM_ALGORITHM, [self.algorithm.uri])
        store.write_single_value(SPDX_NAMESPACE, PROP_CHECKSUM_VALUE, self.value)
        return node

    @staticmethod
    def from_node(graph: TripleGraph, node: Node) -> Checksum:
        store = PropertyStore(graph, node)
        algorithm_uris = store.read_multiple_uri_values(SPDX_NAMESPACE, PROP_CHECKSUM_ALGORITHM)
        if not algorithm_uris:
            raise InvalidModelError(ErrorCode.INVALID_CHECKSUM, f"Checksum {node} has no algorithm")
        value = store.read_single_value(SPDX_NAMESPACE, PROP_CHECKSUM_VALUE)
        if value is None:
            raise InvalidModelError(ErrorCode.INVALID_CHECKSUM, f"Checksum {node} has no value")
        return Checksum(ChecksumAlgorithm.from_uri(algorithm_uris[0]), value)
