"""
File Entity

A File is a named sequence of bytes tracked by a document. It is identified
semantically by (name, SHA-1 checksum value), never by its graph-local
identifier.

SYNCHRONIZATION:
================
- Reads refresh from the graph according to the refresh policy; unknown
  file-type URIs found in the graph are logged and dropped.
- Writes go straight to the graph; unknown file types supplied by the caller
  are rejected with InvalidModelError.
- file_dependencies is the legacy dependency list, superseded by
  relationships. It is kept as its own property and is never merged with
  relationships.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Set, Union
import logging

from ..contracts.base import (
    Node, URIRef, Literal, ErrorCode, InvalidModelError, OnUnrecognized,
    SPDX_NAMESPACE, CLASS_SPDX_FILE, predicate,
    PROP_FILE_NAME, PROP_FILE_TYPE, PROP_FILE_CHECKSUM, PROP_FILE_CONTRIBUTOR,
    PROP_FILE_NOTICE, PROP_FILE_ARTIFACTOF, PROP_FILE_FILE_DEPENDENCY,
    PROP_FILE_SEEN_LICENSE,
)
from .annotation import Annotation
from .checksum import Checksum, ChecksumAlgorithm
from .entity import Item, checked_list, value_equivalent
from .license import AnyLicenseInfo
from .model_object import CloneMemo, ModelObject, VisitedPairs, clone_values, lists_equivalent, merge_on_change
from .project import DoapProject
from .relationship import Relationship

if TYPE_CHECKING:
    from ..engine import ModelContainer

logger = logging.getLogger(__name__)


# =============================================================================
# FILE TYPES
# =============================================================================

_FILE_TYPE_PREFIX = "fileType_"


class FileType(Enum):
    APPLICATION = "fileType_application"
    ARCHIVE = "fileType_archive"
    AUDIO = "fileType_audio"
    BINARY = "fileType_binary"
    DOCUMENTATION = "fileType_documentation"
    IMAGE = "fileType_image"
    OTHER = "fileType_other"
    SOURCE = "fileType_source"
    SPDX = "fileType_spdx"
    TEXT = "fileType_text"
    VIDEO = "fileType_video"

    @property
    def tag(self) -> str:
        return self.value[len(_FILE_TYPE_PREFIX):]

    @property
    def uri(self) -> str:
        return SPDX_NAMESPACE + self.value


FileTypeLike = Union[FileType, str]


def _match_file_type(value: FileTypeLike) -> Optional[FileType]:
    if isinstance(value, FileType):
        return value
    if isinstance(value, str) and value:
        text = value
        if text.startswith(SPDX_NAMESPACE):
            text = text[len(SPDX_NAMESPACE):]
        if text.startswith(_FILE_TYPE_PREFIX):
            text = text[len(_FILE_TYPE_PREFIX):]
        for file_type in FileType:
            if text == file_type.tag or text == file_type.name:
                return file_type
    return None


def parse_file_type(value: FileTypeLike, on_unrecognized: OnUnrecognized) -> Optional[FileType]:
    """
    Map a file type given as enum, tag ("source"), enum name ("SOURCE"),
    URI suffix ("fileType_source") or full URI to a FileType.

    Unrecognized values return None under DROP and raise under REJECT.
    """
    file_type = _match_file_type(value)
    if file_type is not None:
        return file_type
    if on_unrecognized is OnUnrecognized.REJECT:
        raise InvalidModelError(ErrorCode.INVALID_FILE_TYPE, f"Invalid file type: {value!r}")
    logger.error("Invalid file type in the model - %r", value)
    return None


def parse_file_types(
    values: Optional[Iterable[FileTypeLike]],
    on_unrecognized: OnUnrecognized
) -> List[FileType]:
    """Parse a collection of file types; duplicates collapse, order is kept."""
    if values is None:
        return []
    if isinstance(values, str):
        raise InvalidModelError(
            ErrorCode.INVALID_FILE_TYPE,
            f"Expected a collection of file types, got the string {values!r}"
        )
    parsed = (parse_file_type(v, on_unrecognized) for v in values)
    return list(dict.fromkeys(t for t in parsed if t is not None))


def normalize_contributors(values: Optional[Iterable[str]]) -> List[str]:
    # Statements are a set: a contributor listed twice is stored once
    if values is None:
        return []
    if isinstance(values, str):
        raise InvalidModelError(
            ErrorCode.INVALID_CONTRIBUTOR,
            f"Expected a collection of contributors, got the string {values!r}"
        )
    contributors = list(values)
    for contributor in contributors:
        if not isinstance(contributor, str):
            raise InvalidModelError(
                ErrorCode.INVALID_CONTRIBUTOR, f"Invalid file contributor: {contributor!r}"
            )
    return list(dict.fromkeys(contributors))


# =============================================================================
# DUPLICATE LOOKUP
# =============================================================================

def find_file_node(container: ModelContainer, name: Optional[str], sha1: Optional[str]) -> Optional[Node]:
    """
    Find an existing file node with the same name and SHA-1 value.

    Only the first node carrying the name (in graph order) is examined; other
    files sharing the name are not considered. SHA-1 values compare
    case-insensitively. Returns None when there is no such file.
    """
    if not name or not sha1:
        return None
    graph = container.graph
    matches = graph.subjects(predicate(SPDX_NAMESPACE, PROP_FILE_NAME), Literal(name))
    if not matches:
        return None
    file_node = matches[0]

    for checksum_node in graph.objects(file_node, predicate(SPDX_NAMESPACE, PROP_FILE_CHECKSUM)):
        try:
            checksum = Checksum.from_node(graph, checksum_node)
        except InvalidModelError as e:
            logger.error("Invalid checksum on %s: %s", file_node, e)
            continue
        if checksum.algorithm is ChecksumAlgorithm.SHA1 and checksum.value.lower() == sha1.lower():
            return file_node
    return None


# =============================================================================
# FILE
# =============================================================================

class File(Item):
    """File metadata record kept in sync with its graph node."""

    _class_name = CLASS_SPDX_FILE
    _name_property = PROP_FILE_NAME
    _license_info_property = PROP_FILE_SEEN_LICENSE

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
        license_comment: Optional[str] = None,
        file_types: Optional[Iterable[FileTypeLike]] = None,
        checksums: Optional[Iterable[Checksum]] = None,
        file_contributors: Optional[Iterable[str]] = None,
        notice_text: Optional[str] = None,
        artifact_of: Optional[Iterable[DoapProject]] = None
    ):
        super().__init__(
            name, identifier, comment, annotations, relationships,
            license_concluded, license_info_from_files, copyright_text, license_comment
        )
        self._file_types = parse_file_types(file_types, OnUnrecognized.REJECT)
        self._checksums = checked_list(checksums, Checksum, ErrorCode.INVALID_CHECKSUM)
        self._file_contributors = normalize_contributors(file_contributors)
        self._notice_text = notice_text
        self._artifact_of = checked_list(artifact_of, DoapProject, ErrorCode.INVALID_PROJECT)
        self._file_dependencies: List[File] = []

    def __lt__(self, other: File) -> bool:
        return (self.get_name() or "") < (other.get_name() or "")

    # -------------------------------------------------------------------------
    # Graph synchronization
    # -------------------------------------------------------------------------

    def find_duplicate_node(self, container: ModelContainer) -> Optional[Node]:
        return find_file_node(container, self.get_name(), self.sha1)

    def referenced_elements(self) -> List[ModelObject]:
        return super().referenced_elements() + list(self._file_dependencies)

    def populate_model(self) -> None:
        super().populate_model()
        self._write_file_types()
        self._write_checksums()
        self._store.write_multiple_values(SPDX_NAMESPACE, PROP_FILE_CONTRIBUTOR, self._file_contributors)
        self._store.write_single_value(SPDX_NAMESPACE, PROP_FILE_NOTICE, self._notice_text)
        self._write_artifact_of()
        self._write_file_dependencies(self._file_dependencies)

    def refresh(self) -> None:
        super().refresh()
        self.get_file_types(refresh=True)
        self.get_checksums(refresh=True)
        self.get_file_contributors(refresh=True)
        self.get_notice_text(refresh=True)
        self.get_artifact_of(refresh=True)
        self.get_file_dependencies(refresh=True)

    # -------------------------------------------------------------------------
    # File types
    # -------------------------------------------------------------------------

    def get_file_types(self, refresh: Optional[bool] = None) -> List[FileType]:
        if self._should_refresh(refresh):
            uris = self._store.read_multiple_uri_values(SPDX_NAMESPACE, PROP_FILE_TYPE)
            fresh = []
            for uri in uris:
                file_type = _match_file_type(uri)
                if file_type is None:
                    self._store.report_drop(PROP_FILE_TYPE, URIRef(uri), "unrecognized file type")
                elif file_type not in fresh:
                    fresh.append(file_type)
            if fresh != self._file_types:
                self._file_types = fresh
        return self._file_types

    def set_file_types(self, file_types: Optional[Iterable[FileTypeLike]]) -> None:
        self._file_types = parse_file_types(file_types, OnUnrecognized.REJECT)
        if self.is_attached:
            self._write_file_types()

    def _write_file_types(self) -> None:
        self._store.write_multiple_uri_values(
            SPDX_NAMESPACE, PROP_FILE_TYPE, [t.uri for t in self._file_types]
        )

    @property
    def file_types(self) -> List[FileType]:
        return self.get_file_types()

    @file_types.setter
    def file_types(self, value: Optional[Iterable[FileTypeLike]]) -> None:
        self.set_file_types(value)

    # -------------------------------------------------------------------------
    # Checksums
    # -------------------------------------------------------------------------

    def get_checksums(self, refresh: Optional[bool] = None) -> List[Checksum]:
        if self._should_refresh(refresh):
            graph = self._container.graph
            fresh = self._store.read_multiple_typed_sub_entities(
                SPDX_NAMESPACE, PROP_FILE_CHECKSUM, lambda n: Checksum.from_node(graph, n)
            )
            self._checksums = merge_on_change(self._checksums, fresh, value_equivalent)
        return self._checksums

    def set_checksums(self, checksums: Optional[Iterable[Checksum]]) -> None:
        self._checksums = checked_list(checksums, Checksum, ErrorCode.INVALID_CHECKSUM)
        if self.is_attached:
            self._write_checksums()

    def _write_checksums(self) -> None:
        graph = self._container.graph
        self._store.write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, PROP_FILE_CHECKSUM, self._checksums, lambda c: c.to_node(graph)
        )

    @property
    def checksums(self) -> List[Checksum]:
        return self.get_checksums()

    @checksums.setter
    def checksums(self, value: Optional[Iterable[Checksum]]) -> None:
        self.set_checksums(value)

    @property
    def sha1(self) -> str:
        """The SHA-1 checksum value, or an empty string if there is none."""
        for checksum in self.get_checksums():
            if checksum.algorithm is ChecksumAlgorithm.SHA1:
                return checksum.value
        return ""

    # -------------------------------------------------------------------------
    # Contributors / notice
    # -------------------------------------------------------------------------

    def get_file_contributors(self, refresh: Optional[bool] = None) -> List[str]:
        if self._should_refresh(refresh):
            fresh = self._store.read_multiple_values(SPDX_NAMESPACE, PROP_FILE_CONTRIBUTOR)
            if fresh != self._file_contributors:
                self._file_contributors = fresh
        return self._file_contributors

    def set_file_contributors(self, contributors: Optional[Iterable[str]]) -> None:
        self._file_contributors = normalize_contributors(contributors)
        if self.is_attached:
            self._store.write_multiple_values(
                SPDX_NAMESPACE, PROP_FILE_CONTRIBUTOR, self._file_contributors
            )

    @property
    def file_contributors(self) -> List[str]:
        return self.get_file_contributors()

    @file_contributors.setter
    def file_contributors(self, value: Optional[Iterable[str]]) -> None:
        self.set_file_contributors(value)

    def get_notice_text(self, refresh: Optional[bool] = None) -> Optional[str]:
        if self._should_refresh(refresh):
            self._notice_text = self._store.read_single_value(SPDX_NAMESPACE, PROP_FILE_NOTICE)
        return self._notice_text

    def set_notice_text(self, text: Optional[str]) -> None:
        self._notice_text = text
        if self.is_attached:
            self._store.write_single_value(SPDX_NAMESPACE, PROP_FILE_NOTICE, text)

    @property
    def notice_text(self) -> Optional[str]:
        return self.get_notice_text()

    @notice_text.setter
    def notice_text(self, value: Optional[str]) -> None:
        self.set_notice_text(value)

    # -------------------------------------------------------------------------
    # Artifact of (legacy project of origin)
    # -------------------------------------------------------------------------

    def get_artifact_of(self, refresh: Optional[bool] = None) -> List[DoapProject]:
        if self._should_refresh(refresh):
            graph = self._container.graph
            fresh = self._store.read_multiple_typed_sub_entities(
                SPDX_NAMESPACE, PROP_FILE_ARTIFACTOF, lambda n: DoapProject.from_node(graph, n)
            )
            self._artifact_of = merge_on_change(self._artifact_of, fresh, value_equivalent)
        return self._artifact_of

    def set_artifact_of(self, projects: Optional[Iterable[DoapProject]]) -> None:
        self._artifact_of = checked_list(projects, DoapProject, ErrorCode.INVALID_PROJECT)
        if self.is_attached:
            self._write_artifact_of()

    def _write_artifact_of(self) -> None:
        graph = self._container.graph
        self._store.write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, PROP_FILE_ARTIFACTOF, self._artifact_of, lambda p: p.to_node(graph)
        )

    @property
    def artifact_of(self) -> List[DoapProject]:
        return self.get_artifact_of()

    @artifact_of.setter
    def artifact_of(self, value: Optional[Iterable[DoapProject]]) -> None:
        self.set_artifact_of(value)

    # -------------------------------------------------------------------------
    # File dependencies (deprecated: use relationships)
    # -------------------------------------------------------------------------

    def get_file_dependencies(self, refresh: Optional[bool] = None) -> List[File]:
        """Deprecated. Files this file depends on; use relationships instead."""
        if self._should_refresh(refresh):
            elements = self._store.read_multiple_typed_sub_entities(
                SPDX_NAMESPACE, PROP_FILE_FILE_DEPENDENCY, self._container.resolve_node
            )
            fresh = []
            for element in elements:
                if isinstance(element, File):
                    fresh.append(element)
                else:
                    logger.warning("Ignoring non-file dependency %r of %r", element, self)
            self._file_dependencies = merge_on_change(
                self._file_dependencies, fresh, lambda x, y: x.equivalent(y)
            )
        return self._file_dependencies

    def set_file_dependencies(self, dependencies: Optional[Iterable[File]]) -> None:
        """
        Deprecated. Replace the dependency list; use relationships instead.

        When this file is attached, every dependency is attached to the same
        container, receiving a fresh identifier if it has none.
        If that fails, the cached and stored dependencies are unchanged.
        """
        dependencies = checked_list(dependencies, File, ErrorCode.INVALID_DEPENDENCY)
        if self.is_attached:
            seen = set()
            for dependency in dependencies:
                dependency.check_attachable(self._container, seen)
            self._write_file_dependencies(dependencies)
        self._file_dependencies = dependencies

    def _write_file_dependencies(self, dependencies: List[File]) -> None:
        self._store.write_multiple_typed_sub_entities(
            SPDX_NAMESPACE, PROP_FILE_FILE_DEPENDENCY, dependencies, self._container.add_element
        )

    @property
    def file_dependencies(self) -> List[File]:
        return self.get_file_dependencies()

    @file_dependencies.setter
    def file_dependencies(self, value: Optional[Iterable[File]]) -> None:
        self.set_file_dependencies(value)

    # -------------------------------------------------------------------------
    # Equivalence / clone / verify
    # -------------------------------------------------------------------------

    def _equivalent_fields(self, other: File, visited: VisitedPairs) -> bool:
        # Checksums and projects compare unordered; file types and
        # contributors compare as ordered lists.
        if not super()._equivalent_fields(other, visited):
            return False
        return (
            lists_equivalent(self.get_checksums(), other.get_checksums(), value_equivalent)
            and self.get_file_types() == other.get_file_types()
            and self.get_file_contributors() == other.get_file_contributors()
            and lists_equivalent(self.get_artifact_of(), other.get_artifact_of(), value_equivalent)
            and lists_equivalent(
                self.get_file_dependencies(), other.get_file_dependencies(),
                lambda x, y: x.equivalent(y, visited)
            )
            and self.get_notice_text() == other.get_notice_text()
        )

    def clone_file_dependencies(self, memo: Optional[CloneMemo] = None) -> List[File]:
        memo = {} if memo is None else memo
        cloned = (d.clone(memo) for d in self.get_file_dependencies())
        return [c for c in cloned if c is not None]

    def _clone_detached(self, memo: CloneMemo) -> File:
        # The identifier is not copied; it only has meaning inside one graph
        copy = File(
            name=self.get_name(),
            comment=self.get_comment(),
            annotations=clone_values(self.get_annotations(), self),
            license_concluded=self._clone_license_concluded(),
            license_info_from_files=self._clone_license_info_from_files(),
            copyright_text=self.get_copyright_text(),
            license_comment=self.get_license_comment(),
            file_types=list(self.get_file_types()),
            checksums=clone_values(self.get_checksums(), self),
            file_contributors=list(self.get_file_contributors()),
            notice_text=self.get_notice_text(),
            artifact_of=clone_values(self.get_artifact_of(), self)
        )
        memo[id(self)] = copy
        copy.set_relationships(self._clone_relationships(memo))
        copy.set_file_dependencies(self.clone_file_dependencies(memo))
        return copy

    def verify(self, ancestors: Optional[Set[int]] = None) -> List[str]:
        ancestors = set() if ancestors is None else ancestors
        ancestors.add(id(self))
        try:
            return self._verify_file(ancestors)
        finally:
            ancestors.discard(id(self))

    def _verify_file(self, ancestors: Set[int]) -> List[str]:
        findings = super().verify(ancestors)

        file_name = self.get_name() or "UNKNOWN"
        checksums = self.get_checksums()
        if not checksums:
            findings.append(f"Missing required checksum for file {file_name}")
        else:
            for checksum in checksums:
                findings.extend(checksum.verify())

        if not self.sha1:
            findings.append(f"Missing required SHA1 hashcode value for {file_name}")

        for project in self.get_artifact_of():
            findings.extend(project.verify())

        for dependency in self.get_file_dependencies():
            # A dependency that is also an ancestor closes a cycle
            if id(dependency) in ancestors:
                continue
            for finding in dependency.verify(ancestors):
                findings.append(
                    f"Invalid file dependency for file named {dependency.get_name()}: {finding}"
                )
        return findings

    # -------------------------------------------------------------------------
    # Aliases kept for callers of the 1.2 API
    # -------------------------------------------------------------------------

    @property
    def license_info_in_file(self) -> List[AnyLicenseInfo]:
        return self.get_license_info_from_files()

    @license_info_in_file.setter
    def license_info_in_file(self, value: Optional[Iterable[AnyLicenseInfo]]) -> None:
        self.set_license_info_from_files(value)

    seen_licenses = license_info_in_file

    @property
    def copyright(self) -> Optional[str]:
        return self.get_copyright_text()

    @copyright.setter
    def copyright(self, value: Optional[str]) -> None:
        self.set_copyright_text(value)

    @property
    def license_comments(self) -> Optional[str]:
        return self.get_license_comment()

    @license_comments.setter
    def license_comments(self, value: Optional[str]) -> None:
        self.set_license_comment(value)

    @property
    def concluded_license(self) -> Optional[AnyLicenseInfo]:
        return self.get_license_concluded()

    @concluded_license.setter
    def concluded_license(self, value: Optional[AnyLicenseInfo]) -> None:
        self.set_license_concluded(value)

    @property
    def contributors(self) -> List[str]:
        return self.get_file_contributors()

    @contributors.setter
    def contributors(self, value: Optional[Iterable[str]]) -> None:
        self.set_file_contributors(value)
