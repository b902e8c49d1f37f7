from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    ARCHIVE_UNREADABLE = "archive_unreadable"
    PACKAGE_NOT_FOUND = "package_not_found"
    MALFORMED_DOCUMENT = "malformed_document"
    MANIFEST_ITEM_MISSING = "manifest_item_missing"
    RESOURCE_MISSING = "resource_missing"
    NOT_LOADED = "not_loaded"
    INVALID_TIMELINE = "invalid_timeline"


class NarrasyncError(Exception):
    kind: ErrorKind

    def __init__(self, message: str, path: Optional[str] = None, item_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.item_id = item_id

    def __str__(self):
        context = []
        if self.path:
            context.append(f"path={self.path}")
        if self.item_id:
            context.append(f"id={self.item_id}")
        if context:
            return f"[{self.kind.value}] {self.message} ({', '.join(context)})"
        return f"[{self.kind.value}] {self.message}"


class StructuralError(NarrasyncError):
    """The archive does not have the shape of a readable book. Ingestion aborts."""


class ArchiveUnreadable(StructuralError):
    kind = ErrorKind.ARCHIVE_UNREADABLE


class PackageNotFound(StructuralError):
    kind = ErrorKind.PACKAGE_NOT_FOUND


class MalformedDocument(StructuralError):
    kind = ErrorKind.MALFORMED_DOCUMENT


class ManifestItemMissing(StructuralError):
    kind = ErrorKind.MANIFEST_ITEM_MISSING


class ResourceMissing(StructuralError):
    kind = ErrorKind.RESOURCE_MISSING


class UsageError(NarrasyncError):
    """The API was called in a state that does not allow it."""


class NotLoadedError(UsageError):
    kind = ErrorKind.NOT_LOADED

    def __init__(self, message: str = "No chapter loaded; call load() first."):
        super().__init__(message)


class InvalidTimelineError(UsageError):
    kind = ErrorKind.INVALID_TIMELINE
