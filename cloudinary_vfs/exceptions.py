# exceptions.py
from typing import Optional


class StorageError(Exception):
    """Base class for every failure surfaced by a filesystem adapter."""

    def __init__(self, location: str, reason: str = "", cause: Optional[BaseException] = None):
        self.location = location
        self.reason = reason or (str(cause) if cause is not None else "")
        message = f"{self.operation} failed for {self._target()}"
        if self.reason:
            message += f": {self.reason}"
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    operation = "Storage operation"

    def _target(self) -> str:
        return f"'{self.location}'"


class InvalidPathError(StorageError):
    """The path cannot be represented as a remote public ID."""

    operation = "Path validation"


class FileExistenceCheckError(StorageError):
    operation = "File existence check"


class DirectoryExistenceCheckError(StorageError):
    operation = "Directory existence check"


class FileReadError(StorageError):
    operation = "Reading file"


class FileWriteError(StorageError):
    operation = "Writing file"


class FileDeleteError(StorageError):
    operation = "Deleting file"


class DirectoryDeleteError(StorageError):
    operation = "Deleting directory"


class DirectoryCreateError(StorageError):
    operation = "Creating directory"


class ListContentsError(StorageError):
    operation = "Listing contents"

    def __init__(self, location: str, deep: bool, cause: Optional[BaseException] = None):
        self.deep = deep
        super().__init__(location, cause=cause)


class PublicUrlError(StorageError):
    operation = "Generating public URL"


class MetadataRetrievalError(StorageError):
    """Raised when a single metadata field (mime type, size, ...) cannot be retrieved."""

    operation = "Retrieving metadata"

    def __init__(self, location: str, metadata_type: str, reason: str = "", cause: Optional[BaseException] = None):
        self.metadata_type = metadata_type
        super().__init__(location, reason, cause)

    def _target(self) -> str:
        return f"'{self.location}' ({self.metadata_type})"


class VisibilityError(StorageError):
    operation = "Setting visibility"


class UnsupportedOperationError(VisibilityError):
    """The remote store has no equivalent for the requested operation."""


class _TransferError(StorageError):
    def __init__(self, source: str, destination: str, cause: Optional[BaseException] = None, reason: str = ""):
        self.source = source
        self.destination = destination
        super().__init__(source, reason, cause)

    def _target(self) -> str:
        return f"'{self.source}' -> '{self.destination}'"


class FileMoveError(_TransferError):
    operation = "Moving file"


class FileCopyError(_TransferError):
    operation = "Copying file"
