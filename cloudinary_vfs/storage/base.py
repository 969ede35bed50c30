# storage/base.py
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterator, Union
from .dto import DirectoryAttributes, FileAttributes


class FilesystemAdapter(ABC):
    """
    Abstract base class for a virtual filesystem backed by remote storage.
    Defines the common interface that all specific adapters
    (e.g., Cloudinary) must implement. Paths are slash-separated and
    relative to the adapter root; "" denotes the root itself.
    """

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """
        Checks whether a file exists at the given path.

        :param path: The path of the file.
        :return: True if the file exists, False otherwise.
        """
        pass

    @abstractmethod
    def directory_exists(self, path: str) -> bool:
        """
        Checks whether a directory exists at the given path.

        :param path: The path of the directory.
        """
        pass

    @abstractmethod
    def write(self, path: str, contents: Union[bytes, str], **options):
        """
        Writes contents to a file, replacing any existing file.

        :param path: The destination path.
        :param contents: The bytes (or text) to store.
        """
        pass

    @abstractmethod
    def write_stream(self, path: str, stream: BinaryIO, **options):
        """
        Writes a binary stream to a file, replacing any existing file.

        :param path: The destination path.
        :param stream: A readable binary file-like object.
        """
        pass

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Reads the full contents of a file."""
        pass

    @abstractmethod
    def read_stream(self, path: str) -> BinaryIO:
        """Opens a file for streamed reading."""
        pass

    @abstractmethod
    def delete(self, path: str):
        """Deletes a file."""
        pass

    @abstractmethod
    def delete_directory(self, path: str):
        """Deletes a directory and everything below it."""
        pass

    @abstractmethod
    def create_directory(self, path: str):
        """Creates a directory."""
        pass

    @abstractmethod
    def set_visibility(self, path: str, visibility: str):
        pass

    @abstractmethod
    def visibility(self, path: str) -> str:
        pass

    @abstractmethod
    def mime_type(self, path: str) -> str:
        pass

    @abstractmethod
    def last_modified(self, path: str) -> int:
        pass

    @abstractmethod
    def file_size(self, path: str) -> int:
        pass

    @abstractmethod
    def list_contents(
        self, path: str, deep: bool
    ) -> Iterator[Union[FileAttributes, DirectoryAttributes]]:
        """
        Lists the files and directories below a path.

        :param path: The directory to list.
        :param deep: Whether to descend into subdirectories.
        :return: A lazy iterator of FileAttributes and DirectoryAttributes DTOs.
        """
        pass

    @abstractmethod
    def move(self, source: str, destination: str, **options):
        """
        Moves a file to a new path.

        :param source: The current path of the file.
        :param destination: The new path of the file.
        """
        pass

    @abstractmethod
    def copy(self, source: str, destination: str, **options):
        """
        Copies a file to a new path.

        :param source: The path of the file to copy.
        :param destination: The path of the copy.
        """
        pass

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Returns a URL the file can be publicly downloaded from."""
        pass
