# adapter.py
import io
import logging
from typing import BinaryIO, Iterator, Optional, Tuple, Union

import requests
from cloudinary.exceptions import NotFound

from .exceptions import (
    DirectoryCreateError,
    DirectoryDeleteError,
    DirectoryExistenceCheckError,
    FileCopyError,
    FileDeleteError,
    FileExistenceCheckError,
    FileMoveError,
    FileReadError,
    FileWriteError,
    ListContentsError,
    MetadataRetrievalError,
    PublicUrlError,
    UnsupportedOperationError,
)
from .identifiers import (
    FolderMode,
    MimeTypeDetector,
    PathPrefixer,
    ResourceType,
    classify_resource_type,
    detect_mime_type_from_path,
    is_placeholder,
    parse_timestamp,
    to_folder,
    to_public_id,
)
from .listing import ResourceLister
from .storage.base import FilesystemAdapter
from .storage.dto import PUBLIC, DirectoryAttributes, FileAttributes


class CloudinaryAdapter(FilesystemAdapter):
    """
    Filesystem adapter over a Cloudinary account, implementing the
    FilesystemAdapter interface.

    Every remote call is wrapped: Cloudinary's NotFound is turned into the
    operation's not-found outcome where one exists (False, empty listing,
    no-op), and every other failure is re-raised as the operation's
    StorageError subclass with the original exception as its cause.
    """

    def __init__(
        self,
        client,
        folder_mode: Union[FolderMode, str] = FolderMode.DYNAMIC,
        path_prefix: str = "",
        mime_type_detector: Optional[MimeTypeDetector] = None,
        http_timeout: int = 30,
    ):
        self.client = client
        self.folder_mode = FolderMode(folder_mode)
        self.prefixer = PathPrefixer(path_prefix)
        self.mime_type_detector = mime_type_detector or detect_mime_type_from_path
        self.http_timeout = http_timeout
        self.lister = ResourceLister(client, self.folder_mode, self.mime_type_detector)

    # --- Translation helpers ---

    def _locate(self, path: str) -> Tuple[str, ResourceType, str]:
        """Resolves a path to (remote path, resource type, public ID)."""
        remote_path = self.prefixer.prefix_path(path)
        resource_type = classify_resource_type(remote_path)
        public_id = to_public_id(remote_path, resource_type, self.folder_mode)
        return remote_path, resource_type, public_id

    def _resource(self, path: str) -> dict:
        _, resource_type, public_id = self._locate(path)
        return self.client.explicit(
            public_id, resource_type=resource_type.value, type="upload"
        )

    def _secure_url(self, path: str) -> str:
        _, resource_type, public_id = self._locate(path)
        resource = self.client.resource(public_id, resource_type=resource_type.value)
        return resource["secure_url"]

    def _upload(self, path: str, file, options: dict) -> dict:
        remote_path, resource_type, public_id = self._locate(path)
        upload_options = {
            **options,
            "public_id": public_id,
            "resource_type": resource_type.value,
            "filename": remote_path,
            "overwrite": True,
            "invalidate": True,
        }
        folder = to_folder(remote_path)
        if self.folder_mode == FolderMode.DYNAMIC and folder:
            upload_options["asset_folder"] = folder

        logging.info(f"Uploading '{path}' as {resource_type.value} '{public_id}'...")
        return self.client.upload(file, **upload_options)

    # --- Existence ---

    def file_exists(self, path: str) -> bool:
        try:
            resource = self._resource(path)
        except NotFound:
            return False
        except Exception as e:
            logging.error(f"Failed to check existence of file '{path}': {e}")
            raise FileExistenceCheckError(path, cause=e) from e
        # Placeholders are created by Cloudinary itself and hold no content
        return not is_placeholder(resource)

    def directory_exists(self, path: str) -> bool:
        remote_path = self.prefixer.prefix_path(path)
        if remote_path == "":
            return True
        try:
            self.client.subfolders(remote_path, max_results=1)
            return True
        except NotFound:
            return False
        except Exception as e:
            logging.error(f"Failed to check existence of directory '{path}': {e}")
            raise DirectoryExistenceCheckError(path, cause=e) from e

    # --- Writing ---

    def write(self, path: str, contents: Union[bytes, str], **options):
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        self.write_stream(path, io.BytesIO(contents), **options)

    def write_stream(self, path: str, stream: BinaryIO, **options):
        try:
            self._upload(path, stream, options)
        except Exception as e:
            logging.error(f"Failed to write file '{path}': {e}")
            raise FileWriteError(path, cause=e) from e

    # --- Reading ---

    def _download(self, path: str, stream: bool) -> requests.Response:
        try:
            url = self._secure_url(path)
            logging.info(f"Downloading '{path}' from {url}...")
            response = requests.get(url, stream=stream, timeout=self.http_timeout)
            response.raise_for_status()
            return response
        except Exception as e:
            logging.error(f"Failed to read file '{path}': {e}")
            raise FileReadError(path, cause=e) from e

    def read(self, path: str) -> bytes:
        return self._download(path, stream=False).content

    def read_stream(self, path: str) -> BinaryIO:
        response = self._download(path, stream=True)
        response.raw.decode_content = True
        return response.raw

    # --- Deleting ---

    def delete(self, path: str):
        try:
            _, resource_type, public_id = self._locate(path)
            logging.info(f"Deleting '{path}'...")
            result = self.client.destroy(
                public_id,
                resource_type=resource_type.value,
                type="upload",
                invalidate=True,
            )
        except Exception as e:
            logging.error(f"Failed to delete file '{path}': {e}")
            raise FileDeleteError(path, cause=e) from e

        if result.get("result") == "not found":
            logging.warning(f"File '{path}' not found. Nothing to delete.")

    def delete_directory(self, path: str):
        """
        Deletes every file below the directory, then the folder itself.
        A folder that does not exist remotely is treated as already deleted.
        """
        remote_path = self.prefixer.prefix_path(path)
        try:
            # Collected up front: deleting while paginating would shift the cursors
            files = [
                entry
                for entry in self.lister.contents(remote_path, deep=True)
                if entry.is_file
            ]
            for entry in files:
                self.delete(self.prefixer.strip_prefix(entry.path))

            if remote_path:
                folders = [remote_path]
            else:
                folders = [folder.path for folder in self.lister.folders("", deep=False)]
            for folder in folders:
                logging.info(f"Deleting folder '{folder}'...")
                self.client.delete_folder(folder)
        except NotFound:
            logging.warning(f"Folder '{path}' not found. Nothing to delete.")
        except Exception as e:
            logging.error(f"Failed to delete directory '{path}': {e}")
            raise DirectoryDeleteError(path, cause=e) from e

    def create_directory(self, path: str):
        try:
            remote_path = self.prefixer.prefix_path(path)
            logging.info(f"Creating folder '{remote_path}'...")
            self.client.create_folder(remote_path)
        except Exception as e:
            logging.error(f"Failed to create directory '{path}': {e}")
            raise DirectoryCreateError(path, cause=e) from e

    # --- Metadata ---

    def set_visibility(self, path: str, visibility: str):
        raise UnsupportedOperationError(path, "Cloudinary does not support this operation.")

    def _metadata(self, path: str, metadata_type: str, field: Optional[str] = None):
        """
        Fetches the remote record of a file and, when `field` is given,
        returns that single value from it.
        """
        try:
            resource = self._resource(path)
            if not is_placeholder(resource):
                return resource[field] if field else resource
        except Exception as e:
            logging.error(f"Failed to retrieve {metadata_type} of '{path}': {e}")
            raise MetadataRetrievalError(path, metadata_type, cause=e) from e
        logging.error(f"Failed to retrieve {metadata_type} of '{path}': file not found.")
        raise MetadataRetrievalError(path, metadata_type, "File not found.")

    def visibility(self, path: str) -> str:
        self._metadata(path, "visibility")
        return PUBLIC

    def mime_type(self, path: str) -> str:
        self._metadata(path, "mime_type")
        mime_type = self.mime_type_detector(path)
        if mime_type is None:
            raise MetadataRetrievalError(path, "mime_type", "Unknown mime type.")
        return mime_type

    def last_modified(self, path: str) -> int:
        return parse_timestamp(self._metadata(path, "last_modified", "created_at"))

    def file_size(self, path: str) -> int:
        return self._metadata(path, "file_size", "bytes")

    # --- Listing ---

    def list_contents(
        self, path: str, deep: bool
    ) -> Iterator[Union[FileAttributes, DirectoryAttributes]]:
        remote_path = self.prefixer.prefix_path(path)
        try:
            for entry in self.lister.contents(remote_path, deep):
                yield entry.model_copy(
                    update={"path": self.prefixer.strip_prefix(entry.path)}
                )
        except NotFound:
            logging.info(f"Folder '{path}' not found. Nothing to list.")
        except Exception as e:
            logging.error(f"Failed to list contents of '{path}': {e}")
            raise ListContentsError(path, deep, cause=e) from e

    # --- Moving and copying ---

    def move(self, source: str, destination: str, **options):
        source_type = classify_resource_type(source)
        destination_type = classify_resource_type(destination)
        if source_type != destination_type:
            raise FileMoveError(
                source,
                destination,
                reason=f"Cannot change resource type from {source_type.value} to {destination_type.value}.",
            )

        try:
            source_remote, _, source_id = self._locate(source)
            destination_remote, _, destination_id = self._locate(destination)
            folder = to_folder(destination_remote)
            dynamic = self.folder_mode == FolderMode.DYNAMIC

            if destination_id == source_id:
                if not dynamic:
                    logging.info(f"'{source}' and '{destination}' are the same asset. Nothing to move.")
                    return
                # Only the folder assignment changes
                logging.info(f"Moving '{source_id}' to folder '{folder}'...")
                self.client.update(
                    source_id,
                    resource_type=source_type.value,
                    type="upload",
                    asset_folder=folder,
                )
                return

            logging.info(f"Renaming '{source_id}' to '{destination_id}'...")
            self.client.rename(
                source_id,
                destination_id,
                **{
                    **options,
                    "resource_type": source_type.value,
                    "overwrite": True,
                    "invalidate": True,
                },
            )
            if dynamic and to_folder(source_remote) != folder:
                self.client.update(
                    destination_id,
                    resource_type=source_type.value,
                    type="upload",
                    asset_folder=folder,
                )
        except Exception as e:
            logging.error(f"Failed to move file from '{source}' to '{destination}': {e}")
            raise FileMoveError(source, destination, cause=e) from e

    def copy(self, source: str, destination: str, **options):
        """Cloudinary fetches the source's delivery URL and stores it as a new asset."""
        try:
            source_url = self._secure_url(source)
            self._upload(destination, source_url, options)
        except Exception as e:
            logging.error(f"Failed to copy file from '{source}' to '{destination}': {e}")
            raise FileCopyError(source, destination, cause=e) from e

    def public_url(self, path: str) -> str:
        try:
            return self._secure_url(path)
        except Exception as e:
            logging.error(f"Failed to generate public URL for '{path}': {e}")
            raise PublicUrlError(path, cause=e) from e
