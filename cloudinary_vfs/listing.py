# listing.py
"""
Synthesizes a directory tree from Cloudinary's flat, paginated listing calls.

Every listing is a lazy generator: pages are requested only as the consumer
iterates, so stopping early issues no further requests.
"""
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, TypeVar

from .identifiers import (
    FolderMode,
    MimeTypeDetector,
    ResourceType,
    from_folder,
    from_resource,
    is_placeholder,
    resource_folder,
)
from .storage.dto import DirectoryAttributes, FileAttributes

MAX_RESULTS = 500

T = TypeVar("T")
Page = Dict[str, Any]


def paginate(
    fetch_page: Callable[[Optional[str]], Page],
    map_page: Callable[[Page], Iterable[T]],
) -> Iterator[T]:
    """
    Calls `fetch_page(cursor)` until the response carries no `next_cursor`,
    yielding whatever `map_page` extracts from each page.
    """
    cursor = None
    while True:
        page = fetch_page(cursor)
        yield from map_page(page)
        cursor = page.get("next_cursor")
        if not cursor:
            return
        logging.debug("Found more results, continuing listing...")


class ResourceLister:
    """Lists files and folders of one Cloudinary account under a fixed folder mode."""

    def __init__(
        self,
        client,
        mode: FolderMode,
        mime_type_detector: Optional[MimeTypeDetector] = None,
        max_results: int = MAX_RESULTS,
    ):
        self.client = client
        self.mode = mode
        self.mime_type_detector = mime_type_detector
        self.max_results = max_results

    def _to_file(self, resource: Dict[str, Any]) -> FileAttributes:
        return from_resource(resource, self.mode, self.mime_type_detector)

    def files_in_asset_folder(self, path: str) -> Iterator[FileAttributes]:
        """Files assigned to exactly this asset folder (dynamic mode)."""
        logging.info(f"Listing files in asset folder: '{path}'")

        def fetch(cursor):
            return self.client.resources_by_asset_folder(
                path, max_results=self.max_results, next_cursor=cursor
            )

        def to_files(page):
            for resource in page.get("resources", []):
                if not is_placeholder(resource):
                    yield self._to_file(resource)

        return paginate(fetch, to_files)

    def files_by_prefix(self, path: str, deep: bool) -> Iterator[FileAttributes]:
        """Files whose public ID starts with the folder path (fixed mode)."""
        logging.info(f"Listing files by prefix: '{path}' (deep={deep})")
        prefix = f"{path}/" if path else ""

        def to_files(page):
            for resource in page.get("resources", []):
                if not deep and resource_folder(resource, self.mode) != path:
                    continue
                if is_placeholder(resource):
                    continue
                yield self._to_file(resource)

        for resource_type in ResourceType:

            def fetch(cursor, resource_type=resource_type):
                return self.client.resources(
                    resource_type=resource_type.value,
                    type="upload",
                    prefix=prefix,
                    max_results=self.max_results,
                    next_cursor=cursor,
                )

            yield from paginate(fetch, to_files)

    def folders(self, path: str, deep: bool) -> Iterator[DirectoryAttributes]:
        """Subfolders of a path, depth-first when `deep` is set."""

        def fetch(cursor):
            if path == "":
                return self.client.root_folders(
                    max_results=self.max_results, next_cursor=cursor
                )
            return self.client.subfolders(
                path, max_results=self.max_results, next_cursor=cursor
            )

        def to_directories(page):
            for folder in page.get("folders", []):
                directory = from_folder(folder)
                yield directory
                if deep:
                    yield from self.folders(directory.path, deep)

        return paginate(fetch, to_directories)

    def contents(self, path: str, deep: bool) -> Iterator[Any]:
        """
        Merged stream of files and folders below `path`, in discovery order.
        In dynamic mode each folder's files follow the folder entry itself.
        """
        # A raw "x.png" and an image "x" in png format both surface as "x.png"
        seen = set()

        def unseen(entries):
            for entry in entries:
                key = (entry.is_dir, entry.path)
                if key not in seen:
                    seen.add(key)
                    yield entry

        if self.mode == FolderMode.DYNAMIC:
            yield from unseen(self.files_in_asset_folder(path))
            for directory in self.folders(path, deep):
                yield from unseen([directory])
                if deep:
                    yield from unseen(self.files_in_asset_folder(directory.path))
        else:
            yield from unseen(self.files_by_prefix(path, deep))
            yield from unseen(self.folders(path, deep))
