# identifiers.py
"""
Translation between filesystem paths and Cloudinary resource addressing.

Every function here is pure given (path, folder mode): the mode is chosen once
when the adapter is built and passed in explicitly, never looked up globally.
"""
import enum
import mimetypes
import posixpath
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .exceptions import InvalidPathError
from .storage.dto import PUBLIC, DirectoryAttributes, FileAttributes

MimeTypeDetector = Callable[[str], Optional[str]]


class ResourceType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    RAW = "raw"


class FolderMode(str, enum.Enum):
    """How folders are represented remotely."""

    # Folder is an `asset_folder` attribute, independent of the public ID.
    DYNAMIC = "dynamic"
    # Legacy: folder is encoded as a prefix of the public ID.
    FIXED = "fixed"


_IMAGE_EXTENSIONS = (
    "3ds ai arw avif bmp bw cr2 cr3 djvu dng eps eps3 ept fbx flif gif glb gltf "
    "hdp heic heif ico indd jp2 jpe jpeg jpg jxl jxr obj pdf ply png ps psd svg "
    "tga tif tiff u3ma usdz wdp webp"
).split()
_VIDEO_EXTENSIONS = (
    "3g2 3gp avi flv m2ts mkv mov mp4 mpeg mts mxf ogv ts webm wmv"
).split()
# Cloudinary stores audio under the video resource type.
_AUDIO_EXTENSIONS = "aac aiff amr flac m4a mp3 ogg opus wav".split()

RESOURCE_TYPES_BY_EXTENSION: Dict[str, ResourceType] = {
    **{ext: ResourceType.IMAGE for ext in _IMAGE_EXTENSIONS},
    **{ext: ResourceType.VIDEO for ext in _VIDEO_EXTENSIONS},
    **{ext: ResourceType.VIDEO for ext in _AUDIO_EXTENSIONS},
}

# Characters Cloudinary refuses in a public ID.
FORBIDDEN_CHARACTERS = frozenset("?&#\\%<>")


def normalize_path(path: str) -> str:
    """Strips surrounding slashes; "." and "" both denote the root."""
    path = (path or "").strip("/")
    return "" if path == "." else path


def validate_path(path: str) -> str:
    forbidden = sorted(set(path) & FORBIDDEN_CHARACTERS)
    if forbidden:
        raise InvalidPathError(
            path, f"Cloudinary public IDs cannot contain {' '.join(forbidden)}"
        )
    return path


def _extension(path: str) -> str:
    return posixpath.splitext(posixpath.basename(path))[1][1:]


def classify_resource_type(path: str) -> ResourceType:
    """
    Looks the extension up in a fixed table; unknown or missing extensions
    map to RAW. The lookup is case-sensitive: Cloudinary reports `format` in
    lower case, so "photo.JPG" is stored as raw to keep its name intact.
    """
    return RESOURCE_TYPES_BY_EXTENSION.get(_extension(path), ResourceType.RAW)


def to_folder(path: str) -> str:
    """Directory portion of a path, "" at the root."""
    return posixpath.dirname(normalize_path(path))


def to_public_id(path: str, resource_type: ResourceType, mode: FolderMode) -> str:
    path = validate_path(normalize_path(path))
    name = posixpath.basename(path)
    if not name:
        raise InvalidPathError(path, "the root is not a file")
    if resource_type != ResourceType.RAW:
        name = posixpath.splitext(name)[0]

    folder = to_folder(path)
    if mode == FolderMode.FIXED and folder:
        return f"{folder}/{name}"
    return name


def resource_folder(resource: Dict[str, Any], mode: FolderMode) -> str:
    """The folder a remote record lives in, under the given mode."""
    if mode == FolderMode.DYNAMIC:
        return resource.get("asset_folder") or ""
    if "folder" in resource:
        return resource["folder"] or ""
    return posixpath.dirname(resource["public_id"])


def is_placeholder(resource: Dict[str, Any]) -> bool:
    return bool(resource.get("placeholder")) or resource.get("bytes") == 0


def parse_timestamp(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())


def resource_path(resource: Dict[str, Any], mode: FolderMode) -> str:
    path = resource["public_id"]
    if resource.get("resource_type") != ResourceType.RAW.value and resource.get("format"):
        path += "." + resource["format"]

    folder = resource.get("asset_folder") or ""
    if mode == FolderMode.DYNAMIC and folder:
        path = f"{folder}/{path}"
    return path


def from_resource(
    resource: Dict[str, Any],
    mode: FolderMode,
    mime_type_detector: Optional[MimeTypeDetector] = None,
) -> FileAttributes:
    """Maps a remote resource record back to the file it represents."""
    detector = mime_type_detector or detect_mime_type_from_path
    path = resource_path(resource, mode)
    return FileAttributes(
        path=path,
        file_size=resource.get("bytes"),
        visibility=PUBLIC,
        last_modified=parse_timestamp(resource.get("created_at")),
        mime_type=detector(path),
        extra_metadata={
            "public_id": resource["public_id"],
            "asset_folder": resource.get("asset_folder"),
            "resource_type": resource.get("resource_type"),
        },
    )


def from_folder(folder: Dict[str, Any]) -> DirectoryAttributes:
    return DirectoryAttributes(path=folder["path"])


def detect_mime_type_from_path(path: str) -> Optional[str]:
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    return mime_type


class PathPrefixer:
    """Scopes an adapter to a subtree of the remote account."""

    def __init__(self, prefix: str = ""):
        self.prefix = normalize_path(prefix)

    def prefix_path(self, path: str) -> str:
        path = normalize_path(path)
        if not self.prefix:
            return path
        return f"{self.prefix}/{path}" if path else self.prefix

    def strip_prefix(self, path: str) -> str:
        path = normalize_path(path)
        if not self.prefix:
            return path
        if path == self.prefix:
            return ""
        if path.startswith(self.prefix + "/"):
            return path[len(self.prefix) + 1:]
        return path
