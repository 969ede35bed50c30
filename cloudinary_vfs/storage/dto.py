# storage/dto.py
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

PUBLIC = "public"


class FileAttributes(BaseModel):
    """
    A standardized Data Transfer Object for file metadata to abstract away
    provider-specific resource representations.
    """

    path: str
    file_size: Optional[int] = None
    visibility: Optional[str] = None
    last_modified: Optional[int] = None
    mime_type: Optional[str] = None
    extra_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_file(self) -> bool:
        return True

    @property
    def is_dir(self) -> bool:
        return False


class DirectoryAttributes(BaseModel):
    """Directories only exist as folder metadata on the remote side."""

    path: str
    last_modified: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return False

    @property
    def is_dir(self) -> bool:
        return True
