from typing import Any, List, Optional
from pydantic import BaseModel


class FileContent(BaseModel):
    """Text content of a file"""
    path: str
    content: str


class WriteFileRequest(BaseModel):
    """Write (or append) text to a file"""
    path: str
    content: str
    append: bool = False


class JsonContent(BaseModel):
    """Parsed JSON content of a file"""
    path: str
    data: Any


class PathRequest(BaseModel):
    path: str


class DirectoryRequest(BaseModel):
    """Create a directory; ensure=True tolerates an existing one"""
    path: str
    ensure: bool = True


class EnsureResponse(BaseModel):
    path: str
    ensured: bool


class DirectoryListing(BaseModel):
    """Filenames in a directory, in listing order"""
    path: str
    entries: List[str]


class LatestVersion(BaseModel):
    """Newest versioned entry in a directory"""
    path: str
    latest: Optional[str] = None


class RenameRequest(BaseModel):
    old_path: str
    new_path: str


class StatusResponse(BaseModel):
    status: str = "ok"
