from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from fsrelay.config import get_settings
from fsrelay.schemas.files import (
    DirectoryListing,
    DirectoryRequest,
    EnsureResponse,
    FileContent,
    JsonContent,
    LatestVersion,
    PathRequest,
    RenameRequest,
    StatusResponse,
    WriteFileRequest,
)
from fsrelay.services.files import file_service

router = APIRouter(prefix="/api/files", tags=["files"])


def resolve_path(path: str) -> Path:
    """
    Resolve a client path against the configured root.

    Raises a 400 for paths that escape the root.
    """
    root = get_settings().root.resolve()
    candidate = (root / path).resolve()
    if candidate != root and root not in candidate.parents:
        raise HTTPException(status_code=400, detail="Path escapes the root directory")
    return candidate


@router.get("/content", response_model=FileContent)
async def read_content(path: str = Query(..., description="File path relative to the root")):
    """Read a text file"""
    content = await file_service.read_file(resolve_path(path))
    return FileContent(path=path, content=content)


@router.put("/content", response_model=StatusResponse)
async def write_content(request: WriteFileRequest):
    """Write or append text to a file"""
    await file_service.write_file(resolve_path(request.path), request.content, append=request.append)
    return StatusResponse()


@router.post("/ensure", response_model=EnsureResponse)
async def ensure_file(request: PathRequest):
    """Create an empty file unless one exists"""
    ensured = await file_service.ensure_file(resolve_path(request.path))
    return EnsureResponse(path=request.path, ensured=ensured)


@router.get("/json", response_model=JsonContent)
async def read_json(path: str = Query(..., description="JSON file path relative to the root")):
    """Read and parse a JSON file"""
    data = await file_service.read_json_from_file(resolve_path(path))
    return JsonContent(path=path, data=data)


@router.put("/json", response_model=StatusResponse)
async def write_json(request: JsonContent):
    """Persist a JSON value"""
    await file_service.write_json_to_file(resolve_path(request.path), request.data)
    return StatusResponse()


@router.get("/list", response_model=DirectoryListing)
async def list_directory(path: str = Query(".", description="Directory path relative to the root")):
    """List filenames in a directory"""
    entries = await file_service.list_directory(resolve_path(path))
    return DirectoryListing(path=path, entries=entries)


@router.get("/latest", response_model=LatestVersion)
async def latest_version(
    path: str = Query(".", description="Directory path relative to the root"),
    suffix_filter: Optional[str] = Query(None, description="Only consider entries ending with this"),
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
    numeric: bool = False,
):
    """
    Find the newest versioned entry in a directory
    """
    entries = await file_service.list_directory(resolve_path(path))
    latest = file_service.resolve_latest(
        entries,
        lambda name: suffix_filter is None or name.endswith(suffix_filter),
        prefix=prefix,
        suffix=suffix,
        numeric=numeric,
    )
    return LatestVersion(path=path, latest=latest)


@router.post("/directories", response_model=EnsureResponse)
async def create_directory(request: DirectoryRequest):
    """Create a single directory level"""
    target = resolve_path(request.path)
    if request.ensure:
        ensured = await file_service.ensure_directory(target)
    else:
        await file_service.create_directory(target)
        ensured = True
    return EnsureResponse(path=request.path, ensured=ensured)


@router.delete("", response_model=StatusResponse)
async def remove(path: str = Query(..., description="Path relative to the root")):
    """Recursively remove a file or directory"""
    target = resolve_path(path)
    if target == get_settings().root.resolve():
        raise HTTPException(status_code=400, detail="Refusing to remove the root directory")
    await file_service.rm(target)
    return StatusResponse()


@router.post("/rename", response_model=StatusResponse)
async def rename(request: RenameRequest):
    """Rename a file or directory"""
    await file_service.rn(resolve_path(request.old_path), resolve_path(request.new_path))
    return StatusResponse()
