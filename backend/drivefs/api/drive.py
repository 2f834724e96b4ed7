from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from drivefs.drive.client import DriveError
from drivefs.drive.config import DriveConfigError
from drivefs.fs.errors import DriveFsError, UnknownAccountError
from drivefs.fs.filesystem import FileSystemRegistry
from drivefs.fs.glob import glob_matches
from drivefs.fs.path import DrivePath, IdentifierPath, parse_path

router = APIRouter()

_registry = FileSystemRegistry()


class PathPairBody(BaseModel):
    base: str
    other: str


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, UnknownAccountError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DriveError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _describe(p: DrivePath) -> dict[str, Any]:
    out: dict[str, Any] = {
        "uri": str(p),
        "kind": "identifier" if isinstance(p, IdentifierPath) else "named",
        "absolute": p.is_absolute(),
        "accountId": p.account_id,
    }
    if isinstance(p, IdentifierPath):
        out.update(identifier=p.identifier, rootId=None, segments=[], parent=None, normalized=str(p))
        return out
    parent = p.parent
    out.update(
        rootId=p.root_id,
        segments=list(p.segments),
        parent=str(parent) if parent is not None else None,
        normalized=str(p.normalize()),
    )
    return out


@router.get("/api/drive/roots")
def api_drive_roots(account: Optional[str] = Query(None)) -> dict:
    try:
        fs = _registry.for_account(account)
        roots = []
        for store in fs.file_stores():
            path = fs.get_path(store.root_id)
            roots.append({"name": store.name, "type": store.kind, "rootId": store.root_id, "path": str(path)})
    except (DriveFsError, DriveError, DriveConfigError) as e:
        raise _http_error(e) from e
    return {"account": fs.account_name, "roots": roots}


@router.get("/api/drive/path")
def api_drive_path(uri: str = Query(...)) -> dict:
    try:
        return _describe(parse_path(uri))
    except DriveFsError as e:
        raise _http_error(e) from e


@router.post("/api/drive/path/resolve")
def api_drive_resolve(body: PathPairBody) -> dict:
    try:
        return _describe(parse_path(body.base).resolve(body.other))
    except DriveFsError as e:
        raise _http_error(e) from e


@router.post("/api/drive/path/relativize")
def api_drive_relativize(body: PathPairBody) -> dict:
    try:
        return _describe(parse_path(body.base).relativize(parse_path(body.other)))
    except DriveFsError as e:
        raise _http_error(e) from e


@router.get("/api/drive/match")
def api_drive_match(glob: str = Query(...), path: str = Query(...)) -> dict:
    try:
        return {"glob": glob, "path": path, "matches": glob_matches(glob, path)}
    except DriveFsError as e:
        raise _http_error(e) from e
