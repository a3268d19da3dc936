"""Document storage API: folders, uploads, downloads and role-based visibility."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form, Query
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.config import get_settings
from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.models import FileAccess, Folder, Role, StoredFile
from horeca.schemas import (
    AccessEntry, FileMetadata, FileRead, FileUpdate, FolderCreate, FolderRead, FolderUpdate,
)
from horeca.services.acl import get_user_role_ids
from horeca.services.scope import Scope
from horeca.services.storage import (
    InvalidImageError, make_storage_key, save_blob, read_blob, delete_blob, make_preview, verify_image,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])

_scope_dep = require_scope()


# ── Helpers ───────────────────────────────────────────────

def _access_rows(entries: list[AccessEntry]) -> list[FileAccess]:
    return [
        FileAccess(role_id=e.role_id, can_read=e.can_read, can_write=e.can_write, can_delete=e.can_delete)
        for e in entries
    ]


def _visible_clause(model, user_id: str, role_ids: list[str]):
    """Creator, or a read-enabled access row for one of the caller's roles."""
    link = FileAccess.file_id if model is StoredFile else FileAccess.folder_id
    readable = (
        select(FileAccess.id)
        .where(link == model.id, FileAccess.can_read.is_(True), FileAccess.role_id.in_(role_ids))
        .exists()
    )
    return or_(model.created_by == user_id, readable)


def _is_visible(item: StoredFile | Folder, user_id: str, role_ids: list[str]) -> bool:
    if item.created_by == user_id:
        return True
    return any(a.can_read and a.role_id in role_ids for a in item.access)


def _file_out(f: StoredFile) -> dict:
    return FileRead(
        id=f.id,
        name=f.name,
        display_name=f.display_name,
        original_name=f.original_name,
        size=f.size,
        mime=f.mime,
        ext=f.ext,
        description=f.description or "",
        folder_id=f.folder_id,
        created_by=f.created_by,
        created_at=f.created_at,
        access_roles=[AccessEntry.model_validate(a) for a in f.access],
    ).model_dump(by_alias=True, mode="json")


def _folder_out(f: Folder) -> dict:
    return FolderRead(
        id=f.id,
        name=f.name,
        description=f.description or "",
        parent_id=f.parent_id,
        created_by=f.created_by,
        created_at=f.created_at,
        access_roles=[AccessEntry.model_validate(a) for a in f.access],
    ).model_dump(by_alias=True, mode="json")


async def _tenant_folder(db: AsyncSession, folder_id: str, scope: Scope) -> Folder:
    folder = await db.get(Folder, folder_id)
    if not folder or folder.tenant_id != scope.tenant_id:
        raise HTTPException(404, "Folder not found")
    return folder


async def _own_file(db: AsyncSession, file_id: str, scope: Scope) -> StoredFile:
    f = await db.get(StoredFile, file_id)
    if not f or f.tenant_id != scope.tenant_id or f.created_by != scope.user_id:
        raise HTTPException(404, "File not found or access denied")
    return f


async def _visible_file(db: AsyncSession, file_id: str, scope: Scope) -> StoredFile:
    f = await db.get(StoredFile, file_id)
    if not f or f.tenant_id != scope.tenant_id:
        raise HTTPException(404, "File not found")
    role_ids = await get_user_role_ids(db, scope.user_id)
    if not _is_visible(f, scope.user_id, role_ids):
        raise HTTPException(404, "File not found")
    return f


def _disposition(kind: str, filename: str) -> str:
    return f"{kind}; filename*=UTF-8''{quote(filename)}"


# ── Folders ───────────────────────────────────────────────

@router.get("/folders")
async def list_folders(
    parent_id: str | None = Query(default=None, alias="parentId"),
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    role_ids = await get_user_role_ids(db, scope.user_id)
    stmt = select(Folder).where(
        Folder.tenant_id == scope.tenant_id,
        Folder.parent_id == parent_id if parent_id else Folder.parent_id.is_(None),
        _visible_clause(Folder, scope.user_id, role_ids),
    )
    result = await db.execute(stmt.order_by(Folder.name))
    return {"folders": [_folder_out(f) for f in result.scalars().all()]}


@router.post("/folders", status_code=201)
async def create_folder(
    body: FolderCreate,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    if body.parent_id:
        await _tenant_folder(db, body.parent_id, scope)
    folder = Folder(
        tenant_id=scope.tenant_id,
        parent_id=body.parent_id,
        name=body.name,
        description=body.description,
        created_by=scope.user_id,
        access=_access_rows(body.access_roles),
    )
    db.add(folder)
    await db.commit()
    await db.refresh(folder)
    return {"folder": _folder_out(folder)}


@router.patch("/folders/{folder_id}")
async def update_folder(
    folder_id: str,
    body: FolderUpdate,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    folder = await _tenant_folder(db, folder_id, scope)
    if folder.created_by != scope.user_id:
        raise HTTPException(404, "Folder not found or access denied")
    if body.name is None and body.description is None:
        raise HTTPException(400, "Name or description is required")
    if body.name is not None:
        folder.name = body.name
    if body.description is not None:
        folder.description = body.description
    await db.commit()
    await db.refresh(folder)
    return {"folder": _folder_out(folder)}


@router.delete("/folders/{folder_id}")
async def delete_folder(
    folder_id: str,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    folder = await _tenant_folder(db, folder_id, scope)
    if folder.created_by != scope.user_id:
        raise HTTPException(404, "Folder not found or access denied")

    files = await db.scalar(select(func.count(StoredFile.id)).where(StoredFile.folder_id == folder.id))
    children = await db.scalar(select(func.count(Folder.id)).where(Folder.parent_id == folder.id))
    if files or children:
        raise HTTPException(400, "Folder is not empty")

    await db.delete(folder)
    await db.commit()
    return {"ok": True}


# ── Roles for access lists ────────────────────────────────

@router.get("/roles")
async def list_access_roles(
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Role)
        .where(or_(Role.tenant_id.is_(None), Role.tenant_id == scope.tenant_id))
        .order_by(Role.name)
    )
    return {"roles": [{"id": r.id, "name": r.name, "description": r.description} for r in result.scalars().all()]}


# ── Files ─────────────────────────────────────────────────

@router.get("")
async def list_files(
    folder_id: str | None = Query(default=None, alias="folderId"),
    search: str | None = Query(default=None),
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    role_ids = await get_user_role_ids(db, scope.user_id)

    folder_stmt = select(Folder).where(
        Folder.tenant_id == scope.tenant_id,
        Folder.parent_id == folder_id if folder_id else Folder.parent_id.is_(None),
        _visible_clause(Folder, scope.user_id, role_ids),
    )
    file_stmt = select(StoredFile).where(
        StoredFile.tenant_id == scope.tenant_id,
        StoredFile.folder_id == folder_id if folder_id else StoredFile.folder_id.is_(None),
        _visible_clause(StoredFile, scope.user_id, role_ids),
    )
    if search:
        pattern = f"%{search.lower()}%"
        folder_stmt = folder_stmt.where(func.lower(Folder.name).like(pattern))
        file_stmt = file_stmt.where(or_(
            func.lower(StoredFile.display_name).like(pattern),
            func.lower(StoredFile.description).like(pattern),
        ))

    folders = (await db.execute(folder_stmt.order_by(Folder.name))).scalars().all()
    files = (await db.execute(file_stmt.order_by(StoredFile.created_at.desc()))).scalars().all()
    return {
        "folders": [_folder_out(f) for f in folders],
        "files": [_file_out(f) for f in files],
    }


@router.post("/upload", status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    metadata: str = Form(...),
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    storage = get_settings().storage
    data = await file.read()
    if not data:
        raise HTTPException(400, "File is empty")
    if len(data) > storage.max_upload_bytes:
        raise HTTPException(400, f"File too large, max {storage.max_upload_bytes // (1024 * 1024)}MB")
    mime = file.content_type or "application/octet-stream"
    if mime not in storage.allowed_mime_types:
        raise HTTPException(400, f"File type not allowed: {mime}")
    if mime.startswith("image/"):
        try:
            await verify_image(data)
        except InvalidImageError:
            raise HTTPException(400, "File is not a valid image")

    try:
        meta = FileMetadata.model_validate_json(metadata)
    except ValidationError:
        raise HTTPException(400, "Invalid metadata")

    if meta.folder_id:
        await _tenant_folder(db, meta.folder_id, scope)

    original_name = file.filename or "file"
    key = make_storage_key(scope.tenant_id, original_name)
    await save_blob(key, data)

    stored = StoredFile(
        tenant_id=scope.tenant_id,
        folder_id=meta.folder_id,
        name=Path(key).name,
        display_name=meta.display_name or original_name,
        original_name=original_name,
        size=len(data),
        mime=mime,
        ext=Path(original_name).suffix.lower().lstrip("."),
        description=meta.description,
        storage_key=key,
        created_by=scope.user_id,
        access=_access_rows(meta.access_roles),
    )
    db.add(stored)
    await db.commit()
    await db.refresh(stored)
    logger.info(f"Stored {original_name} ({len(data)} bytes) as {key}")
    return {"file": _file_out(stored)}


@router.patch("/{file_id}")
async def update_file(
    file_id: str,
    body: FileUpdate,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    f = await _own_file(db, file_id, scope)
    if body.display_name is None and body.description is None and body.folder_id is None and not body.move_to_root:
        raise HTTPException(400, "Name or folderId is required")

    if body.display_name is not None:
        f.display_name = body.display_name
    if body.description is not None:
        f.description = body.description
    if body.move_to_root:
        f.folder_id = None
    elif body.folder_id is not None:
        await _tenant_folder(db, body.folder_id, scope)
        f.folder_id = body.folder_id

    await db.commit()
    await db.refresh(f)
    return {"file": _file_out(f)}


@router.delete("/{file_id}")
async def delete_file(
    file_id: str,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    f = await _own_file(db, file_id, scope)
    key = f.storage_key
    await db.delete(f)
    await db.commit()
    await delete_blob(key)
    return {"ok": True}


@router.get("/{file_id}/content")
async def download_file(
    file_id: str,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    f = await _visible_file(db, file_id, scope)
    try:
        data = await read_blob(f.storage_key)
    except FileNotFoundError:
        logger.warning(f"Blob missing for file {f.id}: {f.storage_key}")
        raise HTTPException(404, "File content not found")
    return Response(
        content=data,
        media_type=f.mime,
        headers={"Content-Disposition": _disposition("attachment", f.display_name)},
    )


@router.get("/{file_id}/preview")
async def preview_file(
    file_id: str,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    f = await _visible_file(db, file_id, scope)
    try:
        data = await read_blob(f.storage_key)
    except FileNotFoundError:
        logger.warning(f"Blob missing for file {f.id}: {f.storage_key}")
        raise HTTPException(404, "File content not found")

    media_type = f.mime
    if f.mime.startswith("image/"):
        try:
            data = await make_preview(data)
            media_type = "image/jpeg"
        except InvalidImageError:
            logger.warning(f"Stored image {f.id} cannot be decoded, serving it as is")
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": _disposition("inline", f.display_name)},
    )
