"""
File upload endpoints.

POST   /api/v1/files                  Multipart upload (file, project_id)
GET    /api/v1/files?project_id=...   Files of a project
GET    /api/v1/files/download/{name}  Stream a stored file
DELETE /api/v1/files/{file_id}        Remove row and stored file
"""

from __future__ import annotations

import uuid
from typing import List

import structlog
from fastapi import APIRouter, Depends, File as FileParam, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser, require_member, require_permission
from app.core.config import get_settings
from app.core.database import get_session
from app.models.file import File
from app.models.project import Project
from app.services import storage
from app.services.projects import get_visible_project_or_404
from taskhub_shared.permissions import UPDATE_TASK
from taskhub_shared.schemas.files import FileRead

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


@router.post("/", response_model=FileRead, status_code=201)
async def upload_file_endpoint(
    file: UploadFile = FileParam(...),
    project_id: uuid.UUID = Form(...),
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_TASK)),
    session: AsyncSession = Depends(get_session),
):
    project = await get_visible_project_or_404(session, project_id, auth)
    stored_name, size = await storage.save_upload(file, settings.upload_dir, settings.max_upload_bytes)

    db_file = File(
        project_id=project.id,
        uploaded_by_id=auth.user_id,
        name=file.filename or stored_name,
        stored_name=stored_name,
        url=f"/uploads/{stored_name}",
        size=size,
        content_type=file.content_type or storage.content_type_for(stored_name),
    )
    session.add(db_file)
    await session.commit()
    await session.refresh(db_file)
    return db_file


@router.get("/", response_model=List[FileRead])
async def list_files_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    project = await get_visible_project_or_404(session, project_id, auth)
    result = await session.execute(
        select(File).where(File.project_id == project.id).order_by(File.created_at.desc())
    )
    return list(result.scalars().all())


@router.get("/download/{stored_name}")
async def download_file_endpoint(
    stored_name: str,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """Stream a stored upload with a content type derived from its extension."""
    result = await session.execute(
        select(File)
        .join(Project, Project.id == File.project_id)
        .where(File.stored_name == stored_name, Project.organization_id == auth.org_id)
    )
    if not result.scalar_one_or_none():
        raise HTTPException(status_code=404, detail="File not found")

    path = storage.resolve_stored_path(settings.upload_dir, stored_name)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(
        path,
        media_type=storage.content_type_for(stored_name),
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )


@router.delete("/{file_id}", status_code=204)
async def delete_file_endpoint(
    file_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_TASK)),
    session: AsyncSession = Depends(get_session),
):
    db_file = await session.get(File, file_id)
    project = await session.get(Project, db_file.project_id) if db_file else None
    if not project or project.organization_id != auth.org_id:
        raise HTTPException(status_code=404, detail="File not found")

    await session.delete(db_file)
    await session.commit()
    storage.delete_stored_file(settings.upload_dir, db_file.stored_name)
    log.info("file.deleted", file_id=str(file_id))
