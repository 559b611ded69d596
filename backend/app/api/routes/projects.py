"""Project Routes — CRUD, tracking verification and ownership transfer.

Invariants:
    - Admins list every project; users list their own
    - Creation enforces the caller's plan project_limit (admins exempt)
    - PATCH touches only name, domain, description, status
    - DELETE removes the project and every project-scoped row
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_accessible_project, get_current_user
from app.infrastructure.database import get_db
from app.models.project import Project
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate, TransferRequest, VerifyTrackingRequest
from app.schemas.serialize import project_out
from app.services import projects as project_service
from app.services.tracking_verifier import verify_tracking

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.get("")
async def list_projects(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    query = select(Project).order_by(Project.created_at.desc())
    if not user.is_admin:
        query = query.where(Project.user_id == user.id)
    result = await db.execute(query)
    return [project_out(p) for p in result.scalars().all()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.create_project(db, user, body.model_dump())
    await db.commit()
    await db.refresh(project)
    return project_out(project)


@router.get("/{project_id}")
async def get_project(project: Project = Depends(get_accessible_project)):
    return project_out(project)


@router.patch("/{project_id}")
async def update_project(
    body: ProjectUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    for field, value in body.changes().items():
        if value is not None or field == "description":
            setattr(project, field, value)
    await db.commit()
    await db.refresh(project)
    return project_out(project)


@router.delete("/{project_id}")
async def delete_project(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    await project_service.delete_project(db, project)
    await db.commit()
    return {"message": "Project deleted"}


@router.post("/{project_id}/verify-tracking")
async def verify_project_tracking(
    body: VerifyTrackingRequest | None = None,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await verify_tracking(project, body.url if body else None)
    if result["verified"]:
        await db.commit()
    return result


@router.post("/{project_id}/transfer")
async def transfer_project(
    body: TransferRequest,
    project: Project = Depends(get_accessible_project),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await project_service.transfer_project(db, project, user, body.email)
    await db.commit()
    await db.refresh(project)
    return project_out(project)
