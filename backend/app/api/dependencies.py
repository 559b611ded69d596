"""API Dependencies — bearer authentication and project access checks.

Invariants:
    - A missing, malformed, expired or tampered token is 401
    - Tokens of deleted or deactivated users are rejected (401 / 403)
    - Project-scoped routes: unknown project 404, not owner and not admin 403
    - Malformed UUIDs are reported as 404, never 500

Design Decisions:
    - HTTPBearer(auto_error=False) so missing credentials go through AuthenticationError
      and keep the standard error envelope
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.date_ranges import resolve_date_range
from app.core.errors import AuthenticationError, PermissionDeniedError, ResourceNotFoundError
from app.infrastructure.database import get_db
from app.infrastructure.security import decode_access_token
from app.models.project import Project
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def parse_uuid(value: str, resource_type: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ResourceNotFoundError(resource_type, str(value))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    payload = decode_access_token(credentials.credentials)
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError("Invalid authentication token")
    user = await db.get(User, user_id)
    if not user:
        raise AuthenticationError("User no longer exists")
    if not user.is_active:
        raise PermissionDeniedError("Account is deactivated")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return user


async def get_project_or_404(project_id: str, db: AsyncSession) -> Project:
    project = await db.get(Project, parse_uuid(project_id, "Project"))
    if not project:
        raise ResourceNotFoundError("Project", project_id)
    return project


def ensure_project_access(project: Project, user: User) -> None:
    if not user.is_admin and project.user_id != user.id:
        raise PermissionDeniedError("Access denied")


async def get_accessible_project(
    project_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Path dependency for /projects/{project_id}/... routes."""
    project = await get_project_or_404(project_id, db)
    ensure_project_access(project, user)
    return project


# ─── Report query parameters ────────────────────────────────────

@dataclass(frozen=True)
class ReportQuery:
    period: str | None
    date_from: str | None
    date_to: str | None
    exclude_bots: bool
    exclude_internal: bool

    def window(self, default_period: str | None = None):
        return resolve_date_range(self.period or default_period, self.date_from, self.date_to)


def report_query(
    period: str | None = Query(None),
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    exclude_bots: bool = Query(False, alias="excludeBots"),
    exclude_internal: bool = Query(False, alias="excludeInternal"),
) -> ReportQuery:
    return ReportQuery(period, date_from, date_to, exclude_bots, exclude_internal)


async def get_project_child(db: AsyncSession, model, item_id: str, project: Project, resource_type: str):
    """Row of `model` by id that belongs to `project`, else 404."""
    item = await db.get(model, parse_uuid(item_id, resource_type))
    if not item or item.project_id != project.id:
        raise ResourceNotFoundError(resource_type, item_id)
    return item
