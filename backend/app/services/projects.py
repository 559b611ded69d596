"""Projects — plan-limited creation, ownership transfer and cascading delete.

Invariants:
    - A user's plan is the subscription plan whose slug equals user.subscription_tier
    - project_limit <= 0 means unlimited; admins are never limited
    - Deleting a project removes every project-scoped row in the same transaction

Design Decisions:
    - Cascade is explicit rather than ON DELETE CASCADE only: sqlite (tests, local dev)
      does not enforce foreign keys by default (ADR: identical behaviour on both engines)
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PermissionDeniedError, PlanLimitError, ResourceNotFoundError, ValidationFailedError
from app.models.ai_report import AIReport
from app.models.consent import ConsentRecord, ConsentSettings
from app.models.custom_event_definition import CustomEventDefinition
from app.models.custom_report import CustomReport
from app.models.event import Event
from app.models.funnel import Funnel
from app.models.project import InternalIpRule, Project
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.services.accounts import get_user_by_email

logger = logging.getLogger(__name__)

PROJECT_SCOPED_MODELS = (
    Event, InternalIpRule, Funnel, CustomReport, CustomEventDefinition,
    ConsentSettings, ConsentRecord, AIReport,
)


async def plan_for(db: AsyncSession, user: User) -> SubscriptionPlan | None:
    result = await db.execute(
        select(SubscriptionPlan).where(SubscriptionPlan.slug == user.subscription_tier)
    )
    return result.scalar_one_or_none()


async def enforce_project_limit(db: AsyncSession, user: User) -> None:
    if user.is_admin:
        return
    plan = await plan_for(db, user)
    if not plan or plan.project_limit <= 0:
        return
    count = (await db.execute(
        select(func.count()).select_from(Project).where(Project.user_id == user.id)
    )).scalar_one()
    if count >= plan.project_limit:
        raise PlanLimitError(plan.name, plan.project_limit)


async def create_project(db: AsyncSession, user: User, fields: dict) -> Project:
    await enforce_project_limit(db, user)
    project = Project(user_id=user.id, **fields)
    db.add(project)
    await db.flush()
    logger.info(f"Project created: {project.name}", extra={"project_id": str(project.id)})
    return project


async def transfer_project(db: AsyncSession, project: Project, actor: User, email: str) -> Project:
    if not actor.is_admin and project.user_id != actor.id:
        raise PermissionDeniedError("Only the project owner can transfer ownership")
    new_owner = await get_user_by_email(db, email)
    if not new_owner:
        raise ResourceNotFoundError("User", email)
    if new_owner.id == project.user_id:
        raise ValidationFailedError("This user already owns the project", field="email")
    project.user_id = new_owner.id
    logger.info(
        f"Project transferred to {new_owner.username}",
        extra={"project_id": str(project.id), "user_id": str(actor.id)},
    )
    return project


async def delete_project(db: AsyncSession, project: Project) -> None:
    for model in PROJECT_SCOPED_MODELS:
        await db.execute(delete(model).where(model.project_id == project.id))
    await db.delete(project)
    logger.info("Project deleted", extra={"project_id": str(project.id)})
