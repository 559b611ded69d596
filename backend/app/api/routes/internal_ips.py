"""Internal IP Routes — per-project rules marking office or developer traffic.

Invariants:
    - rule_type is exact, prefix or cidr; cidr values must parse as a network
    - Rules apply to events ingested after they are saved; history is not rewritten
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_accessible_project, get_project_child
from app.core.domain_types import IpRuleType
from app.core.errors import ValidationFailedError
from app.core.ip_privacy import validate_cidr
from app.infrastructure.database import get_db
from app.models.project import InternalIpRule, Project
from app.schemas.privacy import IpRuleCreate, IpRuleUpdate
from app.schemas.serialize import ip_rule_out

router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["internal-ips"])


@router.get("/internal-ips")
async def list_rules(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(InternalIpRule)
        .where(InternalIpRule.project_id == project.id)
        .order_by(InternalIpRule.created_at)
    )
    return [ip_rule_out(r) for r in result.scalars().all()]


@router.post("/internal-ips", status_code=status.HTTP_201_CREATED)
async def create_rule(
    body: IpRuleCreate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    rule = InternalIpRule(
        project_id=project.id, ip=body.ip, label=body.label, rule_type=body.rule_type.value,
    )
    db.add(rule)
    await db.commit()
    await db.refresh(rule)
    return ip_rule_out(rule)


@router.patch("/internal-ips/{rule_id}")
async def update_rule(
    rule_id: str,
    body: IpRuleUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    rule = await get_project_child(db, InternalIpRule, rule_id, project, "Internal IP rule")
    changes = body.changes()
    if changes.get("ip") is not None:
        rule.ip = changes["ip"].strip()
    if "label" in changes:
        rule.label = changes["label"]
    if changes.get("rule_type") is not None:
        rule.rule_type = changes["rule_type"].value
    if rule.rule_type == IpRuleType.CIDR.value and not validate_cidr(rule.ip):
        raise ValidationFailedError("Invalid CIDR notation (e.g. 192.168.1.0/24)", field="ip")
    await db.commit()
    await db.refresh(rule)
    return ip_rule_out(rule)


@router.delete("/internal-ips/{rule_id}")
async def delete_rule(
    rule_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    rule = await get_project_child(db, InternalIpRule, rule_id, project, "Internal IP rule")
    await db.delete(rule)
    await db.commit()
    return {"message": "Internal IP rule deleted"}
