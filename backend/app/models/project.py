"""Project ORM — a tenant's tracked website and its internal-traffic rules.

Invariants:
    - id doubles as the public snippet ID embedded in the tracking script
    - domain is stored as entered; comparisons strip "www." and lowercase
    - tracking_verified_at is set only when tracking_verified flips to True
    - InternalIpRule.rule_type is one of: exact, prefix, cidr

Design Decisions:
    - Project-scoped rows reference projects.id with ON DELETE CASCADE, and the
      delete service also removes them explicitly (ADR: sqlite test DB has FKs off)
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class Project(Base):
    """Tracked website owned by a user."""
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    tracking_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    tracking_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )


class InternalIpRule(Base):
    """Marks traffic from an address (or range) as internal."""
    __tablename__ = "internal_ip_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    ip: Mapped[str] = mapped_column(String(64), nullable=False)
    label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rule_type: Mapped[str] = mapped_column(String(10), nullable=False, default="exact")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
