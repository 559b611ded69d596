"""AIReport ORM — stored output of one AI analysis run (predictive, UX audit, copilot, content gap).

Invariants:
    - kind is one of the AIReportKind values (core/domain_types.py)
    - result holds the validated JSON document returned by the model
    - prompt is only set for kinds that take user input (marketing copilot, content gap)

Design Decisions:
    - One table with a kind discriminator over four near-identical tables
      (ADR: identical lifecycle: run, list, delete)
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class AIReport(Base):
    __tablename__ = "ai_reports"
    __table_args__ = (
        Index("ix_ai_reports_project_kind", "project_id", "kind"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
