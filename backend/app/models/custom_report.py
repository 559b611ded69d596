"""CustomReport ORM — a saved metrics-by-dimension report definition.

Invariants:
    - metrics and dimensions are JSON string lists (first dimension is the primary one)
    - date_range is a period key understood by core/date_ranges.py
    - filters is a JSON object (excludeBots, excludeInternal, eventType, device, country, page)
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class CustomReport(Base):
    __tablename__ = "custom_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    metrics: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    dimensions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    chart_type: Mapped[str] = mapped_column(String(20), nullable=False, default="line")
    date_range: Mapped[str] = mapped_column(
        String(30), nullable=False, default="last_30_days",
    )
    filters: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )
