"""Consent ORM — per-project GDPR/PECR configuration and visitor consent records.

Invariants:
    - At most one ConsentSettings row per project (unique project_id)
    - consent_mode is one of: opt-in, opt-out, notice
    - ConsentRecord.ip_hash is a salted hash; raw IPs are never stored on consent rows

Design Decisions:
    - Booleans stored as Boolean columns: the banner config is served as JSON booleans
    - Absent settings row means defaults (core/consent_defaults.py), no eager insert
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Boolean, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class ConsentSettings(Base):
    """Banner behavior and data-processing switches for one project."""
    __tablename__ = "consent_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    consent_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="opt-in")
    anonymize_ip: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    respect_dnt: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    data_retention_days: Mapped[int] = mapped_column(Integer, nullable=False, default=365)
    cookieless_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    banner_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    banner_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    banner_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    banner_accept_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    banner_decline_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    banner_customise_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    banner_save_preferences_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    banner_position: Mapped[str] = mapped_column(String(20), nullable=False, default="bottom")
    banner_layout: Mapped[str] = mapped_column(String(20), nullable=False, default="bar")
    banner_theme: Mapped[str] = mapped_column(String(20), nullable=False, default="auto")
    banner_bg_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_text_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_btn_bg_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_btn_text_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_accept_bg_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_accept_text_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_border_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    banner_font_family: Mapped[str | None] = mapped_column(String(100), nullable=True)
    banner_font_size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    privacy_policy_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    granular_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category_analytics: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category_functional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category_performance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category_marketing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category_advertisement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category_personalization: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category_analytics_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_functional_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_performance_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_marketing_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_advertisement_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_personalization_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    show_cookie_list: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    consent_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    legal_basis: Mapped[str] = mapped_column(String(30), nullable=False, default="consent")
    jurisdiction: Mapped[str] = mapped_column(String(20), nullable=False, default="eu_uk")
    use_third_party_banner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    third_party_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )


class ConsentRecord(Base):
    """A single visitor's accept/decline decision."""
    __tablename__ = "consent_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    visitor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    consent_given: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    consent_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    ip_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    consent_version: Mapped[int | None] = mapped_column(Integer, nullable=True)
    categories_accepted: Mapped[str | None] = mapped_column(Text, nullable=True)
