"""CMS ORM — marketing site settings, content pages, and contact form submissions.

Invariants:
    - SiteSettings is a singleton: readers take the first row, writers upsert it
    - CmsPage.slug is unique; only status == "published" pages are public
    - ContactSubmission.status is one of: new, read, replied, archived

Design Decisions:
    - Tracking IDs live as plain columns on SiteSettings: the snippet builder reads them
      by name (core/tracking_codes.py)
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Integer, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class SiteSettings(Base):
    __tablename__ = "site_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    site_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default="My User Journey",
    )
    site_tagline: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default="AI-Powered Analytics",
    )
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    favicon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    footer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    custom_css: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_header_scripts: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_footer_scripts: Mapped[str | None] = mapped_column(Text, nullable=True)
    social_twitter: Mapped[str | None] = mapped_column(Text, nullable=True)
    social_linkedin: Mapped[str | None] = mapped_column(Text, nullable=True)
    social_github: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Tracking integrations
    google_analytics_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    google_tag_manager_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    google_search_console_code: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_ads_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    google_ads_conversion_label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    facebook_pixel_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    facebook_conversions_api_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    microsoft_ads_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tiktok_pixel_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    linkedin_insight_tag_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pinterest_tag_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    snapchat_pixel_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    twitter_pixel_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bing_verification_code: Mapped[str | None] = mapped_column(String(255), nullable=True)
    yandex_verification_code: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hotjar_site_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    clarity_project_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    custom_tracking_head: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_tracking_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )


class CmsPage(Base):
    __tablename__ = "cms_pages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    meta_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    og_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_scripts: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    show_in_nav: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
