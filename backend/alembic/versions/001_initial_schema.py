"""Initial schema — accounts, projects, events, analytics definitions, AI, billing and CMS.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def _project_fk(index: bool = True) -> sa.Column:
    return sa.Column(
        "project_id", UUID(as_uuid=True),
        sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=index,
    )


def _user_fk(**kwargs) -> sa.Column:
    return sa.Column(
        "user_id", UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, **kwargs,
    )


def upgrade() -> None:
    # ─── Accounts ───────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("username", sa.String(255), nullable=False, unique=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("subscription_tier", sa.String(50), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="inactive"),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "password_resets",
        _id(),
        _user_fk(),
        sa.Column("token", sa.String(128), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
    )

    op.create_table(
        "subscription_plans",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("price", sa.Float, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GBP"),
        sa.Column("project_limit", sa.Integer, nullable=False),
        sa.Column("features", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("stripe_price_id", sa.String(255), nullable=True),
        _created_at(),
    )

    # ─── Projects & events ──────────────────────────────────────
    op.create_table(
        "projects",
        _id(),
        _user_fk(index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("tracking_verified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("tracking_verified_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )

    op.create_table(
        "internal_ip_rules",
        _id(),
        _project_fk(),
        sa.Column("ip", sa.String(64), nullable=False),
        sa.Column("label", sa.String(255), nullable=True),
        sa.Column("rule_type", sa.String(10), nullable=False, server_default="exact"),
        _created_at(),
    )

    op.create_table(
        "events",
        _id(),
        _project_fk(index=False),
        sa.Column("visitor_id", sa.String(255), nullable=True, index=True),
        sa.Column("session_id", sa.String(255), nullable=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("page", sa.Text, nullable=True),
        sa.Column("referrer", sa.Text, nullable=True),
        sa.Column("device", sa.String(50), nullable=True),
        sa.Column("browser", sa.String(100), nullable=True),
        sa.Column("os", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column("region", sa.String(255), nullable=True),
        sa.Column("ip", sa.String(64), nullable=True),
        sa.Column("is_bot", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_internal", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_server", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("traffic_source", sa.String(50), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column(
            "timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_events_project_timestamp", "events", ["project_id", "timestamp"])

    # ─── Analytics definitions ──────────────────────────────────
    op.create_table(
        "funnels",
        _id(),
        _project_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("steps", sa.JSON, nullable=False),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "custom_reports",
        _id(),
        _project_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("metrics", sa.JSON, nullable=False),
        sa.Column("dimensions", sa.JSON, nullable=False),
        sa.Column("chart_type", sa.String(20), nullable=False, server_default="line"),
        sa.Column("date_range", sa.String(30), nullable=False, server_default="last_30_days"),
        sa.Column("filters", sa.JSON, nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "custom_event_definitions",
        _id(),
        _project_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(30), nullable=False, server_default="custom"),
        sa.Column("is_ai_built", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("rules", sa.JSON, nullable=False),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _created_at(),
        _updated_at(),
    )

    # ─── Privacy ────────────────────────────────────────────────
    op.create_table(
        "consent_settings",
        _id(),
        sa.Column(
            "project_id", UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column("consent_mode", sa.String(20), nullable=False, server_default="opt-in"),
        sa.Column("anonymize_ip", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("respect_dnt", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("data_retention_days", sa.Integer, nullable=False, server_default="365"),
        sa.Column("cookieless_mode", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("banner_enabled", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("banner_title", sa.Text, nullable=True),
        sa.Column("banner_message", sa.Text, nullable=True),
        sa.Column("banner_accept_text", sa.String(100), nullable=True),
        sa.Column("banner_decline_text", sa.String(100), nullable=True),
        sa.Column("banner_customise_text", sa.String(100), nullable=True),
        sa.Column("banner_save_preferences_text", sa.String(100), nullable=True),
        sa.Column("banner_position", sa.String(20), nullable=False, server_default="bottom"),
        sa.Column("banner_layout", sa.String(20), nullable=False, server_default="bar"),
        sa.Column("banner_theme", sa.String(20), nullable=False, server_default="auto"),
        sa.Column("banner_bg_color", sa.String(30), nullable=True),
        sa.Column("banner_text_color", sa.String(30), nullable=True),
        sa.Column("banner_btn_bg_color", sa.String(30), nullable=True),
        sa.Column("banner_btn_text_color", sa.String(30), nullable=True),
        sa.Column("banner_accept_bg_color", sa.String(30), nullable=True),
        sa.Column("banner_accept_text_color", sa.String(30), nullable=True),
        sa.Column("banner_border_color", sa.String(30), nullable=True),
        sa.Column("banner_font_family", sa.String(100), nullable=True),
        sa.Column("banner_font_size", sa.String(20), nullable=True),
        sa.Column("privacy_policy_url", sa.Text, nullable=True),
        sa.Column("granular_consent", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("category_analytics", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("category_functional", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("category_performance", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("category_marketing", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("category_advertisement", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("category_personalization", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("category_analytics_desc", sa.Text, nullable=True),
        sa.Column("category_functional_desc", sa.Text, nullable=True),
        sa.Column("category_performance_desc", sa.Text, nullable=True),
        sa.Column("category_marketing_desc", sa.Text, nullable=True),
        sa.Column("category_advertisement_desc", sa.Text, nullable=True),
        sa.Column("category_personalization_desc", sa.Text, nullable=True),
        sa.Column("show_cookie_list", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("consent_version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("legal_basis", sa.String(30), nullable=False, server_default="consent"),
        sa.Column("jurisdiction", sa.String(20), nullable=False, server_default="eu_uk"),
        sa.Column("use_third_party_banner", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("third_party_provider", sa.String(50), nullable=True),
        _updated_at(),
    )

    op.create_table(
        "consent_records",
        _id(),
        _project_fk(),
        sa.Column("visitor_id", sa.String(255), nullable=False, index=True),
        sa.Column("consent_given", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "consent_timestamp", sa.DateTime(timezone=True), nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("ip_hash", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("consent_version", sa.Integer, nullable=True),
        sa.Column("categories_accepted", sa.Text, nullable=True),
    )

    # ─── AI ─────────────────────────────────────────────────────
    op.create_table(
        "ai_reports",
        _id(),
        _project_fk(index=False),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("prompt", sa.Text, nullable=True),
        sa.Column("result", sa.JSON, nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        _created_at(),
    )
    op.create_index("ix_ai_reports_project_kind", "ai_reports", ["project_id", "kind"])

    op.create_table(
        "ai_usage_logs",
        _id(),
        _user_fk(),
        sa.Column("feature", sa.String(50), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("input_tokens", sa.Integer, nullable=False, server_default="0"),
        sa.Column("output_tokens", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cost_usd", sa.Float, nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_ai_usage_logs_user_created", "ai_usage_logs", ["user_id", "created_at"])

    # ─── Billing ────────────────────────────────────────────────
    op.create_table(
        "stripe_customers",
        _id(),
        _user_fk(unique=True),
        sa.Column("stripe_customer_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        _created_at(),
    )

    op.create_table(
        "invoices",
        _id(),
        _user_fk(index=True),
        sa.Column("stripe_invoice_id", sa.String(255), nullable=True),
        sa.Column("amount_usd", sa.Float, nullable=False),
        sa.Column("amount_gbp", sa.Float, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )

    # ─── CMS ────────────────────────────────────────────────────
    op.create_table(
        "site_settings",
        _id(),
        sa.Column("site_name", sa.String(255), nullable=False, server_default="My User Journey"),
        sa.Column("site_tagline", sa.String(255), nullable=True),
        sa.Column("logo_url", sa.Text, nullable=True),
        sa.Column("favicon_url", sa.Text, nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("footer_text", sa.Text, nullable=True),
        sa.Column("primary_color", sa.String(30), nullable=True),
        sa.Column("custom_css", sa.Text, nullable=True),
        sa.Column("custom_header_scripts", sa.Text, nullable=True),
        sa.Column("custom_footer_scripts", sa.Text, nullable=True),
        sa.Column("social_twitter", sa.Text, nullable=True),
        sa.Column("social_linkedin", sa.Text, nullable=True),
        sa.Column("social_github", sa.Text, nullable=True),
        sa.Column("google_analytics_id", sa.String(100), nullable=True),
        sa.Column("google_tag_manager_id", sa.String(100), nullable=True),
        sa.Column("google_search_console_code", sa.String(255), nullable=True),
        sa.Column("google_ads_id", sa.String(100), nullable=True),
        sa.Column("google_ads_conversion_label", sa.String(100), nullable=True),
        sa.Column("facebook_pixel_id", sa.String(100), nullable=True),
        sa.Column("facebook_conversions_api_token", sa.Text, nullable=True),
        sa.Column("microsoft_ads_id", sa.String(100), nullable=True),
        sa.Column("tiktok_pixel_id", sa.String(100), nullable=True),
        sa.Column("linkedin_insight_tag_id", sa.String(100), nullable=True),
        sa.Column("pinterest_tag_id", sa.String(100), nullable=True),
        sa.Column("snapchat_pixel_id", sa.String(100), nullable=True),
        sa.Column("twitter_pixel_id", sa.String(100), nullable=True),
        sa.Column("bing_verification_code", sa.String(255), nullable=True),
        sa.Column("yandex_verification_code", sa.String(255), nullable=True),
        sa.Column("hotjar_site_id", sa.String(100), nullable=True),
        sa.Column("clarity_project_id", sa.String(100), nullable=True),
        sa.Column("custom_tracking_head", sa.Text, nullable=True),
        sa.Column("custom_tracking_body", sa.Text, nullable=True),
        _updated_at(),
    )

    op.create_table(
        "cms_pages",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.Text, nullable=True),
        sa.Column("og_image", sa.Text, nullable=True),
        sa.Column("custom_scripts", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("show_in_nav", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "contact_submissions",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("subject", sa.String(255), nullable=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        _created_at(),
    )


def downgrade() -> None:
    for table in (
        "contact_submissions", "cms_pages", "site_settings",
        "invoices", "stripe_customers", "ai_usage_logs", "ai_reports",
        "consent_records", "consent_settings", "custom_event_definitions",
        "custom_reports", "funnels", "events", "internal_ip_rules",
        "projects", "subscription_plans", "password_resets", "users",
    ):
        op.drop_table(table)
