"""Admin Schemas — user management, plans, CMS pages, site settings and contact form."""

from pydantic import EmailStr, Field, field_validator

from app.core.domain_types import UserRole
from app.core.tracking_codes import TRACKING_SETTING_KEYS
from app.schemas.auth import MIN_PASSWORD_LENGTH
from app.schemas.base import CamelModel


# ─── Users ──────────────────────────────────────────────────────

class AdminUserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)
    username: str | None = Field(None, min_length=1, max_length=255)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    role: UserRole = UserRole.USER
    subscription_tier: str = Field("free", max_length=50)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class AdminUserUpdate(CamelModel):
    role: UserRole | None = None
    is_active: bool | None = None
    subscription_tier: str | None = Field(None, max_length=50)
    subscription_status: str | None = Field(None, max_length=50)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    password: str | None = Field(None, min_length=MIN_PASSWORD_LENGTH, max_length=200)


# ─── Plans ──────────────────────────────────────────────────────

class PlanCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    price: float = Field(0.0, ge=0)
    currency: str = Field("GBP", min_length=3, max_length=3)
    project_limit: int = Field(1, ge=-1)
    features: list[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: int = 0
    stripe_price_id: str | None = Field(None, max_length=255)


class PlanUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    price: float | None = Field(None, ge=0)
    currency: str | None = Field(None, min_length=3, max_length=3)
    project_limit: int | None = Field(None, ge=-1)
    features: list[str] | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    stripe_price_id: str | None = Field(None, max_length=255)


# ─── CMS ────────────────────────────────────────────────────────

_PAGE_STATUS = r"^(published|draft)$"
_SLUG = r"^[a-z0-9-]+(/[a-z0-9-]+)*$"


class CmsPageCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=_SLUG)
    content: str = ""
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=1000)
    og_image: str | None = Field(None, max_length=2000)
    custom_scripts: str | None = None
    status: str = Field("draft", pattern=_PAGE_STATUS)
    sort_order: int = 0
    show_in_nav: bool = False


class CmsPageUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=_SLUG)
    content: str | None = None
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=1000)
    og_image: str | None = Field(None, max_length=2000)
    custom_scripts: str | None = None
    status: str | None = Field(None, pattern=_PAGE_STATUS)
    sort_order: int | None = None
    show_in_nav: bool | None = None


class SiteSettingsUpdate(CamelModel):
    """Site identity plus every tracking-code ID; unknown keys are ignored."""
    site_name: str | None = Field(None, min_length=1, max_length=255)
    site_tagline: str | None = Field(None, max_length=255)
    logo_url: str | None = None
    favicon_url: str | None = None
    contact_email: str | None = Field(None, max_length=320)
    footer_text: str | None = None
    primary_color: str | None = Field(None, max_length=30)
    custom_css: str | None = None
    custom_header_scripts: str | None = None
    custom_footer_scripts: str | None = None
    social_twitter: str | None = None
    social_linkedin: str | None = None
    social_github: str | None = None

    google_analytics_id: str | None = Field(None, max_length=100)
    google_tag_manager_id: str | None = Field(None, max_length=100)
    google_search_console_code: str | None = Field(None, max_length=255)
    google_ads_id: str | None = Field(None, max_length=100)
    google_ads_conversion_label: str | None = Field(None, max_length=100)
    facebook_pixel_id: str | None = Field(None, max_length=100)
    facebook_conversions_api_token: str | None = None
    microsoft_ads_id: str | None = Field(None, max_length=100)
    tiktok_pixel_id: str | None = Field(None, max_length=100)
    linkedin_insight_tag_id: str | None = Field(None, max_length=100)
    pinterest_tag_id: str | None = Field(None, max_length=100)
    snapchat_pixel_id: str | None = Field(None, max_length=100)
    twitter_pixel_id: str | None = Field(None, max_length=100)
    bing_verification_code: str | None = Field(None, max_length=255)
    yandex_verification_code: str | None = Field(None, max_length=255)
    hotjar_site_id: str | None = Field(None, max_length=100)
    clarity_project_id: str | None = Field(None, max_length=100)
    custom_tracking_head: str | None = None
    custom_tracking_body: str | None = None

    def touches_tracking(self) -> bool:
        return any(key in TRACKING_SETTING_KEYS for key in self.changes())


# ─── Contact ────────────────────────────────────────────────────

class ContactCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    subject: str | None = Field(None, max_length=255)
    message: str = Field(min_length=1, max_length=10000)


class ContactStatusUpdate(CamelModel):
    status: str = Field(pattern=r"^(new|read|replied|archived)$")
