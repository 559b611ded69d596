"""Privacy Schemas — consent settings, internal IP rules and data purges.

Invariants:
    - Consent updates are partial: only fields sent are written
    - Retention and purge windows are at least one day
    - CIDR rules are validated before they are stored
"""

from pydantic import Field, model_validator

from app.core.domain_types import ConsentMode, IpRuleType
from app.core.ip_privacy import validate_cidr
from app.schemas.base import CamelModel


class ConsentSettingsUpdate(CamelModel):
    consent_mode: ConsentMode | None = None
    anonymize_ip: bool | None = None
    respect_dnt: bool | None = None
    data_retention_days: int | None = Field(None, ge=1, le=3650)
    cookieless_mode: bool | None = None

    banner_enabled: bool | None = None
    banner_title: str | None = Field(None, max_length=255)
    banner_message: str | None = Field(None, max_length=5000)
    banner_accept_text: str | None = Field(None, max_length=100)
    banner_decline_text: str | None = Field(None, max_length=100)
    banner_customise_text: str | None = Field(None, max_length=100)
    banner_save_preferences_text: str | None = Field(None, max_length=100)
    banner_position: str | None = Field(None, max_length=20)
    banner_layout: str | None = Field(None, max_length=20)
    banner_theme: str | None = Field(None, max_length=20)
    banner_bg_color: str | None = Field(None, max_length=20)
    banner_text_color: str | None = Field(None, max_length=20)
    banner_btn_bg_color: str | None = Field(None, max_length=20)
    banner_btn_text_color: str | None = Field(None, max_length=20)
    banner_accept_bg_color: str | None = Field(None, max_length=20)
    banner_accept_text_color: str | None = Field(None, max_length=20)
    banner_border_color: str | None = Field(None, max_length=20)
    banner_font_family: str | None = Field(None, max_length=100)
    banner_font_size: str | None = Field(None, max_length=20)
    privacy_policy_url: str | None = Field(None, max_length=2000)

    granular_consent: bool | None = None
    category_analytics: bool | None = None
    category_functional: bool | None = None
    category_performance: bool | None = None
    category_marketing: bool | None = None
    category_advertisement: bool | None = None
    category_personalization: bool | None = None
    category_analytics_desc: str | None = Field(None, max_length=2000)
    category_functional_desc: str | None = Field(None, max_length=2000)
    category_performance_desc: str | None = Field(None, max_length=2000)
    category_marketing_desc: str | None = Field(None, max_length=2000)
    category_advertisement_desc: str | None = Field(None, max_length=2000)
    category_personalization_desc: str | None = Field(None, max_length=2000)
    show_cookie_list: bool | None = None
    consent_version: int | None = Field(None, ge=1)

    legal_basis: str | None = Field(None, max_length=50)
    jurisdiction: str | None = Field(None, max_length=50)
    use_third_party_banner: bool | None = None
    third_party_provider: str | None = Field(None, max_length=50)

    def changes(self) -> dict:
        data = super().changes()
        if isinstance(data.get("consent_mode"), ConsentMode):
            data["consent_mode"] = data["consent_mode"].value
        return data


class IpRuleCreate(CamelModel):
    ip: str = Field(min_length=1, max_length=100)
    label: str | None = Field(None, max_length=255)
    rule_type: IpRuleType = IpRuleType.EXACT

    @model_validator(mode="after")
    def check_cidr(self):
        self.ip = self.ip.strip()
        if self.rule_type == IpRuleType.CIDR and not validate_cidr(self.ip):
            raise ValueError("Invalid CIDR notation (e.g. 192.168.1.0/24)")
        return self


class IpRuleUpdate(CamelModel):
    ip: str | None = Field(None, min_length=1, max_length=100)
    label: str | None = Field(None, max_length=255)
    rule_type: IpRuleType | None = None


class PurgeRequest(CamelModel):
    days: int | None = Field(None, ge=1, le=3650)
