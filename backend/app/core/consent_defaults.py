"""Consent Defaults — effective consent settings when a project has none stored.

Invariants:
    - Defaults: opt-in, anonymize IP, respect DNT, 365-day retention, cookieless off
    - CONSENT_FIELDS lists every configurable column; upserts touch nothing else
    - The banner config served to the snippet never includes internal ids
"""

from typing import Any

from app.core.domain_types import ConsentMode

DEFAULT_BANNER_MESSAGE = (
    "We use cookies on our website to give you the most relevant experience."
)

CONSENT_DEFAULTS: dict[str, Any] = {
    "consent_mode": ConsentMode.OPT_IN.value,
    "anonymize_ip": True,
    "respect_dnt": True,
    "data_retention_days": 365,
    "cookieless_mode": False,
    "banner_enabled": True,
    "banner_title": "We value your privacy",
    "banner_message": DEFAULT_BANNER_MESSAGE,
    "banner_accept_text": "Accept All",
    "banner_decline_text": "Reject All",
    "banner_customise_text": "Customise",
    "banner_save_preferences_text": "Save My Preferences",
    "banner_position": "bottom",
    "banner_layout": "bar",
    "banner_theme": "auto",
    "banner_bg_color": None,
    "banner_text_color": None,
    "banner_btn_bg_color": None,
    "banner_btn_text_color": None,
    "banner_accept_bg_color": None,
    "banner_accept_text_color": None,
    "banner_border_color": None,
    "banner_font_family": None,
    "banner_font_size": None,
    "privacy_policy_url": None,
    "granular_consent": True,
    "category_analytics": True,
    "category_functional": False,
    "category_performance": False,
    "category_marketing": False,
    "category_advertisement": False,
    "category_personalization": False,
    "category_analytics_desc": None,
    "category_functional_desc": None,
    "category_performance_desc": None,
    "category_marketing_desc": None,
    "category_advertisement_desc": None,
    "category_personalization_desc": None,
    "show_cookie_list": True,
    "consent_version": 1,
    "legal_basis": "consent",
    "jurisdiction": "eu_uk",
    "use_third_party_banner": False,
    "third_party_provider": None,
}

CONSENT_FIELDS = tuple(CONSENT_DEFAULTS)


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def effective_consent(row: Any | None) -> dict[str, Any]:
    """snake_case settings dict: stored values when a row exists, defaults otherwise."""
    if row is None:
        return dict(CONSENT_DEFAULTS)
    return {name: getattr(row, name) for name in CONSENT_FIELDS}


def consent_config(row: Any | None) -> dict[str, Any]:
    """camelCase banner configuration for the public snippet endpoint."""
    return {to_camel(k): v for k, v in effective_consent(row).items()}
