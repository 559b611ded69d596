"""Tests for consent defaults and the snippet banner config."""

from types import SimpleNamespace

from app.core.consent_defaults import (
    CONSENT_DEFAULTS, CONSENT_FIELDS, consent_config, effective_consent, to_camel,
)


def test_defaults_when_no_row():
    consent = effective_consent(None)
    assert consent["consent_mode"] == "opt-in"
    assert consent["anonymize_ip"] is True
    assert consent["respect_dnt"] is True
    assert consent["data_retention_days"] == 365
    assert consent["cookieless_mode"] is False


def test_defaults_are_copied():
    effective_consent(None)["consent_mode"] = "disabled"
    assert CONSENT_DEFAULTS["consent_mode"] == "opt-in"


def test_stored_row_wins():
    row = SimpleNamespace(**{**CONSENT_DEFAULTS, "consent_mode": "opt-out", "id": "internal"})
    consent = effective_consent(row)
    assert consent["consent_mode"] == "opt-out"
    assert "id" not in consent
    assert set(consent) == set(CONSENT_FIELDS)


def test_banner_config_is_camel_case():
    config = consent_config(None)
    assert config["bannerSavePreferencesText"] == "Save My Preferences"
    assert config["useThirdPartyBanner"] is False
    assert to_camel("category_analytics_desc") == "categoryAnalyticsDesc"
