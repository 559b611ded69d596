"""Tracking Schemas — public payloads posted by the browser snippet.

Invariants:
    - Unknown keys are ignored (older snippets send extra fields)
    - consentGiven and dnt accept the loose encodings browsers send ("true", 1, "1")
"""

from typing import Any

from pydantic import Field

from app.schemas.base import CamelModel


class EventPayload(CamelModel):
    project_id: str | None = None
    visitor_id: str | None = Field(None, max_length=255)
    session_id: str | None = Field(None, max_length=255)
    event_type: str | None = Field(None, max_length=100)
    page: str | None = None
    hostname: str | None = Field(None, max_length=255)
    referrer: str | None = None
    device: str | None = Field(None, max_length=50)
    browser: str | None = Field(None, max_length=100)
    os: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=255)
    region: str | None = Field(None, max_length=255)
    user_agent: str | None = None
    consent_given: bool | str | None = None
    dnt: str | int | None = None
    metadata: dict[str, Any] | None = None

    @property
    def has_consent(self) -> bool:
        return self.consent_given is True or self.consent_given == "true"

    @property
    def wants_dnt(self) -> bool:
        return str(self.dnt) == "1" if self.dnt is not None else False


class ConsentPayload(CamelModel):
    project_id: str
    visitor_id: str = Field(min_length=1, max_length=255)
    consent_given: bool | str = False
    user_agent: str | None = None
    consent_version: int | None = None
    categories_accepted: str | None = None

    @property
    def given(self) -> bool:
        return self.consent_given is True or self.consent_given == "true"
