"""Analytics Schemas — funnels, custom events, custom reports and AI prompts.

Invariants:
    - Funnel steps carry a known type and a non-empty value
    - Custom event rules use known fields (or metadata.*) and known operators
    - Report metrics and dimensions come from the closed vocabularies in core/
"""

from pydantic import Field, field_validator

from app.core.custom_report_data import DIMENSIONS, METRICS
from app.core.domain_types import FunnelStepType, RuleOperator
from app.core.rule_matching import RULE_FIELDS
from app.schemas.base import CamelModel


class FunnelStep(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    type: FunnelStepType
    value: str = Field(min_length=1, max_length=2000)


class FunnelCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    steps: list[FunnelStep] = Field(default_factory=list, max_length=20)


class FunnelUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    steps: list[FunnelStep] | None = Field(None, max_length=20)


class EventRule(CamelModel):
    field: str = Field(min_length=1, max_length=100)
    operator: RuleOperator
    value: str = Field("", max_length=2000)

    @field_validator("field")
    @classmethod
    def known_field(cls, v: str) -> str:
        if v not in RULE_FIELDS and not v.startswith("metadata."):
            raise ValueError(f"unknown rule field '{v}'")
        return v


_CATEGORY_PATTERN = r"^(conversion|lead|purchase|engagement|custom)$"


class CustomEventCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    category: str = Field("custom", pattern=_CATEGORY_PATTERN)
    rules: list[EventRule] = Field(min_length=1, max_length=20)
    color: str | None = Field(None, max_length=20)
    status: str = Field("active", pattern=r"^(active|paused)$")


class CustomEventUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    category: str | None = Field(None, pattern=_CATEGORY_PATTERN)
    rules: list[EventRule] | None = Field(None, min_length=1, max_length=20)
    color: str | None = Field(None, max_length=20)
    status: str | None = Field(None, pattern=r"^(active|paused)$")


class TemplateRequest(CamelModel):
    template: str = Field(min_length=1, max_length=50)


def _check_vocabulary(values: list[str] | None, allowed: tuple, label: str):
    if values is None:
        return values
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise ValueError(f"unknown {label}: {', '.join(unknown)}")
    return values


class CustomReportCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    metrics: list[str] = Field(min_length=1)
    dimensions: list[str] = Field(default_factory=lambda: ["date"])
    chart_type: str = Field("line", pattern=r"^(line|bar|pie|area|table)$")
    date_range: str = Field("last_30_days", max_length=30)
    filters: dict | None = None

    @field_validator("metrics")
    @classmethod
    def known_metrics(cls, v: list[str]) -> list[str]:
        return _check_vocabulary(v, METRICS, "metrics")

    @field_validator("dimensions")
    @classmethod
    def known_dimensions(cls, v: list[str]) -> list[str]:
        return _check_vocabulary(v, DIMENSIONS, "dimensions")


class CustomReportUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    metrics: list[str] | None = Field(None, min_length=1)
    dimensions: list[str] | None = None
    chart_type: str | None = Field(None, pattern=r"^(line|bar|pie|area|table)$")
    date_range: str | None = Field(None, max_length=30)
    filters: dict | None = None

    @field_validator("metrics")
    @classmethod
    def known_metrics(cls, v: list[str] | None) -> list[str] | None:
        return _check_vocabulary(v, METRICS, "metrics")

    @field_validator("dimensions")
    @classmethod
    def known_dimensions(cls, v: list[str] | None) -> list[str] | None:
        return _check_vocabulary(v, DIMENSIONS, "dimensions")


class PromptRequest(CamelModel):
    """Free-text prompt for AI and keyword-parsed features."""
    prompt: str = Field(min_length=1, max_length=5000)

    @field_validator("prompt")
    @classmethod
    def strip_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("prompt cannot be empty or whitespace")
        return v


class OptionalPromptRequest(CamelModel):
    prompt: str | None = Field(None, max_length=5000)
    domain: str | None = Field(None, max_length=255)


class ChatRequest(PromptRequest):
    page_context: str | None = Field(None, max_length=50)
    project_id: str | None = None
