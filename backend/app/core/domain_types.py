"""Domain Types — closed vocabularies shared by models, schemas and core logic.

Invariants:
    - All closed vocabularies encoded as Enums — no raw string matching
    - Enum values are the exact strings stored in the database and sent over the API

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class TrafficSource(str, Enum):
    """Channel a visit is attributed to at ingestion time."""
    DIRECT = "direct"
    ORGANIC_SEARCH = "organic_search"
    SOCIAL = "social"
    EMAIL = "email"
    PAID_SEARCH = "paid_search"
    PAID_SOCIAL = "paid_social"
    DISPLAY = "display"
    AFFILIATE = "affiliate"
    INTERNAL = "internal"
    REFERRAL = "referral"


class FunnelStepType(str, Enum):
    PAGEVIEW = "pageview"
    EVENT = "event"
    CLICK = "click"


class RuleOperator(str, Enum):
    """Operators a custom event rule may use."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    CONTAINS_ANY = "contains_any"
    REGEX = "regex"


class IpRuleType(str, Enum):
    EXACT = "exact"
    PREFIX = "prefix"
    CIDR = "cidr"


class ConsentMode(str, Enum):
    OPT_IN = "opt-in"
    OPT_OUT = "opt-out"
    NOTICE = "notice"


class ComparePeriod(str, Enum):
    """Window granularity for analytics/compare."""
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL = "all"


class AIReportKind(str, Enum):
    """Stored AI analysis kinds — maps to ai_reports.kind."""
    PREDICTIVE = "predictive"
    UX_AUDIT = "ux_audit"
    MARKETING_COPILOT = "marketing_copilot"
    CONTENT_GAP = "content_gap"


class AIFeature(str, Enum):
    """Feature names recorded on ai_usage_logs."""
    CHAT = "ai-chat"
    FUNNEL_GENERATION = "ai-funnel-generation"
    REPORT_INSIGHTS = "report-insights"
    PREDICTIVE = "predictive-analytics"
    UX_AUDIT = "ux-audit"
    MARKETING_COPILOT = "marketing-copilot"
    CONTENT_GAP = "content-gap-analysis"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"
