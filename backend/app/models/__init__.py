"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Project is the tenant boundary; analytics rows are scoped by project_id
    - Billing rows (usage logs, invoices) are scoped by user_id

Design Decisions:
    - One file per aggregate for locality (ADR: max 3-4 files to understand a feature)
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs (ADR: standard SQLAlchemy pattern)
"""

from app.models.user import User, PasswordReset  # noqa: F401
from app.models.subscription_plan import SubscriptionPlan  # noqa: F401
from app.models.project import Project, InternalIpRule  # noqa: F401
from app.models.event import Event  # noqa: F401
from app.models.funnel import Funnel  # noqa: F401
from app.models.custom_report import CustomReport  # noqa: F401
from app.models.custom_event_definition import CustomEventDefinition  # noqa: F401
from app.models.consent import ConsentSettings, ConsentRecord  # noqa: F401
from app.models.ai_report import AIReport  # noqa: F401
from app.models.ai_usage_log import AIUsageLog  # noqa: F401
from app.models.billing import StripeCustomer, Invoice  # noqa: F401
from app.models.cms import SiteSettings, CmsPage, ContactSubmission  # noqa: F401
