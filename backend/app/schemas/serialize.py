"""Response Serializers — ORM rows to camelCase JSON dicts.

Invariants:
    - password_hash and Stripe tokens are never serialised
    - UUIDs become strings, datetimes ISO-8601
    - One function per model so every route returns the same shape
"""

from datetime import datetime

from app.core.consent_defaults import to_camel
from app.core.date_ranges import ensure_utc


def iso(dt: datetime | None) -> str | None:
    return ensure_utc(dt).isoformat() if dt else None


def user_out(user) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "isActive": user.is_active,
        "subscriptionTier": user.subscription_tier,
        "subscriptionStatus": user.subscription_status,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "createdAt": iso(user.created_at),
    }


def project_out(project) -> dict:
    return {
        "id": str(project.id),
        "userId": str(project.user_id),
        "name": project.name,
        "domain": project.domain,
        "description": project.description,
        "status": project.status,
        "trackingVerified": project.tracking_verified,
        "trackingVerifiedAt": iso(project.tracking_verified_at),
        "createdAt": iso(project.created_at),
    }


def plan_out(plan) -> dict:
    return {
        "id": str(plan.id),
        "name": plan.name,
        "slug": plan.slug,
        "price": plan.price,
        "currency": plan.currency,
        "projectLimit": plan.project_limit,
        "features": plan.features or [],
        "isActive": plan.is_active,
        "sortOrder": plan.sort_order,
        "stripePriceId": plan.stripe_price_id,
    }


def ip_rule_out(rule) -> dict:
    return {
        "id": str(rule.id),
        "projectId": str(rule.project_id),
        "ip": rule.ip,
        "label": rule.label,
        "ruleType": rule.rule_type,
        "createdAt": iso(rule.created_at),
    }


def funnel_out(funnel) -> dict:
    return {
        "id": str(funnel.id),
        "projectId": str(funnel.project_id),
        "name": funnel.name,
        "description": funnel.description,
        "steps": funnel.steps or [],
        "createdAt": iso(funnel.created_at),
        "updatedAt": iso(funnel.updated_at),
    }


def custom_event_out(definition) -> dict:
    return {
        "id": str(definition.id),
        "projectId": str(definition.project_id),
        "name": definition.name,
        "description": definition.description,
        "category": definition.category,
        "isAiBuilt": definition.is_ai_built,
        "rules": definition.rules or [],
        "color": definition.color,
        "status": definition.status,
        "createdAt": iso(definition.created_at),
        "updatedAt": iso(definition.updated_at),
    }


def custom_report_out(report) -> dict:
    return {
        "id": str(report.id),
        "projectId": str(report.project_id),
        "name": report.name,
        "description": report.description,
        "metrics": report.metrics or [],
        "dimensions": report.dimensions or [],
        "chartType": report.chart_type,
        "dateRange": report.date_range,
        "filters": report.filters,
        "createdAt": iso(report.created_at),
        "updatedAt": iso(report.updated_at),
    }


def consent_record_out(record) -> dict:
    return {
        "id": str(record.id),
        "visitorId": record.visitor_id,
        "consentGiven": record.consent_given,
        "consentTimestamp": iso(record.consent_timestamp),
        "ipHash": record.ip_hash,
        "userAgent": record.user_agent,
        "consentVersion": record.consent_version,
        "categoriesAccepted": record.categories_accepted,
    }


def ai_report_out(report) -> dict:
    return {
        "id": str(report.id),
        "projectId": str(report.project_id),
        "kind": report.kind,
        "prompt": report.prompt,
        "result": report.result or {},
        "summary": report.summary,
        "status": report.status,
        "createdAt": iso(report.created_at),
    }


def usage_log_out(log) -> dict:
    return {
        "id": str(log.id),
        "userId": str(log.user_id),
        "feature": log.feature,
        "model": log.model,
        "inputTokens": log.input_tokens,
        "outputTokens": log.output_tokens,
        "costUsd": log.cost_usd,
        "createdAt": iso(log.created_at),
    }


def invoice_out(invoice) -> dict:
    return {
        "id": str(invoice.id),
        "stripeInvoiceId": invoice.stripe_invoice_id,
        "amountUsd": invoice.amount_usd,
        "amountGbp": invoice.amount_gbp,
        "status": invoice.status,
        "periodStart": iso(invoice.period_start),
        "periodEnd": iso(invoice.period_end),
        "paidAt": iso(invoice.paid_at),
        "createdAt": iso(invoice.created_at),
    }


def cms_page_out(page) -> dict:
    return {
        "id": str(page.id),
        "title": page.title,
        "slug": page.slug,
        "content": page.content,
        "metaTitle": page.meta_title,
        "metaDescription": page.meta_description,
        "ogImage": page.og_image,
        "customScripts": page.custom_scripts,
        "status": page.status,
        "sortOrder": page.sort_order,
        "showInNav": page.show_in_nav,
        "createdAt": iso(page.created_at),
        "updatedAt": iso(page.updated_at),
    }


_PRIVATE_SITE_FIELDS = ("id", "facebook_conversions_api_token")


def site_settings_out(row, public: bool = False) -> dict:
    """All columns camelCased; the public variant drops server-side secrets."""
    data = {}
    for column in row.__table__.columns:
        name = column.key
        if name == "updated_at":
            data["updatedAt"] = iso(row.updated_at)
            continue
        if public and name in _PRIVATE_SITE_FIELDS:
            continue
        value = getattr(row, name)
        data[to_camel(name)] = str(value) if name == "id" else value
    return data


def contact_out(submission) -> dict:
    return {
        "id": str(submission.id),
        "name": submission.name,
        "email": submission.email,
        "subject": submission.subject,
        "message": submission.message,
        "status": submission.status,
        "createdAt": iso(submission.created_at),
    }
