"""Custom Event Templates — built-in lead / purchase / signup / download definitions.

Invariants:
    - Template keys are stable API values: lead, purchase, signup, download
    - Every template yields at least one rule and is marked AI-built
"""

from copy import deepcopy

TEMPLATES: dict[str, dict] = {
    "lead": {
        "name": "Lead",
        "description": (
            "Auto-detected lead events: form submissions that indicate user interest "
            "(contact forms, signup forms, demo requests)"
        ),
        "category": "lead",
        "color": "#10b981",
        "rules": [
            {"field": "eventType", "operator": "equals", "value": "form_submit"},
        ],
    },
    "purchase": {
        "name": "Purchase",
        "description": (
            "Auto-detected purchase events: form submissions on checkout, payment, or order pages"
        ),
        "category": "purchase",
        "color": "#8b5cf6",
        "rules": [
            {"field": "eventType", "operator": "equals", "value": "form_submit"},
            {
                "field": "page", "operator": "contains_any",
                "value": "checkout,purchase,order,payment,buy,cart/complete,thank-you,confirmation",
            },
        ],
    },
    "signup": {
        "name": "Sign Up",
        "description": (
            "Auto-detected signup events: form submissions on registration, signup, "
            "or create account pages"
        ),
        "category": "lead",
        "color": "#3b82f6",
        "rules": [
            {"field": "eventType", "operator": "equals", "value": "form_submit"},
            {
                "field": "page", "operator": "contains_any",
                "value": "signup,register,create-account,join,onboard",
            },
        ],
    },
    "download": {
        "name": "Download",
        "description": "Auto-detected download events: clicks on download links or pages",
        "category": "custom",
        "color": "#f59e0b",
        "rules": [
            {"field": "eventType", "operator": "equals", "value": "click"},
            {
                "field": "page", "operator": "contains_any",
                "value": "download,get-started,free-trial",
            },
        ],
    },
}


def get_template(key: str) -> dict | None:
    template = TEMPLATES.get(key)
    return deepcopy(template) if template else None


def available_templates() -> str:
    return ", ".join(TEMPLATES)
