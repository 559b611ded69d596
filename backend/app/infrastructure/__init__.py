"""Adapters — database sessions, Anthropic, Stripe, SMTP, geo lookup, page fetching and logging.

Invariants:
    - Adapters depend on core/errors and config only
    - Each outbound call maps its library's failures onto AnalyticsError subclasses
"""
