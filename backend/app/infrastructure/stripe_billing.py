"""Stripe Billing — customers and send-invoice invoices for AI usage.

Invariants:
    - Every call requires a configured secret key (ServiceNotConfiguredError otherwise)
    - Amounts are sent to Stripe in integer cents (USD)
    - Invoices use collection_method=send_invoice and are finalised then sent
    - StripeError is mapped to ExternalServiceError; nothing is swallowed

Design Decisions:
    - The stripe SDK is synchronous: each call runs via asyncio.to_thread
    - Wrapper class mirrors ResilientAnthropicClient: routes never touch the SDK
"""

import asyncio
import logging
from datetime import datetime

import stripe

from app.config import get_settings
from app.core.errors import ExternalServiceError, ServiceNotConfiguredError

logger = logging.getLogger(__name__)


def feature_label(feature: str) -> str:
    """'ai-chat' -> 'Ai Chat'."""
    return feature.replace("-", " ").title()


class StripeBilling:
    """Thin async facade over the Stripe SDK for usage invoicing."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key if api_key is not None else get_settings().stripe_secret_key
        if not self.api_key:
            raise ServiceNotConfiguredError("Stripe")

    async def _call(self, fn, **params):
        try:
            return await asyncio.to_thread(fn, api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe error: {e}")
            raise ExternalServiceError("Stripe", e.user_message or str(e))

    async def create_customer(self, user_id: str, email: str) -> str:
        customer = await self._call(
            stripe.Customer.create, email=email, metadata={"userId": user_id},
        )
        logger.info(f"Created Stripe customer {customer.id}", extra={"user_id": user_id})
        return customer.id

    async def create_usage_invoice(
        self,
        customer_id: str,
        user_id: str,
        period_start: datetime,
        period_end: datetime,
        feature_breakdown: dict[str, dict],
    ) -> str:
        """Create, finalise and send an invoice with one line per AI feature."""
        settings = get_settings()
        invoice = await self._call(
            stripe.Invoice.create,
            customer=customer_id,
            collection_method="send_invoice",
            days_until_due=settings.invoice_days_until_due,
            description=(
                "My User Journey - AI Usage "
                f"({period_start:%d/%m/%Y} - {period_end:%d/%m/%Y})"
            ),
            metadata={
                "userId": user_id,
                "periodStart": period_start.isoformat(),
                "periodEnd": period_end.isoformat(),
            },
        )
        for feature, data in feature_breakdown.items():
            await self._call(
                stripe.InvoiceItem.create,
                customer=customer_id,
                invoice=invoice.id,
                description=f"{feature_label(feature)} ({data['calls']} requests)",
                amount=round(data["costUsd"] * 100),
                currency="usd",
            )
        await self._call(stripe.Invoice.finalize_invoice, invoice=invoice.id)
        await self._call(stripe.Invoice.send_invoice, invoice=invoice.id)
        logger.info(
            f"Sent Stripe invoice {invoice.id}",
            extra={"user_id": user_id, "invoice_id": invoice.id},
        )
        return invoice.id
