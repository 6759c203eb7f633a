"""Payment intent creation for event payments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

import stripe

from . import config

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntentResult:
    client_secret: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.client_secret is not None and self.error is None


def to_minor_units(amount: Union[int, float, str]) -> int:
    """Convert a major-unit amount (e.g. dollars) into integer cents."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Amount must be a number, got {amount!r}") from None
    if not value.is_finite() or value <= 0:
        raise ValueError("Amount must be greater than zero")
    return int((value * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def create_payment_intent(
    amount: Union[int, float, str],
    description: Optional[str] = None,
    currency: Optional[str] = None,
) -> PaymentIntentResult:
    """Create a Stripe PaymentIntent and hand back its client secret.

    Failures are reduced to a message on the result; nothing is raised.
    """
    try:
        minor = to_minor_units(amount)
    except ValueError as e:
        return PaymentIntentResult(error=str(e))

    if not config.STRIPE_API_KEY:
        return PaymentIntentResult(error="Stripe not configured")

    stripe.api_key = config.STRIPE_API_KEY
    try:
        intent = stripe.PaymentIntent.create(
            amount=minor,
            currency=(currency or config.STRIPE_CURRENCY).lower(),
            description=description or "Event payment",
        )
    except stripe.StripeError as e:
        message = getattr(e, 'user_message', None) or str(e)
        logger.error("Payment intent failed: %s", message)
        return PaymentIntentResult(error=message)

    logger.info("Created payment intent for %d minor units", minor)
    return PaymentIntentResult(client_secret=intent.client_secret)
