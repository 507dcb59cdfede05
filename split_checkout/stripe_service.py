import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import stripe

from split_checkout.config import Settings
from split_checkout.errors import (
    PaymentLookupError,
    PaymentProcessorError,
    WebhookNotConfiguredError,
)

logger = logging.getLogger(__name__)

CHECKOUT_PURPOSE = "split_checkout_card_portion"


@dataclass(frozen=True)
class Authorization:
    id: str
    client_secret: Optional[str]
    status: Optional[str]
    amount: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_intent(cls, intent) -> "Authorization":
        amount = getattr(intent, "amount", None)
        try:
            metadata = dict(getattr(intent, "metadata", None) or {})
        except (TypeError, ValueError):
            metadata = {}
        return cls(
            id=intent.id,
            client_secret=getattr(intent, "client_secret", None),
            status=getattr(intent, "status", None),
            amount=amount if isinstance(amount, int) else None,
            metadata=metadata,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class StripeGateway:
    """Thin wrapper over the Stripe PaymentIntent and Webhook APIs."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _request_options(self) -> Dict[str, Any]:
        return {
            "api_key": self.settings.stripe_secret_key,
            "stripe_version": self.settings.stripe_api_version,
        }

    def create_payment_intent(
        self,
        amount: int,
        currency: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        description: Optional[str] = None,
        receipt_email: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Authorization:
        params = {
            "amount": amount,
            "currency": currency or self.settings.currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata or {},
        }
        if description:
            params["description"] = description
        if receipt_email:
            params["receipt_email"] = receipt_email
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            intent = stripe.PaymentIntent.create(**params, **self._request_options())
        except stripe.StripeError as exc:
            logger.error("PaymentIntent create failed: %s", exc)
            raise PaymentProcessorError(detail=exc.user_message or str(exc))
        return Authorization.from_intent(intent)

    def create_authorization(
        self,
        card_cents: int,
        cod_cents: int,
        customer_email: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Authorization:
        metadata = {
            "purpose": CHECKOUT_PURPOSE,
            "card_cents": str(card_cents),
            "cod_cents": str(cod_cents),
        }
        if customer_email:
            metadata["customer_email"] = customer_email
        return self.create_payment_intent(
            card_cents, metadata=metadata, idempotency_key=idempotency_key
        )

    def retrieve_authorization(self, payment_intent_id: str) -> Authorization:
        try:
            intent = stripe.PaymentIntent.retrieve(
                payment_intent_id, **self._request_options()
            )
        except stripe.StripeError as exc:
            logger.error("PaymentIntent %s retrieve failed: %s", payment_intent_id, exc)
            raise PaymentLookupError(
                payment_intent_id=payment_intent_id,
                detail=exc.user_message or str(exc),
            )
        return Authorization.from_intent(intent)

    def link_orders(self, payment_intent_id: str, order_ids: Dict[str, str]) -> None:
        """Store created order ids in the PaymentIntent metadata."""
        stripe.PaymentIntent.modify(
            payment_intent_id, metadata=order_ids, **self._request_options()
        )

    def construct_event(self, payload: bytes, signature: Optional[str]):
        secret = self.settings.stripe_webhook_secret
        if not secret:
            raise WebhookNotConfiguredError()
        if not signature:
            raise stripe.SignatureVerificationError("Missing Stripe-Signature header", signature)
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            signature,
            secret,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
        return json.loads(payload)
