import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from split_checkout.checkout import METADATA_KEYS, ORDER_TAG
from split_checkout.errors import ShopifyError

logger = logging.getLogger(__name__)

SUCCEEDED = "payment_intent.succeeded"
FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    action: str
    payment_intent_id: Optional[str] = None
    order_ids: tuple = ()
    error: Any = None


def _order_update(event_type: str, intent: Dict[str, Any]) -> Dict[str, Any]:
    if event_type == SUCCEEDED:
        return {
            "tags": f"{ORDER_TAG}, stripe-payment-succeeded",
            "note": f"Stripe payment {intent.get('id')} succeeded",
        }
    last_error = intent.get("last_payment_error") or {}
    return {
        "tags": f"{ORDER_TAG}, stripe-payment-failed",
        "note": f"Stripe payment {intent.get('id')} failed: {last_error.get('message', 'unknown')}",
    }


def handle_payment_event(event, commerce) -> WebhookOutcome:
    """Apply a verified Stripe event to the Shopify orders stored in its metadata.

    Errors are returned on the outcome; the caller decides how to report them.
    """
    event_type = event["type"]
    if event_type not in (SUCCEEDED, FAILED):
        return WebhookOutcome(event_type, "ignored")

    intent = event["data"]["object"]
    metadata = intent.get("metadata") or {}
    order_ids = tuple(
        metadata[key] for key in METADATA_KEYS.values() if metadata.get(key)
    )
    if not order_ids:
        return WebhookOutcome(event_type, "no_order", intent.get("id"))

    fields = _order_update(event_type, intent)
    errors = {}
    for order_id in order_ids:
        try:
            commerce.update_order(order_id, fields)
        except ShopifyError as exc:
            errors[order_id] = exc.detail
    if errors:
        return WebhookOutcome(event_type, "update_failed", intent.get("id"), order_ids, errors)
    return WebhookOutcome(event_type, "order_updated", intent.get("id"), order_ids)
