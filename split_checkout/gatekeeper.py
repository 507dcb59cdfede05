import logging
from typing import Optional

from split_checkout.config import Settings
from split_checkout.errors import ForbiddenError, ShopifyError
from split_checkout.models import Customer

logger = logging.getLogger(__name__)


def _tags(customer: dict) -> set:
    raw = customer.get("tags") or ""
    return {tag.strip().lower() for tag in raw.split(",") if tag.strip()}


class CustomerGate:
    """Optionally restrict checkout to known, tagged Shopify customers.

    Fails closed: a lookup error is a rejection, never an allowance.
    """

    def __init__(self, settings: Settings, commerce):
        self.required_tag = settings.required_customer_tag
        self.require_email = settings.require_customer_email or bool(self.required_tag)
        self.commerce = commerce

    @property
    def enabled(self) -> bool:
        return self.require_email

    def check(self, customer: Optional[Customer]) -> None:
        if not self.enabled:
            return
        email = (customer.email or "").strip() if customer else ""
        if not email:
            raise ForbiddenError("customer_email_required")
        if not self.required_tag:
            return

        try:
            matches = self.commerce.search_customers(email)
        except ShopifyError as exc:
            logger.warning("Customer lookup for %s failed: %s", email, exc.detail)
            raise ForbiddenError("customer_lookup_failed")

        wanted = self.required_tag.lower()
        for match in matches:
            if (match.get("email") or "").lower() == email.lower() and wanted in _tags(match):
                return
        logger.info("Customer %s rejected: missing tag %r", email, self.required_tag)
        raise ForbiddenError("customer_not_allowed")
