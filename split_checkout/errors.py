from typing import Any, Dict


class CheckoutError(Exception):
    """Base error rendered as ``{"ok": false, "error": code, ...}``."""

    status_code = 400
    code = "checkout_error"

    def __init__(self, code: str = None, status_code: int = None, **extra: Any):
        self.code = code or self.code
        self.status_code = status_code or self.status_code
        self.extra = extra
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        body = {"ok": False, "error": self.code}
        body.update(self.extra)
        return body


class NoItemsError(CheckoutError):
    code = "no_items"


class InvalidItemError(CheckoutError):
    code = "invalid_item"

    def __init__(self, index: int, reason: str):
        super().__init__(index=index, reason=reason)
        self.index = index
        self.reason = reason


class PaymentNotSucceededError(CheckoutError):
    code = "payment_not_succeeded"


class PaymentLookupError(CheckoutError):
    code = "payment_lookup_failed"


class PaymentProcessorError(CheckoutError):
    status_code = 502
    code = "payment_error"


class OrderCreationError(CheckoutError):
    status_code = 502
    code = "order_create_failed"


class ForbiddenError(CheckoutError):
    status_code = 403
    code = "forbidden"

    def __init__(self, reason: str):
        super().__init__(reason=reason)
        self.reason = reason


class WebhookNotConfiguredError(CheckoutError):
    status_code = 503
    code = "webhook_not_configured"


class ShopifyError(Exception):
    """Raised by the Shopify client; ``detail`` is the upstream body verbatim."""

    def __init__(self, status_code, detail):
        super().__init__(f"Shopify request failed ({status_code})")
        self.status_code = status_code
        self.detail = detail
