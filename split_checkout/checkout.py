import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import stripe

from split_checkout.config import Settings
from split_checkout.errors import (
    CheckoutError,
    OrderCreationError,
    PaymentNotSucceededError,
    ShopifyError,
)
from split_checkout.gatekeeper import CustomerGate
from split_checkout.models import CheckoutRequest, ConfirmRequest
from split_checkout.splitter import (
    PAY_NOW,
    Branch,
    PricedLine,
    SplitResult,
    format_amount,
    split_items,
)
from split_checkout.stripe_service import CHECKOUT_PURPOSE, Authorization

logger = logging.getLogger(__name__)

ORDER_TAG = "split-checkout"

# financial_status, transaction kind, transaction status, gateway
BRANCH_ORDER_TERMS = {
    "card": ("paid", "sale", "success", "stripe"),
    "cod": ("pending", "authorization", "pending", "cash_on_delivery"),
}

CREATED_KEYS = {"card": "paid_order", "cod": "cod_order"}
METADATA_KEYS = {"paid_order": "shopify_order_id", "cod_order": "shopify_cod_order_id"}


@dataclass
class CheckoutCreated:
    payment_intent_id: Optional[str]
    client_secret: Optional[str]
    amounts: Dict[str, int]


@dataclass
class OrdersCreated:
    created: Dict[str, Any] = field(default_factory=dict)
    linked: Optional[bool] = None


def build_line_item(line: PricedLine) -> Dict[str, Any]:
    item = line.item
    if item.variant_id not in (None, ""):
        return {"variant_id": item.variant_id, "quantity": line.quantity}
    return {"title": item.title, "price": line.unit_price, "quantity": line.quantity}


def build_order_payload(
    branch: Branch,
    request: CheckoutRequest,
    currency: str,
    payment_intent_id: Optional[str] = None,
) -> Dict[str, Any]:
    financial_status, kind, status, gateway = BRANCH_ORDER_TERMS[branch.pay_method]
    order = {
        "line_items": [build_line_item(line) for line in branch.lines],
        "financial_status": financial_status,
        "currency": currency.upper(),
        "transactions": [
            {
                "kind": kind,
                "status": status,
                "amount": format_amount(branch.total_cents),
                "gateway": gateway,
            }
        ],
        "note_attributes": [{"name": "split_group", "value": branch.pay_method}],
        "tags": ORDER_TAG,
    }
    if request.shipping_address:
        order["shipping_address"] = request.shipping_address
    if request.customer:
        order["customer"] = request.customer.model_dump(exclude_none=True)
        if request.customer.email:
            order["email"] = request.customer.email
    if payment_intent_id and branch.pay_method == PAY_NOW:
        order["note_attributes"].append(
            {"name": "stripe_payment_intent_id", "value": payment_intent_id}
        )
    return order


class CheckoutService:
    """Create the card authorization, then the Shopify orders once it succeeded."""

    def __init__(self, settings: Settings, payments, commerce, gate: CustomerGate = None):
        self.settings = settings
        self.payments = payments
        self.commerce = commerce
        self.gate = gate or CustomerGate(settings, commerce)

    def create(self, request: CheckoutRequest, idempotency_key: str = None) -> CheckoutCreated:
        self.gate.check(request.customer)
        split = split_items(request.items)

        payment_intent_id = None
        client_secret = None
        if split.card.total_cents > 0:
            authorization = self.payments.create_authorization(
                split.card.total_cents,
                split.cod.total_cents,
                customer_email=request.customer.email if request.customer else None,
                idempotency_key=idempotency_key,
            )
            payment_intent_id = authorization.id
            client_secret = authorization.client_secret
            logger.info(
                "Created PaymentIntent %s for %s cents (cod %s cents)",
                payment_intent_id,
                split.card.total_cents,
                split.cod.total_cents,
            )

        return CheckoutCreated(payment_intent_id, client_secret, split.amounts)

    def confirm(self, request: ConfirmRequest) -> OrdersCreated:
        self.gate.check(request.customer)
        split = split_items(request.items)
        payment_intent_id = request.stripe_payment_intent_id

        if payment_intent_id:
            authorization = self.payments.retrieve_authorization(payment_intent_id)
            if not authorization.succeeded:
                raise PaymentNotSucceededError(status=authorization.status)
            self._check_authorization(authorization, split)
        elif split.card.total_cents > 0:
            raise CheckoutError("missing_payment_intent")

        result = OrdersCreated()
        try:
            for branch in (split.card, split.cod):
                if branch:
                    self._submit(branch, request, payment_intent_id, result)
        except OrderCreationError as exc:
            if payment_intent_id and result.created:
                exc.extra["linked"] = self._link(payment_intent_id, result.created)
            raise

        if payment_intent_id and result.created:
            result.linked = self._link(payment_intent_id, result.created)
        return result

    def create_cod_order(self, request: CheckoutRequest) -> OrdersCreated:
        self.gate.check(request.customer)
        split = split_items(request.items)
        if split.card:
            raise CheckoutError("card_items_not_allowed")

        result = OrdersCreated()
        self._submit(split.cod, request, None, result)
        return result

    def _submit(self, branch, request, payment_intent_id, result: OrdersCreated) -> None:
        payload = build_order_payload(
            branch, request, self.settings.currency, payment_intent_id
        )
        key = CREATED_KEYS[branch.pay_method]
        try:
            order = self.commerce.create_order(payload)
        except ShopifyError as exc:
            # Orders already created stay in place; the caller sees them.
            raise OrderCreationError(
                branch=branch.pay_method,
                upstream_status=exc.status_code,
                detail=exc.detail,
                created=result.created,
            )
        logger.info(
            "Created %s order %s (%s cents)", key, order.get("id"), branch.total_cents
        )
        result.created[key] = order

    def _link(self, payment_intent_id: str, created: Dict[str, Any]) -> bool:
        order_ids = {
            METADATA_KEYS[key]: str(order["id"])
            for key, order in created.items()
            if order.get("id") is not None
        }
        if not order_ids:
            return False
        try:
            self.payments.link_orders(payment_intent_id, order_ids)
        except stripe.StripeError as exc:
            logger.warning(
                "Could not store order ids on PaymentIntent %s: %s", payment_intent_id, exc
            )
            return False
        return True

    def _check_authorization(self, authorization: Authorization, split: SplitResult) -> None:
        """The PaymentIntent must be the one issued for this cart."""
        if authorization.amount != split.card.total_cents:
            raise CheckoutError(
                "amount_mismatch",
                authorized_cents=authorization.amount,
                card_cents=split.card.total_cents,
            )
        metadata = authorization.metadata
        if (
            metadata.get("purpose") != CHECKOUT_PURPOSE
            or metadata.get("cod_cents") != str(split.cod.total_cents)
        ):
            raise CheckoutError(
                "payment_intent_mismatch",
                payment_intent_id=authorization.id,
                cod_cents=split.cod.total_cents,
            )
