from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from split_checkout.auth import verify_token
from split_checkout.checkout import CheckoutService
from split_checkout.errors import CheckoutError
from split_checkout.models import CheckoutRequest, ConfirmRequest, PaymentIntentRequest

router = APIRouter()


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout


@router.post("/checkout/create")
def create_checkout(
    request: CheckoutRequest,
    idempotency_key: Optional[str] = Header(None),
    checkout: CheckoutService = Depends(get_checkout_service),
    auth=Depends(verify_token),
):
    result = checkout.create(request, idempotency_key=idempotency_key)
    return {
        "ok": True,
        "payment_intent_id": result.payment_intent_id,
        "client_secret": result.client_secret,
        "amounts": result.amounts,
    }


@router.post("/checkout/confirm")
def confirm_checkout(
    request: ConfirmRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
    auth=Depends(verify_token),
):
    result = checkout.confirm(request)
    return {"ok": True, "created": result.created, "linked": result.linked}


@router.post("/checkout/cod")
def cod_checkout(
    request: CheckoutRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
    auth=Depends(verify_token),
):
    result = checkout.create_cod_order(request)
    return {"ok": True, "created": result.created}


@router.post("/api/payment-intents")
def create_payment_intent(
    request: PaymentIntentRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
    auth=Depends(verify_token),
):
    amount = request.amount
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise CheckoutError("invalid_amount", detail="amount (cents) must be > 0")

    intent = checkout.payments.create_payment_intent(
        amount,
        currency=request.currency,
        metadata=_stripe_metadata(request.metadata),
        description=request.description,
        receipt_email=request.customer_email,
    )
    return {"id": intent.id, "client_secret": intent.client_secret, "status": intent.status}


@router.get("/api/config")
def public_config(request: Request):
    return {"publishableKey": request.app.state.settings.stripe_publishable_key}


def _stripe_metadata(metadata):
    # Stripe stores metadata values as strings.
    return {key: "" if value is None else str(value) for key, value in metadata.items()}
