from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel


class Customer(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class CartItem(BaseModel):
    # Prices and quantity stay loose here; the splitter decides what is usable.
    variant_id: Optional[Union[int, str]] = None
    title: Optional[str] = None
    qty: Any = 1
    price_cents: Any = None
    unit_price_cents: Any = None
    line_total_cents: Any = None
    pay_method: Optional[str] = None


class CheckoutRequest(BaseModel):
    customer: Optional[Customer] = None
    shipping_address: Optional[Dict[str, Any]] = None
    items: List[CartItem] = []


class ConfirmRequest(CheckoutRequest):
    stripe_payment_intent_id: Optional[str] = None


class PaymentIntentRequest(BaseModel):
    amount: Any = None
    currency: Optional[str] = None
    description: Optional[str] = None
    metadata: Dict[str, Any] = {}
    customer_email: Optional[str] = None
