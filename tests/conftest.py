import pytest
import stripe
from fastapi.testclient import TestClient

from split_checkout.config import Settings
from split_checkout.errors import ShopifyError
from split_checkout.main import create_app
from split_checkout.stripe_service import CHECKOUT_PURPOSE, Authorization


class StubPayments:
    """Records Stripe-side calls instead of reaching the network."""

    def __init__(self, status="succeeded", amount=1000, cod_cents=1000, purpose=CHECKOUT_PURPOSE):
        self.status = status
        self.amount = amount
        self.metadata = {"purpose": purpose, "cod_cents": str(cod_cents)}
        self.created = []
        self.retrieved = []
        self.linked = []
        self.link_error = None

    def create_authorization(self, card_cents, cod_cents, customer_email=None, idempotency_key=None):
        self.created.append(
            {
                "card_cents": card_cents,
                "cod_cents": cod_cents,
                "customer_email": customer_email,
                "idempotency_key": idempotency_key,
            }
        )
        return Authorization(
            id="pi_test_123",
            client_secret="pi_test_123_secret_abc",
            status="requires_payment_method",
            amount=card_cents,
        )

    def create_payment_intent(self, amount, currency=None, metadata=None, description=None,
                              receipt_email=None, idempotency_key=None):
        self.created.append({"amount": amount, "currency": currency, "metadata": metadata})
        return Authorization("pi_direct_1", "pi_direct_1_secret", "requires_payment_method", amount)

    def retrieve_authorization(self, payment_intent_id):
        self.retrieved.append(payment_intent_id)
        return Authorization(payment_intent_id, None, self.status, self.amount, dict(self.metadata))

    def link_orders(self, payment_intent_id, order_ids):
        if self.link_error:
            raise self.link_error
        self.linked.append((payment_intent_id, order_ids))

    def construct_event(self, payload, signature):
        raise stripe.SignatureVerificationError("No signatures found", signature)


class StubCommerce:
    """Records Shopify-side calls; ``fail_on`` makes the n-th order call fail."""

    def __init__(self, customers=None, fail_on=None, lookup_error=False):
        self.orders = []
        self.updates = []
        self.searches = []
        self.customers = customers or []
        self.fail_on = fail_on
        self.lookup_error = lookup_error

    def create_order(self, order):
        self.orders.append(order)
        if self.fail_on == len(self.orders):
            raise ShopifyError(422, {"errors": {"line_items": ["is invalid"]}})
        return {"id": 5000 + len(self.orders), "financial_status": order["financial_status"]}

    def update_order(self, order_id, fields):
        self.updates.append((order_id, fields))
        return {"id": order_id}

    def search_customers(self, email):
        self.searches.append(email)
        if self.lookup_error:
            raise ShopifyError(503, "Service Unavailable")
        return self.customers


def make_settings(**overrides):
    values = dict(
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        stripe_webhook_secret="whsec_test",
        shopify_access_token="shpat_test",
        shop_domain="example.myshopify.com",
        static_dir=None,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def payments():
    return StubPayments()


@pytest.fixture
def commerce():
    return StubCommerce()


@pytest.fixture
def client(settings, payments, commerce):
    app = create_app(settings, payments=payments, commerce=commerce)
    with TestClient(app) as c:
        yield c


SCENARIO_ITEMS = [
    {"variant_id": 1, "qty": 1, "price_cents": 1000, "pay_method": "card"},
    {"variant_id": 2, "qty": 2, "price_cents": 500, "pay_method": "cod"},
]
