import logging
import os
import time
from typing import Optional

import stripe
from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from split_checkout.checkout import CheckoutService
from split_checkout.config import Settings
from split_checkout.errors import CheckoutError
from split_checkout.routes import router
from split_checkout.shopify_service import ShopifyClient
from split_checkout.stripe_service import StripeGateway
from split_checkout.webhooks import handle_payment_event

logger = logging.getLogger("split_checkout")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def create_app(settings: Settings = None, payments=None, commerce=None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in settings.missing_credentials():
        logger.warning("Missing %s", name)

    payments = payments or StripeGateway(settings)
    commerce = commerce or ShopifyClient(settings)

    app = FastAPI(title="Split Checkout Service")
    app.state.settings = settings
    app.state.payments = payments
    app.state.commerce = commerce
    app.state.checkout = CheckoutService(settings, payments, commerce)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.to_dict())
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "error": "invalid_request",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.on_event("shutdown")
    def _on_shutdown() -> None:
        close = getattr(commerce, "close", None)
        if close:
            close()

    app.include_router(router)

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Split checkout server running"

    @app.get("/health")
    def health():
        return {"ok": True, "env": settings.environment, "url": settings.app_url or "n/a"}

    @app.post("/stripe/webhook")
    async def stripe_webhook(request: Request, stripe_signature: Optional[str] = Header(None)):
        payload = await request.body()

        try:
            event = payments.construct_event(payload, stripe_signature)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            raise HTTPException(status_code=400, detail="Invalid signature")

        outcome = await run_in_threadpool(handle_payment_event, event, commerce)
        if outcome.error is not None:
            logger.error(
                "Webhook %s for %s could not update orders %s: %s",
                outcome.event_type,
                outcome.payment_intent_id,
                outcome.order_ids,
                outcome.error,
            )
        else:
            logger.info("Webhook %s -> %s", outcome.event_type, outcome.action)
        return {"received": True, "action": outcome.action}

    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir), name="static")

    return app


app = create_app()
