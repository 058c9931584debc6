import logging

import stripe
from fastapi import HTTPException

from config.env import (
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    STRIPE_API_VERSION,
    STRIPE_CURRENCY,
    STRIPE_CONNECT_COUNTRY,
    FRONTEND_URL,
)

logger = logging.getLogger(__name__)

stripe.api_key = STRIPE_SECRET_KEY
stripe.api_version = STRIPE_API_VERSION


class WebhookRejected(Exception):
    """Webhook body could not be authenticated or parsed."""


def _require_stripe_config():
    if not stripe.api_key:
        raise HTTPException(status_code=500, detail="Stripe keys are not configured")


def _gateway_error(e: Exception) -> HTTPException:
    message = getattr(e, "user_message", None) or str(e) or "Payment processing error"
    logger.warning("STRIPE_ERROR %s", message)
    return HTTPException(status_code=400, detail=message)


def dollars_to_cents(amount: float) -> int:
    return int(round(float(amount) * 100))


# =========================
# PAYMENT INTENTS
# =========================

def create_payment_intent(
    *,
    amount_cents: int,
    metadata: dict,
    destination_account: str | None = None,
    application_fee_cents: int | None = None,
):
    _require_stripe_config()

    params = {
        "amount": amount_cents,
        "currency": STRIPE_CURRENCY,
        "metadata": metadata,
    }
    if destination_account:
        params.update({
            "application_fee_amount": application_fee_cents,
            "on_behalf_of": destination_account,
            "transfer_data": {"destination": destination_account},
        })

    try:
        return stripe.PaymentIntent.create(**params)
    except stripe.StripeError as e:
        raise _gateway_error(e)


def retrieve_payment_intent(payment_intent_id: str):
    _require_stripe_config()
    try:
        return stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as e:
        raise _gateway_error(e)


# =========================
# CONNECT ACCOUNTS
# =========================

def create_connected_account(*, email: str):
    _require_stripe_config()
    try:
        return stripe.Account.create(
            type="express",
            country=STRIPE_CONNECT_COUNTRY,
            email=email,
            capabilities={
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
        )
    except stripe.StripeError as e:
        raise _gateway_error(e)


def create_onboarding_link(account_id: str) -> str:
    _require_stripe_config()
    try:
        link = stripe.AccountLink.create(
            account=account_id,
            refresh_url=f"{FRONTEND_URL}/payment-setup?refresh=true",
            return_url=f"{FRONTEND_URL}/payment-setup?success=true",
            type="account_onboarding",
        )
    except stripe.StripeError as e:
        raise _gateway_error(e)
    return link.url


def retrieve_account(account_id: str):
    _require_stripe_config()
    try:
        return stripe.Account.retrieve(account_id)
    except stripe.StripeError as e:
        raise _gateway_error(e)


def delete_account(account_id: str) -> None:
    _require_stripe_config()
    try:
        stripe.Account.delete(account_id)
    except stripe.StripeError as e:
        raise _gateway_error(e)


# =========================
# WEBHOOKS
# =========================

def verify_webhook_signature(*, raw_body: bytes, received_signature: str) -> None:
    if not STRIPE_WEBHOOK_SECRET:
        raise HTTPException(status_code=500, detail="Stripe webhook secret is not configured")
    try:
        stripe.WebhookSignature.verify_header(
            raw_body.decode("utf-8"),
            received_signature,
            STRIPE_WEBHOOK_SECRET,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
        raise WebhookRejected("Invalid signature") from e
