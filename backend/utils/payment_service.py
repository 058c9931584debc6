import logging
from datetime import datetime, timedelta

from fastapi import HTTPException
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from config.constants import CARD_RESERVATION_MINUTES, PLATFORM_FEE_PERCENT
from config.env import STRIPE_DESTINATION_CHARGES
from models.purchase import (
    Buyer,
    PurchaseStatus,
    RegisteredBuyer,
    buyer_to_metadata,
    new_purchase_document,
    parse_buyer,
)
from utils import stripe_gateway as gateway
from utils.card_store import get_card
from utils.guards import maybe_object_id
from utils.serializers import serialize_purchase
from utils.user_store import set_payment_account

logger = logging.getLogger(__name__)

INTENT_METADATA_KEYS = (
    "card_id",
    "buyer_id",
    "seller_id",
    "seller_amount",
    "platform_fee",
    "delivery_option_id",
)


class DuplicatePurchase(Exception):
    """A completed purchase already exists for this payment intent."""

    def __init__(self, purchase: dict):
        super().__init__(purchase.get("stripe_payment_intent_id"))
        self.purchase = purchase


def platform_fee_cents(card_price_cents: int) -> int:
    return card_price_cents * PLATFORM_FEE_PERCENT // 100


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


# ======================================================
# CARD RESERVATION
# ======================================================

async def _reserve_card(db, card: dict, buyer: Buyer) -> None:
    """
    Hold a listing for one buyer while they pay.
    A registered buyer can refresh their own hold; everyone else waits it out.
    """
    now = datetime.utcnow()
    holder = buyer_to_metadata(buyer)

    free = [
        {"reserved_until": None},
        {"reserved_until": {"$lte": now}},
    ]
    if isinstance(buyer, RegisteredBuyer):
        free.append({"reserved_by": holder})

    reserved = await db.cards.find_one_and_update(
        {"_id": card["_id"], "for_sale": True, "$or": free},
        {"$set": {
            "reserved_until": now + timedelta(minutes=CARD_RESERVATION_MINUTES),
            "reserved_by": holder,
        }},
        return_document=ReturnDocument.AFTER,
    )
    if not reserved:
        raise HTTPException(status_code=409, detail="Card is currently reserved by another buyer")


async def _release_card(db, card: dict, buyer: Buyer) -> None:
    await db.cards.update_one(
        {"_id": card["_id"], "reserved_by": buyer_to_metadata(buyer)},
        {"$set": {"reserved_until": None, "reserved_by": None}},
    )


# ======================================================
# CREATE PAYMENT INTENT
# ======================================================

async def create_intent(
    db,
    *,
    card_id: str,
    amount_cents: int,
    buyer: Buyer,
    delivery_option_id: str | None = None,
) -> dict:
    card = await get_card(db, card_id)

    if not card.get("for_sale"):
        raise HTTPException(400, "Card is not for sale")

    if card.get("asking_price") is None:
        raise HTTPException(400, "Card price not configured")

    seller = await db.users.find_one({"_id": card["owner_id"]})
    if not seller or not seller.get("stripe_account_id"):
        raise HTTPException(400, "Seller has not set up payment processing yet")

    if isinstance(buyer, RegisteredBuyer) and buyer.user_id == seller["_id"]:
        raise HTTPException(400, "You cannot buy your own card")

    delivery_cents = 0
    if delivery_option_id:
        option_oid = maybe_object_id(delivery_option_id)
        option = await db.delivery_options.find_one({
            "_id": option_oid,
            "seller_id": seller["_id"],
        }) if option_oid else None
        if not option:
            raise HTTPException(400, "Invalid delivery option")
        delivery_cents = gateway.dollars_to_cents(option["price"])

    card_price_cents = gateway.dollars_to_cents(card["asking_price"])
    minimum_cents = card_price_cents + delivery_cents

    if amount_cents <= 0:
        raise HTTPException(400, "Amount must be positive")
    if amount_cents < minimum_cents:
        raise HTTPException(400, "Amount does not cover the card price and delivery")

    fee_cents = platform_fee_cents(card_price_cents)
    seller_amount_cents = amount_cents - fee_cents

    await _reserve_card(db, card, buyer)

    metadata = {
        "card_id": str(card["_id"]),
        "buyer_id": buyer_to_metadata(buyer),
        "seller_id": str(seller["_id"]),
        "seller_amount": str(seller_amount_cents),
        "platform_fee": str(fee_cents),
    }
    if delivery_option_id:
        metadata["delivery_option_id"] = delivery_option_id

    try:
        intent = gateway.create_payment_intent(
            amount_cents=amount_cents,
            metadata=metadata,
            destination_account=seller["stripe_account_id"] if STRIPE_DESTINATION_CHARGES else None,
            application_fee_cents=fee_cents,
        )
    except HTTPException:
        await _release_card(db, card, buyer)
        raise

    await db.cards.update_one(
        {"_id": card["_id"]},
        {"$set": {"reserved_payment_intent_id": intent.id}},
    )

    logger.info(
        "PAYMENT_INTENT_CREATED intent=%s card=%s amount=%s fee=%s",
        intent.id, card["_id"], amount_cents, fee_cents,
    )

    return {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.id,
        "amount": amount_cents,
        "platform_fee": fee_cents,
    }


# ======================================================
# RECORD PURCHASE
# ======================================================

async def _mark_card_sold(db, card_id, payment_intent_id: str) -> None:
    card = await db.cards.find_one({"_id": card_id})
    if not card:
        logger.error("PAYMENT_FOR_MISSING_CARD card=%s intent=%s", card_id, payment_intent_id)
        return

    if card.get("sold_payment_intent_id") == payment_intent_id:
        return

    now = datetime.utcnow()
    result = await db.cards.update_one(
        {"_id": card_id, "for_sale": True},
        {"$set": {
            "for_sale": False,
            "asking_price": None,
            "last_sold_price": card.get("asking_price"),
            "sold_payment_intent_id": payment_intent_id,
            "reserved_until": None,
            "reserved_by": None,
            "updated_at": now,
        }},
    )

    if result.modified_count != 1:
        current = await db.cards.find_one({"_id": card_id}, {"sold_payment_intent_id": 1})
        if current and current.get("sold_payment_intent_id") == payment_intent_id:
            # a concurrent resume of this same payment got there first
            return

        # paid for a card that is no longer listed
        logger.warning(
            "CARD_ALREADY_SOLD card=%s intent=%s refund required",
            card_id, payment_intent_id,
        )


async def record_successful_payment(db, intent: dict) -> dict:
    """
    Turn a succeeded payment intent into a completed purchase.

    The purchase is written as pending first; the unique intent id makes it
    the record of progress. A repeat for a completed intent raises
    DuplicatePurchase, a repeat for a pending one finishes the remaining steps.
    """
    metadata = _as_dict(intent.get("metadata"))
    payment_intent_id = intent.get("id")

    card_id = maybe_object_id(metadata.get("card_id"))
    seller_id = maybe_object_id(metadata.get("seller_id"))
    if not payment_intent_id or card_id is None or seller_id is None:
        raise ValueError(f"Payment intent {payment_intent_id} is missing marketplace metadata")

    amount = round((intent.get("amount") or 0) / 100, 2)
    if amount <= 0:
        raise ValueError(f"Payment intent {payment_intent_id} has no amount")

    purchase = new_purchase_document(
        payment_intent_id=payment_intent_id,
        amount=amount,
        card_id=card_id,
        seller_id=seller_id,
        buyer=parse_buyer(metadata.get("buyer_id")),
    )

    try:
        result = await db.purchases.insert_one(purchase)
        purchase["_id"] = result.inserted_id
    except DuplicateKeyError:
        existing = await db.purchases.find_one({"stripe_payment_intent_id": payment_intent_id})
        if existing["status"] != PurchaseStatus.PENDING.value:
            raise DuplicatePurchase(existing)
        logger.warning("PURCHASE_RESUMED intent=%s", payment_intent_id)
        purchase = existing

    await _mark_card_sold(db, card_id, payment_intent_id)

    now = datetime.utcnow()
    await db.purchases.update_one(
        {"_id": purchase["_id"]},
        {"$set": {"status": PurchaseStatus.COMPLETED.value, "updated_at": now}},
    )
    purchase["status"] = PurchaseStatus.COMPLETED.value
    purchase["updated_at"] = now

    logger.info("PURCHASE_COMPLETED intent=%s card=%s amount=%s", payment_intent_id, card_id, amount)
    if not STRIPE_DESTINATION_CHARGES:
        logger.info(
            "MANUAL_TRANSFER_NEEDED seller=%s seller_amount_cents=%s platform_fee_cents=%s",
            seller_id, metadata.get("seller_amount"), metadata.get("platform_fee"),
        )

    return purchase


async def handle_webhook_event(db, event: dict) -> None:
    event_type = event.get("type")
    # shape is not guaranteed even on a signed body
    intent = _as_dict(_as_dict(event.get("data")).get("object"))

    if event_type == "payment_intent.succeeded":
        try:
            await record_successful_payment(db, intent)
        except DuplicatePurchase:
            logger.warning("DUPLICATE_PAYMENT_EVENT intent=%s", intent.get("id"))
        except Exception:
            # acknowledged anyway so the gateway does not retry-storm
            logger.exception("PAYMENT_RECORD_ERROR intent=%s", intent.get("id"))

    elif event_type == "payment_intent.payment_failed":
        card_id = _as_dict(intent.get("metadata")).get("card_id")
        last_error = _as_dict(intent.get("last_payment_error")).get("message")
        logger.error("PAYMENT_FAILED card=%s intent=%s error=%s", card_id, intent.get("id"), last_error)

    else:
        logger.info("UNHANDLED_STRIPE_EVENT type=%s", event_type)


def _intent_to_dict(intent) -> dict:
    metadata = {}
    for key in INTENT_METADATA_KEYS:
        try:
            metadata[key] = intent.metadata[key]
        except KeyError:
            continue
    return {"id": intent.id, "amount": intent.amount, "metadata": metadata}


async def confirm_payment(db, payment_intent_id: str) -> dict:
    intent = gateway.retrieve_payment_intent(payment_intent_id)

    if intent.status != "succeeded":
        raise HTTPException(400, f"Payment has not succeeded (status: {intent.status})")

    try:
        purchase = await record_successful_payment(db, _intent_to_dict(intent))
    except DuplicatePurchase as e:
        purchase = e.purchase
    except ValueError as e:
        raise HTTPException(400, str(e))

    return purchase


async def purchase_view(db, purchase: dict) -> dict:
    card = await db.cards.find_one({"_id": purchase["card_id"]})
    seller = await db.users.find_one({"_id": purchase["seller_id"]})

    buyer_user = None
    buyer = parse_buyer(purchase.get("buyer_id"))
    if isinstance(buyer, RegisteredBuyer):
        buyer_user = await db.users.find_one({"_id": buyer.user_id})

    return serialize_purchase(purchase, card=card, buyer=buyer_user, seller=seller)


# ======================================================
# CONNECTED ACCOUNTS
# ======================================================

async def link_payment_account(db, user: dict) -> dict:
    account = gateway.create_connected_account(email=user["email"])
    await set_payment_account(db, user, account.id)

    onboarding_url = gateway.create_onboarding_link(account.id)
    logger.info("CONNECT_ACCOUNT_CREATED user=%s account=%s", user["_id"], account.id)

    return {"account_id": account.id, "onboarding_url": onboarding_url}


async def payment_account_status(db, user: dict) -> dict:
    account_id = user.get("stripe_account_id")
    if not account_id:
        return {"status": "not_connected"}

    account = gateway.retrieve_account(account_id)
    charges_enabled = bool(account.charges_enabled)

    if charges_enabled != bool(user.get("stripe_onboarding_completed")):
        await set_payment_account(db, user, account_id, onboarding_completed=charges_enabled)

    return {
        "status": "active" if charges_enabled else "pending",
        "account_id": account.id,
        "charges_enabled": charges_enabled,
        "details_submitted": bool(account.details_submitted),
    }


async def reset_payment_account(db, user: dict) -> None:
    account_id = user.get("stripe_account_id")
    if account_id:
        gateway.delete_account(account_id)
        await set_payment_account(db, user, None)
        logger.info("CONNECT_ACCOUNT_RESET user=%s account=%s", user["_id"], account_id)
