from bson import ObjectId
from datetime import datetime

from config.constants import PLATFORM_FEE_PERCENT
from models.purchase import RegisteredBuyer, parse_buyer
from utils import cards as card_helpers


def serialize_object_id(value):
    return str(value) if isinstance(value, ObjectId) else value


def serialize_datetime(value):
    return value.isoformat() if isinstance(value, datetime) else None


def serialize_money(value):
    return float(value) if value is not None else None


# =========================
# USER
# =========================

def serialize_user(user: dict) -> dict:
    first = user.get("first_name") or ""
    last = user.get("last_name") or ""
    return {
        "id": str(user["_id"]),
        "email": user.get("email"),
        "first_name": first,
        "last_name": last,
        "full_name": f"{first} {last}".strip(),
        "created_at": serialize_datetime(user.get("created_at")),
    }


# =========================
# CARD
# =========================

CARD_FIELDS = (
    "player_name", "team", "position", "jersey_number",
    "manufacturer", "set_name", "card_number", "year", "series",
    "parallel_variant", "serial_number", "rookie_card", "autographed",
    "memorabilia", "memorabilia_type", "short_print",
    "condition", "graded", "grading_company", "grade", "grade_details",
    "rarity", "price_trend", "card_size", "card_stock", "foil_treatment",
    "front_image_url", "back_image_url", "detail_image_urls",
    "for_sale", "price_negotiable", "trade_only", "wishlist_count",
    "acquired_date", "acquired_from", "pack_details",
    "description", "tags", "featured", "verified", "player_stats",
    "card_popularity",
)

CARD_MONEY_FIELDS = ("estimated_value", "purchase_price", "last_sold_price", "asking_price")


def serialize_card(card: dict, owner: dict | None = None) -> dict:
    data = {"id": str(card["_id"])}
    for field in CARD_FIELDS:
        data[field] = card.get(field)
    for field in CARD_MONEY_FIELDS:
        data[field] = serialize_money(card.get(field))

    front = card.get("front_image_url")
    back = card.get("back_image_url")

    data.update({
        "owner_id": serialize_object_id(card.get("owner_id")),

        # image variants are pass-through until transformations exist
        "front_image_thumbnail_url": front,
        "front_image_medium_url": front,
        "front_image_large_url": front,
        "back_image_thumbnail_url": back,

        "display_name": card_helpers.display_name(card),
        "full_card_name": card_helpers.full_card_name(card),
        "condition_grade_display": card_helpers.condition_grade_display(card),
        "estimated_value_formatted": card_helpers.estimated_value_formatted(card),
        "is_numbered": card_helpers.is_numbered(card),
        "print_run": card_helpers.print_run(card),
        "card_serial": card_helpers.card_serial(card),

        "created_at": serialize_datetime(card.get("created_at")),
        "updated_at": serialize_datetime(card.get("updated_at")),
    })

    if owner is not None:
        data["owner"] = serialize_user(owner)

    return data


# =========================
# DELIVERY OPTION
# =========================

def serialize_delivery_option(option: dict) -> dict:
    price = float(option.get("price") or 0)
    return {
        "id": str(option["_id"]),
        "name": option.get("name"),
        "duration": option.get("duration"),
        "price": price,
        "formatted_price": f"${price:.2f}",
        "seller_id": serialize_object_id(option.get("seller_id")),
        "created_at": serialize_datetime(option.get("created_at")),
        "updated_at": serialize_datetime(option.get("updated_at")),
    }


# =========================
# PURCHASE
# =========================

def serialize_purchase(
    purchase: dict,
    *,
    card: dict | None = None,
    buyer: dict | None = None,
    seller: dict | None = None,
) -> dict:
    amount = float(purchase["amount"])
    platform_fee = round(amount * PLATFORM_FEE_PERCENT / 100, 2)

    buyer_ref = parse_buyer(purchase.get("buyer_id"))

    return {
        "id": str(purchase["_id"]),
        "amount": amount,
        "status": purchase.get("status"),
        "stripe_payment_intent_id": purchase.get("stripe_payment_intent_id"),
        "card_id": serialize_object_id(purchase.get("card_id")),
        "seller_id": serialize_object_id(purchase.get("seller_id")),
        "buyer_id": str(buyer_ref.user_id) if isinstance(buyer_ref, RegisteredBuyer) else None,
        "guest_purchase": not isinstance(buyer_ref, RegisteredBuyer),
        "platform_fee": platform_fee,
        "seller_amount": round(amount - platform_fee, 2),
        "card": serialize_card(card) if card else None,
        "buyer": serialize_user(buyer) if buyer else None,
        "seller": serialize_user(seller) if seller else None,
        "created_at": serialize_datetime(purchase.get("created_at")),
        "updated_at": serialize_datetime(purchase.get("updated_at")),
    }
