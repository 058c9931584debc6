import logging
import math
from datetime import datetime

from fastapi import HTTPException, status
from pymongo import ReturnDocument

from config.constants import SEARCH_RESULT_LIMIT
from utils.cards import (
    build_card_filter,
    build_search_clause,
    normalize_pagination,
    sort_spec,
)
from utils.errors import ValidationFailed
from utils.guards import assert_owner, parse_object_id
from utils.validators import validate_card

logger = logging.getLogger(__name__)

CARD_NOT_FOUND = "Card not found"

CARD_DEFAULTS = {
    "rookie_card": False,
    "autographed": False,
    "memorabilia": False,
    "short_print": False,
    "graded": False,
    "card_size": "Standard",
    "detail_image_urls": [],
    "for_sale": False,
    "asking_price": None,
    "price_negotiable": True,
    "trade_only": False,
    "wishlist_count": 0,
    "tags": [],
    "featured": False,
    "verified": False,
    "card_popularity": 0,
}


def _money(value):
    return round(float(value), 2) if value is not None else None


def _prepare_fields(fields: dict) -> dict:
    """Normalize client-supplied values before they reach Mongo."""
    prepared = dict(fields)

    for key in ("estimated_value", "purchase_price", "last_sold_price", "asking_price"):
        if key in prepared:
            prepared[key] = _money(prepared[key])

    # Mongo has no date type; store ISO dates
    if prepared.get("acquired_date") is not None:
        prepared["acquired_date"] = prepared["acquired_date"].isoformat()

    for key in ("detail_image_urls", "tags"):
        if key in prepared and prepared[key] is None:
            prepared[key] = []

    return prepared


# =========================
# READS
# =========================

async def _find_page(db, query: dict, sort, page, per_page) -> dict:
    page, per_page = normalize_pagination(page, per_page)

    total_count = await db.cards.count_documents(query)
    total_pages = math.ceil(total_count / per_page)

    cursor = (
        db.cards
        .find(query)
        .sort(sort_spec(sort))
        .skip((page - 1) * per_page)
        .limit(per_page)
    )
    cards = [c async for c in cursor]

    return {
        "cards": cards,
        "pagination": {
            "current_page": page,
            "per_page": per_page,
            "total_pages": total_pages,
            "total_count": total_count,
        },
    }


async def list_cards(db, params: dict, *, sort=None, page=None, per_page=None) -> dict:
    return await _find_page(db, build_card_filter(params), sort, page, per_page)


async def list_marketplace(db, params: dict, *, sort=None, page=None, per_page=None) -> dict:
    query = build_card_filter(params)
    query["for_sale"] = True
    return await _find_page(db, query, sort, page, per_page)


async def list_owner_cards(db, owner_id, params: dict, *, sort=None) -> list[dict]:
    query = build_card_filter(params)
    query["owner_id"] = owner_id
    return [c async for c in db.cards.find(query).sort(sort_spec(sort))]


async def search_cards(db, q: str | None, params: dict, *, sort=None) -> list[dict]:
    if not q or not q.strip():
        return []

    query = build_card_filter(params)
    query.update(build_search_clause(q))

    cursor = db.cards.find(query).sort(sort_spec(sort)).limit(SEARCH_RESULT_LIMIT)
    return [c async for c in cursor]


async def get_card(db, card_id: str) -> dict:
    card = await db.cards.find_one({"_id": parse_object_id(card_id, CARD_NOT_FOUND)})
    if not card:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CARD_NOT_FOUND)
    return card


async def view_card(db, card_id: str) -> dict:
    """Fetch a card for its detail page; every successful view counts once."""
    card = await db.cards.find_one_and_update(
        {"_id": parse_object_id(card_id, CARD_NOT_FOUND)},
        {"$inc": {"card_popularity": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not card:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CARD_NOT_FOUND)
    return card


# =========================
# WRITES
# =========================

async def create_card(db, owner: dict, fields: dict) -> dict:
    now = datetime.utcnow()
    card = {
        **CARD_DEFAULTS,
        **{k: v for k, v in _prepare_fields(fields).items() if v is not None},
        "owner_id": owner["_id"],
        "created_at": now,
        "updated_at": now,
    }
    # popularity is server-managed
    card["card_popularity"] = 0

    errors = validate_card(card)
    if errors:
        raise ValidationFailed("Failed to create card", errors)

    result = await db.cards.insert_one(card)
    card["_id"] = result.inserted_id
    return card


async def update_card(db, card_id: str, user: dict, fields: dict) -> dict:
    card = await get_card(db, card_id)
    assert_owner(card, user)

    changes = _prepare_fields(fields)
    merged = {**card, **changes}

    errors = validate_card(merged)
    if errors:
        raise ValidationFailed("Failed to update card", errors)

    changes["updated_at"] = datetime.utcnow()
    await db.cards.update_one({"_id": card["_id"]}, {"$set": changes})
    return {**card, **changes}


async def delete_card(db, card_id: str, user: dict) -> None:
    card = await get_card(db, card_id)
    assert_owner(card, user)
    await db.cards.delete_one({"_id": card["_id"]})


async def toggle_sale(db, card_id: str, user: dict, asking_price: float | None = None) -> dict:
    card = await get_card(db, card_id)
    assert_owner(card, user)

    listing = not card.get("for_sale", False)
    changes = {"for_sale": listing}

    if listing:
        price = _money(asking_price) if asking_price is not None else card.get("asking_price")
        changes["asking_price"] = price
    else:
        changes["asking_price"] = None
        changes["reserved_until"] = None
        changes["reserved_by"] = None

    merged = {**card, **changes}
    errors = validate_card(merged)
    if errors:
        raise ValidationFailed("Failed to update sale status", errors)

    changes["updated_at"] = datetime.utcnow()
    await db.cards.update_one({"_id": card["_id"]}, {"$set": changes})
    return {**card, **changes}
