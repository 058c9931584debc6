from datetime import datetime

from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError

from utils.errors import ValidationFailed
from utils.guards import assert_owner, maybe_object_id, parse_object_id
from utils.validators import validate_delivery_option

NOT_FOUND = "Delivery option not found"
NAME_TAKEN = "Name has already been taken"


def _clean(fields: dict) -> dict:
    cleaned = dict(fields)
    for key in ("name", "duration"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = cleaned[key].strip()
    if cleaned.get("price") is not None:
        cleaned["price"] = round(float(cleaned["price"]), 2)
    return cleaned


async def list_for_owner(db, seller: dict) -> list[dict]:
    cursor = db.delivery_options.find({"seller_id": seller["_id"]}).sort("created_at", 1)
    return [o async for o in cursor]


async def list_for_seller(db, seller_id: str) -> list[dict]:
    seller_oid = maybe_object_id(seller_id)
    if seller_oid is None:
        return []
    cursor = db.delivery_options.find({"seller_id": seller_oid}).sort([("price", 1), ("_id", 1)])
    return [o async for o in cursor]


async def get_owned(db, option_id: str, seller: dict) -> dict:
    option = await db.delivery_options.find_one({"_id": parse_object_id(option_id, NOT_FOUND)})
    if not option:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    assert_owner(option, seller, field="seller_id")
    return option


async def create_option(db, seller: dict, fields: dict) -> dict:
    now = datetime.utcnow()
    option = {
        **_clean(fields),
        "seller_id": seller["_id"],
        "created_at": now,
        "updated_at": now,
    }

    errors = validate_delivery_option(option)
    if errors:
        raise ValidationFailed("Failed to create delivery option", errors)

    try:
        result = await db.delivery_options.insert_one(option)
    except DuplicateKeyError:
        raise ValidationFailed("Failed to create delivery option", [NAME_TAKEN])

    option["_id"] = result.inserted_id
    return option


async def update_option(db, option_id: str, seller: dict, fields: dict) -> dict:
    option = await get_owned(db, option_id, seller)

    changes = _clean(fields)
    errors = validate_delivery_option({**option, **changes})
    if errors:
        raise ValidationFailed("Failed to update delivery option", errors)

    changes["updated_at"] = datetime.utcnow()
    try:
        await db.delivery_options.update_one({"_id": option["_id"]}, {"$set": changes})
    except DuplicateKeyError:
        raise ValidationFailed("Failed to update delivery option", [NAME_TAKEN])

    return {**option, **changes}


async def delete_option(db, option_id: str, seller: dict) -> None:
    option = await get_owned(db, option_id, seller)
    await db.delivery_options.delete_one({"_id": option["_id"]})
