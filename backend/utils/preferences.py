from datetime import datetime

from pymongo import ReturnDocument

from config.constants import (
    SITE_PREFERENCE_ID,
    DEFAULT_FAVORITE_NUMBER,
    DEFAULT_PREFERENCE_USER_NAME,
)


async def ensure_site_preference(db) -> None:
    """Create the single preference row if missing. Run once at startup."""
    now = datetime.utcnow()
    await db.preferences.update_one(
        {"_id": SITE_PREFERENCE_ID},
        {"$setOnInsert": {
            "favorite_number": DEFAULT_FAVORITE_NUMBER,
            "user_name": DEFAULT_PREFERENCE_USER_NAME,
            "created_at": now,
            "updated_at": now,
        }},
        upsert=True,
    )


async def get_site_preference(db) -> dict:
    preference = await db.preferences.find_one({"_id": SITE_PREFERENCE_ID})
    if preference is None:
        raise RuntimeError("Site preference not initialized; ensure_site_preference must run at startup")
    return preference


async def set_favorite_number(db, number: int) -> dict:
    preference = await db.preferences.find_one_and_update(
        {"_id": SITE_PREFERENCE_ID},
        {"$set": {"favorite_number": number, "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if preference is None:
        raise RuntimeError("Site preference not initialized; ensure_site_preference must run at startup")
    return preference
