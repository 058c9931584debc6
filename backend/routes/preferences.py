from fastapi import APIRouter, Depends, HTTPException

from database import get_db
from models.preference import FavoriteNumberUpdate
from utils.preferences import get_site_preference, set_favorite_number
from utils.serializers import serialize_datetime

router = APIRouter(prefix="/ryan", tags=["Preferences"])


def _preference_response(preference: dict, message: str) -> dict:
    return {
        "favorite_number": preference["favorite_number"],
        "message": message,
        "last_updated": serialize_datetime(preference.get("updated_at")),
    }


@router.get("/favorite_number")
async def favorite_number(db=Depends(get_db)):
    preference = await get_site_preference(db)
    name = preference.get("user_name")
    return _preference_response(
        preference,
        f"{name}'s favorite number is {preference['favorite_number']}!",
    )


@router.post("/favorite_number")
async def update_favorite_number(data: FavoriteNumberUpdate, db=Depends(get_db)):
    if data.favorite_number <= 0:
        raise HTTPException(422, "Please enter a valid positive number")

    preference = await set_favorite_number(db, data.favorite_number)
    name = preference.get("user_name")
    return _preference_response(
        preference,
        f"Updated {name}'s favorite number to {preference['favorite_number']}!",
    )
