import logging
from typing import Optional

from cloudinary.exceptions import Error as CloudinaryError
from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse

from database import get_db
from models.card import CardFields, ToggleSaleRequest
from utils import card_store
from utils.cloudinary import upload_image
from utils.security import get_current_user
from utils.serializers import serialize_card

router = APIRouter(prefix="/cards", tags=["Cards"])
logger = logging.getLogger(__name__)


def _filters(request: Request) -> dict:
    return dict(request.query_params)


# =========================
# LIST / BROWSE (STATIC ROUTES FIRST)
# =========================

@router.get("")
async def list_cards(
    request: Request,
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    db=Depends(get_db),
):
    result = await card_store.list_cards(
        db, _filters(request), sort=sort, page=page, per_page=per_page
    )
    return {
        "cards": [serialize_card(c) for c in result["cards"]],
        "pagination": result["pagination"],
    }


@router.get("/my_cards")
async def my_cards(
    request: Request,
    sort: Optional[str] = Query(None),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    cards = await card_store.list_owner_cards(db, user["_id"], _filters(request), sort=sort)
    return {"cards": [serialize_card(c) for c in cards]}


@router.get("/marketplace")
async def marketplace(
    request: Request,
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    db=Depends(get_db),
):
    result = await card_store.list_marketplace(
        db, _filters(request), sort=sort, page=page, per_page=per_page
    )
    return {
        "cards": [serialize_card(c) for c in result["cards"]],
        "pagination": result["pagination"],
    }


@router.get("/search")
async def search(
    request: Request,
    q: str = Query(""),
    sort: Optional[str] = Query(None),
    db=Depends(get_db),
):
    cards = await card_store.search_cards(db, q, _filters(request), sort=sort)
    return {
        "cards": [serialize_card(c) for c in cards],
        "query": q,
    }


# =========================
# IMAGE UPLOAD (PUBLIC)
# =========================

@router.post("/upload_image")
async def upload_card_image(image: Optional[UploadFile] = File(None)):
    if image is None or not image.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No image file provided",
        )

    if not image.content_type or not image.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed",
        )

    try:
        uploaded = upload_image(image.file)
    except CloudinaryError as e:
        logger.warning("IMAGE_UPLOAD_FAILED %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to upload image", "details": [str(e)]},
        )

    return {"message": "Image uploaded successfully", **uploaded}


# =========================
# CREATE
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_card(
    card: CardFields = Body(..., embed=True),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    created = await card_store.create_card(db, user, card.model_dump(exclude_unset=True))
    return {
        "message": "Card created successfully",
        "card": serialize_card(created),
    }


# =========================
# DETAIL (DYNAMIC ROUTES LAST)
# =========================

@router.get("/{card_id}")
async def card_detail(card_id: str, db=Depends(get_db)):
    card = await card_store.view_card(db, card_id)
    owner = await db.users.find_one({"_id": card.get("owner_id")})
    return {"card": serialize_card(card, owner=owner)}


@router.api_route("/{card_id}", methods=["PATCH", "PUT"])
async def update_card(
    card_id: str,
    card: CardFields = Body(..., embed=True),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    updated = await card_store.update_card(db, card_id, user, card.model_dump(exclude_unset=True))
    return {
        "message": "Card updated successfully",
        "card": serialize_card(updated),
    }


@router.delete("/{card_id}")
async def delete_card(
    card_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    await card_store.delete_card(db, card_id, user)
    return {"message": "Card deleted successfully"}


@router.post("/{card_id}/toggle_sale")
async def toggle_sale(
    card_id: str,
    data: Optional[ToggleSaleRequest] = Body(None),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    asking_price = data.asking_price if data else None
    card = await card_store.toggle_sale(db, card_id, user, asking_price)
    return {
        "message": "Card listed for sale" if card["for_sale"] else "Card removed from sale",
        "card": serialize_card(card),
    }
