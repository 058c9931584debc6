from fastapi import APIRouter, Body, Depends, status

from database import get_db
from models.delivery_option import DeliveryOptionFields
from utils import delivery_store
from utils.security import get_current_user
from utils.serializers import serialize_delivery_option

router = APIRouter(
    prefix="/delivery_options",
    tags=["Delivery Options"]
)

# ======================================================
# LIST (OWN)
# ======================================================

@router.get("")
async def list_delivery_options(
    seller=Depends(get_current_user),
    db=Depends(get_db),
):
    options = await delivery_store.list_for_owner(db, seller)
    return {"delivery_options": [serialize_delivery_option(o) for o in options]}


# ======================================================
# PUBLIC: OPTIONS OFFERED BY A SELLER
# ======================================================

@router.get("/for_seller/{seller_id}")
async def delivery_options_for_seller(seller_id: str, db=Depends(get_db)):
    options = await delivery_store.list_for_seller(db, seller_id)
    return {"delivery_options": [serialize_delivery_option(o) for o in options]}


# ======================================================
# CREATE
# ======================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_delivery_option(
    delivery_option: DeliveryOptionFields = Body(..., embed=True),
    seller=Depends(get_current_user),
    db=Depends(get_db),
):
    option = await delivery_store.create_option(
        db, seller, delivery_option.model_dump(exclude_unset=True)
    )
    return {
        "message": "Delivery option created successfully",
        "delivery_option": serialize_delivery_option(option),
    }


# ======================================================
# SHOW / UPDATE / DELETE
# ======================================================

@router.get("/{option_id}")
async def get_delivery_option(
    option_id: str,
    seller=Depends(get_current_user),
    db=Depends(get_db),
):
    option = await delivery_store.get_owned(db, option_id, seller)
    return {"delivery_option": serialize_delivery_option(option)}


@router.api_route("/{option_id}", methods=["PATCH", "PUT"])
async def update_delivery_option(
    option_id: str,
    delivery_option: DeliveryOptionFields = Body(..., embed=True),
    seller=Depends(get_current_user),
    db=Depends(get_db),
):
    option = await delivery_store.update_option(
        db, option_id, seller, delivery_option.model_dump(exclude_unset=True)
    )
    return {
        "message": "Delivery option updated successfully",
        "delivery_option": serialize_delivery_option(option),
    }


@router.delete("/{option_id}")
async def delete_delivery_option(
    option_id: str,
    seller=Depends(get_current_user),
    db=Depends(get_db),
):
    await delivery_store.delete_option(db, option_id, seller)
    return {"message": "Delivery option deleted successfully"}
