from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from bson import ObjectId
from pydantic import BaseModel

from config.constants import GUEST_BUYER


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# =========================
# BUYER (tagged union)
# =========================

@dataclass(frozen=True)
class RegisteredBuyer:
    user_id: ObjectId


@dataclass(frozen=True)
class GuestBuyer:
    pass


Buyer = Union[RegisteredBuyer, GuestBuyer]


def buyer_for_user(user: Optional[dict]) -> Buyer:
    return RegisteredBuyer(user["_id"]) if user else GuestBuyer()


def parse_buyer(value) -> Buyer:
    """
    Decode a stored or metadata buyer reference.
    Anything that is not a valid user id is a guest.
    """
    if isinstance(value, ObjectId):
        return RegisteredBuyer(value)
    if isinstance(value, str) and value != GUEST_BUYER and ObjectId.is_valid(value):
        return RegisteredBuyer(ObjectId(value))
    return GuestBuyer()


def buyer_to_document(buyer: Buyer) -> Union[ObjectId, str]:
    if isinstance(buyer, RegisteredBuyer):
        return buyer.user_id
    return GUEST_BUYER


def buyer_to_metadata(buyer: Buyer) -> str:
    return str(buyer_to_document(buyer))


# =========================
# REQUEST SCHEMAS
# =========================

class CreateIntentRequest(BaseModel):
    card_id: str
    amount: int                       # cents
    delivery_option_id: Optional[str] = None


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str


def new_purchase_document(
    *,
    payment_intent_id: str,
    amount: float,
    card_id: ObjectId,
    seller_id: ObjectId,
    buyer: Buyer,
) -> dict:
    now = datetime.utcnow()
    return {
        "amount": amount,
        "status": PurchaseStatus.PENDING.value,
        "stripe_payment_intent_id": payment_intent_id,
        "card_id": card_id,
        "seller_id": seller_id,
        "buyer_id": buyer_to_document(buyer),
        "created_at": now,
        "updated_at": now,
    }
