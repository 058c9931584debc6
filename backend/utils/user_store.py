import logging
from datetime import datetime

from pymongo.errors import DuplicateKeyError

from utils.errors import ValidationFailed
from utils.hash import hash_password, verify_password
from utils.validators import normalize_email, validate_signup

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email has already been taken"


async def register_user(db, *, email: str, password: str, first_name: str, last_name: str) -> dict:
    """
    Create a user with a bcrypt digest.
    All field errors are collected; nothing is written when any fail.
    """
    email = normalize_email(email)
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()

    errors = validate_signup(email, password or "", first_name, last_name)

    if email and await db.users.find_one({"email": email}, {"_id": 1}):
        errors.append(EMAIL_TAKEN)

    if errors:
        raise ValidationFailed("Failed to create account", errors)

    now = datetime.utcnow()
    user = {
        "email": email,
        "password_digest": hash_password(password),
        "first_name": first_name,
        "last_name": last_name,
        "stripe_account_id": None,
        "stripe_onboarding_completed": False,
        "created_at": now,
        "updated_at": now,
    }

    try:
        result = await db.users.insert_one(user)
    except DuplicateKeyError:
        # concurrent signup won the unique index
        raise ValidationFailed("Failed to create account", [EMAIL_TAKEN])

    user["_id"] = result.inserted_id
    logger.info("USER_REGISTERED user_id=%s", user["_id"])
    return user


async def authenticate_user(db, *, email: str, password: str) -> dict | None:
    user = await db.users.find_one({"email": normalize_email(email)})

    # verify_password runs even for unknown emails to keep timing flat
    digest = user.get("password_digest") if user else None
    if not verify_password(password or "", digest):
        return None

    return user


async def set_payment_account(db, user: dict, account_id: str | None, *, onboarding_completed: bool = False):
    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "stripe_account_id": account_id,
            "stripe_onboarding_completed": onboarding_completed,
            "updated_at": datetime.utcnow(),
        }},
    )
