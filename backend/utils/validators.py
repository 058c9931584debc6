import math
import re
from datetime import datetime
from urllib.parse import urlparse

from config.constants import (
    CARD_CONDITIONS,
    CARD_RARITIES,
    GRADING_COMPANIES,
    PLAYER_NAME_MIN_LENGTH,
    PLAYER_NAME_MAX_LENGTH,
    MIN_ASKING_PRICE_RATIO,
    PASSWORD_MIN_LENGTH,
    NAME_MIN_LENGTH,
    DELIVERY_NAME_MAX_LENGTH,
    DELIVERY_DURATION_MAX_LENGTH,
)
from utils.hash import password_too_long

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+$")

MONEY_FIELDS = {
    "estimated_value": "Estimated value",
    "purchase_price": "Purchase price",
    "last_sold_price": "Last sold price",
    "asking_price": "Asking price",
}


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _has_non_finite(value) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(_has_non_finite(v) for v in value)
    return False


def is_http_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


# -----------------------
# USERS
# -----------------------

def validate_signup(email: str, password: str, first_name: str, last_name: str) -> list[str]:
    errors = []

    if is_blank(email):
        errors.append("Email can't be blank")
    elif not EMAIL_REGEX.match(email):
        errors.append("Email is invalid")

    if is_blank(password):
        errors.append("Password can't be blank")
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password is too short (minimum is {PASSWORD_MIN_LENGTH} characters)")
    elif password_too_long(password):
        errors.append("Password is too long (maximum is 72 bytes)")

    for label, value in (("First name", first_name), ("Last name", last_name)):
        if is_blank(value):
            errors.append(f"{label} can't be blank")
        elif len(value.strip()) < NAME_MIN_LENGTH:
            errors.append(f"{label} is too short (minimum is {NAME_MIN_LENGTH} characters)")

    return errors


# -----------------------
# CARDS
# -----------------------

def validate_card(card: dict) -> list[str]:
    """
    Check a full card document (after defaults / merged updates).
    Returns one human-readable message per broken rule.
    """
    errors = []

    player_name = card.get("player_name")
    if is_blank(player_name):
        errors.append("Player name can't be blank")
    elif not PLAYER_NAME_MIN_LENGTH <= len(player_name) <= PLAYER_NAME_MAX_LENGTH:
        errors.append(
            f"Player name must be between {PLAYER_NAME_MIN_LENGTH} and "
            f"{PLAYER_NAME_MAX_LENGTH} characters"
        )

    for field, label in (
        ("manufacturer", "Manufacturer"),
        ("set_name", "Set name"),
        ("card_number", "Card number"),
    ):
        if is_blank(card.get(field)):
            errors.append(f"{label} can't be blank")

    year = card.get("year")
    max_year = datetime.utcnow().year + 1
    if year is None:
        errors.append("Year can't be blank")
    elif not 1900 < year <= max_year:
        errors.append(f"Year must be greater than 1900 and less than or equal to {max_year}")

    if card.get("condition") not in CARD_CONDITIONS:
        errors.append("Condition must be a valid condition")

    if not is_blank(card.get("rarity")) and card.get("rarity") not in CARD_RARITIES:
        errors.append("Rarity is not included in the list")

    grading_company = card.get("grading_company")
    if not is_blank(grading_company) and grading_company not in GRADING_COMPANIES:
        errors.append("Grading company is not included in the list")

    front = card.get("front_image_url")
    if is_blank(front):
        errors.append("Front image url can't be blank")
    elif not is_http_url(front):
        errors.append("Front image url is invalid")

    back = card.get("back_image_url")
    if not is_blank(back) and not is_http_url(back):
        errors.append("Back image url is invalid")

    for field, label in MONEY_FIELDS.items():
        value = card.get(field)
        if value is None:
            continue
        if not math.isfinite(value):
            errors.append(f"{label} must be a finite number")
        elif value < 0:
            errors.append(f"{label} must be greater than or equal to 0")

    for field, label in (("grade_details", "Grade details"), ("player_stats", "Player stats")):
        if _has_non_finite(card.get(field)):
            errors.append(f"{label} must not contain NaN or Infinity")

    if card.get("owner_id") is None:
        errors.append("Owner can't be blank")

    # graded <=> company and grade, both directions
    has_company = not is_blank(grading_company)
    has_grade = not is_blank(card.get("grade"))
    if card.get("graded") and not (has_company and has_grade):
        errors.append("Graded must have both grading company and grade when marked as graded")
    if not card.get("graded") and (has_company or has_grade):
        errors.append("Graded should be true when grading company or grade is specified")

    asking_price = card.get("asking_price")
    purchase_price = card.get("purchase_price")
    if card.get("for_sale") and asking_price is None:
        errors.append("Asking price must be specified when card is for sale")

    if (
        asking_price is not None
        and purchase_price is not None
        and asking_price < purchase_price * MIN_ASKING_PRICE_RATIO
    ):
        errors.append("Asking price seems unusually low compared to purchase price")

    return errors


# -----------------------
# DELIVERY OPTIONS
# -----------------------

def validate_delivery_option(option: dict) -> list[str]:
    errors = []

    name = option.get("name")
    if is_blank(name):
        errors.append("Name can't be blank")
    elif len(name) > DELIVERY_NAME_MAX_LENGTH:
        errors.append(f"Name is too long (maximum is {DELIVERY_NAME_MAX_LENGTH} characters)")

    duration = option.get("duration")
    if is_blank(duration):
        errors.append("Duration can't be blank")
    elif len(duration) > DELIVERY_DURATION_MAX_LENGTH:
        errors.append(f"Duration is too long (maximum is {DELIVERY_DURATION_MAX_LENGTH} characters)")

    price = option.get("price")
    if price is None:
        errors.append("Price can't be blank")
    elif not math.isfinite(price):
        errors.append("Price must be a finite number")
    elif price < 0:
        errors.append("Price must be greater than or equal to 0")

    if option.get("seller_id") is None:
        errors.append("Seller can't be blank")

    return errors
