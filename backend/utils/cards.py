import re
from typing import Optional

from config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_NUMBER, MAX_PAGE_SIZE

# =========================
# DISPLAY HELPERS
# =========================

def display_name(card: dict) -> str:
    parts = [card.get("player_name") or ""]
    if card.get("team"):
        parts.append(f"({card['team']})")
    if card.get("year"):
        parts.append(str(card["year"]))
    return " ".join(parts)


def full_card_name(card: dict) -> str:
    parts = []
    if card.get("year"):
        parts.append(str(card["year"]))
    if card.get("manufacturer"):
        parts.append(card["manufacturer"])
    if card.get("set_name"):
        parts.append(card["set_name"])
    if card.get("card_number"):
        parts.append(f"#{card['card_number']}")
    if card.get("player_name"):
        parts.append(card["player_name"])
    return " ".join(parts)


def is_graded(card: dict) -> bool:
    return bool(card.get("graded") and card.get("grading_company") and card.get("grade"))


def condition_grade_display(card: dict) -> Optional[str]:
    if is_graded(card):
        return f"{card['grading_company']} {card['grade']}"
    return card.get("condition")


def is_numbered(card: dict) -> bool:
    serial = card.get("serial_number") or ""
    return "/" in serial


def _serial_part(card: dict, index: int) -> Optional[int]:
    if not is_numbered(card):
        return None
    try:
        return int(card["serial_number"].split("/")[index].strip())
    except ValueError:
        return None


def print_run(card: dict) -> Optional[int]:
    return _serial_part(card, -1)


def card_serial(card: dict) -> Optional[int]:
    return _serial_part(card, 0)


def estimated_value_formatted(card: dict) -> str:
    value = card.get("estimated_value")
    if value is None:
        return "N/A"
    return f"${float(value):.2f}"


# =========================
# QUERY BUILDING
# =========================

SORT_OPTIONS = {
    "price_asc": [("asking_price", 1)],
    "price_desc": [("asking_price", -1)],
    "year_asc": [("year", 1)],
    "year_desc": [("year", -1)],
    "player_name": [("player_name", 1)],
    "popular": [("card_popularity", -1)],
    "recent": [("created_at", -1)],
}
DEFAULT_SORT = "recent"

FILTER_PARAMS = (
    "player", "team", "year", "manufacturer", "set", "rookie", "autographed",
    "graded", "grading_company", "condition", "min_price", "max_price",
    "rarity", "for_sale",
)


def _to_int(value) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _to_float(value) -> Optional[float]:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def _to_bool(value) -> Optional[bool]:
    text = (value or "").strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def _contains(text: str) -> dict:
    return {"$regex": re.escape(text), "$options": "i"}


def build_card_filter(params: dict) -> dict:
    """
    Translate listing query params into a Mongo filter.
    Blank or unparsable params are ignored.
    """
    query: dict = {}

    def value(key):
        raw = params.get(key)
        if raw is None:
            return None
        raw = str(raw).strip()
        return raw or None

    # ---- substring ----
    if value("player"):
        query["player_name"] = _contains(value("player"))
    if value("team"):
        query["team"] = _contains(value("team"))
    if value("set"):
        query["set_name"] = _contains(value("set"))

    # ---- exact ----
    year = _to_int(value("year")) if value("year") else None
    if year is not None:
        query["year"] = year
    for param, field in (
        ("manufacturer", "manufacturer"),
        ("condition", "condition"),
        ("rarity", "rarity"),
        ("grading_company", "grading_company"),
    ):
        if value(param):
            query[field] = value(param)

    # ---- flags ----
    for param, field in (
        ("rookie", "rookie_card"),
        ("autographed", "autographed"),
        ("graded", "graded"),
        ("for_sale", "for_sale"),
    ):
        flag = _to_bool(value(param))
        if flag is not None:
            query[field] = flag

    # ---- price range ----
    min_price = _to_float(value("min_price")) if value("min_price") else None
    max_price = _to_float(value("max_price")) if value("max_price") else None
    if min_price is not None or max_price is not None:
        query["asking_price"] = {}
        if min_price is not None:
            query["asking_price"]["$gte"] = min_price
        if max_price is not None:
            query["asking_price"]["$lte"] = max_price

    return query


def build_search_clause(q: str) -> dict:
    pattern = _contains(q.strip())
    return {
        "$or": [
            {"player_name": pattern},
            {"team": pattern},
            {"manufacturer": pattern},
            {"set_name": pattern},
        ]
    }


def sort_spec(sort: Optional[str]) -> list:
    # _id keeps page boundaries stable when the sort key ties
    return SORT_OPTIONS.get(sort or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT]) + [("_id", -1)]


def normalize_pagination(page, per_page) -> tuple[int, int]:
    page_num = _to_int(page)
    if page_num is None or page_num < 1:
        page_num = 1
    # keeps the skip offset inside Mongo's 64-bit range
    page_num = min(page_num, MAX_PAGE_NUMBER)

    size = _to_int(per_page)
    if size is None or size <= 0:
        size = DEFAULT_PAGE_SIZE
    size = min(size, MAX_PAGE_SIZE)

    return page_num, size
