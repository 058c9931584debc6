# backend/config/constants.py

# -----------------------------
# MARKETPLACE FEES
# -----------------------------

PLATFORM_FEE_PERCENT = 5             # % of the card's asking price

# -----------------------------
# LISTING / SEARCH
# -----------------------------

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50
MAX_PAGE_NUMBER = 10_000
SEARCH_RESULT_LIMIT = 50

# Buyer holds a listing while paying
CARD_RESERVATION_MINUTES = 15

# -----------------------------
# CARD ATTRIBUTES
# -----------------------------

CARD_CONDITIONS = ["Mint", "Near Mint", "Excellent", "Good", "Fair", "Poor"]
CARD_RARITIES = ["Common", "Uncommon", "Rare", "Ultra Rare", "Legendary"]
GRADING_COMPANIES = ["PSA", "BGS", "SGC", "KSA", "CSG"]

PLAYER_NAME_MIN_LENGTH = 2
PLAYER_NAME_MAX_LENGTH = 100

# asking price below this share of purchase price is rejected
MIN_ASKING_PRICE_RATIO = 0.1

# -----------------------------
# USERS
# -----------------------------

PASSWORD_MIN_LENGTH = 6
NAME_MIN_LENGTH = 2

# -----------------------------
# DELIVERY OPTIONS
# -----------------------------

DELIVERY_NAME_MAX_LENGTH = 100
DELIVERY_DURATION_MAX_LENGTH = 50

# -----------------------------
# PURCHASES
# -----------------------------

GUEST_BUYER = "guest"
PURCHASE_STATUSES = ["pending", "completed", "failed", "refunded"]

# -----------------------------
# SITE PREFERENCE (single row)
# -----------------------------

SITE_PREFERENCE_ID = "site"
DEFAULT_FAVORITE_NUMBER = 4
DEFAULT_PREFERENCE_USER_NAME = "Ryan"
