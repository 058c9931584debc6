from dotenv import load_dotenv
load_dotenv()

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import get_db

# ENV
from config.env import ENV, LOG_LEVEL, CORS_ALLOWED_ORIGINS, validate_production_env

# ROUTES
from routes.auth import router as auth_router
from routes.cards import router as cards_router
from routes.delivery_options import router as delivery_options_router
from routes.payments import router as payments_router
from routes.preferences import router as preferences_router

from utils.errors import register_exception_handlers
from utils.indexes import ensure_indexes
from utils.preferences import ensure_site_preference

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("main")

validate_production_env()
logger.info("ENV: %s", ENV)

API_PREFIX = "/api/v1"

app = FastAPI(
    title="Card Marketplace API",
    version="1.0.0",
    docs_url=None if ENV == "production" else "/docs",
    redoc_url=None if ENV == "production" else "/redoc",
    openapi_url=None if ENV == "production" else "/openapi.json",
)

register_exception_handlers(app)

# -----------------------------
# CORS
# -----------------------------

allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
if not allowed_origins:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# ROUTES
# -----------------------------

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(cards_router, prefix=API_PREFIX)
app.include_router(delivery_options_router, prefix=API_PREFIX)
app.include_router(payments_router, prefix=API_PREFIX)
app.include_router(preferences_router, prefix=API_PREFIX)

# -----------------------------
# HEALTH CHECKS
# -----------------------------

@app.get(f"{API_PREFIX}/health")
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": ENV,
    }

@app.get(f"{API_PREFIX}/health/db")
async def health_db(db=Depends(get_db)):
    await db.command("ping")
    return {"status": "mongodb connected"}

# -----------------------------
# STARTUP (ONE PLACE ONLY)
# -----------------------------

@app.on_event("startup")
async def initialize_database():
    db = get_db()
    await ensure_indexes(db)
    await ensure_site_preference(db)
