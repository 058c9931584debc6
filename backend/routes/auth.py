from fastapi import APIRouter, Body, Depends, HTTPException, status

from database import get_db
from models.user import UserCreate, LoginRequest
from utils.jwt import create_access_token
from utils.security import get_current_user
from utils.serializers import serialize_user
from utils.user_store import register_user, authenticate_user

router = APIRouter(prefix="/auth", tags=["Auth"])

# ======================
# Signup
# ======================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    user: UserCreate = Body(..., embed=True),
    db=Depends(get_db),
):
    created = await register_user(
        db,
        email=user.email,
        password=user.password,
        first_name=user.first_name,
        last_name=user.last_name,
    )

    return {
        "message": "Account created successfully!",
        "user": serialize_user(created),
        "token": create_access_token(str(created["_id"])),
    }

# ======================
# Login
# ======================

@router.post("/login")
async def login(data: LoginRequest, db=Depends(get_db)):
    user = await authenticate_user(db, email=data.email, password=data.password)

    if not user:
        # same message for unknown email and wrong password
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return {
        "message": "Login successful!",
        "user": serialize_user(user),
        "token": create_access_token(str(user["_id"])),
    }

# ======================
# Current User
# ======================

@router.get("/me")
async def me(user=Depends(get_current_user)):
    return {"user": serialize_user(user)}
