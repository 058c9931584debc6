from dataclasses import dataclass
from typing import Mapping, Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from utils.jwt import decode_token
from database import get_db


@dataclass(frozen=True)
class AuthResult:
    """Outcome of reading a bearer token: a subject id or the reason there is none."""

    user_id: Optional[ObjectId] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user_id is not None


def resolve_bearer(headers: Mapping[str, str]) -> AuthResult:
    """
    Decode the Authorization header into a user id.

    Absent, malformed and expired tokens are reported through the result,
    never raised.
    """
    auth_header = headers.get("authorization")
    if not auth_header:
        return AuthResult(error="Missing authorization header")

    scheme, _, token = auth_header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return AuthResult(error="Malformed authorization header")

    try:
        payload = decode_token(token)
    except JWTError:
        return AuthResult(error="Invalid or expired token")

    subject = payload.get("sub")
    if not subject or not ObjectId.is_valid(subject):
        return AuthResult(error="Invalid token payload")

    return AuthResult(user_id=ObjectId(subject))


async def get_optional_user(request: Request, db=Depends(get_db)):
    result = resolve_bearer(request.headers)
    if not result.ok:
        return None
    return await db.users.find_one({"_id": result.user_id})


async def get_current_user(request: Request, db=Depends(get_db)):
    result = resolve_bearer(request.headers)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    user = await db.users.find_one({"_id": result.user_id})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    return user
