from fastapi import HTTPException, status
from bson import ObjectId

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value: str, not_found: str = "Not found") -> ObjectId:
    # a malformed id can never match a document
    if not value or not ObjectId.is_valid(value):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
    return ObjectId(value)


def maybe_object_id(value) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


# -------------------------------
# Ownership Guard
# -------------------------------

def assert_owner(doc: dict, user: dict, field: str = "owner_id"):
    if doc.get(field) != user["_id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized",
        )
