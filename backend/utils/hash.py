from passlib.context import CryptContext

# bcrypt configuration
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto"
)

# bcrypt hard limit
MAX_BCRYPT_BYTES = 72

# Verified against when the email is unknown so login timing does not
# reveal whether an account exists.
_DUMMY_HASH = pwd_context.hash("card-marketplace-dummy-password")


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_BCRYPT_BYTES


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.
    Callers validate length first; an oversized password is a programming error here.
    """
    if password_too_long(password):
        raise ValueError("Password too long (max 72 bytes)")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Constant-time check of a password against a stored digest.
    Unknown users are checked against a dummy digest and always fail.
    """
    if not hashed_password:
        pwd_context.verify(plain_password[:MAX_BCRYPT_BYTES], _DUMMY_HASH)
        return False
    if password_too_long(plain_password):
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # malformed legacy digest
        return False
