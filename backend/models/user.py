from pydantic import BaseModel


class UserCreate(BaseModel):
    # field rules live in utils.validators so every failure is reported at once
    email: str = ""
    password: str = ""
    first_name: str = ""
    last_name: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""
