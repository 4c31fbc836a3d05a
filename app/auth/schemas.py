# app/auth/schemas.py
from pydantic import BaseModel, Field

from app.user.schemas import UserOut


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    user: UserOut
