from typing import Optional
from pydantic import BaseModel


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    confirm_password: str
    university_id: str
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    user_id: str
    role: str
