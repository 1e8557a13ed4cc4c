# storefront/schemas/user_schemas.py
from pydantic import BaseModel, EmailStr
from typing import Literal, Optional

class UserLogin(BaseModel):
    username: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: Literal["bearer"] = "bearer"

class UserOut(BaseModel):
    id: int
    username: EmailStr
    name: Optional[str] = None
    role: str

    model_config = {"from_attributes": True}

class MessageResponse(BaseModel):
    msg: str
