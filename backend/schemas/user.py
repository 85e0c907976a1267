from pydantic import EmailStr, Field
from typing import Optional

from schemas.common import APIModel

# Schema for user registration requests
class UserCreate(APIModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    phone: Optional[str] = None

# Schema for user authentication credentials
class UserLogin(APIModel):
    email: EmailStr
    password: str = Field(min_length=1)

# Public profile, never includes the password hash
class UserOut(APIModel):
    id: int
    name: str
    email: str
    phone: str = ""
    is_admin: bool = False

class AuthResponse(APIModel):
    success: bool = True
    message: str
    token: str
    user: UserOut

class MeResponse(APIModel):
    success: bool = True
    user: UserOut
