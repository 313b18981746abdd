from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional

from schemas.base import ORMBase

RoleName = Literal["super", "admin", "team"]

# Shared properties for user models
class UserBase(ORMBase):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for creating accounts (super only)
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: RoleName = "team"

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Optional[str] = None

# Schema for administrative role updates
class RoleUpdate(ORMBase):
    role: RoleName

# Paginated user list
class UserPage(ORMBase):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int
