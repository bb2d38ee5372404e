from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class IdentityOut(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None


class TokenResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    token_type: str = "bearer"
    user: IdentityOut
