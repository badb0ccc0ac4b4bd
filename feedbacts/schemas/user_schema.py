from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class UpdateUserRequest(BaseModel):
    full_name: Optional[str] = Field(None, validation_alias=AliasChoices("full_name", "fullName"))
    email: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


class UserStatusRequest(BaseModel):
    status: str
