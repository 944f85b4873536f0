"""Pydantic schemas for Profile."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ProfileUser(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    bio: Optional[str] = None
    role: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    image: Optional[str] = None
    user: Optional[ProfileUser] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
