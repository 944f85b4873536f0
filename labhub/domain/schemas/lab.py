"""Pydantic schemas for the Lab domain."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from labhub.domain.models.lab import Difficulty


class AuthorSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}


class LabRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    difficulty: Difficulty
    duration: int
    description: str
    audience: str
    prerequisites: str
    objectives: list[Any] = Field(default_factory=list)
    covered_topics: list[Any] = Field(default_factory=list)
    steps: dict[str, Any] = Field(default_factory=dict)
    environment_image_before: Optional[str] = None
    environment_image_after: Optional[str] = None
    published: bool = False
    author_id: str
    author: Optional[AuthorSummary] = None
    is_owner: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LabCreated(BaseModel):
    success: bool = True
    data: LabRead


class MessageResponse(BaseModel):
    message: str
