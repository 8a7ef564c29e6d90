"""Pydantic schemas for the course catalog wire format."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CoursePayload(BaseModel):
    """Course resource as produced by the backend."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    id: int
    title: str
    description: str | None = None
    category: str | None = None
    level: str | None = None
    language: str | None = None
    price: Decimal = Field(default=Decimal(0), ge=0)
    is_published: bool = False
    instructor_id: int
    thumbnail_url: str | None = None
    lesson_count: int = 0
    student_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CatalogFacets(BaseModel):
    """Distinct filter values present in a course list."""

    categories: list[str] = Field(default_factory=list)
    levels: list[str] = Field(default_factory=list)
