from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(UTC)


class Template(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str
    purpose: str
    price: float = Field(ge=0)
    author: str
    author_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    image_blob_id: str | None = None
    file_blob_id: str | None = None
    file_name: str | None = None
    file_format: str | None = None
    file_size_bytes: int | None = None
    rating: int = 0
    download_count: int = Field(default=0, ge=0)
    is_active: bool = True
    tutorial_video_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str]) -> list[str]:
        # tags behave as a set but keep the order they were given in
        seen: dict[str, None] = {}
        for tag in value:
            tag = tag.strip()
            if tag:
                seen.setdefault(tag, None)
        return list(seen)

    def blob_ids(self) -> list[str]:
        return [blob_id for blob_id in (self.image_blob_id, self.file_blob_id) if blob_id is not None]
