from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO

from pydantic import BaseModel, Field


class BlobInfo(BaseModel):
    id: str
    content_type: str
    size: int
    tag: str
    filename: str | None = None
    chunk_size: int
    created_at: datetime


@dataclass
class IncomingFile:
    """A binary upload handed to the coordinator, read lazily from ``stream``."""

    stream: BinaryIO
    filename: str | None = None
    content_type: str | None = None
    size: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.size == 0


@dataclass
class BlobStream:
    blob_id: str
    content_type: str
    size: int
    chunks: Iterator[bytes]


@dataclass
class DownloadedFile:
    """A template file ready to send; the download is counted once ``chunks`` is exhausted."""

    filename: str
    content_type: str
    size: int
    chunks: Iterator[bytes]


class TemplateDraft(BaseModel):
    title: str
    description: str
    purpose: str
    price: float = Field(ge=0)
    author: str
    author_id: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    tutorial_video_url: str | None = None


class TemplatePatch(BaseModel):
    title: str | None = None
    description: str | None = None
    purpose: str | None = None
    price: float | None = Field(default=None, ge=0)
    author: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    tutorial_video_url: str | None = None

    def changes(self) -> dict:
        return {key: value for key, value in self.model_dump().items() if value is not None}
