from __future__ import annotations

from pydantic import BaseModel


class DeleteResponse(BaseModel):
    message: str
    id: str


class ErrorResponse(BaseModel):
    detail: str
