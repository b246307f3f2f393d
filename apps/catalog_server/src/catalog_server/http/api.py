from __future__ import annotations

from typing import Any
from urllib.parse import quote

from catalog_core.errors import TemplateNotFoundError
from catalog_core.models import IncomingFile, Template, TemplateDraft, TemplatePatch
from catalog_core.pipelines import (
    create_template,
    delete_template,
    download_template,
    open_template_image,
    update_template,
)
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from catalog_server.http.auth import require_admin
from catalog_server.http.schemas import DeleteResponse, ErrorResponse

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid image or template file"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Template or referenced blob not found"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Storage failure"},
}


def _dump(template: Template) -> dict[str, Any]:
    return template.model_dump(by_alias=True, mode="json")


def _incoming(upload: UploadFile | None) -> IncomingFile | None:
    if upload is None:
        return None
    return IncomingFile(
        stream=upload.file,
        filename=upload.filename,
        content_type=upload.content_type,
        size=upload.size,
    )


def _parse_tags(raw: list[str] | None) -> list[str] | None:
    if raw is None:
        return None
    # accept both repeated fields and a comma separated value
    return [tag.strip() for item in raw for tag in item.split(",") if tag.strip()]


def _content_disposition(filename: str) -> str:
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("latin-1")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", "replace").decode("ascii")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return f'attachment; filename="{escaped}"'


def build_api_router() -> APIRouter:
    router = APIRouter(prefix="/api/v1/templates", tags=["templates"], responses=ERROR_RESPONSES)
    admin = [Depends(require_admin)]

    @router.get("")
    def list_templates(request: Request) -> list[dict[str, Any]]:
        ctx = request.app.state.ctx
        return [_dump(t) for t in ctx.templates.list_active_templates()]

    @router.get("/search")
    def search_templates(request: Request, query: str) -> list[dict[str, Any]]:
        ctx = request.app.state.ctx
        return [_dump(t) for t in ctx.templates.search_templates(query)]

    @router.get("/category/{category}")
    def list_by_category(category: str, request: Request) -> list[dict[str, Any]]:
        ctx = request.app.state.ctx
        return [_dump(t) for t in ctx.templates.list_templates_by_category(category)]

    @router.get("/tag/{tag}")
    def list_by_tag(tag: str, request: Request) -> list[dict[str, Any]]:
        ctx = request.app.state.ctx
        return [_dump(t) for t in ctx.templates.list_templates_by_tag(tag)]

    @router.get("/author/{author}")
    def list_by_author(author: str, request: Request) -> list[dict[str, Any]]:
        ctx = request.app.state.ctx
        return [_dump(t) for t in ctx.templates.list_templates_by_author(author)]

    @router.get("/{template_id}")
    def get_template(template_id: str, request: Request) -> dict[str, Any]:
        ctx = request.app.state.ctx
        template = ctx.templates.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return _dump(template)

    @router.get("/{template_id}/image")
    def get_template_image(template_id: str, request: Request) -> StreamingResponse:
        ctx = request.app.state.ctx
        image = open_template_image(template_id, template_store=ctx.templates, blob_store=ctx.blob_store)
        return StreamingResponse(
            image.chunks,
            media_type=image.content_type,
            headers={"Content-Length": str(image.size)},
        )

    @router.get("/{template_id}/download")
    def download(template_id: str, request: Request) -> StreamingResponse:
        ctx = request.app.state.ctx
        downloaded = download_template(template_id, template_store=ctx.templates, blob_store=ctx.blob_store)
        return StreamingResponse(
            downloaded.chunks,
            media_type=downloaded.content_type,
            headers={
                "Content-Disposition": _content_disposition(downloaded.filename),
                "Content-Length": str(downloaded.size),
            },
        )

    @router.post("", status_code=status.HTTP_201_CREATED, dependencies=admin)
    def create(
        request: Request,
        title: str = Form(...),
        description: str = Form(...),
        purpose: str = Form(...),
        price: float = Form(..., ge=0),
        author: str = Form(...),
        category: str | None = Form(default=None),
        tags: list[str] | None = Form(default=None),
        author_id: str | None = Form(default=None, alias="authorId"),
        tutorial_video_url: str | None = Form(default=None, alias="tutorialVideoUrl"),
        image: UploadFile = File(...),
        template_file: UploadFile = File(..., alias="templateFile"),
    ) -> dict[str, Any]:
        ctx = request.app.state.ctx
        draft = TemplateDraft(
            title=title,
            description=description,
            purpose=purpose,
            price=price,
            author=author,
            author_id=author_id,
            category=category,
            tags=_parse_tags(tags) or [],
            tutorial_video_url=tutorial_video_url,
        )
        created = create_template(
            draft,
            _incoming(image),
            _incoming(template_file),
            template_store=ctx.templates,
            blob_store=ctx.blob_store,
        )
        return _dump(created)

    @router.put("/{template_id}", dependencies=admin)
    def update(
        template_id: str,
        request: Request,
        title: str | None = Form(default=None),
        description: str | None = Form(default=None),
        purpose: str | None = Form(default=None),
        price: float | None = Form(default=None, ge=0),
        author: str | None = Form(default=None),
        category: str | None = Form(default=None),
        tags: list[str] | None = Form(default=None),
        is_active: bool | None = Form(default=None, alias="isActive"),
        tutorial_video_url: str | None = Form(default=None, alias="tutorialVideoUrl"),
        image: UploadFile | None = File(default=None),
        template_file: UploadFile | None = File(default=None, alias="templateFile"),
    ) -> dict[str, Any]:
        ctx = request.app.state.ctx
        patch = TemplatePatch(
            title=title,
            description=description,
            purpose=purpose,
            price=price,
            author=author,
            category=category,
            tags=_parse_tags(tags),
            is_active=is_active,
            tutorial_video_url=tutorial_video_url,
        )
        updated = update_template(
            template_id,
            patch,
            image=_incoming(image),
            template_file=_incoming(template_file),
            template_store=ctx.templates,
            blob_store=ctx.blob_store,
        )
        return _dump(updated)

    @router.delete("/{template_id}", response_model=DeleteResponse, dependencies=admin)
    def delete(template_id: str, request: Request) -> DeleteResponse:
        ctx = request.app.state.ctx
        delete_template(template_id, template_store=ctx.templates, blob_store=ctx.blob_store)
        return DeleteResponse(message="Template deleted", id=template_id)

    return router
