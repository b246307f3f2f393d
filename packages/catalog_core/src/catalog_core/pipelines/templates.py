"""Create, update, delete and download templates while keeping blob references consistent.

The catalog and the blob store are independent and share no transaction, so
every write follows one ordering: new blobs are uploaded before a record
references them, and superseded blobs are deleted only after the record stops
referencing them. Deleting a template removes its blobs before the record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from catalog_core.errors import NotFoundError, StorageIOError, TemplateNotFoundError
from catalog_core.models import (
    BlobStream,
    DownloadedFile,
    IncomingFile,
    Template,
    TemplateDraft,
    TemplatePatch,
    utcnow,
)
from catalog_core.ports import BlobStore, TemplateStore
from catalog_core.services import ensure_valid_image, ensure_valid_template_file, file_extension

logger = logging.getLogger(__name__)

IMAGE_TAG = "image"
TEMPLATE_TAG = "template"
DEFAULT_TEMPLATE_CONTENT_TYPE = "application/octet-stream"


def _has_content(upload: IncomingFile | None) -> bool:
    return upload is not None and not upload.is_empty


def _discard_blobs(blob_store: BlobStore, blob_ids: list[str], *, reason: str) -> None:
    """Best-effort removal of blobs no record points at. Tried once, failures are logged."""
    for blob_id in blob_ids:
        try:
            blob_store.delete(blob_id)
        except StorageIOError:
            logger.exception("Failed to delete orphaned blob %s (%s).", blob_id, reason)


def _put_image(blob_store: BlobStore, image: IncomingFile) -> str:
    return blob_store.put(
        image.stream,
        content_type=image.content_type or DEFAULT_TEMPLATE_CONTENT_TYPE,
        tag=IMAGE_TAG,
        filename=image.filename,
    )


def _put_template_file(blob_store: BlobStore, template_file: IncomingFile) -> str:
    return blob_store.put(
        template_file.stream,
        content_type=template_file.content_type or DEFAULT_TEMPLATE_CONTENT_TYPE,
        tag=TEMPLATE_TAG,
        filename=template_file.filename,
    )


def _require_template(template_store: TemplateStore, template_id: str) -> Template:
    template = template_store.get_template(template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)
    return template


def create_template(
    draft: TemplateDraft,
    image: IncomingFile,
    template_file: IncomingFile,
    *,
    template_store: TemplateStore,
    blob_store: BlobStore,
) -> Template:
    ensure_valid_image(image)
    ensure_valid_template_file(template_file)

    image_blob_id = _put_image(blob_store, image)
    uploaded = [image_blob_id]
    try:
        file_blob_id = _put_template_file(blob_store, template_file)
        uploaded.append(file_blob_id)
        file_size = blob_store.stat(file_blob_id).size
    except Exception:
        _discard_blobs(blob_store, uploaded, reason="template file upload failed")
        raise

    now = utcnow()
    template = Template(
        **draft.model_dump(),
        image_blob_id=image_blob_id,
        file_blob_id=file_blob_id,
        file_name=template_file.filename,
        file_format=file_extension(template_file.filename),
        file_size_bytes=file_size,
        rating=0,
        download_count=0,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    try:
        created = template_store.create_template(template)
    except Exception:
        _discard_blobs(blob_store, uploaded, reason="template record write failed")
        raise

    logger.info("Created template %s (image=%s, file=%s).", created.id, image_blob_id, file_blob_id)
    return created


def update_template(
    template_id: str,
    patch: TemplatePatch,
    *,
    image: IncomingFile | None = None,
    template_file: IncomingFile | None = None,
    template_store: TemplateStore,
    blob_store: BlobStore,
) -> Template:
    template = _require_template(template_store, template_id)

    replace_image = _has_content(image)
    replace_file = _has_content(template_file)
    # validate every binary before touching either store
    if replace_image:
        ensure_valid_image(image)
    if replace_file:
        ensure_valid_template_file(template_file)

    for field, value in patch.changes().items():
        setattr(template, field, value)

    uploaded: list[str] = []
    try:
        if replace_image:
            new_image_id = _put_image(blob_store, image)
            uploaded.append(new_image_id)
        if replace_file:
            new_file_id = _put_template_file(blob_store, template_file)
            uploaded.append(new_file_id)
            new_file_size = blob_store.stat(new_file_id).size
    except Exception:
        _discard_blobs(blob_store, uploaded, reason="replacement upload failed")
        raise

    superseded: list[str] = []
    if replace_image:
        if template.image_blob_id is not None:
            superseded.append(template.image_blob_id)
        template.image_blob_id = new_image_id
    if replace_file:
        if template.file_blob_id is not None:
            superseded.append(template.file_blob_id)
        template.file_blob_id = new_file_id
        template.file_name = template_file.filename
        template.file_format = file_extension(template_file.filename)
        template.file_size_bytes = new_file_size
    template.updated_at = utcnow()

    try:
        updated = template_store.update_template(template)
    except Exception:
        _discard_blobs(blob_store, uploaded, reason="template record update failed")
        raise

    _discard_blobs(blob_store, superseded, reason="superseded by update")
    logger.info("Updated template %s (replaced blobs: %s).", template_id, superseded or "none")
    return updated


def delete_template(template_id: str, *, template_store: TemplateStore, blob_store: BlobStore) -> None:
    template = _require_template(template_store, template_id)

    # blobs first: an interrupted delete leaves a dangling reference, never a leaked blob
    for blob_id in template.blob_ids():
        blob_store.delete(blob_id)
    template_store.delete_template(template_id)
    logger.info("Deleted template %s and blobs %s.", template_id, template.blob_ids())


def _count_when_complete(chunks: Iterator[bytes], template_store: TemplateStore, template_id: str) -> Iterator[bytes]:
    yield from chunks
    # only a fully read file counts; an abandoned or failed stream never gets here
    if not template_store.increment_download_count(template_id):
        logger.warning("Template %s was deleted while being downloaded; download not counted.", template_id)


def download_template(template_id: str, *, template_store: TemplateStore, blob_store: BlobStore) -> DownloadedFile:
    """Open the template file for streaming and count the download once it has been read.

    The counter is bumped in place by the store rather than by saving the
    whole record, so a download overlapping an update cannot restore a blob
    reference the update already replaced.
    """
    template = _require_template(template_store, template_id)
    if template.file_blob_id is None:
        raise NotFoundError(f"Template {template_id} has no file")

    info = blob_store.stat(template.file_blob_id)
    chunks = blob_store.stream(info.id)

    filename = template.file_name or f"{template.id}.{template.file_format or 'bin'}"
    return DownloadedFile(
        filename=filename,
        content_type=DEFAULT_TEMPLATE_CONTENT_TYPE,
        size=info.size,
        chunks=_count_when_complete(chunks, template_store, template_id),
    )


def open_template_image(template_id: str, *, template_store: TemplateStore, blob_store: BlobStore) -> BlobStream:
    template = _require_template(template_store, template_id)
    if template.image_blob_id is None:
        raise NotFoundError(f"Template {template_id} has no image")

    info = blob_store.stat(template.image_blob_id)
    return BlobStream(
        blob_id=info.id,
        content_type=info.content_type,
        size=info.size,
        chunks=blob_store.stream(info.id),
    )
