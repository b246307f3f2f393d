from __future__ import annotations

import io
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import BinaryIO
from uuid import uuid4

import pytest
from catalog_core.errors import BlobNotFoundError, StorageIOError
from catalog_core.models import BlobInfo, IncomingFile, Template, TemplateDraft, utcnow
from catalog_core.services import iter_chunks


class InMemoryBlobStore:
    def __init__(self, chunk_size: int = 4) -> None:
        self.chunk_size = chunk_size
        self.blobs: dict[str, tuple[list[bytes], BlobInfo]] = {}
        self.fail_put_tags: set[str] = set()
        self.fail_delete = False
        self.fail_stat_tags: set[str] = set()
        self.deleted: list[str] = []

    def put(self, stream: BinaryIO, *, content_type: str, tag: str, filename: str | None = None) -> str:
        if tag in self.fail_put_tags:
            raise StorageIOError(f"disk full while writing {tag}")
        chunks = list(iter_chunks(stream, chunk_size=self.chunk_size))
        blob_id = uuid4().hex
        self.blobs[blob_id] = (
            chunks,
            BlobInfo(
                id=blob_id,
                content_type=content_type,
                size=sum(len(chunk) for chunk in chunks),
                tag=tag,
                filename=filename,
                chunk_size=self.chunk_size,
                created_at=datetime.now(UTC),
            ),
        )
        return blob_id

    def _entry(self, blob_id: str) -> tuple[list[bytes], BlobInfo]:
        try:
            return self.blobs[blob_id]
        except KeyError:
            raise BlobNotFoundError(blob_id) from None

    def get(self, blob_id: str) -> bytes:
        return b"".join(self._entry(blob_id)[0])

    def stream(self, blob_id: str) -> Iterator[bytes]:
        return iter(list(self._entry(blob_id)[0]))

    def get_content_type(self, blob_id: str) -> str:
        return self._entry(blob_id)[1].content_type

    def stat(self, blob_id: str) -> BlobInfo:
        info = self._entry(blob_id)[1]
        if info.tag in self.fail_stat_tags:
            raise StorageIOError(f"cannot stat {blob_id}")
        return info

    def exists(self, blob_id: str) -> bool:
        return blob_id in self.blobs

    def delete(self, blob_id: str) -> None:
        if self.fail_delete:
            raise StorageIOError(f"cannot delete {blob_id}")
        self.deleted.append(blob_id)
        self.blobs.pop(blob_id, None)


class InMemoryTemplateStore:
    def __init__(self) -> None:
        self.templates: dict[str, Template] = {}
        self.fail_writes = False

    def _check(self) -> None:
        if self.fail_writes:
            raise StorageIOError("catalog unavailable")

    def create_template(self, template: Template) -> Template:
        self._check()
        self.templates[template.id] = template.model_copy(deep=True)
        return template

    def get_template(self, template_id: str) -> Template | None:
        template = self.templates.get(template_id)
        return template.model_copy(deep=True) if template else None

    def update_template(self, template: Template) -> Template:
        self._check()
        self.templates[template.id] = template.model_copy(deep=True)
        return template

    def delete_template(self, template_id: str) -> None:
        self._check()
        self.templates.pop(template_id, None)

    def increment_download_count(self, template_id: str) -> bool:
        self._check()
        template = self.templates.get(template_id)
        if template is None:
            return False
        template.download_count += 1
        template.updated_at = utcnow()
        return True

    def list_active_templates(self) -> list[Template]:
        return [t for t in self.templates.values() if t.is_active]

    def search_templates(self, query: str) -> list[Template]:
        return [t for t in self.templates.values() if query.casefold() in t.title.casefold()]

    def list_templates_by_category(self, category: str) -> list[Template]:
        return [t for t in self.templates.values() if t.category == category]

    def list_templates_by_tag(self, tag: str) -> list[Template]:
        return [t for t in self.templates.values() if tag in t.tags]

    def list_templates_by_author(self, author: str) -> list[Template]:
        return [t for t in self.templates.values() if t.author == author]

    def list_templates_by_author_id(self, author_id: str) -> list[Template]:
        return [t for t in self.templates.values() if t.author_id == author_id]


def make_file(content: bytes, filename: str, content_type: str | None = None) -> IncomingFile:
    return IncomingFile(
        stream=io.BytesIO(content),
        filename=filename,
        content_type=content_type,
        size=len(content),
    )


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def template_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore()


@pytest.fixture
def draft() -> TemplateDraft:
    return TemplateDraft(
        title="Boda Elegante",
        description="Invitación floral",
        purpose="Invitaciones de boda",
        price=9.99,
        author="Lucía",
        category="bodas",
        tags=["boda", "floral"],
    )


@pytest.fixture
def upload():
    return make_file
