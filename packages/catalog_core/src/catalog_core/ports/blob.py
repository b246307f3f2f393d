from collections.abc import Iterator
from typing import BinaryIO, Protocol

from catalog_core.models import BlobInfo


class BlobStore(Protocol):
    def put(self, stream: BinaryIO, *, content_type: str, tag: str, filename: str | None = None) -> str: ...

    def get(self, blob_id: str) -> bytes: ...

    def stream(self, blob_id: str) -> Iterator[bytes]: ...

    def get_content_type(self, blob_id: str) -> str: ...

    def stat(self, blob_id: str) -> BlobInfo: ...

    def exists(self, blob_id: str) -> bool: ...

    def delete(self, blob_id: str) -> None: ...
