from catalog_server.adapters.blob_store import SQLiteChunkedBlobStore
from catalog_server.adapters.sqlite_store import SQLiteTemplateRepository

__all__ = [
    "SQLiteChunkedBlobStore",
    "SQLiteTemplateRepository",
]
