from __future__ import annotations

from dataclasses import dataclass

from catalog_server.adapters import SQLiteChunkedBlobStore, SQLiteTemplateRepository
from catalog_server.config import Settings


@dataclass
class AppContext:
    settings: Settings
    auth_token: str
    templates: SQLiteTemplateRepository
    blob_store: SQLiteChunkedBlobStore
