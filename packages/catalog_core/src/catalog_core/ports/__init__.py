from catalog_core.ports.blob import BlobStore
from catalog_core.ports.store import TemplateStore

__all__ = [
    "BlobStore",
    "TemplateStore",
]
