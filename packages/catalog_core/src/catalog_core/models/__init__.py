from catalog_core.models.entities import Template, utcnow
from catalog_core.models.io import (
    BlobInfo,
    BlobStream,
    DownloadedFile,
    IncomingFile,
    TemplateDraft,
    TemplatePatch,
)

__all__ = [
    "BlobInfo",
    "BlobStream",
    "DownloadedFile",
    "IncomingFile",
    "Template",
    "TemplateDraft",
    "TemplatePatch",
    "utcnow",
]
