from catalog_core.models import (
    BlobInfo,
    BlobStream,
    DownloadedFile,
    IncomingFile,
    Template,
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
]
