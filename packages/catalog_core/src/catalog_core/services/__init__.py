from catalog_core.services.chunker import DEFAULT_CHUNK_SIZE, iter_chunks
from catalog_core.services.file_types import (
    ALLOWED_IMAGE_TYPES,
    ALLOWED_TEMPLATE_FORMATS,
    ensure_valid_image,
    ensure_valid_template_file,
    file_extension,
    is_valid_image_type,
    is_valid_template_file,
    normalize_content_type,
)

__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "ALLOWED_TEMPLATE_FORMATS",
    "DEFAULT_CHUNK_SIZE",
    "ensure_valid_image",
    "ensure_valid_template_file",
    "file_extension",
    "is_valid_image_type",
    "is_valid_template_file",
    "iter_chunks",
    "normalize_content_type",
]
