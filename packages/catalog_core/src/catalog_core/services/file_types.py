from __future__ import annotations

from catalog_core.errors import InvalidInputError
from catalog_core.models import IncomingFile

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
ALLOWED_TEMPLATE_FORMATS = frozenset({"pdf", "docx", "pptx", "xlsx"})


def file_extension(filename: str | None) -> str:
    """Return the lower-cased extension without the dot, or ``""``.

    A leading dot alone (``.pdf``) is a hidden file name, not an extension.
    """
    if not filename:
        return ""
    last_dot = filename.rfind(".")
    return filename[last_dot + 1 :].lower() if last_dot > 0 else ""


def normalize_content_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_valid_image_type(content_type: str | None) -> bool:
    return normalize_content_type(content_type) in ALLOWED_IMAGE_TYPES


def is_valid_template_file(filename: str | None) -> bool:
    return file_extension(filename) in ALLOWED_TEMPLATE_FORMATS


def ensure_valid_image(upload: IncomingFile) -> None:
    if not is_valid_image_type(upload.content_type):
        allowed = ", ".join(sorted(ALLOWED_IMAGE_TYPES))
        raise InvalidInputError(f"Invalid image type {upload.content_type!r}; expected one of: {allowed}")


def ensure_valid_template_file(upload: IncomingFile) -> None:
    if not is_valid_template_file(upload.filename):
        allowed = ", ".join(sorted(ALLOWED_TEMPLATE_FORMATS))
        raise InvalidInputError(f"Invalid template file {upload.filename!r}; expected one of: {allowed}")
