class CatalogError(Exception):
    """Base class for domain exceptions."""


class NotFoundError(CatalogError):
    pass


class TemplateNotFoundError(NotFoundError):
    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")


class BlobNotFoundError(NotFoundError):
    def __init__(self, blob_id: str) -> None:
        self.blob_id = blob_id
        super().__init__(f"Blob not found: {blob_id}")


class InvalidInputError(CatalogError):
    pass


class StorageIOError(CatalogError):
    """Raised when the underlying storage medium fails during read, write or delete."""
