from catalog_core.pipelines.templates import (
    create_template,
    delete_template,
    download_template,
    open_template_image,
    update_template,
)

__all__ = [
    "create_template",
    "delete_template",
    "download_template",
    "open_template_image",
    "update_template",
]
