from typing import Protocol

from catalog_core.models import Template


class TemplateStore(Protocol):
    def create_template(self, template: Template) -> Template: ...

    def get_template(self, template_id: str) -> Template | None: ...

    def update_template(self, template: Template) -> Template: ...

    def delete_template(self, template_id: str) -> None: ...

    def increment_download_count(self, template_id: str) -> bool: ...

    def list_active_templates(self) -> list[Template]: ...

    def search_templates(self, query: str) -> list[Template]: ...

    def list_templates_by_category(self, category: str) -> list[Template]: ...

    def list_templates_by_tag(self, tag: str) -> list[Template]: ...

    def list_templates_by_author(self, author: str) -> list[Template]: ...

    def list_templates_by_author_id(self, author_id: str) -> list[Template]: ...
