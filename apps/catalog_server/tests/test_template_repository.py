from catalog_core.models import Template
from catalog_server.adapters import SQLiteTemplateRepository


def _template(**overrides) -> Template:
    fields = {
        "title": "Boda Elegante",
        "description": "Invitación floral",
        "purpose": "Invitaciones de boda",
        "price": 9.99,
        "author": "Lucía",
        "category": "bodas",
        "tags": ["boda", "floral"],
    }
    fields.update(overrides)
    return Template(**fields)


def test_create_and_get_round_trip(tmp_path) -> None:
    repo = SQLiteTemplateRepository(str(tmp_path / "catalog.sqlite3"))
    template = _template(author_id="u-1", image_blob_id="img", file_blob_id="file", file_size_bytes=42)

    repo.create_template(template)

    assert repo.get_template(template.id) == template
    assert repo.get_template("missing") is None


def test_queries(tmp_path) -> None:
    repo = SQLiteTemplateRepository(str(tmp_path / "catalog.sqlite3"))
    wedding = repo.create_template(_template())
    birthday = repo.create_template(
        _template(title="CUMPLEAÑOS Infantil", category="fiestas", tags=["niños"], author="Ana", author_id="u-2")
    )
    hidden = repo.create_template(_template(title="Borrador", is_active=False))

    assert {t.id for t in repo.list_active_templates()} == {wedding.id, birthday.id}
    assert [t.id for t in repo.search_templates("cumpleaños")] == [birthday.id]
    assert [t.id for t in repo.search_templates("ELEGANTE")] == [wedding.id]
    assert {t.id for t in repo.list_templates_by_category("bodas")} == {wedding.id, hidden.id}
    assert [t.id for t in repo.list_templates_by_tag("niños")] == [birthday.id]
    assert [t.id for t in repo.list_templates_by_author("Ana")] == [birthday.id]
    assert [t.id for t in repo.list_templates_by_author_id("u-2")] == [birthday.id]


def test_update_and_delete(tmp_path) -> None:
    repo = SQLiteTemplateRepository(str(tmp_path / "catalog.sqlite3"))
    template = repo.create_template(_template())

    template.download_count = 3
    template.file_blob_id = "new-file"
    repo.update_template(template)
    stored = repo.get_template(template.id)

    assert stored.download_count == 3
    assert stored.file_blob_id == "new-file"

    repo.delete_template(template.id)
    assert repo.get_template(template.id) is None


def test_increment_download_count_touches_only_counter(tmp_path) -> None:
    repo = SQLiteTemplateRepository(str(tmp_path / "catalog.sqlite3"))
    template = repo.create_template(_template(file_blob_id="old-file"))

    stale = repo.get_template(template.id)
    stale.file_blob_id = "new-file"
    repo.update_template(stale)

    assert repo.increment_download_count(template.id) is True
    assert repo.increment_download_count(template.id) is True
    stored = repo.get_template(template.id)

    assert stored.download_count == 2
    assert stored.file_blob_id == "new-file"
    assert stored.updated_at >= template.updated_at
    assert repo.increment_download_count("missing") is False
