from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from catalog_core.errors import StorageIOError
from catalog_core.models import Template, utcnow


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


class SQLiteTemplateRepository:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # sqlite's lower() only folds ASCII
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageIOError(f"Cannot open catalog database: {exc}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageIOError(f"Catalog database error: {exc}") from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS templates (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    purpose TEXT NOT NULL,
                    price REAL NOT NULL,
                    author TEXT NOT NULL,
                    author_id TEXT,
                    tags_json TEXT NOT NULL,
                    category TEXT,
                    image_blob_id TEXT,
                    file_blob_id TEXT,
                    file_name TEXT,
                    file_format TEXT,
                    file_size_bytes INTEGER,
                    rating INTEGER NOT NULL,
                    download_count INTEGER NOT NULL,
                    is_active INTEGER NOT NULL,
                    tutorial_video_url TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_templates_category ON templates(category);
                CREATE INDEX IF NOT EXISTS idx_templates_author ON templates(author);
                CREATE INDEX IF NOT EXISTS idx_templates_author_id ON templates(author_id);
                CREATE INDEX IF NOT EXISTS idx_templates_active ON templates(is_active);
                """
            )
            conn.commit()

    @staticmethod
    def _dumps(value: list[str]) -> str:
        return json.dumps(value, ensure_ascii=False)

    @staticmethod
    def _loads(value: str | None) -> list[str]:
        if not value:
            return []
        return json.loads(value)

    @staticmethod
    def _dt(value: str) -> datetime:
        return datetime.fromisoformat(value)

    def _row_to_template(self, row: sqlite3.Row) -> Template:
        return Template(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            purpose=row["purpose"],
            price=row["price"],
            author=row["author"],
            author_id=row["author_id"],
            tags=self._loads(row["tags_json"]),
            category=row["category"],
            image_blob_id=row["image_blob_id"],
            file_blob_id=row["file_blob_id"],
            file_name=row["file_name"],
            file_format=row["file_format"],
            file_size_bytes=row["file_size_bytes"],
            rating=row["rating"],
            download_count=row["download_count"],
            is_active=bool(row["is_active"]),
            tutorial_video_url=row["tutorial_video_url"],
            created_at=self._dt(row["created_at"]),
            updated_at=self._dt(row["updated_at"]),
        )

    def _query(self, sql: str, params: tuple[Any, ...] = ()) -> list[Template]:
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_template(row) for row in rows]

    def create_template(self, template: Template) -> Template:
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                INSERT INTO templates(
                    id, title, description, purpose, price, author, author_id, tags_json, category,
                    image_blob_id, file_blob_id, file_name, file_format, file_size_bytes,
                    rating, download_count, is_active, tutorial_video_url, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    template.id,
                    template.title,
                    template.description,
                    template.purpose,
                    template.price,
                    template.author,
                    template.author_id,
                    self._dumps(template.tags),
                    template.category,
                    template.image_blob_id,
                    template.file_blob_id,
                    template.file_name,
                    template.file_format,
                    template.file_size_bytes,
                    template.rating,
                    template.download_count,
                    int(template.is_active),
                    template.tutorial_video_url,
                    template.created_at.isoformat(),
                    template.updated_at.isoformat(),
                ),
            )
            conn.commit()
        return template

    def get_template(self, template_id: str) -> Template | None:
        templates = self._query("SELECT * FROM templates WHERE id = ?", (template_id,))
        return templates[0] if templates else None

    def update_template(self, template: Template) -> Template:
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                UPDATE templates
                SET title = ?, description = ?, purpose = ?, price = ?, author = ?, author_id = ?,
                    tags_json = ?, category = ?, image_blob_id = ?, file_blob_id = ?, file_name = ?,
                    file_format = ?, file_size_bytes = ?, rating = ?, download_count = ?, is_active = ?,
                    tutorial_video_url = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    template.title,
                    template.description,
                    template.purpose,
                    template.price,
                    template.author,
                    template.author_id,
                    self._dumps(template.tags),
                    template.category,
                    template.image_blob_id,
                    template.file_blob_id,
                    template.file_name,
                    template.file_format,
                    template.file_size_bytes,
                    template.rating,
                    template.download_count,
                    int(template.is_active),
                    template.tutorial_video_url,
                    template.updated_at.isoformat(),
                    template.id,
                ),
            )
            conn.commit()
        return template

    def delete_template(self, template_id: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute("DELETE FROM templates WHERE id = ?", (template_id,))
            conn.commit()

    def increment_download_count(self, template_id: str) -> bool:
        with self._lock, self._connection() as conn:
            cursor = conn.execute(
                "UPDATE templates SET download_count = download_count + 1, updated_at = ? WHERE id = ?",
                (utcnow().isoformat(), template_id),
            )
            conn.commit()
        return cursor.rowcount == 1

    def list_active_templates(self) -> list[Template]:
        return self._query("SELECT * FROM templates WHERE is_active = 1 ORDER BY created_at DESC")

    def search_templates(self, query: str) -> list[Template]:
        return self._query(
            "SELECT * FROM templates WHERE instr(casefold(title), casefold(?)) > 0 ORDER BY created_at DESC",
            (query,),
        )

    def list_templates_by_category(self, category: str) -> list[Template]:
        return self._query(
            "SELECT * FROM templates WHERE category = ? ORDER BY created_at DESC",
            (category,),
        )

    def list_templates_by_tag(self, tag: str) -> list[Template]:
        return self._query(
            """
            SELECT * FROM templates
            WHERE EXISTS (SELECT 1 FROM json_each(templates.tags_json) WHERE json_each.value = ?)
            ORDER BY created_at DESC
            """,
            (tag,),
        )

    def list_templates_by_author(self, author: str) -> list[Template]:
        return self._query(
            "SELECT * FROM templates WHERE author = ? ORDER BY created_at DESC",
            (author,),
        )

    def list_templates_by_author_id(self, author_id: str) -> list[Template]:
        return self._query(
            "SELECT * FROM templates WHERE author_id = ? ORDER BY created_at DESC",
            (author_id,),
        )
