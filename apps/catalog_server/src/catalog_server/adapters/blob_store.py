from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import BinaryIO
from uuid import uuid4

from catalog_core.errors import BlobNotFoundError, StorageIOError
from catalog_core.models import BlobInfo
from catalog_core.services import DEFAULT_CHUNK_SIZE, iter_chunks

logger = logging.getLogger(__name__)


class SQLiteChunkedBlobStore:
    """Chunked blob storage in its own SQLite database.

    Payloads are split into ``chunk_size`` rows in ``blob_chunks``. The
    ``blob_files`` row is written only after the last chunk, so a blob is
    addressable exactly when it is complete.
    """

    def __init__(self, db_path: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._db_path = db_path
        self._chunk_size = chunk_size
        self._init_schema()

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageIOError(f"Cannot open blob database: {exc}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageIOError(f"Blob database error: {exc}") from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS blob_files (
                    id TEXT PRIMARY KEY,
                    content_type TEXT NOT NULL,
                    size INTEGER NOT NULL,
                    tag TEXT NOT NULL,
                    filename TEXT,
                    chunk_size INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS blob_chunks (
                    blob_id TEXT NOT NULL,
                    n INTEGER NOT NULL,
                    data BLOB NOT NULL,
                    PRIMARY KEY (blob_id, n)
                );
                """
            )
            conn.commit()

    @staticmethod
    def _info(row: sqlite3.Row) -> BlobInfo:
        return BlobInfo(
            id=row["id"],
            content_type=row["content_type"],
            size=row["size"],
            tag=row["tag"],
            filename=row["filename"],
            chunk_size=row["chunk_size"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _file_row(self, conn: sqlite3.Connection, blob_id: str) -> sqlite3.Row:
        row = conn.execute("SELECT * FROM blob_files WHERE id = ?", (blob_id,)).fetchone()
        if row is None:
            raise BlobNotFoundError(blob_id)
        return row

    def _discard_chunks(self, blob_id: str) -> None:
        try:
            with self._connection() as conn:
                conn.execute("DELETE FROM blob_chunks WHERE blob_id = ?", (blob_id,))
                conn.commit()
        except StorageIOError:
            logger.exception("Failed to clean up chunks of incomplete blob %s.", blob_id)

    def put(self, stream: BinaryIO, *, content_type: str, tag: str, filename: str | None = None) -> str:
        blob_id = uuid4().hex
        size = 0
        count = 0
        try:
            with self._connection() as conn:
                # one chunk in memory at a time; each chunk commits on its own
                for n, data in enumerate(iter_chunks(stream, chunk_size=self._chunk_size)):
                    conn.execute(
                        "INSERT INTO blob_chunks(blob_id, n, data) VALUES (?, ?, ?)",
                        (blob_id, n, data),
                    )
                    conn.commit()
                    size += len(data)
                    count += 1
                conn.execute(
                    """
                    INSERT INTO blob_files(id, content_type, size, tag, filename, chunk_size, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        blob_id,
                        content_type,
                        size,
                        tag,
                        filename,
                        self._chunk_size,
                        datetime.now(UTC).isoformat(),
                    ),
                )
                conn.commit()
        except (OSError, ValueError) as exc:
            self._discard_chunks(blob_id)
            raise StorageIOError(f"Upload stream interrupted: {exc}") from exc
        except StorageIOError:
            self._discard_chunks(blob_id)
            raise

        logger.debug("Stored blob %s (%s, %d bytes in %d chunks).", blob_id, tag, size, count)
        return blob_id

    def _read_chunk(self, conn: sqlite3.Connection, blob_id: str, n: int, expected: int) -> bytes:
        row = conn.execute(
            "SELECT data FROM blob_chunks WHERE blob_id = ? AND n = ?",
            (blob_id, n),
        ).fetchone()
        if row is None or len(row["data"]) != expected:
            raise StorageIOError(f"Blob {blob_id} is corrupted at chunk {n}")
        return bytes(row["data"])

    def _chunk_lengths(self, size: int, chunk_size: int) -> list[int]:
        full, rest = divmod(size, chunk_size)
        return [chunk_size] * full + ([rest] if rest else [])

    def get(self, blob_id: str) -> bytes:
        return b"".join(self.stream(blob_id))

    def stream(self, blob_id: str) -> Iterator[bytes]:
        with self._connection() as conn:
            row = self._file_row(conn, blob_id)
        lengths = self._chunk_lengths(row["size"], row["chunk_size"])
        return self._iter_blob(blob_id, lengths)

    def _iter_blob(self, blob_id: str, lengths: list[int]) -> Iterator[bytes]:
        with self._connection() as conn:
            for n, expected in enumerate(lengths):
                yield self._read_chunk(conn, blob_id, n, expected)

    def get_content_type(self, blob_id: str) -> str:
        return self.stat(blob_id).content_type

    def stat(self, blob_id: str) -> BlobInfo:
        with self._connection() as conn:
            return self._info(self._file_row(conn, blob_id))

    def exists(self, blob_id: str) -> bool:
        with self._connection() as conn:
            row = conn.execute("SELECT 1 FROM blob_files WHERE id = ?", (blob_id,)).fetchone()
        return row is not None

    def delete(self, blob_id: str) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM blob_files WHERE id = ?", (blob_id,))
            conn.execute("DELETE FROM blob_chunks WHERE blob_id = ?", (blob_id,))
            conn.commit()
