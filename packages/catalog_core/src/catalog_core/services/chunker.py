from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 255 * 1024


def iter_chunks(stream: BinaryIO, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    buffer = bytearray()
    while True:
        piece = stream.read(chunk_size - len(buffer))
        if not piece:
            break
        buffer.extend(piece)
        # raw streams may return short reads; only full chunks are emitted mid-stream
        if len(buffer) == chunk_size:
            yield bytes(buffer)
            buffer.clear()

    if buffer:
        yield bytes(buffer)
