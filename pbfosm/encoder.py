"""Writing OSM elements to a PBF stream."""

from __future__ import annotations

import logging
import struct
import threading
import zlib
from collections.abc import Callable, Iterable, Sequence
from typing import BinaryIO

from pbfosm.elements import (
    MemberType,
    Node,
    Relation,
    Way,
    nodes_block,
    relations_block,
    ways_block,
)
from pbfosm.wire import HeaderBBox, field_bytes, field_string, field_varint

BLOB_TYPE_HEADER = "OSMHeader"
BLOB_TYPE_DATA = "OSMData"

#: Buffered elements of one kind are written once another append would pass this count.
DEFAULT_GROUP_LIMIT = 8000

_BLOCK_ENCODERS: dict[MemberType, Callable[[Sequence], bytes]] = {
    MemberType.NODE: nodes_block,
    MemberType.WAY: ways_block,
    MemberType.RELATION: relations_block,
}


class Encoder:
    """Buffers nodes, ways and relations and writes them as PBF blobs.

    Elements of each kind are collected until adding a batch would take the
    buffer past :data:`DEFAULT_GROUP_LIMIT`; the buffer is then written as one
    primitive block.  :meth:`flush` writes a buffer at once and :meth:`close`
    writes whatever remains before closing the writer.
    """

    def __init__(
        self,
        writer: BinaryIO,
        required_features: Iterable[str],
        *,
        optional_features: Iterable[str] = (),
        writing_program: str = "",
        enable_zlib: bool = True,
        bbox: HeaderBBox | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.writer = writer
        self.required_features = list(required_features)
        self.optional_features = list(optional_features)
        self.writing_program = writing_program
        self.enable_zlib = enable_zlib
        self.bbox = bbox
        self.logger = logger if logger is not None else logging.getLogger("pbfosm")

        self._lock = threading.RLock()
        self._buffers: dict[MemberType, list] = {kind: [] for kind in MemberType}
        self._started = False
        self._closed = False

    def __enter__(self) -> Encoder:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def start(self) -> None:
        """Write the file header; elements may be appended afterwards."""
        with self._lock:
            if self._closed:
                raise RuntimeError("encoder is closed")
            if self._started:
                raise RuntimeError("encoder already started")
            self._write_blob(self._header_block(), BLOB_TYPE_HEADER)
            self._started = True

    def close(self) -> None:
        """Write every buffered element and close the writer."""
        with self._lock:
            if self._closed:
                self.logger.warning("encoder already closed")
                return
            if self._started:
                for kind in MemberType:
                    self._write_buffer(kind)
            self._closed = True
            self.writer.close()

    def flush(self, member_type: MemberType) -> None:
        """Write the buffered elements of one kind immediately."""
        with self._lock:
            if self._closed:
                self.logger.warning("flush after the encoder was closed")
                return
            self._ensure_started()
            self._write_buffer(MemberType(member_type))

    def append_nodes(self, nodes: Iterable[Node]) -> None:
        """Buffer nodes; they are written as dense nodes."""
        self._append(MemberType.NODE, nodes)

    def append_ways(self, ways: Iterable[Way]) -> None:
        """Buffer ways."""
        self._append(MemberType.WAY, ways)

    def append_relations(self, relations: Iterable[Relation]) -> None:
        """Buffer relations."""
        self._append(MemberType.RELATION, relations)

    def _ensure_started(self) -> None:
        if self._closed:
            raise RuntimeError("encoder is closed")
        if not self._started:
            raise RuntimeError("encoder has not been started")

    def _append(self, kind: MemberType, items: Iterable) -> None:
        items = list(items)
        with self._lock:
            self._ensure_started()
            buffer = self._buffers[kind]
            if buffer and len(buffer) + len(items) > DEFAULT_GROUP_LIMIT:
                self._write_buffer(kind)
            buffer.extend(items)

    def _write_buffer(self, kind: MemberType) -> None:
        buffer = self._buffers[kind]
        if not buffer:
            return
        block = _BLOCK_ENCODERS[kind](buffer)
        self._write_blob(block, BLOB_TYPE_DATA)
        buffer.clear()

    def _header_block(self) -> bytes:
        parts = []
        if self.bbox is not None:
            parts.append(field_bytes(1, self.bbox.to_bytes()))
        parts.extend(field_string(4, f) for f in self.required_features)
        parts.extend(field_string(5, f) for f in self.optional_features)
        if self.writing_program:
            parts.append(field_string(16, self.writing_program))
        return b"".join(parts)

    def _write_blob(self, payload: bytes, blob_type: str) -> None:
        if self.enable_zlib:
            blob = field_varint(2, len(payload)) + field_bytes(3, zlib.compress(payload))
        else:
            blob = field_bytes(1, payload) + field_varint(2, len(payload))
        header = field_string(1, blob_type) + field_varint(3, len(blob))
        self.writer.write(struct.pack(">I", len(header)))
        self.writer.write(header)
        self.writer.write(blob)