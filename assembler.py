import json
import logging
from enum import Enum, IntEnum
from collections.abc import Iterable
from typing import Optional, Tuple

from storage import KeyValueStore


class ChunkStatus(IntEnum):
    EMPTY = 0
    FIRST_SEEN = 1
    MID_SEEN = 2
    COMPLETE = 3


# Markers sent by the watch share their values with the status they produce.
FIRST_CHUNK = ChunkStatus.FIRST_SEEN
MID_CHUNK = ChunkStatus.MID_SEEN
LAST_CHUNK = ChunkStatus.COMPLETE


class ChunkResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


def _as_bytes(payload) -> Optional[bytes]:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, (str, dict)) or not isinstance(payload, Iterable):
        return None
    try:
        return bytes(payload)
    except (TypeError, ValueError):
        return None


class ImageReassembler:
    """Accumulates FIRST/MIDDLE/LAST chunks into one persisted pixel buffer."""

    def __init__(self, store: KeyValueStore, data_key: str = "image_data", status_key: str = "image_status"):
        self.store = store
        self.data_key = data_key
        self.status_key = status_key
        self.buffer = bytearray()
        self.status = ChunkStatus.EMPTY

    @property
    def is_complete(self) -> bool:
        return self.status == ChunkStatus.COMPLETE and len(self.buffer) > 1

    def on_message(self, payload) -> ChunkResult:
        """Handle an app-message dictionary carrying chunk_status and image_data."""
        if not isinstance(payload, dict):
            logging.debug("ignoring message without payload")
            return ChunkResult.IGNORED
        if "chunk_status" not in payload or "image_data" not in payload:
            logging.debug("ignoring message missing chunk fields: %s", sorted(payload))
            return ChunkResult.IGNORED
        return self.on_chunk(payload["chunk_status"], payload["image_data"])

    def on_chunk(self, marker, payload) -> ChunkResult:
        if marker is None or payload is None:
            logging.debug("ignoring chunk with missing marker or payload")
            return ChunkResult.IGNORED
        try:
            marker = ChunkStatus(marker)
        except ValueError:
            logging.warning("ignoring chunk with unknown marker %r", marker)
            return ChunkResult.IGNORED
        if marker == ChunkStatus.EMPTY:
            logging.warning("ignoring chunk with unknown marker %r", int(marker))
            return ChunkResult.IGNORED
        data = _as_bytes(payload)
        if data is None:
            logging.warning("ignoring chunk with non-byte payload")
            return ChunkResult.IGNORED

        if marker == FIRST_CHUNK:
            if self.status in (ChunkStatus.FIRST_SEEN, ChunkStatus.MID_SEEN):
                logging.warning("restarting transfer, discarding %d buffered bytes", len(self.buffer))
            self.buffer = bytearray(data)
        else:
            if self.status in (ChunkStatus.EMPTY, ChunkStatus.COMPLETE):
                logging.warning("chunk %s arrived without a preceding first chunk", marker.name)
            self.buffer.extend(data)
        self.status = marker
        logging.debug("chunk %s applied, %d bytes buffered", marker.name, len(self.buffer))

        if marker == LAST_CHUNK:
            logging.info("image received, %d bytes", len(self.buffer))
            self.persist()
        return ChunkResult.APPLIED

    def persist(self) -> None:
        self.store.set(self.data_key, list(self.buffer))
        self.store.set(self.status_key, int(self.status))

    def restore(self) -> Tuple[bytearray, ChunkStatus]:
        data = self.store.get(self.data_key)
        status = self.store.get(self.status_key)
        # older snapshots stored the list as a JSON string
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                logging.warning("discarding unreadable image snapshot")
                data = None
        buffer = _as_bytes(data) if data is not None else None
        try:
            status = ChunkStatus(status) if status is not None else ChunkStatus.EMPTY
        except ValueError:
            logging.warning("discarding unknown stored status %r", status)
            status = ChunkStatus.EMPTY
        if buffer is None:
            if data is not None:
                logging.warning("discarding malformed image snapshot")
            buffer = b""
            status = ChunkStatus.EMPTY
        self.buffer = bytearray(buffer)
        self.status = status
        logging.debug("restored %d bytes with status %s", len(self.buffer), self.status.name)
        return self.buffer, self.status

    def reset(self) -> None:
        self.buffer = bytearray()
        self.status = ChunkStatus.EMPTY
        self.persist()
        logging.info("image cleared")
