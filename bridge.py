import logging
import os
from typing import Optional

from assembler import ChunkResult, ImageReassembler
from bitmap import HEIGHT, WIDTH, BitmapError, encode_bitmap, to_image
from config import BridgeConfig
from page import CLEAR_RESPONSE, as_data_url, image_page, parse_response, placeholder_page
from storage import KeyValueStore, StorageError
from transport import bmp_data_uri


class BridgeError(Exception):
    pass


def open_store(path: str) -> KeyValueStore:
    """Open the storage file, starting empty when it cannot be read."""
    try:
        return KeyValueStore(path)
    except StorageError:
        logging.exception("ignoring unreadable storage, the next write replaces it")
        return KeyValueStore(path, load=False)


class DrawBridge:
    """Handles the events the phone runtime delivers for the Draw app."""

    def __init__(self, config: BridgeConfig, store: Optional[KeyValueStore] = None):
        self.config = config
        self.store = store if store is not None else open_store(config.storage_path)
        self.reassembler = ImageReassembler(self.store, config.data_key, config.status_key)

    def on_ready(self) -> None:
        self.reassembler.restore()
        logging.info("bridge ready, image %s", "available" if self.reassembler.is_complete else "missing")

    def on_app_message(self, payload) -> ChunkResult:
        return self.reassembler.on_message(payload)

    def bitmap(self) -> Optional[bytes]:
        """Return the BMP file for the stored image, or None when there is none."""
        if not self.reassembler.is_complete:
            return None
        return encode_bitmap(self.reassembler.buffer, WIDTH, HEIGHT)

    def render_page(self) -> str:
        try:
            bmp = self.bitmap()
        except BitmapError:
            logging.exception("stored image does not match %dx%d", WIDTH, HEIGHT)
            bmp = None
        if bmp is None:
            return placeholder_page()
        return image_page(bmp_data_uri(bmp))

    def on_show_configuration(self) -> str:
        logging.debug("showing configuration page")
        return as_data_url(self.render_page())

    def on_webview_closed(self, response: Optional[str] = None) -> None:
        value = parse_response(response)
        if value is None:
            logging.debug("configuration page cancelled")
            return
        logging.debug("configuration page returned %r", value)
        if value == CLEAR_RESPONSE:
            self.reassembler.reset()

    def export(self, path: str) -> str:
        bmp = self.bitmap()
        if bmp is None:
            raise BridgeError("no complete image has been received")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if os.path.splitext(path)[1].lower() == ".bmp":
            with open(path, "wb") as fh:
                fh.write(bmp)
        else:
            img = to_image(self.reassembler.buffer, WIDTH, HEIGHT)
            img.save(path)
        logging.info("image exported to %s", path)
        return path
