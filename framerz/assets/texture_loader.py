"""
Texture Loader.

Loads images (thumbnails, target images) from HTTP(S) URLs or local paths.
Completion is reported through callbacks. In background mode the fetch runs
on a worker thread, but callbacks are queued and only run when the render
loop calls dispatch_pending(), so the scene graph is never touched off the
loop thread.
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple

import cv2
import httpx
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from framerz.core.errors import AssetDegradation
from framerz.scene.graph import Texture


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_image_bytes(
    source: str,
    client: Optional[httpx.Client] = None,
    timeout: float = 10.0,
) -> bytes:
    """Read raw bytes from a URL or a local file.

    Raises:
        httpx.HTTPError: remote fetch failed
        httpx.InvalidURL: source is not a valid URL
        OSError: local file could not be read
    """
    if not is_remote(source):
        return Path(source).read_bytes()

    if client is not None:
        response = client.get(source)
        response.raise_for_status()
        return response.content

    with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
        response = owned.get(source)
        response.raise_for_status()
        return response.content


def decode_image(data: bytes) -> NDArray[np.uint8]:
    """Decode encoded image bytes to an RGB or RGBA array.

    Raises:
        ValueError: bytes are not a decodable image
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED) if buffer.size else None
    if image is None:
        raise ValueError("not a decodable image")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


OnLoad = Callable[[Texture], None]
OnError = Callable[[AssetDegradation], None]


class TextureLoader:
    """
    Callback-based texture loader.

    Guarantees:
    - Exactly one of on_load / on_error runs per load() call
    - Callbacks run on the thread that calls dispatch_pending()
      (or inline, when background=False)
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        background: bool = True,
    ):
        """
        Initialize texture loader.

        Args:
            client: httpx client for remote sources
            timeout: Request timeout when no client is given
            background: Fetch on a worker thread instead of inline
        """
        self.client = client
        self.timeout = timeout
        self.background = background

        self._completed: "queue.Queue[Tuple[Callable, object]]" = queue.Queue()
        self._threads: list[threading.Thread] = []

    def load(self, source: str, on_load: OnLoad, on_error: Optional[OnError] = None) -> None:
        """
        Start loading a texture.

        Args:
            source: URL or local path
            on_load: Called with the loaded Texture
            on_error: Called with AssetDegradation when loading fails
        """
        if not self.background:
            self._deliver(*self._fetch(source, on_load, on_error))
            return

        def worker():
            self._completed.put(self._fetch(source, on_load, on_error))

        thread = threading.Thread(target=worker, daemon=True, name="texture-loader")
        self._threads.append(thread)
        thread.start()

    def dispatch_pending(self) -> int:
        """Run queued completion callbacks. Returns how many ran."""
        dispatched = 0
        while True:
            try:
                callback, arg = self._completed.get_nowait()
            except queue.Empty:
                return dispatched
            self._deliver(callback, arg)
            dispatched += 1

    def wait(self, timeout: Optional[float] = None) -> None:
        """Join outstanding worker threads."""
        for thread in self._threads:
            thread.join(timeout)
        self._threads = [t for t in self._threads if t.is_alive()]

    def _fetch(self, source: str, on_load: OnLoad, on_error: Optional[OnError]):
        try:
            image = decode_image(read_image_bytes(source, self.client, self.timeout))
        except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as e:
            logger.warning(f"Texture load failed for {source}: {e}")
            return (on_error, AssetDegradation(f"Could not load {source}: {e}"))

        logger.debug(f"Texture loaded: {source} ({image.shape[1]}x{image.shape[0]})")
        return (on_load, Texture(image=image))

    @staticmethod
    def _deliver(callback: Optional[Callable], arg: object) -> None:
        if callback is not None:
            callback(arg)
