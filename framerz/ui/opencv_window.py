"""
OpenCV window surface.

Shows rendered frames with cv2.imshow, draws the loader text until it is
hidden, and collects left clicks through cv2.setMouseCallback.
"""
from typing import List, Optional

import cv2
import numpy as np
from loguru import logger

from framerz.core.contracts import PointerEvent, Viewport
from .base import BaseSurface


class OpenCVSurface(BaseSurface):
    """OpenCV-based surface using imshow.

    The window is created lazily on the first show() so the mouse callback
    is bound to an existing window.
    """

    def __init__(self, config=None):
        """Initialize OpenCV surface.

        Args:
            config: AppConfig with window settings
        """
        self.window_name = getattr(config, "window_name", "Framerz AR")
        self.title = getattr(config, "default_title", "AR Experience")
        self.loader_text: Optional[str] = "Loading..."
        self._window_created = False
        self._pointer_events: List[PointerEvent] = []
        self._viewport: Optional[Viewport] = None
        self._blank = np.zeros((480, 640, 3), dtype=np.uint8)

    def _ensure_window(self) -> None:
        if self._window_created:
            return
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.window_name, self._mouse_callback)
        cv2.setWindowTitle(self.window_name, self.title)
        self._window_created = True

    def _mouse_callback(self, event, x, y, flags, param):
        if event == cv2.EVENT_LBUTTONDOWN:
            self._pointer_events.append(PointerEvent(float(x), float(y)))

    def set_title(self, title: str) -> None:
        self.title = title
        if self._window_created:
            cv2.setWindowTitle(self.window_name, title)

    def hide_loader(self) -> None:
        self.loader_text = None

    def set_loader_text(self, text: str) -> None:
        self.loader_text = text
        self.show(self._blank)
        cv2.waitKey(1)

    def alert(self, message: str) -> None:
        logger.warning(f"ALERT: {message}")
        self.loader_text = message
        self.show(self._blank)
        cv2.waitKey(1)

    def show(self, frame: np.ndarray) -> None:
        """Display an RGB frame."""
        self._ensure_window()
        display_frame = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)

        if self.loader_text:
            self._draw_loader(display_frame, self.loader_text)

        h, w = display_frame.shape[:2]
        self._viewport = Viewport(w, h)
        cv2.imshow(self.window_name, display_frame)

    def _draw_loader(self, frame: np.ndarray, text: str) -> None:
        h, w = frame.shape[:2]
        (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
        x, y = (w - tw) // 2, (h + th) // 2

        overlay = frame.copy()
        cv2.rectangle(overlay, (x - 20, y - th - 20), (x + tw + 20, y + 20), (0, 0, 0), -1)
        cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)
        cv2.putText(frame, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 255, 255), 2, cv2.LINE_AA)

    def poll_pointer(self) -> List[PointerEvent]:
        events, self._pointer_events = self._pointer_events, []
        return events

    def poll_key(self) -> Optional[int]:
        key = cv2.waitKey(1) & 0xFF
        if key == 255:  # No key pressed
            return None
        return key

    @property
    def viewport(self) -> Optional[Viewport]:
        return self._viewport

    def cleanup(self) -> None:
        cv2.destroyAllWindows()
