"""
UI module.

Provides the surfaces that stand in for the page: an OpenCV window or a
headless surface that only logs.

The surface is responsible for:
- Title and loading indicator text
- Alerts for fatal errors
- Displaying rendered frames
- Pointer and keyboard input
"""
from typing import List, Optional

from loguru import logger

from framerz.core.contracts import PointerEvent, Viewport
from .base import BaseSurface
from .opencv_window import OpenCVSurface


class HeadlessSurface(BaseSurface):
    """Headless surface - no display, state changes are logged."""

    def __init__(self, config=None):
        self.title: Optional[str] = None
        self.loader_text: Optional[str] = "Loading..."
        self.alerts: List[str] = []
        self.frames_shown = 0
        self._viewport: Optional[Viewport] = None

    def set_title(self, title: str) -> None:
        self.title = title
        logger.info(f"Title: {title}")

    def hide_loader(self) -> None:
        self.loader_text = None

    def set_loader_text(self, text: str) -> None:
        self.loader_text = text
        logger.info(f"Loader: {text}")

    def alert(self, message: str) -> None:
        self.alerts.append(message)
        logger.warning(f"ALERT: {message}")

    def show(self, frame) -> None:
        self.frames_shown += 1
        self._viewport = Viewport(frame.shape[1], frame.shape[0])

    def poll_pointer(self) -> List[PointerEvent]:
        return []

    def poll_key(self) -> Optional[int]:
        return None

    @property
    def viewport(self) -> Optional[Viewport]:
        return self._viewport

    def cleanup(self) -> None:
        pass


# Registry of available surfaces
SURFACES = {
    "opencv": OpenCVSurface,
    "headless": HeadlessSurface,
}


def get_surface(name: str, config=None) -> BaseSurface:
    """Get a surface instance by name.

    Args:
        name: Surface type name ("opencv" or "headless")
        config: AppConfig

    Returns:
        Initialized surface
    """
    if name not in SURFACES:
        available = ", ".join(SURFACES.keys())
        raise ValueError(f"Unknown UI '{name}'. Available: {available}")

    return SURFACES[name](config)


__all__ = ["BaseSurface", "OpenCVSurface", "HeadlessSurface", "get_surface", "SURFACES"]
