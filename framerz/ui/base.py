"""
Base class for UI surfaces.

To add a new UI surface:
1. Create a new file in the ui/ directory
2. Inherit from BaseSurface
3. Implement the abstract methods
4. Register in ui/__init__.py SURFACES dict
"""
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from framerz.core.contracts import PointerEvent, Viewport


class BaseSurface(ABC):
    """Abstract base class for the user-facing surface.

    A surface plays the role of the page: it has a title, a loading
    indicator, alerts, a view for rendered frames and pointer input.
    """

    @abstractmethod
    def set_title(self, title: str) -> None:
        """Set the window/page title."""
        pass

    @abstractmethod
    def hide_loader(self) -> None:
        """Hide the loading indicator after a successful start."""
        pass

    @abstractmethod
    def set_loader_text(self, text: str) -> None:
        """Replace the loading indicator text (used for fatal errors)."""
        pass

    @abstractmethod
    def alert(self, message: str) -> None:
        """Show a blocking-style message to the user."""
        pass

    @abstractmethod
    def show(self, frame: np.ndarray) -> None:
        """Display a rendered RGB frame."""
        pass

    @abstractmethod
    def poll_pointer(self) -> List[PointerEvent]:
        """Return pointer clicks since the last poll, oldest first."""
        pass

    @abstractmethod
    def poll_key(self) -> Optional[int]:
        """Return a pressed key code, or None."""
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Release UI resources."""
        pass

    @property
    def viewport(self) -> Optional[Viewport]:
        """Size of the area pointer coordinates refer to."""
        return None
