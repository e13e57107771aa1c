"""
Overlay Module.

Responsibilities:
- Tap-to-play card rendering
- Thumbnail backing with solid fallback
- Pointer hit-testing and the one-shot unlock signal
"""

from .overlay_controller import OverlayController, render_overlay_texture
