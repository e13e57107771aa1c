"""
Per-tick video texture synchronization.
"""

from __future__ import annotations

from framerz.core.contracts import ReadyState
from framerz.scene.camera import Camera
from framerz.scene.graph import Node, Texture

from .renderer import Renderer


class FrameSync:
    """Marks the video texture dirty when a frame is available, then renders.

    Only reads the video's readiness; never touches playback state.
    """

    def __init__(self, video, texture: Texture, renderer: Renderer, scene: Node, camera: Camera):
        self.video = video
        self.texture = texture
        self.renderer = renderer
        self.scene = scene
        self.camera = camera

    def tick(self) -> None:
        if self.video.ready_state >= ReadyState.HAVE_CURRENT_DATA:
            self.texture.needs_update = True
        self.renderer.render(self.scene, self.camera)

    __call__ = tick
