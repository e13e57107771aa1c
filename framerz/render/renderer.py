"""
Compositing renderer.

Draws every visible mesh of a scene over the current camera frame by
projecting its corners and perspective-warping its texture (or solid
color) into place.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from framerz.scene.camera import Camera
from framerz.scene.graph import Mesh, Node


class Renderer:
    """
    Renders a scene onto an RGB frame.

    Guarantees:
    - Dirty textures are uploaded before drawing
    - Far meshes are drawn first; ties keep scene order
    - The background frame is never modified in place
    """

    def __init__(self, width: int, height: int):
        """
        Initialize renderer.

        Args:
            width: Output width in pixels
            height: Output height in pixels
        """
        self.width = width
        self.height = height

        self._background: Optional[NDArray[np.uint8]] = None
        self._animation_loop: Optional[Callable[[], None]] = None

        self.render_count = 0
        self.last_frame: Optional[NDArray[np.uint8]] = None

    def set_background(self, frame: Optional[NDArray[np.uint8]]) -> None:
        """Set the camera frame the scene is drawn over (RGB)."""
        self._background = frame

    def set_animation_loop(self, callback: Optional[Callable[[], None]]) -> None:
        """Register the per-frame callback (None to clear)."""
        self._animation_loop = callback

    @property
    def animation_loop(self) -> Optional[Callable[[], None]]:
        return self._animation_loop

    def run_animation_frame(self) -> None:
        """Invoke the registered per-frame callback once."""
        if self._animation_loop is not None:
            self._animation_loop()

    def render(self, scene: Node, camera: Camera) -> NDArray[np.uint8]:
        """
        Render the scene.

        Args:
            scene: Root node
            camera: Viewing camera

        Returns:
            RGB frame of (height, width, 3)
        """
        if self._background is not None:
            frame = self._background[..., :3].copy()
        else:
            frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)

        draw_list: List[Tuple[float, int, Mesh, NDArray[np.float64]]] = []
        for order, node in enumerate(scene.traverse_visible()):
            if not isinstance(node, Mesh):
                continue

            texture = node.material.texture
            if texture is not None and texture.needs_update:
                texture.upload()

            corners = node.world_corners()
            if np.any(corners[:, 2] <= camera.near):
                continue
            draw_list.append((float(corners[:, 2].mean()), order, node, corners))

        draw_list.sort(key=lambda item: (-item[0], item[1]))
        for _, _, mesh, corners in draw_list:
            self._draw_mesh(frame, mesh, camera.project(corners))

        self.render_count += 1
        self.last_frame = frame
        return frame

    def _draw_mesh(self, frame: NDArray[np.uint8], mesh: Mesh, quad: NDArray[np.float64]) -> None:
        material = mesh.material
        source = self._source_image(mesh)
        if source is None:
            return

        h, w = source.shape[:2]
        # Outer pixel centers land on the quad corners
        right, bottom = max(w - 1, 1), max(h - 1, 1)
        src_pts = np.float32([[0, 0], [right, 0], [right, bottom], [0, bottom]])
        dst_pts = np.float32(quad)

        try:
            transform = cv2.getPerspectiveTransform(src_pts, dst_pts)
        except cv2.error as e:
            logger.debug(f"Skipping degenerate mesh {mesh.name!r}: {e}")
            return

        size = (frame.shape[1], frame.shape[0])
        color = cv2.warpPerspective(np.ascontiguousarray(source[..., :3]), transform, size)

        if material.transparent and source.shape[2] == 4:
            alpha = source[..., 3].astype(np.float32) / 255.0
        else:
            alpha = np.ones((h, w), dtype=np.float32)
        alpha = cv2.warpPerspective(alpha, transform, size) * material.opacity
        alpha = alpha[..., None]

        blended = color.astype(np.float32) * alpha + frame.astype(np.float32) * (1.0 - alpha)
        frame[:] = np.clip(blended, 0, 255).astype(np.uint8)

    @staticmethod
    def _source_image(mesh: Mesh) -> Optional[NDArray[np.uint8]]:
        material = mesh.material
        if material.texture is not None:
            image = material.texture.image
            if image is None:
                return None
            if image.ndim == 2:
                return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
            return image
        return np.full((2, 2, 3), material.color, dtype=np.uint8)
