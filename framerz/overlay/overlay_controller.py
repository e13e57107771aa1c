"""
Tap-to-play overlay.

On platforms that need a user gesture before unmuted playback, a
"TAP TO PLAY" card is drawn over the video plane. Tapping it emits a single
unlock signal and hides the card for the rest of the session.

Layout of the overlay group (under the anchor, just in front of the video):
- base plane: thumbnail texture, or solid black when there is none
- glyph plane: translucent circle + play triangle + label (one RGBA texture)
"""

from __future__ import annotations

import os
from typing import Callable, Optional

import cv2
import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageDraw, ImageFont
from loguru import logger

from framerz.core.contracts import OverlayVisibility, PointerEvent, Viewport
from framerz.core.errors import AssetDegradation
from framerz.scene.camera import Camera, Raycaster
from framerz.scene.graph import Group, Material, Mesh, PlaneGeometry, Texture


# Offset of the overlay group along local z, toward the camera
OVERLAY_OFFSET = -0.001
FALLBACK_COLOR = (0, 0, 0)
DEFAULT_LABEL = "TAP TO PLAY"

# Layout measured on a 512px texture; scaled for other sizes
_REFERENCE_SIZE = 512


def _load_font(size: int, bold: bool = True) -> ImageFont.ImageFont:
    """Load a TrueType font with fallbacks."""
    if bold:
        font_names = ["verdanab.ttf", "Verdana Bold.ttf", "DejaVuSans-Bold.ttf", "arialbd.ttf"]
    else:
        font_names = ["verdana.ttf", "Verdana.ttf", "DejaVuSans.ttf", "arial.ttf"]

    font_dirs = [
        "C:/Windows/Fonts/",
        "/usr/share/fonts/truetype/dejavu/",
        "/usr/share/fonts/truetype/",
        "/System/Library/Fonts/Supplemental/",
        "/Library/Fonts/",
    ]

    for font_dir in font_dirs:
        for font_name in font_names:
            font_path = os.path.join(font_dir, font_name)
            if os.path.exists(font_path):
                try:
                    return ImageFont.truetype(font_path, size)
                except OSError:
                    continue
    return ImageFont.load_default()


def render_overlay_texture(size: int = _REFERENCE_SIZE, label: str = DEFAULT_LABEL) -> NDArray[np.uint8]:
    """
    Draw the overlay card.

    Args:
        size: Texture edge length in pixels
        label: Text under the play glyph

    Returns:
        RGBA array of (size, size, 4)
    """
    s = size / _REFERENCE_SIZE
    cx, cy = size / 2, size / 2
    canvas = np.zeros((size, size, 4), dtype=np.uint8)

    # Glassy circle
    cv2.circle(
        canvas,
        (int(cx), int(cy - 60 * s)),
        int(120 * s),
        (0, 0, 0, 128),
        -1,
        cv2.LINE_AA,
    )

    # Play triangle
    triangle = np.array([
        [cx - 40 * s, cy - 120 * s],
        [cx - 40 * s, cy],
        [cx + 70 * s, cy - 60 * s],
    ], dtype=np.int32)
    cv2.fillPoly(canvas, [triangle], (255, 255, 255, 255), cv2.LINE_AA)

    # Label, centered on x with its baseline 80px above the bottom edge
    image = Image.fromarray(canvas)
    draw = ImageDraw.Draw(image)
    font = _load_font(max(10, int(50 * s)), bold=True)
    left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
    x = cx - (right - left) / 2 - left
    y = size - 80 * s - bottom
    draw.text((x, y), label, font=font, fill=(255, 255, 255, 255))

    return np.array(image)


class OverlayController:
    """
    Builds the overlay and turns pointer hits into one unlock signal.

    Guarantees:
    - Built at most once
    - test_hit() only hits while the overlay is visible
    - on_unlock fires at most once; afterwards the overlay stays hidden
    """

    def __init__(
        self,
        camera: Camera,
        on_unlock: Optional[Callable[[], None]] = None,
        label: str = DEFAULT_LABEL,
        texture_size: int = _REFERENCE_SIZE,
    ):
        """
        Initialize overlay controller.

        Args:
            camera: Camera used to cast pointer rays
            on_unlock: Called once when the overlay is tapped
            label: Text under the play glyph
            texture_size: Overlay texture edge length
        """
        self.camera = camera
        self.on_unlock = on_unlock
        self.label = label
        self.texture_size = texture_size

        self.group: Optional[Group] = None
        self.base_plane: Optional[Mesh] = None
        self.glyph_plane: Optional[Mesh] = None
        self.used_fallback: Optional[bool] = None

        self._desired_visible = False
        self._spent = False
        self._raycaster = Raycaster()

    @property
    def is_built(self) -> bool:
        return self.group is not None

    @property
    def visibility(self) -> OverlayVisibility:
        if self.group is not None and self.group.visible:
            return OverlayVisibility.VISIBLE
        return OverlayVisibility.HIDDEN

    @staticmethod
    def fallback_material() -> Material:
        return Material(color=FALLBACK_COLOR)

    def build(self, geometry: PlaneGeometry, anchor, base_material: Material) -> Group:
        """
        Compose the overlay group and attach it to the anchor.

        Args:
            geometry: Video plane geometry (shared)
            anchor: Tracker anchor
            base_material: Thumbnail or fallback material

        Returns:
            The overlay group
        """
        if self.group is not None:
            return self.group

        glyph = Texture(render_overlay_texture(self.texture_size, self.label))
        glyph_material = Material(texture=glyph, transparent=True)

        self.base_plane = Mesh(geometry, base_material, name="overlay-base")
        self.glyph_plane = Mesh(geometry, glyph_material, name="overlay-glyph")

        group = Group("overlay")
        group.add(self.base_plane)
        group.add(self.glyph_plane)
        group.set_position(0.0, 0.0, OVERLAY_OFFSET)
        anchor.group.add(group)

        self.group = group
        self._apply_visibility()
        logger.info(
            f"Overlay built ({'fallback' if self.used_fallback else 'thumbnail'} backing)"
        )
        return group

    def build_with_thumbnail(
        self,
        geometry: PlaneGeometry,
        anchor,
        thumbnail_url: Optional[str],
        loader,
    ) -> None:
        """
        Build the overlay over the thumbnail, or a solid fallback if it fails.

        Completes through loader callbacks; without a URL it builds at once.
        """
        if not thumbnail_url:
            self.used_fallback = True
            self.build(geometry, anchor, self.fallback_material())
            return

        def on_load(texture: Texture) -> None:
            self.used_fallback = False
            self.build(geometry, anchor, Material(texture=texture))

        def on_error(error: AssetDegradation) -> None:
            logger.warning(f"Thumbnail unavailable, using fallback backing: {error}")
            self.used_fallback = True
            self.build(geometry, anchor, self.fallback_material())

        loader.load(thumbnail_url, on_load, on_error)

    def set_visible(self, visible: bool) -> None:
        """Apply visibility derived from playback state."""
        self._desired_visible = visible
        self._apply_visibility()

    def test_hit(self, pointer: PointerEvent, viewport: Viewport) -> bool:
        """
        Test a pointer event against the overlay.

        A hit hides the overlay and emits the unlock signal.

        Returns:
            True if this event unlocked playback
        """
        if self._spent or self.group is None or not self.group.visible:
            return False

        self._raycaster.set_from_camera(viewport.to_ndc(pointer), self.camera)
        if not self._raycaster.intersect_objects(self.group.children):
            return False

        self._spent = True
        self.group.visible = False
        logger.info("Overlay tapped, unlocking playback")
        if self.on_unlock is not None:
            self.on_unlock()
        return True

    def _apply_visibility(self) -> None:
        if self.group is not None:
            self.group.visible = self._desired_visible and not self._spent
