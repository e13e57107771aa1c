"""
Media Controller.

Playback state machine binding tracking events and the gesture unlock to
the video element.

Transitions:
    metadata ready      -> IDLE (video plane attached to the anchor)
    found, may autoplay -> PLAYING (unmuted), or unchanged if play is blocked
    found, needs gesture-> AWAITING_GESTURE (overlay shown)
    lost                -> PAUSED (always, from any state)
    gesture unlock      -> PLAYING (unmuted), unlock flag set for the session

Anything else is a no-op.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from loguru import logger

from framerz.core.contracts import GestureRequirement, OverlayVisibility, PlaybackState
from framerz.core.errors import PlaybackBlocked
from framerz.scene.graph import Material, Mesh, PlaneGeometry, Texture, VideoTexture


class MediaController:
    """
    Owns the video element and the playback state.

    Guarantees:
    - The video is unmuted only while PLAYING
    - The overlay is visible only while AWAITING_GESTURE, on gesture
      platforms, before the unlock
    - The unlock flag goes False -> True at most once
    - A lost target pauses synchronously
    """

    def __init__(
        self,
        video,
        anchor,
        requirement: GestureRequirement,
        texture: Optional[Texture] = None,
    ):
        """
        Initialize media controller.

        Args:
            video: Video element (muted, play(), pause(), aspect_ratio)
            anchor: Tracker anchor the video plane is attached to
            requirement: Gesture requirement resolved at startup
            texture: Texture fed by the video (default: new VideoTexture)
        """
        self.video = video
        self.anchor = anchor
        self.requirement = requirement
        self.texture = texture if texture is not None else VideoTexture(video)

        self._state = PlaybackState.IDLE
        self._unlocked = False
        self._metadata_ready = False
        self._overlay = None

        self.geometry: Optional[PlaneGeometry] = None
        self.plane: Optional[Mesh] = None

        self.play_requests = 0
        self.play_rejections = 0
        self.transition_log: List[Tuple[PlaybackState, PlaybackState, str]] = []

        self.video.muted = True

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    @property
    def requires_gesture(self) -> bool:
        return self.requirement is GestureRequirement.REQUIRES_GESTURE

    @property
    def metadata_ready(self) -> bool:
        return self._metadata_ready

    @property
    def overlay_visibility(self) -> OverlayVisibility:
        if (
            self.requires_gesture
            and self._state is PlaybackState.AWAITING_GESTURE
            and not self._unlocked
        ):
            return OverlayVisibility.VISIBLE
        return OverlayVisibility.HIDDEN

    def attach_overlay(self, overlay) -> None:
        """Attach the overlay whose visibility follows this controller."""
        self._overlay = overlay
        self._sync_overlay()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_metadata_ready(self, aspect_ratio: Optional[float] = None) -> PlaneGeometry:
        """
        Build the video plane once the natural video size is known.

        Args:
            aspect_ratio: Height over width (default: read from the video)

        Returns:
            Geometry shared with the overlay
        """
        if self._metadata_ready:
            return self.geometry

        aspect = aspect_ratio if aspect_ratio is not None else self.video.aspect_ratio
        if not aspect or aspect <= 0:
            logger.warning(f"Invalid video aspect ratio {aspect!r}, using square plane")
            aspect = 1.0

        self.geometry = PlaneGeometry(1.0, aspect)
        self.plane = Mesh(self.geometry, Material(texture=self.texture), name="video-plane")
        self.anchor.group.add(self.plane)

        self.anchor.on_target_found = self.on_target_found
        self.anchor.on_target_lost = self.on_target_lost

        self._metadata_ready = True
        self._set_state(PlaybackState.IDLE, "metadata ready")
        logger.info(f"Video plane attached (1 x {aspect:.3f})")
        return self.geometry

    def on_target_found(self) -> None:
        if not self._metadata_ready:
            logger.debug("Target found before metadata, ignoring")
            return
        if self._state is PlaybackState.PLAYING:
            return
        if self._state is PlaybackState.AWAITING_GESTURE and not self._unlocked:
            return

        if not self.requires_gesture or self._unlocked:
            self._request_play("target found")
        else:
            self._set_state(PlaybackState.AWAITING_GESTURE, "target found, gesture required")

    def on_target_lost(self) -> None:
        self.video.pause()
        self.video.muted = True
        self._set_state(PlaybackState.PAUSED, "target lost")

    def on_gesture_unlock(self) -> None:
        if self._unlocked:
            return
        self._unlocked = True
        logger.info("Playback unlocked by user gesture")
        self._request_play("gesture unlock")
        self._sync_overlay()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request_play(self, reason: str) -> bool:
        self.play_requests += 1
        self.video.muted = False
        try:
            self.video.play()
        except PlaybackBlocked as e:
            self.play_rejections += 1
            self.video.muted = True
            logger.warning(f"Play blocked ({reason}): {e}")
            return False

        self._set_state(PlaybackState.PLAYING, reason)
        return True

    def _set_state(self, new_state: PlaybackState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        self.transition_log.append((old_state, new_state, reason))
        logger.debug(f"Playback {old_state.value} -> {new_state.value} ({reason})")
        self._sync_overlay()

    def _sync_overlay(self) -> None:
        if self._overlay is not None:
            self._overlay.set_visible(self.overlay_visibility is OverlayVisibility.VISIBLE)
