"""
AR Session.

Initializes and runs one AR experience in strict order:

1. Validate the slug (no network on failure)
2. Retrieve the media asset and set the title
3. Resolve the platform gesture requirement
4. Create the tracker, anchor, video element and media controller
5. Start tracking, then load video metadata (builds the video plane and,
   on gesture platforms, the overlay)
6. Hide the loader and run the render loop

Only ConfigError, RetrievalError and CameraPermissionError reach run_app();
blocked playback and thumbnail failures are absorbed where they happen.
"""

from __future__ import annotations

from typing import Callable, Optional

import httpx
from loguru import logger

from framerz.assets.asset_client import AssetClient, slug_from_url, validate_slug
from framerz.assets.texture_loader import TextureLoader
from framerz.capture.video_capture import VideoCapture
from framerz.config import AppConfig
from framerz.core.contracts import GestureRequirement, MediaAsset, PointerEvent, Viewport
from framerz.core.errors import (
    CameraPermissionError,
    ConfigError,
    FramerzError,
    RetrievalError,
)
from framerz.media.audio_track import AudioTrack
from framerz.media.media_controller import MediaController
from framerz.media.video_element import VideoElement
from framerz.overlay.overlay_controller import OverlayController
from framerz.policy.platform_policy import PlatformPolicy, UserActivation, resolve_requirement
from framerz.render.frame_sync import FrameSync
from framerz.render.renderer import Renderer
from framerz.scene.camera import Camera
from framerz.scene.graph import Scene
from framerz.tracking.base import TrackerAdapter
from framerz.tracking.image_target_tracker import ImageTargetTracker
from framerz.ui.base import BaseSurface


QUIT_KEYS = (ord("q"), 27)  # q, Esc

TrackerFactory = Callable[[MediaAsset, AppConfig], TrackerAdapter]
VideoFactory = Callable[[MediaAsset, AppConfig, UserActivation], VideoElement]


def default_tracker_factory(asset: MediaAsset, config: AppConfig) -> TrackerAdapter:
    capture = VideoCapture(
        device_index=config.camera_device,
        width=config.camera_width,
        height=config.camera_height,
        fps=config.camera_fps,
    )
    return ImageTargetTracker(
        asset.mind_url,
        capture=capture,
        min_matches=config.min_matches,
        lost_after_frames=config.lost_after_frames,
        max_features=config.max_features,
        timeout=config.api_timeout,
    )


def default_video_factory(asset: MediaAsset, config: AppConfig, activation: UserActivation) -> VideoElement:
    audio = AudioTrack(asset.video_url, loop=config.video_loop) if config.play_audio else None
    return VideoElement(
        asset.video_url,
        loop=config.video_loop,
        muted=True,
        activation=activation,
        audio=audio,
    )


class ARSession:
    """
    One running AR experience.

    Owns the wiring between tracker, media controller, overlay and render
    loop. All callbacks run on the thread that calls step().
    """

    def __init__(
        self,
        config: AppConfig,
        surface: BaseSurface,
        asset: MediaAsset,
        requirement: GestureRequirement,
        tracker: TrackerAdapter,
        video: VideoElement,
        activation: UserActivation,
        texture_loader: Optional[TextureLoader] = None,
    ):
        """
        Initialize session.

        Args:
            config: Application configuration
            surface: UI surface
            asset: Media asset for this session
            requirement: Gesture requirement resolved at startup
            tracker: Tracker adapter
            video: Video element
            activation: User activation shared with the video element
            texture_loader: Loader for the thumbnail (default: background loader)
        """
        self.config = config
        self.surface = surface
        self.asset = asset
        self.requirement = requirement
        self.tracker = tracker
        self.video = video
        self.activation = activation
        self.texture_loader = texture_loader or TextureLoader(timeout=config.api_timeout)

        self.scene = Scene("scene")
        self.anchor = tracker.add_anchor(0)
        self.scene.add(self.anchor.group)

        self.media = MediaController(video, self.anchor, requirement)
        self.overlay: Optional[OverlayController] = None

        self.camera: Optional[Camera] = None
        self.renderer: Optional[Renderer] = None
        self.frame_sync: Optional[FrameSync] = None

        self._running = False
        self.frame_count = 0

        self.video.add_event_listener("loadedmetadata", self._on_metadata)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Start tracking, load the video and install the render loop.

        Raises:
            CameraPermissionError: tracker could not open the camera
            RetrievalError: target or video could not be loaded
        """
        self.tracker.start()

        try:
            self.camera = self.tracker.camera or Camera(
                self.config.camera_width, self.config.camera_height
            )
            self.renderer = Renderer(self.camera.width, self.camera.height)
            self.frame_sync = FrameSync(
                self.video, self.media.texture, self.renderer, self.scene, self.camera
            )
            self.video.load()
        except FramerzError:
            self.tracker.stop()
            raise

        self.surface.hide_loader()
        self.renderer.set_animation_loop(self.frame_sync.tick)
        self._running = True
        logger.info("AR session started")

    def _on_metadata(self) -> None:
        geometry = self.media.on_metadata_ready(self.video.aspect_ratio)

        if self.requirement is not GestureRequirement.REQUIRES_GESTURE:
            return

        self.overlay = OverlayController(
            self.camera,
            on_unlock=self.media.on_gesture_unlock,
            label=self.config.overlay_label,
            texture_size=self.config.overlay_texture_size,
        )
        self.media.attach_overlay(self.overlay)
        self.overlay.build_with_thumbnail(
            geometry, self.anchor, self.asset.thumbnail_url, self.texture_loader
        )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def handle_pointer(self, pointer: PointerEvent) -> bool:
        """Route a click: it counts as a user gesture, then hit-tests the overlay."""
        self.activation.activate()
        if self.overlay is None:
            return False
        viewport = self.surface.viewport or Viewport(self.camera.width, self.camera.height)
        return self.overlay.test_hit(pointer, viewport)

    def step(self) -> bool:
        """
        Run one loop iteration.

        Returns:
            False once the user asked to quit
        """
        self.texture_loader.dispatch_pending()

        frame = self.tracker.read_frame()
        if frame is not None:
            self.renderer.set_background(frame)
            self.tracker.process_frame(frame)

        self.video.update()
        self.renderer.run_animation_frame()
        if self.renderer.last_frame is not None:
            self.surface.show(self.renderer.last_frame)

        for pointer in self.surface.poll_pointer():
            self.handle_pointer(pointer)

        self.frame_count += 1
        key = self.surface.poll_key()
        return key not in QUIT_KEYS

    def run(self) -> None:
        """Run the render loop until quit or interrupt."""
        logger.info("Press Q or Esc to quit")
        try:
            while self._running and self.step():
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.stop()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self.renderer is not None:
            self.renderer.set_animation_loop(None)
        self.tracker.stop()
        self.video.close()
        logger.info(f"AR session stopped after {self.frame_count} frames")


def initialize(
    config: AppConfig,
    surface: BaseSurface,
    page_url: Optional[str] = None,
    slug: Optional[str] = None,
    client: Optional[httpx.Client] = None,
    policy: Optional[PlatformPolicy] = None,
    tracker_factory: TrackerFactory = default_tracker_factory,
    video_factory: VideoFactory = default_video_factory,
    texture_loader: Optional[TextureLoader] = None,
) -> ARSession:
    """
    Build and start a session.

    Args:
        config: Application configuration
        surface: UI surface
        page_url: Page URL or query string carrying ?f=<slug>
        slug: Slug given directly (wins over page_url)
        client: httpx client for the asset request
        policy: Platform policy override
        tracker_factory: Builds the tracker from the asset
        video_factory: Builds the video element from the asset
        texture_loader: Thumbnail loader override

    Returns:
        Started ARSession

    Raises:
        ConfigError: slug missing or malformed (no request is made)
        RetrievalError: assets could not be retrieved or loaded
        CameraPermissionError: camera could not be opened
    """
    slug = validate_slug(slug or slug_from_url(page_url or ""))

    asset_client = AssetClient(config.api_url, timeout=config.api_timeout, client=client)
    try:
        asset = asset_client.fetch(slug)
    finally:
        asset_client.close()

    surface.set_title(asset.customer_name or config.default_title)

    requirement = resolve_requirement(config, policy)
    activation = UserActivation(requirement)

    session = ARSession(
        config,
        surface,
        asset,
        requirement,
        tracker=tracker_factory(asset, config),
        video=video_factory(asset, config, activation),
        activation=activation,
        texture_loader=texture_loader,
    )
    session.start()
    return session


def run_app(
    config: AppConfig,
    surface: BaseSurface,
    page_url: Optional[str] = None,
    slug: Optional[str] = None,
    **kwargs,
) -> int:
    """
    Top-level error boundary.

    Returns:
        Process exit code (0 ok, 1 fatal error, 2 bad slug)
    """
    try:
        session = initialize(config, surface, page_url=page_url, slug=slug, **kwargs)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        surface.alert(e.user_message)
        return 2
    except CameraPermissionError as e:
        logger.error(f"Permission denied or error: {e}")
        surface.set_loader_text(e.user_message)
        return 1
    except RetrievalError as e:
        logger.error(f"Initialization failed: {e}")
        surface.alert(e.user_message)
        surface.set_loader_text("Initialization failed")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error during initialization: {e}")
        surface.set_loader_text("Initialization failed")
        return 1

    session.run()
    return 0
