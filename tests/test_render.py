"""Tests for the compositing renderer and per-tick frame sync."""

import numpy as np

from framerz.core.contracts import ReadyState
from framerz.render.frame_sync import FrameSync
from framerz.render.renderer import Renderer
from framerz.scene.camera import Camera
from framerz.scene.graph import Group, Material, Mesh, PlaneGeometry, Scene, Texture


WIDTH, HEIGHT = 320, 240


def make_scene(*meshes):
    scene = Scene("scene")
    anchor = scene.add(Group("anchor"))
    anchor.set_position(0.0, 0.0, 2.0)
    for mesh in meshes:
        anchor.add(mesh)
    return scene, anchor


def solid(color, z=0.0, name="", transparent=False, opacity=1.0):
    mesh = Mesh(
        PlaneGeometry(1.0, 1.0),
        Material(color=color, transparent=transparent, opacity=opacity),
        name=name,
    )
    mesh.set_position(0.0, 0.0, z)
    return mesh


# ============================================================
# Renderer
# ============================================================

def test_render_draws_over_background():
    renderer = Renderer(WIDTH, HEIGHT)
    background = np.full((HEIGHT, WIDTH, 3), 10, np.uint8)
    renderer.set_background(background)
    scene, _ = make_scene(solid((255, 0, 0)))

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))

    assert tuple(frame[HEIGHT // 2, WIDTH // 2]) == (255, 0, 0)
    assert tuple(frame[0, 0]) == (10, 10, 10)
    assert background[HEIGHT // 2, WIDTH // 2, 0] == 10
    assert renderer.render_count == 1
    assert renderer.last_frame is frame


def test_render_without_background_is_black():
    renderer = Renderer(WIDTH, HEIGHT)
    frame = renderer.render(Scene(), Camera(WIDTH, HEIGHT))

    assert frame.shape == (HEIGHT, WIDTH, 3)
    assert frame.max() == 0


def test_nearer_mesh_drawn_on_top():
    renderer = Renderer(WIDTH, HEIGHT)
    # added first, but closer to the camera
    front = solid((0, 0, 255), z=-0.001, name="front")
    back = solid((0, 255, 0), name="back")
    scene, _ = make_scene(front, back)

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))
    assert tuple(frame[HEIGHT // 2, WIDTH // 2]) == (0, 0, 255)


def test_hidden_anchor_draws_nothing():
    renderer = Renderer(WIDTH, HEIGHT)
    scene, anchor = make_scene(solid((255, 0, 0)))
    anchor.visible = False

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))
    assert frame.max() == 0


def test_mesh_behind_camera_is_skipped():
    renderer = Renderer(WIDTH, HEIGHT)
    scene, anchor = make_scene(solid((255, 0, 0)))
    anchor.set_position(0.0, 0.0, -2.0)

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))
    assert frame.max() == 0


def test_transparent_texture_uses_alpha():
    renderer = Renderer(WIDTH, HEIGHT)
    renderer.set_background(np.full((HEIGHT, WIDTH, 3), 100, np.uint8))

    image = np.zeros((64, 64, 4), np.uint8)
    image[..., :3] = 255
    image[:, 32:, 3] = 255  # right half opaque
    mesh = Mesh(PlaneGeometry(1.0, 1.0), Material(texture=Texture(image), transparent=True))
    scene, _ = make_scene(mesh)

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))
    assert tuple(frame[HEIGHT // 2, WIDTH // 2 - 40]) == (100, 100, 100)
    assert tuple(frame[HEIGHT // 2, WIDTH // 2 + 40]) == (255, 255, 255)


def test_opacity_blends():
    renderer = Renderer(WIDTH, HEIGHT)
    scene, _ = make_scene(solid((200, 200, 200), opacity=0.5))

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))
    assert 95 <= frame[HEIGHT // 2, WIDTH // 2, 0] <= 105


def test_dirty_texture_uploaded_once():
    renderer = Renderer(WIDTH, HEIGHT)
    texture = Texture(np.full((8, 8, 3), 50, np.uint8))
    mesh = Mesh(PlaneGeometry(1.0, 1.0), Material(texture=texture))
    scene, _ = make_scene(mesh)
    camera = Camera(WIDTH, HEIGHT)

    renderer.render(scene, camera)
    renderer.render(scene, camera)

    assert texture.version == 1
    assert texture.needs_update is False


def test_texture_without_image_is_skipped():
    renderer = Renderer(WIDTH, HEIGHT)
    mesh = Mesh(PlaneGeometry(1.0, 1.0), Material(texture=Texture()))
    scene, _ = make_scene(mesh)

    frame = renderer.render(scene, Camera(WIDTH, HEIGHT))
    assert frame.max() == 0


def test_animation_loop():
    renderer = Renderer(WIDTH, HEIGHT)
    calls = []

    renderer.run_animation_frame()
    renderer.set_animation_loop(lambda: calls.append(1))
    renderer.run_animation_frame()
    renderer.set_animation_loop(None)
    renderer.run_animation_frame()

    assert calls == [1]


# ============================================================
# Frame sync
# ============================================================

class StubVideo:
    def __init__(self, ready_state):
        self.ready_state = ready_state
        self.paused = True


class CountingRenderer:
    def __init__(self):
        self.renders = 0

    def render(self, scene, camera):
        self.renders += 1


def test_frame_sync_marks_texture_when_frame_available():
    texture = Texture()
    renderer = CountingRenderer()
    sync = FrameSync(StubVideo(ReadyState.HAVE_CURRENT_DATA), texture, renderer, Scene(), None)

    sync.tick()

    assert texture.needs_update is True
    assert renderer.renders == 1


def test_frame_sync_renders_without_frame():
    texture = Texture()
    renderer = CountingRenderer()
    video = StubVideo(ReadyState.HAVE_METADATA)
    sync = FrameSync(video, texture, renderer, Scene(), None)

    sync()
    sync()

    assert texture.needs_update is False
    assert renderer.renders == 2
    assert video.paused is True
