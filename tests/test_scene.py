"""Tests for the scene graph, camera and raycaster."""

import numpy as np
import pytest

from framerz.core.contracts import PointerEvent, Viewport
from framerz.scene.camera import Camera, Raycaster
from framerz.scene.graph import Group, Material, Mesh, PlaneGeometry, Texture, VideoTexture


def make_plane(z, name="plane", width=1.0, height=1.0):
    mesh = Mesh(PlaneGeometry(width, height), Material(), name=name)
    mesh.set_position(0.0, 0.0, z)
    return mesh


def test_viewport_to_ndc():
    viewport = Viewport(200, 100)

    assert viewport.to_ndc(PointerEvent(100, 50)) == (0.0, 0.0)
    assert viewport.to_ndc(PointerEvent(0, 0)) == (-1.0, 1.0)
    assert viewport.to_ndc(PointerEvent(200, 100)) == (1.0, -1.0)


def test_plane_corners_in_texture_order():
    corners = PlaneGeometry(2.0, 1.0).corners()

    np.testing.assert_allclose(corners[0], [-1.0, -0.5, 0.0])
    np.testing.assert_allclose(corners[2], [1.0, 0.5, 0.0])
    assert PlaneGeometry(2.0, 1.0).aspect_ratio == 0.5


def test_world_matrix_composes_parents():
    root = Group("root")
    root.set_position(1.0, 0.0, 0.0)
    child = root.add(Group("child"))
    child.set_position(0.0, 2.0, 0.0)

    np.testing.assert_allclose(child.world_matrix()[:3, 3], [1.0, 2.0, 0.0])


def test_add_reparents():
    a, b, node = Group("a"), Group("b"), Group("node")
    a.add(node)
    b.add(node)

    assert node.parent is b
    assert node not in a.children


def test_hidden_ancestor_hides_descendants():
    root = Group("root")
    child = root.add(Group("child"))
    mesh = child.add(make_plane(1.0))

    child.visible = False
    assert not mesh.is_visible_in_world()
    assert mesh not in list(root.traverse_visible())
    assert mesh in list(root.traverse())


def test_camera_projects_center():
    camera = Camera(640, 480)
    pixels = camera.project(np.array([[0.0, 0.0, 2.0], [1.0, 0.0, 2.0]]))

    np.testing.assert_allclose(pixels[0], [320.0, 240.0])
    np.testing.assert_allclose(pixels[1], [640.0, 240.0])


def test_ray_direction_matches_projection():
    camera = Camera(640, 480)
    direction = camera.ray_direction(0.5, -0.5)
    point = direction * (3.0 / direction[2])

    np.testing.assert_allclose(camera.project(point[None, :])[0], [480.0, 360.0])


def test_raycaster_requires_ray():
    with pytest.raises(RuntimeError):
        Raycaster().intersect_objects([make_plane(1.0)])


def test_raycaster_hits_nearest_first():
    camera = Camera(640, 480)
    far, near = make_plane(3.0, "far"), make_plane(2.0, "near")

    raycaster = Raycaster()
    raycaster.set_from_camera((0.0, 0.0), camera)
    hits = raycaster.intersect_objects([far, near])

    assert [h.object.name for h in hits] == ["near", "far"]
    assert hits[0].distance == pytest.approx(2.0)
    np.testing.assert_allclose(hits[0].point, [0.0, 0.0, 2.0], atol=1e-9)


def test_raycaster_misses_outside_plane():
    camera = Camera(640, 480)
    raycaster = Raycaster()
    raycaster.set_from_camera((0.99, 0.99), camera)

    assert raycaster.intersect_object(make_plane(2.0)) == []


def test_raycaster_ignores_planes_behind_camera():
    camera = Camera(640, 480)
    raycaster = Raycaster()
    raycaster.set_from_camera((0.0, 0.0), camera)

    assert raycaster.intersect_object(make_plane(-1.0)) == []


def test_raycaster_skips_hidden():
    camera = Camera(640, 480)
    group = Group("g")
    mesh = group.add(make_plane(2.0))
    group.visible = False

    raycaster = Raycaster()
    raycaster.set_from_camera((0.0, 0.0), camera)
    assert raycaster.intersect_objects([mesh]) == []
    assert raycaster.intersect_object(group) == []


def test_raycaster_handles_rotated_plane():
    camera = Camera(640, 480)
    mesh = make_plane(2.0)
    # 60 degrees about y: still facing the camera enough to be hit at the center
    angle = np.radians(60)
    mesh.matrix[:3, :3] = np.array([
        [np.cos(angle), 0.0, np.sin(angle)],
        [0.0, 1.0, 0.0],
        [-np.sin(angle), 0.0, np.cos(angle)],
    ])

    raycaster = Raycaster()
    raycaster.set_from_camera((0.0, 0.0), camera)
    assert len(raycaster.intersect_object(mesh)) == 1


def test_texture_flags():
    assert Texture().needs_update is False

    texture = Texture(np.zeros((2, 2, 3), np.uint8))
    assert texture.needs_update is True
    texture.upload()
    assert texture.needs_update is False
    assert texture.version == 1


def test_video_texture_pulls_current_frame():
    class Video:
        current_frame = np.full((4, 4, 3), 7, np.uint8)

    texture = VideoTexture(Video())
    assert texture.image is None

    texture.upload()
    assert texture.image[0, 0, 0] == 7
