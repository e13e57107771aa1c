"""
Scene graph.

Minimal node hierarchy used to place the video plane and the overlay on
the tracked anchor.

Coordinate convention (matches OpenCV):
- x right, y down, z away from the viewer
- A node's ``matrix`` is its 4x4 transform relative to its parent
- PlaneGeometry lies in the local XY plane, centered on the origin, with
  texture pixel (0, 0) at the (-x, -y) corner
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray


# ============================================================
# TEXTURES AND MATERIALS
# ============================================================

class Texture:
    """Image data plus a dirty flag consumed by the renderer."""

    def __init__(self, image: Optional[NDArray[np.uint8]] = None):
        self.image = image
        self.needs_update = image is not None
        self.version = 0

    def upload(self) -> None:
        """Mark the current image as consumed."""
        self.needs_update = False
        self.version += 1


class VideoTexture(Texture):
    """Texture whose image is the video's current frame at upload time."""

    def __init__(self, video):
        super().__init__(None)
        self.video = video

    def upload(self) -> None:
        frame = self.video.current_frame
        if frame is not None:
            self.image = frame
        super().upload()


@dataclass
class Material:
    """Surface appearance: a texture, or a solid RGB color."""
    texture: Optional[Texture] = None
    color: Tuple[int, int, int] = (255, 255, 255)
    transparent: bool = False
    opacity: float = 1.0


class PlaneGeometry:
    """Rectangle of ``width`` x ``height`` in the local XY plane."""

    def __init__(self, width: float = 1.0, height: float = 1.0):
        self.width = float(width)
        self.height = float(height)

    def corners(self) -> NDArray[np.float64]:
        """Corners in texture order: top-left, top-right, bottom-right, bottom-left."""
        hw, hh = self.width / 2, self.height / 2
        return np.array([
            [-hw, -hh, 0.0],
            [hw, -hh, 0.0],
            [hw, hh, 0.0],
            [-hw, hh, 0.0],
        ])

    def contains(self, x: float, y: float) -> bool:
        return abs(x) <= self.width / 2 and abs(y) <= self.height / 2

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width if self.width else 0.0


# ============================================================
# NODES
# ============================================================

class Node:
    """Base scene node with a local transform and children."""

    def __init__(self, name: str = ""):
        self.name = name
        self.children: List[Node] = []
        self.parent: Optional[Node] = None
        self.visible = True
        self.matrix: NDArray[np.float64] = np.eye(4)

    def add(self, child: Node) -> Node:
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: Node) -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def set_position(self, x: float, y: float, z: float) -> None:
        self.matrix[:3, 3] = (x, y, z)

    def world_matrix(self) -> NDArray[np.float64]:
        matrix = self.matrix
        node = self.parent
        while node is not None:
            matrix = node.matrix @ matrix
            node = node.parent
        return matrix

    def is_visible_in_world(self) -> bool:
        node: Optional[Node] = self
        while node is not None:
            if not node.visible:
                return False
            node = node.parent
        return True

    def traverse(self) -> Iterator[Node]:
        yield self
        for child in self.children:
            yield from child.traverse()

    def traverse_visible(self) -> Iterator[Node]:
        if not self.visible:
            return
        yield self
        for child in self.children:
            yield from child.traverse_visible()


class Group(Node):
    pass


class Scene(Group):
    pass


class Mesh(Node):
    """A plane with a material."""

    def __init__(self, geometry: PlaneGeometry, material: Material, name: str = ""):
        super().__init__(name)
        self.geometry = geometry
        self.material = material

    def world_corners(self) -> NDArray[np.float64]:
        corners = self.geometry.corners()
        homogeneous = np.hstack([corners, np.ones((4, 1))])
        return (self.world_matrix() @ homogeneous.T).T[:, :3]
