"""
Pinhole camera and ray casting.

The camera sits at the origin looking down +z; tracked anchors move, the
camera does not. Pointer hit-testing goes through Raycaster: normalized
device coordinates -> camera ray -> plane intersection in each mesh's local
frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .graph import Mesh, Node


class Camera:
    """
    Pinhole camera in OpenCV convention.

    Guarantees:
    - project() and ray directions use the same intrinsics
    - NDC (-1..1, y up) maps to the full image
    """

    def __init__(
        self,
        width: int,
        height: int,
        fx: Optional[float] = None,
        fy: Optional[float] = None,
        cx: Optional[float] = None,
        cy: Optional[float] = None,
        near: float = 1e-3,
    ):
        """
        Initialize camera.

        Args:
            width: Image width in pixels
            height: Image height in pixels
            fx, fy: Focal lengths in pixels (default: image width)
            cx, cy: Principal point (default: image center)
            near: Points closer than this are not drawn
        """
        self.width = int(width)
        self.height = int(height)
        self.fx = float(fx if fx is not None else width)
        self.fy = float(fy if fy is not None else self.fx)
        self.cx = float(cx if cx is not None else width / 2)
        self.cy = float(cy if cy is not None else height / 2)
        self.near = near

    @property
    def intrinsics(self) -> NDArray[np.float64]:
        return np.array([
            [self.fx, 0.0, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0],
        ])

    def project(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Project (N, 3) camera-space points to (N, 2) pixels."""
        z = points[:, 2]
        u = self.fx * points[:, 0] / z + self.cx
        v = self.fy * points[:, 1] / z + self.cy
        return np.stack([u, v], axis=1)

    def ray_direction(self, ndc_x: float, ndc_y: float) -> NDArray[np.float64]:
        """Unit direction through a normalized device coordinate."""
        u = (ndc_x + 1) / 2 * self.width
        v = (1 - ndc_y) / 2 * self.height
        direction = np.array([
            (u - self.cx) / self.fx,
            (v - self.cy) / self.fy,
            1.0,
        ])
        return direction / np.linalg.norm(direction)


@dataclass
class Ray:
    origin: NDArray[np.float64]
    direction: NDArray[np.float64]


@dataclass
class Intersection:
    distance: float
    point: NDArray[np.float64]
    object: Mesh


class Raycaster:
    """Casts camera rays against visible meshes."""

    def __init__(self):
        self.ray: Optional[Ray] = None

    def set_from_camera(self, ndc: Tuple[float, float], camera: Camera) -> None:
        self.ray = Ray(origin=np.zeros(3), direction=camera.ray_direction(*ndc))

    def intersect_object(self, obj: Node, recursive: bool = True) -> List[Intersection]:
        return self.intersect_objects([obj], recursive)

    def intersect_objects(self, objects: Iterable[Node], recursive: bool = True) -> List[Intersection]:
        """
        Intersect the current ray with meshes.

        Nodes that are hidden, or have a hidden ancestor, are skipped.

        Returns:
            Intersections sorted by distance (nearest first)
        """
        if self.ray is None:
            raise RuntimeError("Raycaster has no ray; call set_from_camera() first")

        hits: List[Intersection] = []
        for obj in objects:
            if not obj.is_visible_in_world():
                continue
            nodes = obj.traverse_visible() if recursive else iter([obj])
            for node in nodes:
                if isinstance(node, Mesh):
                    hit = self._intersect_mesh(node)
                    if hit is not None:
                        hits.append(hit)

        hits.sort(key=lambda h: h.distance)
        return hits

    def _intersect_mesh(self, mesh: Mesh) -> Optional[Intersection]:
        world = mesh.world_matrix()
        inverse = np.linalg.inv(world)

        origin = (inverse @ np.append(self.ray.origin, 1.0))[:3]
        direction = inverse[:3, :3] @ self.ray.direction

        if abs(direction[2]) < 1e-12:
            return None
        t = -origin[2] / direction[2]
        if t <= 0:
            return None

        local = origin + t * direction
        if not mesh.geometry.contains(local[0], local[1]):
            return None

        point = (world @ np.append(local, 1.0))[:3]
        distance = float(np.linalg.norm(point - self.ray.origin))
        return Intersection(distance=distance, point=point, object=mesh)
