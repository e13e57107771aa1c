"""
Scene Module.

Responsibilities:
- Node hierarchy with local transforms
- Plane geometry, materials and textures
- Pinhole camera and pointer ray casting
"""

from .graph import Node, Group, Scene, Mesh, PlaneGeometry, Material, Texture, VideoTexture
from .camera import Camera, Raycaster, Intersection
