"""
Model

Flattened geometry of a loaded glTF asset and the loader's result container.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from ..animation import AnimationPlayer, BoneAnimation
from ..errors import BadModeError
from .material import Material


class Mode(Enum):
    """Primitive draw modes (glTF mode codes)."""
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


TRIANGLE_MODES = (Mode.TRIANGLES, Mode.TRIANGLE_STRIP, Mode.TRIANGLE_FAN)
LINE_MODES = (Mode.LINES, Mode.LINE_LOOP, Mode.LINE_STRIP)


@dataclass
class Primitive:
    """
    Geometry to be rendered with the given material.

    Vertex attributes are parallel arrays already transformed into model
    space. Attributes missing from the source are zero-filled and flagged
    with the matching has_* attribute.

    Either draw with `positions`/`indices` directly, or use `triangles()`,
    `lines()` or `points()` according to `mode`.
    """
    positions: np.ndarray
    normals: np.ndarray
    tangents: np.ndarray
    tex_coords: np.ndarray
    indices: Optional[np.ndarray] = None
    joints: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype=np.uint16))
    weights: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype='f4'))
    mode: Mode = Mode.TRIANGLES
    material: Optional[Material] = None
    mesh_name: Optional[str] = None
    mesh_index: Optional[int] = None
    primitive_index: int = 0
    node_index: Optional[int] = None
    has_normals: bool = False
    has_tangents: bool = False
    has_tex_coords: bool = False
    has_joints: bool = False
    has_weights: bool = False

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    def _element_indices(self) -> np.ndarray:
        if self.indices is not None:
            return np.asarray(self.indices, dtype=np.uint32)
        return np.arange(self.vertex_count, dtype=np.uint32)

    def triangles(self) -> np.ndarray:
        """
        List of triangles as vertex index triples, shape (T, 3).

        Raises:
            BadModeError: mode is not TRIANGLES, TRIANGLE_STRIP or TRIANGLE_FAN
        """
        indices = self._element_indices()

        if self.mode == Mode.TRIANGLES:
            usable = len(indices) - len(indices) % 3
            return indices[:usable].reshape(-1, 3)
        if self.mode == Mode.TRIANGLE_STRIP:
            triangles = []
            for i in range(len(indices) - 2):
                # Flip every other triangle to keep winding consistent
                if i % 2 == 0:
                    triangles.append((indices[i], indices[i + 1], indices[i + 2]))
                else:
                    triangles.append((indices[i + 1], indices[i], indices[i + 2]))
            return np.array(triangles, dtype=np.uint32).reshape(-1, 3)
        if self.mode == Mode.TRIANGLE_FAN:
            triangles = [(indices[0], indices[i], indices[i + 1]) for i in range(1, len(indices) - 1)]
            return np.array(triangles, dtype=np.uint32).reshape(-1, 3)
        raise BadModeError(self.mode)

    def lines(self) -> np.ndarray:
        """
        List of line segments as vertex index pairs, shape (L, 2).

        Raises:
            BadModeError: mode is not LINES, LINE_LOOP or LINE_STRIP
        """
        indices = self._element_indices()

        if self.mode == Mode.LINES:
            usable = len(indices) - len(indices) % 2
            return indices[:usable].reshape(-1, 2)
        if self.mode in (Mode.LINE_STRIP, Mode.LINE_LOOP):
            lines = [(indices[i], indices[i + 1]) for i in range(len(indices) - 1)]
            if self.mode == Mode.LINE_LOOP and len(indices) > 1:
                lines.append((indices[-1], indices[0]))
            return np.array(lines, dtype=np.uint32).reshape(-1, 2)
        raise BadModeError(self.mode)

    def points(self) -> np.ndarray:
        """
        Point positions, shape (N, 3).

        Raises:
            BadModeError: mode is not POINTS
        """
        if self.mode != Mode.POINTS:
            raise BadModeError(self.mode)
        return self.positions

    def __repr__(self):
        return (f"Primitive(mesh='{self.mesh_name}', index={self.primitive_index}, "
                f"vertices={self.vertex_count}, mode={self.mode.name})")


class Model:
    """
    Represents a loaded model: every mesh primitive of the scene, flattened.
    """

    def __init__(self, primitives: List[Primitive], name: str = "Model"):
        """
        Initialize model.

        Args:
            primitives: Flattened primitives in scene traversal order
            name: Model name
        """
        self.primitives = primitives
        self.name = name
        self.bounding_radius = 1.0

    @property
    def vertex_count(self) -> int:
        return sum(primitive.vertex_count for primitive in self.primitives)

    @property
    def materials(self) -> List[Material]:
        """Distinct materials used by the primitives, in first-use order."""
        seen = []
        for primitive in self.primitives:
            if primitive.material is not None and all(primitive.material is not m for m in seen):
                seen.append(primitive.material)
        return seen

    def __repr__(self):
        return f"Model(name='{self.name}', primitives={len(self.primitives)})"


@dataclass
class MineGLTF:
    """
    Result of loading one glTF asset.

    Attributes:
        model: Flattened geometry (None only if geometry could not be built)
        bone_animations: Resampled animation by node (bone) index; empty for
            static models
        base_dir: Directory the asset was loaded from
    """
    model: Optional[Model]
    bone_animations: Dict[int, BoneAnimation] = field(default_factory=dict)
    base_dir: Path = field(default_factory=Path)

    @property
    def is_animated(self) -> bool:
        return bool(self.bone_animations)

    @property
    def is_broken(self) -> bool:
        return self.model is None

    @property
    def frame_count(self) -> int:
        """Frames in the shared animation timeline (0 when static)."""
        first = next(iter(self.bone_animations.values()), None)
        return first.frame_count if first is not None else 0

    def create_player(self) -> AnimationPlayer:
        """Create an animation player for this asset's bones."""
        return AnimationPlayer(self.bone_animations)
