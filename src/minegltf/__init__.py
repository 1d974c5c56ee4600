"""
minegltf - glTF 2.0 loader for voxel/game engines

Loads a glTF/GLB asset into flattened geometry and, when the asset is
animated, per-bone TRS tracks resampled onto one fixed-rate timeline.
"""

from .errors import (
    MineGltfError,
    LoadError,
    BadModeError,
    AnimationError,
    UnsupportedAnimationError,
    CorruptAnimationError,
    DegenerateTimingError,
)
from .animation import (
    AnimationPlayer,
    AnimationTarget,
    BoneAnimation,
    BoneAnimationChannel,
    Timeline,
)
from .loaders import GltfLoader, Material, MineGLTF, Mode, Model, Primitive, load

__version__ = "0.3.0"
__all__ = [
    # Entry points
    "load",
    "GltfLoader",
    # Results
    "MineGLTF",
    "Model",
    "Primitive",
    "Mode",
    "Material",
    # Animation
    "AnimationPlayer",
    "AnimationTarget",
    "BoneAnimation",
    "BoneAnimationChannel",
    "Timeline",
    # Errors
    "MineGltfError",
    "LoadError",
    "BadModeError",
    "AnimationError",
    "UnsupportedAnimationError",
    "CorruptAnimationError",
    "DegenerateTimingError",
]
