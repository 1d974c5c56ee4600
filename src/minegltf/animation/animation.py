"""
Animation

Keyframe data containers for node (bone) animation.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import ClassVar, Tuple, Union

import numpy as np
from pyrr import Quaternion, Vector3


class AnimationTarget(Enum):
    """Animation target properties (glTF channel paths)."""
    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"
    WEIGHTS = "weights"  # Morph target weights

    @property
    def value_field(self) -> str:
        """Name of the value array holding this component on a channel record."""
        return _FIELD_NAMES[self][0]

    @property
    def timestamp_field(self) -> str:
        """Name of the timestamp array paired with this component."""
        return _FIELD_NAMES[self][1]


_FIELD_NAMES = {
    AnimationTarget.TRANSLATION: ("translations", "translation_timestamps"),
    AnimationTarget.ROTATION: ("rotations", "rotation_timestamps"),
    AnimationTarget.SCALE: ("scales", "scale_timestamps"),
    AnimationTarget.WEIGHTS: ("weights", "weight_timestamps"),
}

TRS_TARGETS = (AnimationTarget.TRANSLATION, AnimationTarget.ROTATION, AnimationTarget.SCALE)


# ----------------------------------------------------------------------------
# Decoded keyframe payloads. One variant per channel kind.
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class TranslationKeyframes:
    """Translation keyframes, shape (N, 3)."""
    values: np.ndarray
    target: ClassVar[AnimationTarget] = AnimationTarget.TRANSLATION


@dataclass(frozen=True)
class RotationKeyframes:
    """Rotation keyframes as (x, y, z, w) quaternions, shape (N, 4)."""
    values: np.ndarray
    target: ClassVar[AnimationTarget] = AnimationTarget.ROTATION


@dataclass(frozen=True)
class ScaleKeyframes:
    """Scale keyframes, shape (N, 3)."""
    values: np.ndarray
    target: ClassVar[AnimationTarget] = AnimationTarget.SCALE


@dataclass(frozen=True)
class WeightKeyframes:
    """Morph target weights, flattened to shape (N * targets,)."""
    values: np.ndarray
    target: ClassVar[AnimationTarget] = AnimationTarget.WEIGHTS


Keyframes = Union[TranslationKeyframes, RotationKeyframes, ScaleKeyframes, WeightKeyframes]


def _empty_vectors(width: int) -> np.ndarray:
    return np.zeros((0, width), dtype='f4')


def _empty_scalars() -> np.ndarray:
    return np.zeros(0, dtype='f4')


@dataclass
class BoneAnimationChannel:
    """
    Raw TRS and weight keyframes targeting a single node (bone).

    Each value array is paired with its own timestamp array, exactly as the
    source channel stored them. Fields start empty and are written at most once.
    """
    translations: np.ndarray = field(default_factory=lambda: _empty_vectors(3))
    translation_timestamps: np.ndarray = field(default_factory=_empty_scalars)

    rotations: np.ndarray = field(default_factory=lambda: _empty_vectors(4))
    rotation_timestamps: np.ndarray = field(default_factory=_empty_scalars)

    scales: np.ndarray = field(default_factory=lambda: _empty_vectors(3))
    scale_timestamps: np.ndarray = field(default_factory=_empty_scalars)

    weights: np.ndarray = field(default_factory=_empty_scalars)
    weight_timestamps: np.ndarray = field(default_factory=_empty_scalars)

    def values_for(self, target: AnimationTarget) -> np.ndarray:
        return getattr(self, target.value_field)

    def timestamps_for(self, target: AnimationTarget) -> np.ndarray:
        return getattr(self, target.timestamp_field)

    def has(self, target: AnimationTarget) -> bool:
        """Check if keyframes were already stored for this component."""
        return len(self.values_for(target)) > 0

    def store(self, target: AnimationTarget, values: np.ndarray, timestamps: np.ndarray):
        setattr(self, target.value_field, values)
        setattr(self, target.timestamp_field, timestamps)

    def all_timestamps(self):
        """Yield the four timestamp arrays of this record."""
        for target in AnimationTarget:
            yield self.timestamps_for(target)

    def __repr__(self):
        counts = ", ".join(f"{target.value}={len(self.values_for(target))}" for target in AnimationTarget)
        return f"BoneAnimationChannel({counts})"


@dataclass(frozen=True)
class BoneAnimation:
    """
    TRS keyframes of one node resampled onto the shared timeline.

    Translation, rotation and scale (and their timestamps) all hold exactly
    `frame_count` entries and share the same grid, so frame i of every bone
    happens at the same time. Arrays are made read-only on construction.
    """
    translations: np.ndarray
    translation_timestamps: np.ndarray
    rotations: np.ndarray
    rotation_timestamps: np.ndarray
    scales: np.ndarray
    scale_timestamps: np.ndarray
    weights: np.ndarray
    weight_timestamps: np.ndarray

    def __post_init__(self):
        for data_field in fields(self):
            array = np.array(getattr(self, data_field.name), dtype='f4')
            array.flags.writeable = False
            object.__setattr__(self, data_field.name, array)

    @property
    def frame_count(self) -> int:
        return len(self.translation_timestamps)

    def pose(self, frame: int) -> Tuple[Vector3, Quaternion, Vector3]:
        """Get (translation, rotation, scale) at a grid frame index."""
        return (
            Vector3(self.translations[frame]),
            Quaternion(self.rotations[frame]),
            Vector3(self.scales[frame]),
        )

    def __repr__(self):
        return f"BoneAnimation(frames={self.frame_count}, weights={len(self.weights)})"
