"""
Interpolation

Blending helpers for keyframe values.
"""

import numpy as np
from pyrr import quaternion

from .animation import AnimationTarget


def lerp(v0: np.ndarray, v1: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation between two vectors (or scalars)."""
    v0 = np.asarray(v0, dtype='f4')
    v1 = np.asarray(v1, dtype='f4')
    return (v0 * (1.0 - t) + v1 * t).astype('f4')


def slerp(q0: np.ndarray, q1: np.ndarray, t: float) -> np.ndarray:
    """
    Spherical interpolation between two (x, y, z, w) quaternions.

    Always travels the shortest arc: q1 is negated when the pair lies in
    opposite hemispheres.
    """
    q0 = np.asarray(q0, dtype='f4')
    q1 = np.asarray(q1, dtype='f4')
    if np.dot(q0, q1) < 0.0:
        q1 = -q1

    if t <= 0.0:
        return q0.copy()
    if t >= 1.0:
        return q1.copy()
    return np.asarray(quaternion.slerp(q0, q1, t), dtype='f4')


def interpolate(target: AnimationTarget, v0, v1, t: float) -> np.ndarray:
    """Interpolate a keyframe value according to the property it animates."""
    if target == AnimationTarget.ROTATION:
        return slerp(v0, v1, t)
    return lerp(v0, v1, t)
