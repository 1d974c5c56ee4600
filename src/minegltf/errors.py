"""
Errors

Exception hierarchy for loading and animation extraction.

Anything deriving from AnimationError only disables animation for the asset;
LoadError aborts the whole load.
"""


class MineGltfError(Exception):
    """Base class for all loader errors."""


class LoadError(MineGltfError):
    """The asset could not be loaded at all (missing file, no scene, no meshes)."""


class BadModeError(MineGltfError):
    """A primitive was queried with an accessor that does not match its draw mode."""

    def __init__(self, mode):
        super().__init__(f"Primitive mode {mode.name} does not support this operation")
        self.mode = mode


class AnimationError(MineGltfError):
    """Animation data is unusable; the asset is treated as static."""


class UnsupportedAnimationError(AnimationError):
    """Keyframe data uses a shape this loader does not read (sparse, unknown payload)."""


class CorruptAnimationError(AnimationError):
    """Keyframe data contradicts itself (duplicate channels, length mismatches)."""


class DegenerateTimingError(AnimationError):
    """Keyframe timestamps cannot produce a usable uniform timeline."""
