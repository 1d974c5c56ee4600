"""
Animation System

Extracts glTF animation channels and resamples them onto a shared frame grid.
"""

from .animation import (
    AnimationTarget, BoneAnimationChannel, BoneAnimation, Keyframes,
    TranslationKeyframes, RotationKeyframes, ScaleKeyframes, WeightKeyframes,
)
from .extractor import ChannelSource, SparseAccessor, decode_keyframes, extract_channels, normalized_to_float
from .timeline import (
    Timeline, precision_key, compute_timeline, resample_component,
    resample_weights, resample_channels, build_bone_animations,
)
from .playback import AnimationPlayer

__all__ = [
    'AnimationTarget',
    'BoneAnimationChannel',
    'BoneAnimation',
    'Keyframes',
    'TranslationKeyframes',
    'RotationKeyframes',
    'ScaleKeyframes',
    'WeightKeyframes',
    'ChannelSource',
    'SparseAccessor',
    'decode_keyframes',
    'extract_channels',
    'normalized_to_float',
    'Timeline',
    'precision_key',
    'compute_timeline',
    'resample_component',
    'resample_weights',
    'resample_channels',
    'build_bone_animations',
    'AnimationPlayer',
]
