"""
Channel Extractor

Collects the raw keyframe tracks of one animation clip into per-node records.

Every failure raises an AnimationError; the caller decides what a failed clip
means (the loader treats the model as static).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

import numpy as np

from ..errors import CorruptAnimationError, UnsupportedAnimationError
from .animation import (
    AnimationTarget, BoneAnimationChannel, Keyframes,
    TranslationKeyframes, RotationKeyframes, ScaleKeyframes, WeightKeyframes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SparseAccessor:
    """Marker for accessor data stored sparsely (not supported for keyframes)."""
    accessor_index: int
    count: int = 0


@dataclass
class ChannelSource:
    """
    One animation channel as decoded by the asset reader.

    Attributes:
        node: Target node index (None when the channel has no node target)
        path: glTF target path ("translation", "rotation", "scale", "weights")
        timestamps: Keyframe times, or SparseAccessor / None when unreadable
        values: Keyframe output in its stored component type, or SparseAccessor / None
        interpolation: Sampler interpolation string
    """
    node: Optional[int]
    path: Optional[str]
    timestamps: Union[np.ndarray, SparseAccessor, None]
    values: Union[np.ndarray, SparseAccessor, None]
    interpolation: str = "LINEAR"


# Divisors for normalized integer components (glTF allows 8 and 16 bit types only)
NORMALIZED_DIVISORS = {
    np.dtype(np.int8): 127.0,
    np.dtype(np.uint8): 255.0,
    np.dtype(np.int16): 32767.0,
    np.dtype(np.uint16): 65535.0,
}


def normalized_to_float(values: np.ndarray) -> np.ndarray:
    """
    Upconvert normalized integer components to float32.

    Signed types are clamped to -1.0 as required for glTF normalized data.
    Float arrays pass through as float32.

    Raises:
        UnsupportedAnimationError: component type is neither float nor a
            normalized 8/16-bit integer
    """
    dtype = values.dtype
    if np.issubdtype(dtype, np.floating):
        return values.astype('f4')
    divisor = NORMALIZED_DIVISORS.get(dtype)
    if divisor is None:
        raise UnsupportedAnimationError(f"{dtype} is not implemented for animation keyframes")
    result = values.astype('f4') / divisor
    if np.issubdtype(dtype, np.signedinteger):
        result = np.maximum(result, -1.0)
    return result.astype('f4')


def _require_float(values: np.ndarray, target: AnimationTarget) -> np.ndarray:
    if not np.issubdtype(values.dtype, np.floating):
        raise UnsupportedAnimationError(f"{values.dtype} is not implemented for animation {target.value}")
    return values.astype('f4')


def _rows(values: np.ndarray, width: int, target: AnimationTarget) -> np.ndarray:
    if values.size % width != 0:
        raise UnsupportedAnimationError(
            f"{values.size} {target.value} components do not form whole {width}-component keyframes"
        )
    return values.reshape(-1, width)


def decode_keyframes(source: ChannelSource) -> Keyframes:
    """
    Turn a channel's output data into its typed keyframe payload.

    Raises:
        UnsupportedAnimationError: unknown path, missing or sparse output data,
            an unsupported component type, or a payload that does not split
            into whole keyframes
    """
    values = source.values
    if isinstance(values, SparseAccessor):
        raise UnsupportedAnimationError("Sparse keyframes not supported")
    if values is None:
        raise UnsupportedAnimationError(f"Unknown keyframe data for path [{source.path}]")

    try:
        target = AnimationTarget(source.path)
    except ValueError:
        raise UnsupportedAnimationError(f"Animation path [{source.path}] is not implemented") from None

    values = np.asarray(values)
    if target == AnimationTarget.TRANSLATION:
        return TranslationKeyframes(_rows(_require_float(values, target), 3, target))
    if target == AnimationTarget.SCALE:
        return ScaleKeyframes(_rows(_require_float(values, target), 3, target))
    if target == AnimationTarget.ROTATION:
        return RotationKeyframes(_rows(normalized_to_float(values), 4, target))
    return WeightKeyframes(normalized_to_float(values).reshape(-1))


def extract_channels(sources: Iterable[ChannelSource], file_name: str = "<memory>") -> Dict[int, BoneAnimationChannel]:
    """
    Accumulate channel keyframes into one record per target node.

    Args:
        sources: Channels of a single animation clip, in source order
        file_name: Model name used in diagnostics

    Returns:
        Dictionary mapping node index -> BoneAnimationChannel

    Raises:
        UnsupportedAnimationError: sparse or unreadable channel data
        CorruptAnimationError: a node receives the same component twice, or a
            TRS channel has a different number of values than timestamps
    """
    channels: Dict[int, BoneAnimationChannel] = {}

    for channel_index, source in enumerate(sources):
        timestamps = source.timestamps
        if isinstance(timestamps, SparseAccessor):
            raise UnsupportedAnimationError(
                f"Sparse keyframes not supported. Model: [{file_name}]. Model will not be animated."
            )
        if timestamps is None:
            raise UnsupportedAnimationError(
                f"No animation data detected in animation channel [{channel_index}]. "
                f"[{file_name}] is probably a broken model. Model will not be animated."
            )
        timestamps = np.asarray(timestamps, dtype='f4').reshape(-1)

        keyframes = decode_keyframes(source)

        if source.node is None:
            raise UnsupportedAnimationError(
                f"Animation channel [{channel_index}] of model [{file_name}] has no target node."
            )
        bone_id = int(source.node)
        target = keyframes.target
        record = channels.setdefault(bone_id, BoneAnimationChannel())

        if record.has(target):
            raise CorruptAnimationError(
                f"Attempted to overwrite node (bone) channel [{bone_id}]'s {target.value} animation data! "
                f"Model [{file_name}] is broken!"
            )

        # Morph weights carry (keyframes * targets) values, so no length check
        if target != AnimationTarget.WEIGHTS and len(keyframes.values) != len(timestamps):
            raise CorruptAnimationError(
                f"Mismatched node (bone) {target.value} length in channel [{bone_id}] of model [{file_name}]. "
                f"[{len(keyframes.values)}] {target.value} compared to [{len(timestamps)}] timestamps."
            )

        record.store(target, keyframes.values, timestamps)
        logger.debug("Channel %d: node %d %s, %d keyframes", channel_index, bone_id, target.value, len(timestamps))

    return channels
