"""
Timeline Resampler

Resamples every node's keyframe tracks onto one evenly spaced frame grid
shared by all bones, so playback can step frame by frame without searching
keyframe times.

The grid spacing comes from the smallest gap between consecutive keyframes in
any single channel; the grid spans 0 .. max_time. Timestamps are compared
through precision keys (see `precision_key`).
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable

import numpy as np

from ..config import settings
from ..errors import AnimationError, CorruptAnimationError, DegenerateTimingError
from .animation import AnimationTarget, BoneAnimation, BoneAnimationChannel, TRS_TARGETS
from .extractor import ChannelSource, extract_channels
from .interpolation import interpolate

logger = logging.getLogger(__name__)

_IDENTITY_VALUES = {
    AnimationTarget.TRANSLATION: settings.IDENTITY_TRANSLATION,
    AnimationTarget.ROTATION: settings.IDENTITY_ROTATION,
    AnimationTarget.SCALE: settings.IDENTITY_SCALE,
}


def precision_key(timestamps):
    """
    Quantize timestamps to integers for equality tests.

    The value is multiplied by PRECISION_SCALE in float32 and truncated, so
    anything past the fifth decimal digit is dropped: 0.30000 and 0.300004
    share a key while 0.299999 and 0.3 do not.

    Args:
        timestamps: Scalar or array of times in seconds

    Returns:
        int for scalar input, int64 array otherwise
    """
    scaled = np.asarray(timestamps, dtype='f4') * np.float32(settings.PRECISION_SCALE)
    keys = np.trunc(scaled).astype(np.int64)
    if keys.ndim == 0:
        return int(keys)
    return keys


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Timeline:
    """
    Global timing parameters shared by every resampled channel.

    Attributes:
        min_time: Smallest timestamp seen in any channel (expected 0)
        max_time: Largest timestamp seen in any channel
        min_distance: Smallest positive gap between consecutive keyframes of one channel
        required_frames: Frame count of every resampled TRS track
    """
    min_time: float
    max_time: float
    min_distance: float
    required_frames: int

    @classmethod
    def from_spacing(cls, max_time: float, min_distance: float, min_time: float = 0.0) -> 'Timeline':
        """Build a timeline whose frame count follows from its spacing."""
        if not math.isfinite(min_distance) or min_distance <= 0.0:
            raise DegenerateTimingError(f"Unusable keyframe spacing [{min_distance}]")
        ratio = max_time / min_distance
        if not math.isfinite(ratio):
            raise DegenerateTimingError(f"Unusable timeline [{max_time}] / [{min_distance}]")
        required_frames = _round_half_away(ratio) + 1
        if required_frames < 1 or required_frames > settings.MAX_REQUIRED_FRAMES:
            raise DegenerateTimingError(
                f"Timeline of [{required_frames}] frames is outside 1..{settings.MAX_REQUIRED_FRAMES}"
            )
        return cls(min_time, max_time, min_distance, required_frames)

    @property
    def delta(self) -> float:
        """Time between two grid frames."""
        if self.required_frames < 2:
            return 0.0
        return self.max_time / (self.required_frames - 1)

    def grid(self) -> np.ndarray:
        """Grid times [0, delta, 2 * delta, ..., max_time] as float32."""
        return (np.arange(self.required_frames, dtype=np.float64) * self.delta).astype('f4')

    def __repr__(self):
        return (f"Timeline(frames={self.required_frames}, delta={self.delta:.5f}, "
                f"range=[{self.min_time:.5f}, {self.max_time:.5f}])")


def compute_timeline(channels: Dict[int, BoneAnimationChannel]) -> Timeline:
    """
    Derive the shared timeline from every node's timestamp arrays.

    Gaps are only measured between consecutive timestamps of the same array;
    channels never mix.

    Raises:
        DegenerateTimingError: non-finite timestamps, repeated or decreasing
            timestamps within a channel, or no gap anywhere to derive a spacing
    """
    min_time = math.inf
    max_time = -math.inf
    min_distance = math.inf

    for bone_id, channel in channels.items():
        for timestamps in channel.all_timestamps():
            previous = -math.inf
            for time in timestamps.tolist():
                if not math.isfinite(time):
                    raise DegenerateTimingError(f"Non-finite timestamp [{time}] on node (bone) [{bone_id}]")
                min_time = min(min_time, time)
                max_time = max(max_time, time)

                distance = time - previous
                if distance <= 0.0:
                    raise DegenerateTimingError(
                        f"Timestamps of node (bone) [{bone_id}] do not increase ([{previous}] -> [{time}])"
                    )
                min_distance = min(min_distance, distance)
                previous = time

    if not math.isfinite(min_distance):
        raise DegenerateTimingError("No two keyframes in any channel; cannot derive frame spacing")

    return Timeline.from_spacing(max_time, min_distance, min_time=min_time)


def _assert_frame_count(values: np.ndarray, timestamps: np.ndarray, timeline: Timeline, what: str):
    if len(values) != timeline.required_frames or len(timestamps) != timeline.required_frames:
        raise CorruptAnimationError(
            f"Resampled {what} has [{len(values)}] values and [{len(timestamps)}] timestamps, "
            f"expected [{timeline.required_frames}]"
        )


def _sample_general(values: np.ndarray, timestamps: np.ndarray, grid: np.ndarray,
                    target: AnimationTarget) -> np.ndarray:
    """
    Look up or interpolate a value for each grid time.

    A grid time whose key matches a keyframe reuses that keyframe. An
    unmatched grid time at key 0 takes keyframe 1. Otherwise the value is
    blended between the latest keyframe before it and the earliest keyframe
    after it (clamped to the ends). Keys are monotonic, so binary search gives
    the same first-match and strictly-before/after picks as a linear scan.
    """
    source_keys = precision_key(timestamps)
    grid_keys = precision_key(grid)
    source_times = timestamps.astype(np.float64)

    resampled = []
    for grid_time, grid_key in zip(grid.astype(np.float64), grid_keys):
        match = int(np.searchsorted(source_keys, grid_key, side='left'))
        if match < len(source_keys) and source_keys[match] == grid_key:
            resampled.append(values[match])
            continue

        if grid_key == 0:
            resampled.append(values[1])
            continue

        leading = max(match - 1, 0)
        following = int(np.searchsorted(source_keys, grid_key, side='right'))
        if following >= len(source_keys):
            following = leading

        span = source_times[following] - source_times[leading]
        if span > 0.0:
            t = min(max((grid_time - source_times[leading]) / span, 0.0), 1.0)
        else:
            t = 0.0
        resampled.append(interpolate(target, values[leading], values[following], t))

    return np.array(resampled, dtype='f4').reshape(len(grid), -1)


def resample_component(values: np.ndarray, timestamps: np.ndarray, timeline: Timeline,
                       target: AnimationTarget):
    """
    Resample one TRS component of a node onto the timeline grid.

    Args:
        values: Keyframe values, shape (N, 3) or (N, 4)
        timestamps: Keyframe times, shape (N,)
        timeline: Shared timeline
        target: Which component the values animate

    Returns:
        (values, timestamps) with exactly timeline.required_frames entries each

    Raises:
        CorruptAnimationError: value/timestamp lengths differ, or the result
            does not have the required frame count
    """
    values = np.asarray(values, dtype='f4')
    timestamps = np.asarray(timestamps, dtype='f4').reshape(-1)
    frames = timeline.required_frames

    if len(values) != len(timestamps):
        raise CorruptAnimationError(
            f"{target.value} has [{len(values)}] values but [{len(timestamps)}] timestamps"
        )

    grid = timeline.grid()
    first_key = precision_key(timestamps[0]) if len(timestamps) else None
    last_key = precision_key(timestamps[-1]) if len(timestamps) else None
    spans_range = first_key == 0 and last_key == precision_key(timeline.max_time)

    if len(values) == 0:
        identity = np.asarray(_IDENTITY_VALUES[target], dtype='f4')
        result = np.tile(identity, (frames, 1))
        result_timestamps = grid
    elif len(values) == 1:
        result = np.tile(values[0], (frames, 1))
        result_timestamps = grid
    elif spans_range and len(values) == frames:
        # Already on the grid
        result = values.copy()
        result_timestamps = timestamps.copy()
    elif spans_range and len(values) == 2:
        percentiles = np.arange(frames, dtype=np.float64) / max(frames - 1, 1)
        result = np.array([interpolate(target, values[0], values[1], p) for p in percentiles], dtype='f4')
        result_timestamps = grid
    else:
        result = _sample_general(values, timestamps, grid, target)
        result_timestamps = grid

    _assert_frame_count(result, result_timestamps, timeline, target.value)
    return result, result_timestamps


def resample_weights(weights: np.ndarray, timestamps: np.ndarray, timeline: Timeline):
    """
    Best-effort resampling of morph target weights.

    Weights are not required to reach the timeline's frame count. Arrays that
    divide evenly into one row per timestamp are resampled like TRS data;
    anything else is carried through as stored.

    Returns:
        (weights, timestamps), weights flattened
    """
    weights = np.asarray(weights, dtype='f4').reshape(-1)
    timestamps = np.asarray(timestamps, dtype='f4').reshape(-1)

    if len(weights) == 0 or len(timestamps) == 0:
        return weights, timestamps
    if len(weights) % len(timestamps) != 0:
        logger.debug("Carrying %d morph weights over %d timestamps unchanged", len(weights), len(timestamps))
        return weights, timestamps

    rows = weights.reshape(len(timestamps), -1)
    grid = timeline.grid()
    if len(rows) == 1:
        return np.tile(rows[0], timeline.required_frames).astype('f4'), grid

    resampled = _sample_general(rows, timestamps, grid, AnimationTarget.WEIGHTS)
    return resampled.reshape(-1), grid


def resample_channels(channels: Dict[int, BoneAnimationChannel]) -> Dict[int, BoneAnimation]:
    """
    Resample every node record onto one shared timeline.

    Args:
        channels: Non-empty mapping of node index -> raw channel record

    Returns:
        Mapping of node index -> BoneAnimation

    Raises:
        AnimationError: any fatal condition; no partial result is returned
    """
    timeline = compute_timeline(channels)
    logger.debug("Resampling %d nodes onto %r", len(channels), timeline)

    bone_animations: Dict[int, BoneAnimation] = {}
    for bone_id, channel in channels.items():
        resampled = {}
        for target in TRS_TARGETS:
            try:
                values, timestamps = resample_component(
                    channel.values_for(target), channel.timestamps_for(target), timeline, target
                )
            except CorruptAnimationError as e:
                raise CorruptAnimationError(f"Node (bone) [{bone_id}]: {e}") from e
            resampled[target.value_field] = values
            resampled[target.timestamp_field] = timestamps

        weights, weight_timestamps = resample_weights(channel.weights, channel.weight_timestamps, timeline)
        bone_animations[bone_id] = BoneAnimation(
            weights=weights,
            weight_timestamps=weight_timestamps,
            **resampled,
        )

    return bone_animations


def build_bone_animations(sources: Iterable[ChannelSource], file_name: str = "<memory>") -> Dict[int, BoneAnimation]:
    """
    Extract and resample one animation clip.

    Any AnimationError is logged and turns into an empty mapping: the model
    is then static, while its geometry stays usable.

    Args:
        sources: Channels of the clip, in source order
        file_name: Model name used in diagnostics

    Returns:
        Mapping of node index -> BoneAnimation (empty when not animated)
    """
    try:
        channels = extract_channels(sources, file_name)
        if not channels:
            return {}
        return resample_channels(channels)
    except AnimationError as e:
        logger.error("%s Model [%s] is now a static model.", e, file_name)
        return {}
