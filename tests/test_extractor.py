"""Tests for channel extraction"""

import numpy as np
import pytest

from minegltf.animation import (
    AnimationTarget, ChannelSource, RotationKeyframes, SparseAccessor, TranslationKeyframes,
    WeightKeyframes, build_bone_animations, decode_keyframes, extract_channels, normalized_to_float,
)
from minegltf.errors import AnimationError, CorruptAnimationError, UnsupportedAnimationError


def source(node, path, times, values, dtype='f4'):
    return ChannelSource(
        node=node,
        path=path,
        timestamps=np.asarray(times, dtype='f4'),
        values=np.asarray(values, dtype=dtype),
    )


def test_channels_are_routed_by_node_and_path():
    channels = extract_channels([
        source(0, "translation", [0.0, 1.0], [[0, 0, 0], [1, 2, 3]]),
        source(0, "rotation", [0.0, 0.5], [[0, 0, 0, 1], [0, 1, 0, 0]]),
        source(2, "scale", [0.25], [[2, 2, 2]]),
    ])

    assert set(channels) == {0, 2}
    np.testing.assert_array_equal(channels[0].translations, [[0, 0, 0], [1, 2, 3]])
    np.testing.assert_array_equal(channels[0].translation_timestamps, [0.0, 1.0])
    np.testing.assert_array_equal(channels[0].rotation_timestamps, [0.0, 0.5])
    assert channels[0].rotations.shape == (2, 4)
    assert not channels[0].has(AnimationTarget.SCALE)
    np.testing.assert_array_equal(channels[2].scales, [[2, 2, 2]])
    assert len(channels[2].translations) == 0


def test_no_channels_gives_empty_mapping():
    assert extract_channels([]) == {}


def test_sparse_timestamps_are_unsupported():
    sparse = ChannelSource(node=0, path="translation", timestamps=SparseAccessor(3, 2),
                           values=np.zeros((2, 3), dtype='f4'))
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([sparse])


def test_sparse_values_are_unsupported():
    sparse = ChannelSource(node=0, path="translation", timestamps=np.array([0.0, 1.0], dtype='f4'),
                           values=SparseAccessor(4, 2))
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([sparse])


def test_missing_timestamps_are_unsupported():
    broken = ChannelSource(node=0, path="scale", timestamps=None, values=np.ones((2, 3), dtype='f4'))
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([broken])


def test_missing_values_are_unsupported():
    broken = ChannelSource(node=0, path="scale", timestamps=np.array([0.0], dtype='f4'), values=None)
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([broken])


def test_unknown_path_is_unsupported():
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([source(0, "pointer", [0.0], [[0, 0, 0]])])


def test_channel_without_node_is_unsupported():
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([source(None, "translation", [0.0], [[0, 0, 0]])])


def test_duplicate_component_is_corrupt():
    with pytest.raises(CorruptAnimationError):
        extract_channels([
            source(1, "rotation", [0.0], [[0, 0, 0, 1]]),
            source(1, "rotation", [0.5], [[0, 0, 0, 1]]),
        ])


def test_same_component_on_different_nodes_is_fine():
    channels = extract_channels([
        source(1, "rotation", [0.0], [[0, 0, 0, 1]]),
        source(2, "rotation", [0.5], [[0, 0, 0, 1]]),
    ])
    assert set(channels) == {1, 2}


@pytest.mark.parametrize("path,values", [
    ("translation", np.zeros((3, 3))),
    ("rotation", np.zeros((1, 4))),
    ("scale", np.zeros((3, 3))),
])
def test_length_mismatch_is_corrupt(path, values):
    with pytest.raises(CorruptAnimationError):
        extract_channels([source(0, path, [0.0, 1.0], values)])


def test_weights_are_exempt_from_length_check():
    """Two morph targets over two keyframes: four values, two timestamps"""
    channels = extract_channels([source(5, "weights", [0.0, 1.0], [0.0, 1.0, 1.0, 0.0])])
    np.testing.assert_array_equal(channels[5].weights, [0.0, 1.0, 1.0, 0.0])
    assert len(channels[5].weight_timestamps) == 2


def test_errors_share_a_base_class():
    assert issubclass(CorruptAnimationError, AnimationError)
    assert issubclass(UnsupportedAnimationError, AnimationError)


class TestDecodeKeyframes:

    def test_translation_variant(self):
        keyframes = decode_keyframes(source(0, "translation", [0.0, 1.0], [0, 0, 0, 1, 1, 1]))
        assert isinstance(keyframes, TranslationKeyframes)
        assert keyframes.target == AnimationTarget.TRANSLATION
        assert keyframes.values.shape == (2, 3)
        assert keyframes.values.dtype == np.float32

    def test_int16_rotation_is_normalized(self):
        keyframes = decode_keyframes(source(0, "rotation", [0.0], [[0, 0, 32767, -32768]], dtype=np.int16))
        assert isinstance(keyframes, RotationKeyframes)
        np.testing.assert_allclose(keyframes.values, [[0.0, 0.0, 1.0, -1.0]])

    def test_int8_rotation_is_normalized(self):
        keyframes = decode_keyframes(source(0, "rotation", [0.0], [[127, 0, -127, -128]], dtype=np.int8))
        np.testing.assert_allclose(keyframes.values, [[1.0, 0.0, -1.0, -1.0]])

    def test_uint8_weights_are_normalized(self):
        keyframes = decode_keyframes(source(0, "weights", [0.0], [0, 255], dtype=np.uint8))
        assert isinstance(keyframes, WeightKeyframes)
        np.testing.assert_allclose(keyframes.values, [0.0, 1.0])

    def test_uint32_rotation_is_unsupported(self):
        with pytest.raises(UnsupportedAnimationError):
            decode_keyframes(source(0, "rotation", [0.0], [[0, 0, 0, 1]], dtype=np.uint32))

    def test_integer_translation_is_unsupported(self):
        with pytest.raises(UnsupportedAnimationError):
            decode_keyframes(source(0, "translation", [0.0], [[1, 2, 3]], dtype=np.int16))


def test_normalized_to_float_passes_floats_through():
    values = np.array([0.25, -0.5], dtype=np.float64)
    result = normalized_to_float(values)
    assert result.dtype == np.float32
    np.testing.assert_array_equal(result, [0.25, -0.5])


@pytest.mark.parametrize("path,values", [
    ("rotation", [[0.0, 0.0, 1.0]]),
    ("translation", [[0.0, 0.0, 1.0, 0.0]]),
    ("scale", [1.0, 1.0]),
])
def test_payload_not_splitting_into_keyframes_is_unsupported(path, values):
    with pytest.raises(UnsupportedAnimationError):
        extract_channels([source(0, path, [0.0], values)])


def test_vec3_rotation_makes_model_static():
    sources = [
        source(0, "translation", [0.0, 1.0], [[0, 0, 0], [1, 0, 0]]),
        source(0, "rotation", [0.0], [[0, 0, 1]]),
    ]
    assert build_bone_animations(sources, "bad_rotation.glb") == {}
