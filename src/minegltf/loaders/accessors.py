"""
Accessor Reader

Reads glTF documents and decodes accessor data into numpy arrays.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import numpy as np
import pygltflib

from ..errors import CorruptAnimationError, LoadError
from ..animation.extractor import NORMALIZED_DIVISORS, ChannelSource, SparseAccessor, normalized_to_float

logger = logging.getLogger(__name__)

COMPONENT_DTYPES = {
    5120: np.int8,     # BYTE
    5121: np.uint8,    # UNSIGNED_BYTE
    5122: np.int16,    # SHORT
    5123: np.uint16,   # UNSIGNED_SHORT
    5125: np.uint32,   # UNSIGNED_INT
    5126: np.float32,  # FLOAT
}

COMPONENT_COUNTS = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
    'MAT2': 4,
    'MAT3': 9,
    'MAT4': 16,
}


def load_document(filepath) -> pygltflib.GLTF2:
    """
    Read a .gltf or .glb file.

    Raises:
        LoadError: the file is missing or cannot be parsed
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        raise LoadError(f"Model not found: {filepath}")

    try:
        gltf = pygltflib.GLTF2().load(str(filepath))
    except Exception as e:
        raise LoadError(f"Failed to read glTF [{filepath}]: {e}") from e

    if gltf is None:
        raise LoadError(f"Failed to read glTF [{filepath}]")
    return gltf


class AccessorReader:
    """
    Decodes accessors of one glTF document.

    Buffer contents are fetched once and cached for the lifetime of the reader.
    """

    def __init__(self, gltf: pygltflib.GLTF2):
        """
        Initialize reader.

        Args:
            gltf: Parsed glTF document
        """
        self.gltf = gltf
        self._buffers: Dict[int, bytes] = {}

    def buffer_data(self, buffer_idx: int) -> bytes:
        """Get the raw bytes of a buffer (GLB chunk, data URI or external file)."""
        if buffer_idx not in self._buffers:
            buffer = self.gltf.buffers[buffer_idx]
            if buffer.uri:
                data = self.gltf.get_data_from_buffer_uri(buffer.uri)
            else:
                data = self.gltf.binary_blob()
            if data is None:
                raise LoadError(f"Buffer {buffer_idx} has no data")
            self._buffers[buffer_idx] = bytes(data)
        return self._buffers[buffer_idx]

    def buffer_view_data(self, view_idx: int) -> bytes:
        """Get the bytes covered by a buffer view."""
        buffer_view = self.gltf.bufferViews[view_idx]
        data = self.buffer_data(buffer_view.buffer)
        offset = buffer_view.byteOffset or 0
        return data[offset:offset + buffer_view.byteLength]

    def is_sparse(self, accessor_idx: int) -> bool:
        return self.gltf.accessors[accessor_idx].sparse is not None

    def _read_elements(self, view_idx: int, byte_offset: int, dtype, component_count: int, count: int) -> np.ndarray:
        buffer_view = self.gltf.bufferViews[view_idx]
        buffer_data = self.buffer_data(buffer_view.buffer)

        offset = (buffer_view.byteOffset or 0) + (byte_offset or 0)
        stride = buffer_view.byteStride or 0
        element_size = np.dtype(dtype).itemsize * component_count

        if stride == 0 or stride == element_size:
            # Tightly packed
            data = buffer_data[offset:offset + count * element_size]
        else:
            # Strided data
            data = bytearray()
            for i in range(count):
                element_offset = offset + i * stride
                data.extend(buffer_data[element_offset:element_offset + element_size])

        if len(data) < count * element_size:
            raise LoadError(f"Buffer view {view_idx} is too short for {count} elements")

        return np.frombuffer(bytes(data), dtype=dtype).reshape(count, component_count)

    def read(self, accessor_idx: int) -> np.ndarray:
        """
        Get data from an accessor in its stored component type.

        Args:
            accessor_idx: Accessor index

        Returns:
            Array of shape (count,) for scalars, (count, components) otherwise
        """
        accessor = self.gltf.accessors[accessor_idx]
        dtype = COMPONENT_DTYPES[accessor.componentType]
        component_count = COMPONENT_COUNTS[accessor.type]

        if accessor.bufferView is not None:
            array = self._read_elements(
                accessor.bufferView, accessor.byteOffset, dtype, component_count, accessor.count
            ).copy()
        else:
            # No buffer view: starts as zeros (sparse data may fill it)
            array = np.zeros((accessor.count, component_count), dtype=dtype)

        sparse = accessor.sparse
        if sparse is not None and sparse.count:
            indices = self._read_elements(
                sparse.indices.bufferView, sparse.indices.byteOffset,
                COMPONENT_DTYPES[sparse.indices.componentType], 1, sparse.count,
            ).reshape(-1)
            values = self._read_elements(
                sparse.values.bufferView, sparse.values.byteOffset, dtype, component_count, sparse.count,
            )
            array[indices.astype(np.int64)] = values

        if component_count == 1:
            return array.reshape(-1)
        return array

    def read_float(self, accessor_idx: int) -> np.ndarray:
        """Get accessor data as float32, applying normalization to integer components."""
        accessor = self.gltf.accessors[accessor_idx]
        array = self.read(accessor_idx)
        if accessor.normalized and array.dtype in NORMALIZED_DIVISORS:
            return normalized_to_float(array)
        return array.astype('f4')


def iter_animation_channels(gltf: pygltflib.GLTF2, reader: AccessorReader,
                            clip_index: int = 0) -> Iterator[ChannelSource]:
    """
    Decode the channels of one animation clip, one at a time.

    Sparse accessors are reported with a SparseAccessor marker instead of
    being read. CUBICSPLINE outputs keep only the value of each
    (in-tangent, value, out-tangent) triplet.

    Args:
        gltf: GLTF data
        reader: Accessor reader for the same document
        clip_index: Index of the animation clip to read

    Yields:
        ChannelSource in channel order (nothing when there is no such clip)

    Raises:
        CorruptAnimationError: a channel's sampler or accessors cannot be read
    """
    if not gltf.animations or clip_index >= len(gltf.animations):
        return

    gltf_anim = gltf.animations[clip_index]
    for channel_idx, channel in enumerate(gltf_anim.channels):
        try:
            yield _read_channel(gltf, reader, gltf_anim, channel)
        except (LoadError, IndexError, KeyError, ValueError) as e:
            raise CorruptAnimationError(f"Animation channel [{channel_idx}] could not be read: {e}") from e


def read_animation_channels(gltf: pygltflib.GLTF2, reader: AccessorReader,
                            clip_index: int = 0) -> List[ChannelSource]:
    """List every channel of one animation clip (see `iter_animation_channels`)."""
    return list(iter_animation_channels(gltf, reader, clip_index))


def _read_channel(gltf: pygltflib.GLTF2, reader: AccessorReader, gltf_anim, channel) -> ChannelSource:
    sampler = gltf_anim.samplers[channel.sampler]
    interpolation = sampler.interpolation or "LINEAR"

    if sampler.input is None:
        timestamps = None
    elif reader.is_sparse(sampler.input):
        timestamps = SparseAccessor(sampler.input, gltf.accessors[sampler.input].count)
    else:
        timestamps = reader.read_float(sampler.input)

    if sampler.output is None:
        values = None
    elif reader.is_sparse(sampler.output):
        values = SparseAccessor(sampler.output, gltf.accessors[sampler.output].count)
    else:
        values = _read_output(reader, sampler.output, channel.target.path, interpolation, timestamps)

    return ChannelSource(
        node=channel.target.node,
        path=channel.target.path,
        timestamps=timestamps,
        values=values,
        interpolation=interpolation,
    )


def _read_output(reader: AccessorReader, accessor_idx: int, path: Optional[str],
                 interpolation: str, timestamps) -> np.ndarray:
    values = reader.read(accessor_idx)
    if interpolation != "CUBICSPLINE" or not isinstance(timestamps, np.ndarray) or len(timestamps) == 0:
        return values

    logger.debug("Accessor %d is CUBICSPLINE; keeping keyframe values only", accessor_idx)
    # [in-tangent, value, out-tangent] per keyframe
    if path == "weights":
        if len(values) == 0 or len(values) % (3 * len(timestamps)) != 0:
            raise CorruptAnimationError(
                f"CUBICSPLINE weights accessor {accessor_idx} holds [{len(values)}] values, "
                f"not a multiple of 3 x [{len(timestamps)}] keyframes"
            )
        return values.reshape(len(timestamps), 3, -1)[:, 1, :].reshape(-1)
    if len(values) != 3 * len(timestamps):
        return values
    return values.reshape(len(timestamps), 3, -1)[:, 1, :]
