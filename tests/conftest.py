"""Shared fixtures: an in-memory glTF document builder."""

import numpy as np
import pygltflib
import pytest


COMPONENT_TYPES = {
    np.dtype(np.int8): pygltflib.BYTE,
    np.dtype(np.uint8): pygltflib.UNSIGNED_BYTE,
    np.dtype(np.int16): pygltflib.SHORT,
    np.dtype(np.uint16): pygltflib.UNSIGNED_SHORT,
    np.dtype(np.uint32): pygltflib.UNSIGNED_INT,
    np.dtype(np.float32): pygltflib.FLOAT,
}

ACCESSOR_TYPES = {1: pygltflib.SCALAR, 2: pygltflib.VEC2, 3: pygltflib.VEC3, 4: pygltflib.VEC4}


class GltfBuilder:
    """Builds small glTF documents with a single binary buffer."""

    def __init__(self):
        self.blob = bytearray()
        self.gltf = pygltflib.GLTF2(
            scene=0,
            scenes=[pygltflib.Scene(nodes=[])],
        )
        self.animation = None

    def add_view(self, data: bytes, byte_stride=None) -> int:
        while len(self.blob) % 4:
            self.blob.append(0)
        offset = len(self.blob)
        self.blob.extend(data)
        self.gltf.bufferViews.append(pygltflib.BufferView(
            buffer=0, byteOffset=offset, byteLength=len(data), byteStride=byte_stride,
        ))
        return len(self.gltf.bufferViews) - 1

    def add_accessor(self, array, normalized=False) -> int:
        array = np.ascontiguousarray(array)
        width = 1 if array.ndim == 1 else array.shape[1]
        view = self.add_view(array.tobytes())
        return self.accessor_on_view(view, 0, array.dtype, len(array), width, normalized)

    def accessor_on_view(self, view, byte_offset, dtype, count, width, normalized=False) -> int:
        self.gltf.accessors.append(pygltflib.Accessor(
            bufferView=view,
            byteOffset=byte_offset,
            componentType=COMPONENT_TYPES[np.dtype(dtype)],
            normalized=normalized,
            count=count,
            type=ACCESSOR_TYPES[width],
        ))
        return len(self.gltf.accessors) - 1

    def add_node(self, mesh=None, translation=None, children=None, root=True, rotation=None, matrix=None) -> int:
        self.gltf.nodes.append(pygltflib.Node(
            mesh=mesh, translation=translation, rotation=rotation, matrix=matrix, children=children or [],
        ))
        index = len(self.gltf.nodes) - 1
        if root:
            self.gltf.scenes[0].nodes.append(index)
        return index

    def add_mesh(self, positions, indices=None, mode=pygltflib.TRIANGLES, normals=None, material=None,
                 tangents=None) -> int:
        attributes = pygltflib.Attributes(POSITION=self.add_accessor(np.asarray(positions, dtype='f4')))
        if normals is not None:
            attributes.NORMAL = self.add_accessor(np.asarray(normals, dtype='f4'))
        if tangents is not None:
            attributes.TANGENT = self.add_accessor(np.asarray(tangents, dtype='f4'))
        primitive = pygltflib.Primitive(attributes=attributes, mode=mode, material=material)
        if indices is not None:
            primitive.indices = self.add_accessor(np.asarray(indices, dtype=np.uint16))
        self.gltf.meshes.append(pygltflib.Mesh(name=f"Mesh_{len(self.gltf.meshes)}", primitives=[primitive]))
        return len(self.gltf.meshes) - 1

    def add_triangle_node(self, translation=None, rotation=None, matrix=None) -> int:
        mesh = self.add_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], indices=[0, 1, 2])
        return self.add_node(mesh=mesh, translation=translation, rotation=rotation, matrix=matrix)

    def add_channel(self, node, path, times, values, interpolation="LINEAR", normalized=False):
        if self.animation is None:
            self.animation = pygltflib.Animation(name="Action", channels=[], samplers=[])
            self.gltf.animations.append(self.animation)
        sampler = pygltflib.AnimationSampler(
            input=self.add_accessor(np.asarray(times, dtype='f4')),
            output=self.add_accessor(np.asarray(values), normalized=normalized),
            interpolation=interpolation,
        )
        self.animation.samplers.append(sampler)
        self.animation.channels.append(pygltflib.AnimationChannel(
            sampler=len(self.animation.samplers) - 1,
            target=pygltflib.AnimationChannelTarget(node=node, path=path),
        ))

    def build(self) -> pygltflib.GLTF2:
        while len(self.blob) % 4:
            self.blob.append(0)
        self.gltf.buffers = [pygltflib.Buffer(byteLength=len(self.blob))]
        self.gltf.set_binary_blob(bytes(self.blob))
        return self.gltf

    def save(self, path):
        self.build().save(str(path))
        return path


@pytest.fixture
def builder():
    """Fresh glTF document builder."""
    return GltfBuilder()


@pytest.fixture
def grid_times():
    """Eleven keyframe times 0.0 .. 1.0, 0.1 apart."""
    return (np.arange(11) * 0.1).astype('f4')
