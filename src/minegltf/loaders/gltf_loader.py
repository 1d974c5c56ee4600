"""
GLTF/GLB Loader

Loads GLTF and GLB models into flattened geometry plus resampled bone animation.
"""

import logging
from pathlib import Path
from typing import List

import numpy as np
import pygltflib
from pyrr import Matrix44, Quaternion

from ..animation import build_bone_animations
from ..config import settings
from ..errors import LoadError
from .accessors import AccessorReader, iter_animation_channels, load_document
from .material import Material, parse_materials
from .model import MineGLTF, Mode, Model, Primitive

logger = logging.getLogger(__name__)


class GltfLoader:
    """
    Loads GLTF/GLB models and converts them to engine-friendly arrays.
    """

    def load(self, filepath, load_materials: bool = settings.LOAD_MATERIALS_DEFAULT) -> MineGLTF:
        """
        Load a GLTF or GLB model.

        Args:
            filepath: Path to .gltf or .glb file
            load_materials: Decode material textures

        Returns:
            MineGLTF holding the model and its bone animations

        Raises:
            LoadError: file unreadable, no scene or no mesh primitives
        """
        filepath = Path(filepath)
        logger.info("Loading model: %s", filepath)

        gltf = load_document(filepath)
        reader = AccessorReader(gltf)

        materials = parse_materials(gltf, reader, filepath.parent, load_textures=load_materials)

        primitives = self._parse_scene_hierarchy(gltf, reader, materials)
        if not primitives:
            raise LoadError(f"Model [{filepath}] has no mesh primitives")

        model = Model(primitives, name=filepath.stem)
        model.bounding_radius = self._calculate_bounding_radius(primitives)

        # Channels are read lazily so unreadable accessors only disable animation
        sources = iter_animation_channels(gltf, reader, settings.ANIMATION_CLIP_INDEX)
        bone_animations = build_bone_animations(sources, filepath.name)
        if bone_animations:
            frames = next(iter(bone_animations.values())).frame_count
            logger.info("  Animated: %d bones, %d frames", len(bone_animations), frames)

        logger.info("  Loaded %d primitives, %d vertices, bounding radius: %.2f",
                    len(primitives), model.vertex_count, model.bounding_radius)

        return MineGLTF(model=model, bone_animations=bone_animations, base_dir=filepath.parent)

    def _parse_scene_hierarchy(self, gltf: pygltflib.GLTF2, reader: AccessorReader,
                               materials: List[Material]) -> List[Primitive]:
        """
        Parse the GLTF scene hierarchy and flatten every mesh primitive.

        Args:
            gltf: GLTF data
            reader: Accessor reader
            materials: List of parsed materials

        Returns:
            List of Primitive objects with node transforms applied
        """
        # Get the default scene (or first scene if no default)
        scene_idx = gltf.scene if gltf.scene is not None else 0
        if not gltf.scenes or scene_idx >= len(gltf.scenes):
            raise LoadError("No valid scene found")

        primitives = []
        for node_idx in gltf.scenes[scene_idx].nodes or []:
            self._process_node(gltf, reader, node_idx, Matrix44.identity(), materials, primitives)
        return primitives

    def _process_node(self, gltf: pygltflib.GLTF2, reader: AccessorReader, node_idx: int,
                      parent_transform: Matrix44, materials: List[Material],
                      primitives: List[Primitive]):
        """
        Recursively process a node and its children, accumulating transforms.

        Args:
            gltf: GLTF data
            reader: Accessor reader
            node_idx: Index of current node
            parent_transform: Accumulated transform from parent nodes
            materials: List of materials
            primitives: Output list to append primitives to
        """
        node = gltf.nodes[node_idx]
        world_transform = self._get_node_transform(node) @ parent_transform

        for child_idx in node.children or []:
            self._process_node(gltf, reader, child_idx, world_transform, materials, primitives)

        if node.mesh is None:
            return

        gltf_mesh = gltf.meshes[node.mesh]
        for prim_idx, gltf_primitive in enumerate(gltf_mesh.primitives):
            material = None
            if gltf_primitive.material is not None and gltf_primitive.material < len(materials):
                material = materials[gltf_primitive.material]

            primitive = self._extract_primitive(reader, gltf_primitive, world_transform)
            primitive.material = material
            primitive.mesh_name = gltf_mesh.name
            primitive.mesh_index = node.mesh
            primitive.primitive_index = prim_idx
            primitive.node_index = node_idx
            primitives.append(primitive)

            logger.debug("  Mesh: %s_%d, vertices: %d", node.name or gltf_mesh.name or 'Mesh',
                         prim_idx, primitive.vertex_count)

    def _get_node_transform(self, node) -> Matrix44:
        """
        Extract transformation matrix from a GLTF node.

        Args:
            node: GLTF node

        Returns:
            4x4 transformation matrix (row-major, row vectors)
        """
        if node.matrix and len(node.matrix) == 16:
            # glTF stores column-major, which reads as the row-vector matrix directly
            return Matrix44(np.array(node.matrix, dtype='f4').reshape(4, 4))

        matrix = Matrix44.identity()

        if node.scale:
            matrix = matrix @ Matrix44.from_scale(node.scale)

        if node.rotation:
            # glTF and pyrr both store quaternions as (x, y, z, w); pyrr builds the
            # column-vector rotation, so transpose it for row vectors
            matrix = matrix @ Matrix44.from_quaternion(Quaternion(node.rotation)).T

        if node.translation:
            matrix = matrix @ Matrix44.from_translation(node.translation)

        return matrix

    def _extract_primitive(self, reader: AccessorReader, gltf_primitive,
                           transform: Matrix44) -> Primitive:
        """
        Extract vertex data from a primitive and bake the node transform into it.

        Args:
            reader: Accessor reader
            gltf_primitive: Mesh primitive
            transform: Accumulated node transform

        Returns:
            Primitive with model-space attributes
        """
        attributes = gltf_primitive.attributes
        if attributes.POSITION is None:
            raise LoadError("The model primitive doesn't contain positions")

        matrix = np.asarray(transform, dtype='f4')
        positions = reader.read_float(attributes.POSITION)
        vertex_count = len(positions)

        homogeneous = np.hstack([positions, np.ones((vertex_count, 1), dtype='f4')]) @ matrix
        w = homogeneous[:, 3:4]
        w[w == 0.0] = 1.0
        positions = (homogeneous[:, :3] / w).astype('f4')

        normals = np.zeros((vertex_count, 3), dtype='f4')
        has_normals = attributes.NORMAL is not None
        if has_normals:
            normals = _normalize_rows(reader.read_float(attributes.NORMAL) @ matrix[:3, :3])

        tangents = np.zeros((vertex_count, 4), dtype='f4')
        has_tangents = attributes.TANGENT is not None
        if has_tangents:
            raw_tangents = reader.read_float(attributes.TANGENT)
            tangents[:, :3] = _normalize_rows(raw_tangents[:, :3] @ matrix[:3, :3])
            tangents[:, 3] = raw_tangents[:, 3]

        tex_coords = np.zeros((vertex_count, 2), dtype='f4')
        has_tex_coords = attributes.TEXCOORD_0 is not None
        if has_tex_coords:
            tex_coords = reader.read_float(attributes.TEXCOORD_0)

        joints = np.zeros((0, 4), dtype=np.uint16)
        has_joints = attributes.JOINTS_0 is not None
        if has_joints:
            joints = reader.read(attributes.JOINTS_0).astype(np.uint16)

        weights = np.zeros((0, 4), dtype='f4')
        has_weights = attributes.WEIGHTS_0 is not None
        if has_weights:
            weights = reader.read_float(attributes.WEIGHTS_0)

        indices = None
        if gltf_primitive.indices is not None:
            indices = reader.read(gltf_primitive.indices).astype(np.uint32)

        mode = Mode(gltf_primitive.mode if gltf_primitive.mode is not None else Mode.TRIANGLES.value)

        return Primitive(
            positions=positions,
            normals=normals,
            tangents=tangents,
            tex_coords=tex_coords,
            indices=indices,
            joints=joints,
            weights=weights,
            mode=mode,
            has_normals=has_normals,
            has_tangents=has_tangents,
            has_tex_coords=has_tex_coords,
            has_joints=has_joints,
            has_weights=has_weights,
        )

    def _calculate_bounding_radius(self, primitives: List[Primitive]) -> float:
        """
        Calculate bounding sphere radius around the model origin.

        Returns:
            Largest vertex distance, or 1.0 for degenerate geometry
        """
        max_radius = 0.0
        for primitive in primitives:
            if primitive.vertex_count:
                max_radius = max(max_radius, float(np.max(np.linalg.norm(primitive.positions, axis=1))))
        return max_radius if max_radius > 0 else 1.0


def _normalize_rows(vectors: np.ndarray) -> np.ndarray:
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    lengths[lengths == 0.0] = 1.0
    return (vectors / lengths).astype('f4')


def load(filepath, load_materials: bool = settings.LOAD_MATERIALS_DEFAULT) -> MineGLTF:
    """
    Load a GLTF or GLB model.

    Args:
        filepath: Path to .gltf or .glb file
        load_materials: Decode material textures

    Returns:
        MineGLTF holding the model and its bone animations
    """
    return GltfLoader().load(filepath, load_materials=load_materials)
