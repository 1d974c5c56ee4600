"""
Material

PBR material properties and decoded textures.
"""

import base64
import logging
from io import BytesIO
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote

import numpy as np
import pygltflib
from PIL import Image

from ..config import settings
from .accessors import AccessorReader

logger = logging.getLogger(__name__)


class Material:
    """
    Represents a PBR material with textures.

    Supports the standard PBR workflow:
    - Base Color (albedo)
    - Metallic/Roughness (packed in single texture)
    - Normal Map
    - Occlusion
    - Emissive

    Textures are (height, width, 4) uint8 arrays, or None when absent or
    when the model was loaded without materials.
    """

    def __init__(self, name: str = "Material"):
        """
        Initialize material.

        Args:
            name: Material name for debugging
        """
        self.name = name

        self.base_color_texture: Optional[np.ndarray] = None
        self.metallic_roughness_texture: Optional[np.ndarray] = None
        self.normal_texture: Optional[np.ndarray] = None
        self.occlusion_texture: Optional[np.ndarray] = None
        self.emissive_texture: Optional[np.ndarray] = None

        # Base color factor (used if no texture)
        self.base_color_factor = (1.0, 1.0, 1.0, 1.0)
        self.emissive_factor = (0.0, 0.0, 0.0)

        # PBR factors
        self.metallic_factor = 1.0
        self.roughness_factor = 1.0
        self.occlusion_strength = 1.0
        self.normal_scale = 1.0

        # Alpha mode ("OPAQUE", "MASK", "BLEND")
        self.alpha_mode = "OPAQUE"
        self.alpha_cutoff = 0.5  # Threshold for MASK mode

        self.double_sided = False

    def has_base_color(self) -> bool:
        """Check if material has base color texture"""
        return self.base_color_texture is not None

    def has_normal_map(self) -> bool:
        """Check if material has normal map"""
        return self.normal_texture is not None

    def __repr__(self):
        return f"Material(name='{self.name}', textures={self.has_base_color()})"


def parse_materials(gltf: pygltflib.GLTF2, reader: AccessorReader, model_dir: Path,
                    load_textures: bool = True) -> List[Material]:
    """
    Parse all materials from GLTF.

    Args:
        gltf: GLTF data
        reader: Accessor reader (for images stored in buffer views)
        model_dir: Directory containing the model file
        load_textures: Decode referenced images

    Returns:
        List of Material objects, in document order
    """
    materials = []

    for mat_idx, gltf_mat in enumerate(gltf.materials or []):
        material = Material(gltf_mat.name or f"Material_{mat_idx}")

        def texture(info) -> Optional[np.ndarray]:
            if info is None or not load_textures:
                return None
            return load_texture(gltf, reader, info.index, model_dir)

        pbr = gltf_mat.pbrMetallicRoughness
        if pbr:
            material.base_color_texture = texture(pbr.baseColorTexture)
            material.metallic_roughness_texture = texture(pbr.metallicRoughnessTexture)
            if pbr.baseColorFactor:
                material.base_color_factor = tuple(pbr.baseColorFactor)
            if pbr.metallicFactor is not None:
                material.metallic_factor = pbr.metallicFactor
            if pbr.roughnessFactor is not None:
                material.roughness_factor = pbr.roughnessFactor

        if gltf_mat.normalTexture:
            material.normal_texture = texture(gltf_mat.normalTexture)
            if gltf_mat.normalTexture.scale is not None:
                material.normal_scale = gltf_mat.normalTexture.scale

        if gltf_mat.occlusionTexture:
            material.occlusion_texture = texture(gltf_mat.occlusionTexture)
            if gltf_mat.occlusionTexture.strength is not None:
                material.occlusion_strength = gltf_mat.occlusionTexture.strength

        material.emissive_texture = texture(gltf_mat.emissiveTexture)
        if gltf_mat.emissiveFactor:
            material.emissive_factor = tuple(gltf_mat.emissiveFactor)

        if gltf_mat.alphaMode:
            material.alpha_mode = gltf_mat.alphaMode
        if gltf_mat.alphaCutoff is not None:
            material.alpha_cutoff = gltf_mat.alphaCutoff
        material.double_sided = bool(gltf_mat.doubleSided)

        materials.append(material)
        logger.debug("Material: %s", material.name)

    return materials


def load_texture(gltf: pygltflib.GLTF2, reader: AccessorReader, texture_idx: int,
                 model_dir: Path) -> Optional[np.ndarray]:
    """
    Decode a texture image.

    Args:
        gltf: GLTF data
        reader: Accessor reader (for images stored in buffer views)
        texture_idx: Texture index
        model_dir: Directory containing the model

    Returns:
        (height, width, 4) uint8 array, or None if the image is unavailable
    """
    if not gltf.textures or texture_idx is None or texture_idx >= len(gltf.textures):
        return None

    texture = gltf.textures[texture_idx]
    if texture.source is None:
        return None

    image = gltf.images[texture.source]

    if image.uri and image.uri.startswith("data:"):
        image_data = base64.b64decode(image.uri.split(",", 1)[1])
    elif image.uri:
        image_path = model_dir / unquote(image.uri)
        if not image_path.exists():
            logger.warning("Texture not found: %s", image_path)
            return None
        image_data = image_path.read_bytes()
    elif image.bufferView is not None:
        image_data = reader.buffer_view_data(image.bufferView)
    else:
        return None

    try:
        with Image.open(BytesIO(image_data)) as img:
            return np.array(img.convert(settings.TEXTURE_MODE), dtype=np.uint8)
    except OSError as e:
        logger.warning("Failed to decode texture %d: %s", texture_idx, e)
        return None
