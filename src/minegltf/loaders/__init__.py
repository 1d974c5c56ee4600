"""Loader utilities for glTF models."""

from .accessors import AccessorReader, iter_animation_channels, load_document, read_animation_channels
from .material import Material
from .model import MineGLTF, Mode, Model, Primitive
from .gltf_loader import GltfLoader, load

__all__ = [
    'AccessorReader',
    'load_document',
    'iter_animation_channels',
    'read_animation_channels',
    'Material',
    'MineGLTF',
    'Mode',
    'Model',
    'Primitive',
    'GltfLoader',
    'load',
]
