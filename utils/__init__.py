"""
Utilidades compartidas: geometría y volcado de imágenes de depuración.
"""

from .debug_images import DebugImageWriter
from .geometry import clamp01, denormalize

__all__ = [
    'DebugImageWriter',
    'clamp01',
    'denormalize',
]
