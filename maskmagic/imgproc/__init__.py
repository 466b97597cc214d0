"""Image preparation stages: geometry, masks, orientation and byte budgets."""

from .compression import fit_to_budget
from .mask import MaskGenerator, MaskShape
from .normalize import ImageNormalizer
from .orientation import normalize_orientation
from .raster import Orientation, RasterImage

__all__ = [
    "ImageNormalizer",
    "MaskGenerator",
    "MaskShape",
    "Orientation",
    "RasterImage",
    "fit_to_budget",
    "normalize_orientation",
]
