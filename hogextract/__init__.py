"""
HOG Descriptor Extraction

A Python implementation of the Histogram of Oriented Gradients (HOG) feature
descriptor, computed with OpenCV and numpy.

This package contains modules for gradient computation, per-cell histogram
accumulation, block normalization, and batch extraction of image directories
into HDF5 files.
"""

from hogextract.config import GRADIENT_SIGNED, GRADIENT_UNSIGNED, HOGConfig
from hogextract.errors import (ConfigInvalid, HOGError, InvalidInput, NotProcessed,
                               WindowOutOfBounds, WindowTooSmall)
from hogextract.hog import HOGDescriptor

__version__ = '1.0.0'
