"""
HOG parameters and batch defaults.
"""
import numbers
from dataclasses import dataclass
from typing import Optional

from hogextract.errors import ConfigInvalid
from hogextract.normalization import resolve_block_norm

GRADIENT_SIGNED = 360
GRADIENT_UNSIGNED = 180

# Defaults of the batch extraction program
CROP_HEIGHT = 256
CROP_WIDTH = 128
BLOCKSIZE = 32
CELLSIZE = 16
STRIDE = 16
BINNING = 9

DEFAULT_HOG_PARAMS = {
    'blocksize': BLOCKSIZE,
    'cellsize': CELLSIZE,
    'stride': STRIDE,
    'binning': BINNING,
    'grad_type': GRADIENT_UNSIGNED,
    'block_norm': 'L2hys',
}


def _check_integer(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigInvalid(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class HOGConfig:
    """
    Immutable, validated HOG parameters.

    ``cellsize`` and ``stride`` default to half the block size, so
    ``HOGConfig(16)`` describes 2x2-cell blocks overlapping by one cell.

    Attributes:
        blocksize (int): Side of a square block in pixels (>= 2)
        cellsize (int): Side of a square cell in pixels, divides blocksize
        stride (int): Block step in pixels, a multiple of cellsize
        binning (int): Number of orientation bins per cell (>= 2)
        grad_type (int): GRADIENT_SIGNED (0..360) or GRADIENT_UNSIGNED (0..180)
        block_norm (str): Name of the block normalization, see normalization.py
    """
    blocksize: int
    cellsize: Optional[int] = None
    stride: Optional[int] = None
    binning: int = BINNING
    grad_type: int = GRADIENT_UNSIGNED
    block_norm: str = 'L2hys'

    def __post_init__(self):
        _check_integer('blocksize', self.blocksize)
        if self.cellsize is None:
            object.__setattr__(self, 'cellsize', int(self.blocksize) // 2)
        if self.stride is None:
            object.__setattr__(self, 'stride', int(self.blocksize) // 2)
        object.__setattr__(self, 'block_norm', resolve_block_norm(self.block_norm))

        for name in ('blocksize', 'cellsize', 'stride', 'binning', 'grad_type'):
            value = getattr(self, name)
            _check_integer(name, value)
            object.__setattr__(self, name, int(value))

        if self.blocksize < 2:
            raise ConfigInvalid("blocksize must be at least 2 pixels")
        if self.cellsize < 1:
            raise ConfigInvalid("cellsize must be at least 1 pixel")
        if self.stride < 1:
            raise ConfigInvalid("stride must be at least 1 pixel")
        if self.binning < 2:
            raise ConfigInvalid("binning must be greater or equal to 2")
        if self.grad_type not in (GRADIENT_SIGNED, GRADIENT_UNSIGNED):
            raise ConfigInvalid(
                f"grad_type must be GRADIENT_SIGNED ({GRADIENT_SIGNED}) "
                f"or GRADIENT_UNSIGNED ({GRADIENT_UNSIGNED}), got {self.grad_type}"
            )
        if self.blocksize % self.cellsize != 0:
            raise ConfigInvalid("blocksize must be a multiple of cellsize")
        if self.stride % self.cellsize != 0:
            raise ConfigInvalid("stride must be a multiple of cellsize")

    @classmethod
    def from_dict(cls, params=None):
        """
        Build a config from a parameter dict.

        Missing keys fall back to DEFAULT_HOG_PARAMS; unknown keys are an error.

        Args:
            params (dict): Overrides for the default HOG parameters

        Returns:
            HOGConfig
        """
        merged = dict(DEFAULT_HOG_PARAMS)
        if params is not None:
            unknown = set(params) - set(merged)
            if unknown:
                raise ConfigInvalid(f"Unknown HOG parameters: {sorted(unknown)}")
            merged.update(params)
        return cls(**merged)

    def to_dict(self):
        return {
            'blocksize': self.blocksize,
            'cellsize': self.cellsize,
            'stride': self.stride,
            'binning': self.binning,
            'grad_type': self.grad_type,
            'block_norm': self.block_norm,
        }

    @property
    def signed(self):
        return self.grad_type == GRADIENT_SIGNED

    @property
    def bin_width(self):
        """Width of one orientation bin in degrees."""
        return self.grad_type / self.binning

    @property
    def cells_per_block(self):
        return self.blocksize // self.cellsize

    @property
    def block_hist_size(self):
        return self.binning * self.cells_per_block * self.cells_per_block

    @property
    def stride_unit(self):
        """Block step expressed in cells."""
        return self.stride // self.cellsize

    def n_blocks(self, extent):
        """Number of block positions along one axis of a window ``extent`` pixels long."""
        cells = extent // self.cellsize
        if cells < self.cells_per_block:
            return 0
        return (cells - self.cells_per_block) // self.stride_unit + 1

    def descriptor_size(self, width, height):
        """
        Length of the descriptor of a ``width`` x ``height`` window.

        Lets callers preallocate the feature matrix before extraction.
        """
        return self.block_hist_size * self.n_blocks(width) * self.n_blocks(height)
