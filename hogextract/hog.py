"""
Histogram of Oriented Gradients descriptor.

Straightforward CPU implementation of the HOG feature described in
Dalal & Triggs, "Histograms of Oriented Gradients for Human Detection" (CVPR 2005).
"""
import logging

import cv2
import numpy as np

from hogextract.config import HOGConfig
from hogextract.errors import NotProcessed, WindowOutOfBounds, WindowTooSmall
from hogextract.gradient import compute_gradients, validate_image
from hogextract.normalization import normalize_inplace

logger = logging.getLogger(__name__)


class HOGDescriptor:
    """
    Extraction session computing HOG descriptors of image windows.

    ``process()`` computes the gradients of an image and caches one
    orientation histogram per cell. ``retrieve()`` then assembles the
    descriptor of any window of that image from the cached cells, so many
    windows of one image can be described without recomputing gradients.

    A session is not thread-safe: ``process()`` replaces its internal maps.
    """

    def __init__(self, blocksize=None, cellsize=None, stride=None, binning=9,
                 grad_type=None, block_norm='L2hys', config=None):
        """
        Initialize the descriptor.

        Either pass a ready HOGConfig as ``config`` or the individual
        parameters, which are validated the same way.

        Args:
            blocksize (int): Side of a block in pixels
            cellsize (int): Side of a cell in pixels (default: blocksize / 2)
            stride (int): Block step in pixels (default: blocksize / 2)
            binning (int): Number of orientation bins
            grad_type (int): GRADIENT_SIGNED or GRADIENT_UNSIGNED (default)
            block_norm (str): Block normalization method
            config (HOGConfig): Complete configuration, overrides the above
        """
        if config is None:
            kwargs = {'cellsize': cellsize, 'stride': stride, 'binning': binning,
                      'block_norm': block_norm}
            if grad_type is not None:
                kwargs['grad_type'] = grad_type
            config = HOGConfig(blocksize, **kwargs)
        self.config = config

        self._mag = None
        self._ori = None
        self._cell_hists = None

    def __repr__(self):
        return f"HOGDescriptor({self.config!r})"

    @property
    def is_processed(self):
        return self._cell_hists is not None

    @property
    def n_cells(self):
        """(n_cells_y, n_cells_x) of the processed image."""
        self._require_processed()
        return self._cell_hists.shape[:2]

    def clear(self):
        """Drop the gradient maps and cell histograms of the last image."""
        self._mag = None
        self._ori = None
        self._cell_hists = None

    def process(self, image):
        """
        Extract a histogram of gradients for each cell of the image.

        The new image is validated before the previous results are dropped,
        so a failed call leaves the session as it was.

        Args:
            image: Source image (any size of at least one block)

        Raises:
            InvalidInput: If the image is empty or smaller than blocksize
        """
        image = validate_image(image, self.config.blocksize)
        mag, ori = compute_gradients(image)
        cell_hists = self._build_cell_grid(mag, ori)

        self.clear()
        self._mag = mag
        self._ori = ori
        self._cell_hists = cell_hists
        logger.debug(
            f"Processed {mag.shape[1]}x{mag.shape[0]} image into "
            f"{cell_hists.shape[1]}x{cell_hists.shape[0]} cells"
        )

    def _build_cell_grid(self, mag, ori):
        """
        Accumulate the magnitude-weighted orientation histogram of every cell.

        Pixels on the bottom/right border that do not fill a complete cell are
        ignored. Each pixel votes for exactly one bin.

        Returns:
            float32 array of shape (n_cells_y, n_cells_x, binning)
        """
        cfg = self.config
        cellsize = cfg.cellsize
        n_cells_y = mag.shape[0] // cellsize
        n_cells_x = mag.shape[1] // cellsize
        height = n_cells_y * cellsize
        width = n_cells_x * cellsize

        mag = mag[:height, :width]
        ori = ori[:height, :width]
        if not cfg.signed:
            ori = np.where(ori >= 180.0, ori - 180.0, ori)

        bins = (ori / cfg.bin_width).astype(np.int64)
        np.clip(bins, 0, cfg.binning - 1, out=bins)

        cell_y = np.arange(height) // cellsize
        cell_x = np.arange(width) // cellsize
        cell_index = cell_y[:, np.newaxis] * n_cells_x + cell_x[np.newaxis, :]
        flat_index = (cell_index * cfg.binning + bins).ravel()

        hists = np.bincount(flat_index, weights=mag.ravel(),
                            minlength=n_cells_y * n_cells_x * cfg.binning)
        return hists.reshape(n_cells_y, n_cells_x, cfg.binning).astype(np.float32)

    def retrieve(self, window):
        """
        Retrieve the HOG descriptor of an image window.

        Blocks slide over the window by ``stride`` pixels, rows first. Each
        block is the concatenation of its cell histograms, normalized with the
        configured block normalization.

        Args:
            window: (x, y, width, height) of the window in pixels

        Returns:
            1-D float32 array of length config.descriptor_size(width, height)

        Raises:
            NotProcessed: If no image has been processed
            WindowTooSmall: If the window is smaller than one block
            WindowOutOfBounds: If the window goes outside the image
        """
        self._require_processed()
        cfg = self.config
        x, y, width, height = (int(v) for v in window)

        if width < cfg.blocksize or height < cfg.blocksize:
            raise WindowTooSmall(
                f"the window ({width}x{height}) is smaller than blocksize ({cfg.blocksize})"
            )
        map_height, map_width = self._mag.shape
        if x < 0 or y < 0 or x + width > map_width or y + height > map_height:
            raise WindowOutOfBounds(
                f"the window ({x}, {y}, {width}, {height}) goes outside of the "
                f"bounds of the image ({map_width}x{map_height})"
            )

        # window in cell units
        cx = x // cfg.cellsize
        cy = y // cfg.cellsize
        cells_x = width // cfg.cellsize
        cells_y = height // cfg.cellsize

        cpb = cfg.cells_per_block
        step = cfg.stride_unit
        block_size = cfg.block_hist_size
        last_y = cy + cells_y - cpb
        last_x = cx + cells_x - cpb

        hog_hist = np.empty(cfg.descriptor_size(width, height), dtype=np.float32)
        offset = 0
        for block_y in range(cy, last_y + 1, step):
            for block_x in range(cx, last_x + 1, step):
                block = hog_hist[offset:offset + block_size]
                block[:] = self._cell_hists[block_y:block_y + cpb,
                                            block_x:block_x + cpb].reshape(-1)
                normalize_inplace(block, cfg.block_norm)
                offset += block_size
        return hog_hist

    def compute(self, image, window=None):
        """
        Process an image and retrieve the descriptor of ``window``.

        Args:
            image: Source image
            window: (x, y, width, height); defaults to the whole image

        Returns:
            1-D float32 descriptor
        """
        self.process(image)
        if window is None:
            window = (0, 0, self._mag.shape[1], self._mag.shape[0])
        return self.retrieve(window)

    def get_magnitudes(self):
        """Gradient magnitude map (float32) of the last processed image."""
        self._require_processed()
        return self._mag

    def get_orientations(self):
        """Gradient orientation map in degrees (float32) of the last processed image."""
        self._require_processed()
        return self._ori

    def get_cell_histograms(self):
        """Read-only view of the (n_cells_y, n_cells_x, binning) cell histograms."""
        self._require_processed()
        view = self._cell_hists.view()
        view.flags.writeable = False
        return view

    def get_vector_mask(self, thickness=1):
        """
        Draw the cell histograms as line glyphs, for visual inspection.

        Every bin of every cell is drawn as a line through the cell centre,
        oriented like the bin and as long as the bin relative to the cell
        maximum. The brightness of a cell follows its maximum relative to the
        image maximum. Cell borders are drawn in white.

        Args:
            thickness (int): Line thickness in pixels

        Returns:
            uint8 image of the size of the processed image
        """
        self._require_processed()
        cfg = self.config
        cellsize = cfg.cellsize
        half = cellsize / 2
        n_cells_y, n_cells_x = self._cell_hists.shape[:2]
        mask = np.zeros(self._mag.shape, dtype=np.uint8)

        cell_maxs = self._cell_hists.max(axis=2)
        global_max = float(cell_maxs.max()) if cell_maxs.size else 0.0
        angles = np.deg2rad(np.arange(cfg.binning) * cfg.bin_width)
        directions = np.stack([np.cos(angles), np.sin(angles)], axis=1)

        for i in range(n_cells_y):
            for j in range(n_cells_x):
                cell_max = float(cell_maxs[i, j])
                if cell_max <= 0:
                    continue
                color = int(cell_max / global_max * 255.0)
                centre = np.array([j * cellsize + half, i * cellsize + half])

                for k, value in enumerate(self._cell_hists[i, j]):
                    length = int(value / cell_max * half)
                    if length <= 0:
                        continue
                    tip = centre + directions[k] * length
                    # unsigned bins have no direction: draw them symmetric
                    tail = centre if cfg.signed else centre - directions[k] * length
                    cv2.line(mask, _point(tail), _point(tip), (color, color, color), thickness)

        for i in range(n_cells_y + 1):
            cv2.line(mask, (0, i * cellsize - 1), (mask.shape[1] - 1, i * cellsize - 1), (255, 255, 255), thickness)
        for j in range(n_cells_x + 1):
            cv2.line(mask, (j * cellsize - 1, 0), (j * cellsize - 1, mask.shape[0] - 1), (255, 255, 255), thickness)
        return mask

    def _require_processed(self):
        if self._cell_hists is None:
            raise NotProcessed("no image has been processed, call process() first")


def _point(p):
    return int(round(p[0])), int(round(p[1]))
