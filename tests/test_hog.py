import numpy as np
import pytest

from hogextract import (GRADIENT_SIGNED, GRADIENT_UNSIGNED, HOGConfig, HOGDescriptor, InvalidInput,
                        NotProcessed, WindowOutOfBounds, WindowTooSmall)
from hogextract.normalization import BLOCK_NORMS


def manual_descriptor(hog, window):
    """Block pass written out cell by cell, for comparison with retrieve()."""
    cfg = hog.config
    cells = hog.get_cell_histograms()
    x, y, w, h = (v // cfg.cellsize for v in window)
    cpb = cfg.cells_per_block
    out = []
    for by in range(y, y + h - cpb + 1, cfg.stride_unit):
        for bx in range(x, x + w - cpb + 1, cfg.stride_unit):
            block = np.concatenate([cells[cy, cx]
                                    for cy in range(by, by + cpb)
                                    for cx in range(bx, bx + cpb)])
            out.append(block)
    return np.concatenate(out)


def test_descriptor_length_256x128(random_image):
    hog = HOGDescriptor(32, 16, 16, 9, GRADIENT_UNSIGNED)
    hog.process(random_image)
    hist = hog.retrieve((0, 0, 128, 256))
    assert hist.dtype == np.float32
    assert len(hist) == 9 * 4 * 15 * 7


@pytest.mark.parametrize('blocksize, cellsize, stride, window', [
    (16, 8, 8, (0, 0, 32, 32)),
    (16, 8, 8, (8, 8, 40, 24)),
    (16, 8, 16, (0, 0, 64, 64)),
    (24, 8, 8, (3, 5, 50, 61)),
    (16, 4, 12, (0, 0, 64, 48)),
])
def test_descriptor_length_matches_closed_form(random_image, blocksize, cellsize, stride, window):
    hog = HOGDescriptor(blocksize, cellsize, stride)
    hog.process(random_image)
    hist = hog.retrieve(window)
    assert len(hist) == hog.config.descriptor_size(window[2], window[3])


def test_last_block_row_and_column_are_kept(random_image):
    # 4x4 cells, 2x2 cell blocks, 1 cell stride: top-left cells 0, 1 and 2
    hog = HOGDescriptor(16, 8, 8, block_norm='none')
    hog.process(random_image)
    hist = hog.retrieve((0, 0, 32, 32))
    assert len(hist) == 36 * 9
    cells = hog.get_cell_histograms()
    np.testing.assert_array_equal(hist[-36:], cells[2:4, 2:4].reshape(-1))


def test_retrieve_matches_cell_by_cell_assembly(random_image):
    hog = HOGDescriptor(24, 8, 16, binning=6, block_norm='none')
    hog.process(random_image)
    window = (8, 16, 72, 96)
    np.testing.assert_array_equal(hog.retrieve(window), manual_descriptor(hog, window))


@pytest.mark.parametrize('block_norm', sorted(BLOCK_NORMS))
def test_retrieve_normalizes_each_block(random_image, block_norm):
    hog = HOGDescriptor(16, 8, 8, block_norm=block_norm)
    hog.process(random_image)
    window = (0, 0, 48, 48)
    raw = manual_descriptor(hog, window).reshape(-1, 36)
    expected = np.concatenate([BLOCK_NORMS[block_norm](block) for block in raw])
    np.testing.assert_allclose(hog.retrieve(window), expected, rtol=1e-5, atol=1e-7)


def test_l2hys_blocks_have_bounded_norm(random_image):
    hog = HOGDescriptor(16, 8, 8)
    hog.process(random_image)
    blocks = hog.retrieve((0, 0, 128, 128)).reshape(-1, 36)
    assert (blocks >= 0).all()
    assert (np.linalg.norm(blocks, axis=1) <= 1.0 + 1e-5).all()


def test_cell_histograms_are_magnitude_weighted(ramp_image):
    hog = HOGDescriptor(8, 4, 4, binning=4, grad_type=GRADIENT_SIGNED)
    hog.process(ramp_image)
    cells = hog.get_cell_histograms()
    assert cells.shape == (16, 16, 4)
    # 16 interior pixels with magnitude 4, all at 0 degrees
    np.testing.assert_allclose(cells[3, 3], [64.0, 0.0, 0.0, 0.0], atol=1e-3)
    assert not cells[:, :, 1:].any()


def test_signed_and_unsigned_binning(ramp_image):
    backwards = ramp_image[:, ::-1].copy()

    signed = HOGDescriptor(8, 4, 4, binning=4, grad_type=GRADIENT_SIGNED)
    signed.process(backwards)
    np.testing.assert_allclose(signed.get_cell_histograms()[3, 3], [0.0, 0.0, 64.0, 0.0], atol=1e-3)

    # 180 degrees folds onto 0 in unsigned mode
    unsigned = HOGDescriptor(8, 4, 4, binning=9, grad_type=GRADIENT_UNSIGNED)
    unsigned.process(backwards)
    hist = unsigned.get_cell_histograms()[3, 3]
    assert hist[0] == pytest.approx(64.0, abs=1e-3)
    assert hist[1:].sum() == pytest.approx(0.0, abs=1e-3)


def test_cell_grid_uses_floor_division():
    image = np.random.default_rng(2).integers(0, 255, size=(70, 45), dtype=np.uint8)
    hog = HOGDescriptor(16, 8, 8)
    hog.process(image)
    assert hog.n_cells == (8, 5)
    assert hog.get_magnitudes().shape == (70, 45)


def test_border_pixels_are_excluded():
    image = np.random.default_rng(3).integers(0, 255, size=(22, 22)).astype(np.float32)
    hog = HOGDescriptor(8, 4, 4, block_norm='none')
    hog.process(image)
    cells = hog.get_cell_histograms()
    mag = hog.get_magnitudes()
    assert cells.shape == (5, 5, 9)
    assert mag[20:, :].sum() > 0
    # only the 20x20 pixels covered by complete cells vote
    assert cells.sum() == pytest.approx(float(mag[:20, :20].sum()), rel=1e-4)


@pytest.mark.parametrize('block_norm', sorted(BLOCK_NORMS))
def test_flat_image_gives_zero_descriptor(block_norm):
    hog = HOGDescriptor(16, 8, 8, block_norm=block_norm)
    hog.process(np.full((64, 48), 128, dtype=np.uint8))
    assert not hog.get_magnitudes().any()
    hist = hog.retrieve((0, 0, 48, 64))
    assert not np.isnan(hist).any()
    assert not hist.any()


def test_retrieve_is_idempotent(random_image):
    hog = HOGDescriptor(16)
    hog.process(random_image)
    first = hog.retrieve((16, 32, 64, 64))
    second = hog.retrieve((16, 32, 64, 64))
    np.testing.assert_array_equal(first, second)


def test_reprocessing_leaves_no_residual_state(random_image, ramp_image):
    hog = HOGDescriptor(16)
    hog.process(random_image)
    mag = hog.get_magnitudes().copy()
    ori = hog.get_orientations().copy()
    cells = hog.get_cell_histograms().copy()

    hog.process(ramp_image)
    hog.process(random_image)
    np.testing.assert_array_equal(hog.get_magnitudes(), mag)
    np.testing.assert_array_equal(hog.get_orientations(), ori)
    np.testing.assert_array_equal(hog.get_cell_histograms(), cells)


def test_compute_defaults_to_whole_image(random_image):
    hog = HOGDescriptor(32, 16, 16)
    hist = hog.compute(random_image)
    np.testing.assert_array_equal(hist, hog.retrieve((0, 0, 128, 256)))


def test_retrieve_before_process():
    hog = HOGDescriptor(16)
    assert not hog.is_processed
    with pytest.raises(NotProcessed):
        hog.retrieve((0, 0, 16, 16))
    with pytest.raises(NotProcessed):
        hog.get_magnitudes()


def test_retrieve_after_clear(random_image):
    hog = HOGDescriptor(16)
    hog.process(random_image)
    hog.clear()
    with pytest.raises(NotProcessed):
        hog.retrieve((0, 0, 16, 16))


@pytest.mark.parametrize('window', [(0, 0, 15, 32), (0, 0, 32, 8)])
def test_window_too_small(random_image, window):
    hog = HOGDescriptor(16)
    hog.process(random_image)
    with pytest.raises(WindowTooSmall):
        hog.retrieve(window)


@pytest.mark.parametrize('window', [
    (100, 0, 32, 32),
    (0, 240, 32, 32),
    (0, 0, 129, 256),
    (-8, 0, 32, 32),
])
def test_window_out_of_bounds(random_image, window):
    hog = HOGDescriptor(16)
    hog.process(random_image)
    with pytest.raises(WindowOutOfBounds):
        hog.retrieve(window)


def test_failed_process_keeps_previous_result(random_image):
    hog = HOGDescriptor(32, 16, 16)
    hog.process(random_image)
    before = hog.retrieve((0, 0, 128, 256))

    with pytest.raises(InvalidInput):
        hog.process(np.zeros((16, 16), dtype=np.uint8))
    with pytest.raises(InvalidInput):
        hog.process(None)

    assert hog.is_processed
    np.testing.assert_array_equal(hog.retrieve((0, 0, 128, 256)), before)


def test_cell_histograms_are_read_only(random_image):
    hog = HOGDescriptor(16)
    hog.process(random_image)
    with pytest.raises(ValueError):
        hog.get_cell_histograms()[0, 0, 0] = 1.0


def test_config_object_is_shared():
    cfg = HOGConfig(16, 4, 8)
    hog = HOGDescriptor(config=cfg)
    assert hog.config is cfg


@pytest.mark.parametrize('grad_type', [GRADIENT_SIGNED, GRADIENT_UNSIGNED])
def test_vector_mask(ramp_image, grad_type):
    hog = HOGDescriptor(16, 8, 8, grad_type=grad_type)
    hog.process(ramp_image)
    mask = hog.get_vector_mask()
    assert mask.shape == ramp_image.shape
    assert mask.dtype == np.uint8
    # glyphs are drawn inside the cells, not only on the borders
    assert mask[1:7, 1:7].any()
