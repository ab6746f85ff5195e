import dataclasses

import pytest

from hogextract.config import DEFAULT_HOG_PARAMS, GRADIENT_SIGNED, GRADIENT_UNSIGNED, HOGConfig
from hogextract.errors import ConfigInvalid


def test_defaults_follow_blocksize():
    cfg = HOGConfig(16)
    assert cfg.cellsize == 8
    assert cfg.stride == 8
    assert cfg.binning == 9
    assert cfg.grad_type == GRADIENT_UNSIGNED
    assert cfg.block_norm == 'L2hys'


def test_derived_values():
    cfg = HOGConfig(32, 8, 16, binning=12, grad_type=GRADIENT_SIGNED)
    assert cfg.signed
    assert cfg.bin_width == pytest.approx(30.0)
    assert cfg.cells_per_block == 4
    assert cfg.block_hist_size == 12 * 16
    assert cfg.stride_unit == 2


@pytest.mark.parametrize('kwargs', [
    dict(blocksize=1),
    dict(blocksize=32, cellsize=0),
    dict(blocksize=32, cellsize=12),
    dict(blocksize=32, cellsize=16, stride=8),
    dict(blocksize=32, cellsize=16, stride=0),
    dict(blocksize=32, binning=1),
    dict(blocksize=32, grad_type=90),
    dict(blocksize=32, block_norm='max'),
    dict(blocksize='32'),
    dict(blocksize=32, cellsize=16.0),
])
def test_invalid_configurations(kwargs):
    with pytest.raises(ConfigInvalid):
        HOGConfig(**kwargs)


def test_config_is_immutable():
    cfg = HOGConfig(16)
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.blocksize = 32


def test_descriptor_size_closed_form():
    cfg = HOGConfig(32, 16, 16, 9, GRADIENT_UNSIGNED)
    assert cfg.descriptor_size(128, 256) == 9 * 4 * 15 * 7


def test_descriptor_size_with_stride_larger_than_cell():
    cfg = HOGConfig(16, 8, 16)
    # 8 cells per side, blocks of 2 cells stepping 2 cells
    assert cfg.n_blocks(64) == 4
    assert cfg.descriptor_size(64, 64) == 36 * 16


def test_from_dict_updates_defaults():
    cfg = HOGConfig.from_dict({'binning': 6, 'block_norm': 'L1-sqrt'})
    assert cfg.binning == 6
    assert cfg.block_norm == 'L1sqrt'
    assert cfg.blocksize == DEFAULT_HOG_PARAMS['blocksize']
    assert HOGConfig.from_dict(cfg.to_dict()) == cfg


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigInvalid):
        HOGConfig.from_dict({'orientations': 9})
