"""
Block normalization functions.

See https://en.wikipedia.org/wiki/Histogram_of_oriented_gradients#Block_normalization

Every function takes a 1-D histogram and returns a new array of the same
length. The set of methods is closed; ``BLOCK_NORMS`` maps each canonical name
to its function and ``resolve_block_norm`` accepts the usual aliases
(scikit-image spellings such as ``'L2-Hys'`` included).
"""
import numpy as np

from hogextract.errors import ConfigInvalid

EPSILON = 1e-6


def l1norm(v):
    """Divide every element by the sum of the histogram."""
    v = np.asarray(v, dtype=np.float32)
    den = np.float32(v.sum() + EPSILON)
    return v / den


def l1sqrt(v):
    """L1 normalization followed by an elementwise square root."""
    return np.sqrt(l1norm(v))


def l2norm(v):
    """Divide every element by the euclidean norm of the histogram."""
    v = np.asarray(v, dtype=np.float32)
    den = np.float32(np.sqrt(np.dot(v, v) + EPSILON))
    return v / den


def l2hys(v, clip=0.2):
    """
    L2 normalization, clipping to [0, clip] and a second L2 normalization.

    Args:
        v: Histogram to normalize
        clip (float): Upper bound applied between the two normalizations

    Returns:
        The normalized histogram
    """
    return l2norm(np.clip(l2norm(v), 0.0, clip))


def none(v):
    """Identity, useful to inspect raw histograms."""
    return np.array(v, dtype=np.float32)


BLOCK_NORMS = {
    'L1norm': l1norm,
    'L1sqrt': l1sqrt,
    'L2norm': l2norm,
    'L2hys': l2hys,
    'none': none,
}

_ALIASES = {
    'l1': 'L1norm',
    'l1norm': 'L1norm',
    'l1-sqrt': 'L1sqrt',
    'l1sqrt': 'L1sqrt',
    'l2': 'L2norm',
    'l2norm': 'L2norm',
    'l2-hys': 'L2hys',
    'l2hys': 'L2hys',
    'none': 'none',
}


def resolve_block_norm(name):
    """
    Map a block normalization name to its canonical spelling.

    Args:
        name (str): Method name, case insensitive ('L2hys', 'L2-Hys', 'l1', ...)

    Returns:
        str: One of the keys of BLOCK_NORMS

    Raises:
        ConfigInvalid: If the name is not a known method
    """
    if name is None:
        return 'none'
    if not isinstance(name, str):
        raise ConfigInvalid(f"block_norm must be a string, got {type(name).__name__}")
    key = _ALIASES.get(name.strip().lower())
    if key is None:
        raise ConfigInvalid(
            f"Unknown block_norm '{name}', expected one of {sorted(BLOCK_NORMS)}"
        )
    return key


def normalize(v, method='L2hys'):
    """Apply the block normalization called ``method`` to ``v``."""
    return BLOCK_NORMS[resolve_block_norm(method)](v)


def normalize_inplace(v, method='L2hys'):
    """
    Normalize a float32 buffer in place.

    Used by the block pass, which writes every block straight into its slice
    of the preallocated descriptor.
    """
    v[...] = BLOCK_NORMS[method](v)
    return v
