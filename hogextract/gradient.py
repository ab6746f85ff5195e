"""
Gradient magnitude and orientation from 1-D finite differences.
"""
import cv2
import numpy as np

from hogextract.errors import InvalidInput

KERNEL_X = np.array([[-1, 0, 1]], dtype=np.float32)
KERNEL_Y = KERNEL_X.T.copy()


def validate_image(image, blocksize=None):
    """
    Check that ``image`` can be described and return it as a numpy array.

    Args:
        image: 2-D (grayscale) or 3-D (H x W x C) array
        blocksize (int): If given, both spatial dimensions must reach it

    Returns:
        The image as a numpy array

    Raises:
        InvalidInput: If the image is missing, empty or too small
    """
    if image is None:
        raise InvalidInput("invalid image: got None")
    image = np.asarray(image)
    if image.size == 0:
        raise InvalidInput("invalid image: no pixel data")
    if image.ndim not in (2, 3):
        raise InvalidInput(f"invalid image: expected 2 or 3 dimensions, got shape {image.shape}")
    if blocksize is not None and (image.shape[0] < blocksize or image.shape[1] < blocksize):
        raise InvalidInput(
            f"the image ({image.shape[1]}x{image.shape[0]}) is smaller than blocksize ({blocksize})"
        )
    return image


def _magnitude_and_orientation(channel):
    dx = cv2.filter2D(channel, cv2.CV_32F, KERNEL_X)
    dy = cv2.filter2D(channel, cv2.CV_32F, KERNEL_Y)
    mag, ori = cv2.cartToPolar(dx, dy, angleInDegrees=True)
    ori[ori >= 360.0] = 0.0
    return mag, ori


def compute_gradients(image, blocksize=None):
    """
    Compute the gradient magnitude and orientation maps of an image.

    The image is correlated with [-1, 0, 1] horizontally and vertically.
    Orientations are in degrees in [0, 360). For multi-channel images the
    channel with the strongest gradient wins at every pixel.

    Args:
        image: 2-D or 3-D array of intensities
        blocksize (int): Optional minimum size, see validate_image()

    Returns:
        tuple: (magnitude, orientation), two float32 arrays of shape H x W
    """
    image = validate_image(image, blocksize)
    image = image.astype(np.float32, copy=False)

    if image.ndim == 2:
        return _magnitude_and_orientation(image)

    mags, oris = zip(*(_magnitude_and_orientation(np.ascontiguousarray(image[:, :, c]))
                       for c in range(image.shape[2])))
    mags = np.stack(mags, axis=2)
    oris = np.stack(oris, axis=2)

    best = mags.argmax(axis=2)[:, :, np.newaxis]
    mag = np.take_along_axis(mags, best, axis=2)[:, :, 0]
    ori = np.take_along_axis(oris, best, axis=2)[:, :, 0]
    return np.ascontiguousarray(mag), np.ascontiguousarray(ori)
