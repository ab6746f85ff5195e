"""
Exceptions raised by the HOG descriptor engine.

All of them are programmer or input errors: they are raised synchronously,
before any externally visible state is changed, and are not worth retrying.
"""


class HOGError(Exception):
    """Base class for every error raised by hogextract."""


class ConfigInvalid(HOGError, ValueError):
    """The block/cell/stride/binning/gradient parameters are inconsistent."""


class InvalidInput(HOGError, ValueError):
    """The image is missing, empty or smaller than one block."""


class WindowTooSmall(HOGError, ValueError):
    """The requested window cannot hold a single block."""


class WindowOutOfBounds(HOGError, IndexError):
    """The requested window extends past the processed image."""


class NotProcessed(HOGError, RuntimeError):
    """A descriptor was requested before any image was processed."""
