import os
import logging
import datetime
import h5py
import numpy as np
import cv2

logger = logging.getLogger(__name__)


# Configure logging
def setup_logger(log_dir='logs', level=logging.INFO):
    """Set up and configure logger for the application."""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f'hogextract_{timestamp}.log')

    # Configure logger
    logger = logging.getLogger('hogextract')
    logger.setLevel(level)

    # Drop handlers of a previous setup
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # File handler
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    # Format
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    # Add handlers
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger

# Create directories if they don't exist
def ensure_directory(directory):
    """Ensure directory exists, create if it doesn't."""
    if directory and not os.path.exists(directory):
        os.makedirs(directory)
        logger.info(f"Created directory: {directory}")

# List the regular files of a directory
def list_image_files(directory):
    """Return the sorted names of the regular files in a directory."""
    return sorted(f for f in os.listdir(directory)
                  if os.path.isfile(os.path.join(directory, f)))

# Read an image from disk
def load_image(file_path, grayscale=False):
    """Read an image with OpenCV, returning None if it cannot be decoded."""
    flags = cv2.IMREAD_GRAYSCALE if grayscale else cv2.IMREAD_UNCHANGED
    image = cv2.imread(file_path, flags)
    if image is None:
        logger.warning(f"Could not read image: {file_path}")
    return image

# Remove the alpha channel of a BGRA image
def drop_alpha(image):
    """Convert BGRA images to BGR; other images are returned unchanged."""
    if image is not None and image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image

# Resize and convert image
def preprocess_image(image, target_size=(128, 256), grayscale=False):
    """
    Resize image to target size (width, height) and convert it to float32.

    Alpha channels are dropped; color images are converted to grayscale
    when requested. Intensities are kept in their original range.
    """
    if image is None:
        return None

    # Resize image
    resized = drop_alpha(cv2.resize(image, target_size))

    if grayscale and resized.ndim == 3:
        resized = cv2.cvtColor(resized, cv2.COLOR_BGR2GRAY)

    return resized.astype(np.float32)

# Save descriptors to H5 file
def save_to_h5(features, filenames, file_path, append=True):
    """
    Save HOG features and the names of the described files to an H5 file.

    With append=True the rows are added to the datasets already in the file,
    which must hold descriptors of the same length.
    """
    features = np.asarray(features, dtype=np.float32)
    names = np.array([str(name) for name in filenames], dtype=object)
    string_dtype = h5py.string_dtype(encoding='utf-8')

    try:
        with h5py.File(file_path, 'a' if append else 'w') as h5f:
            if 'hog_features' in h5f:
                dset = h5f['hog_features']
                if dset.shape[1] != features.shape[1]:
                    logger.error(
                        f"Cannot append descriptors of length {features.shape[1]} "
                        f"to {file_path} holding length {dset.shape[1]}"
                    )
                    return False
                start = dset.shape[0]
                dset.resize(start + features.shape[0], axis=0)
                dset[start:] = features

                names_dset = h5f['filenames']
                names_dset.resize(start + len(names), axis=0)
                names_dset[start:] = names
            else:
                h5f.create_dataset('hog_features', data=features,
                                   maxshape=(None, features.shape[1]), chunks=True)
                h5f.create_dataset('filenames', data=names, dtype=string_dtype,
                                   maxshape=(None,), chunks=True)

        logger.info(f"Dataset saved to {file_path}")
        return True
    except (OSError, ValueError) as e:
        logger.error(f"Error saving H5 file: {e}")
        return False

# Load descriptors from H5 file
def load_from_h5(file_path):
    """Load HOG features and file names from H5 file."""
    try:
        with h5py.File(file_path, 'r') as h5f:
            features = h5f['hog_features'][:]
            filenames = h5f['filenames'].asstr()[:]

        logger.info(f"Dataset loaded from {file_path}")
        return features, np.array(list(filenames))
    except (OSError, KeyError) as e:
        logger.error(f"Error loading H5 file: {e}")
        return None, None
