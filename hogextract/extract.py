import os
import time
import logging
import cv2
import numpy as np

from hogextract.config import CROP_HEIGHT, CROP_WIDTH, HOGConfig
from hogextract.errors import ConfigInvalid, HOGError
from hogextract.hog import HOGDescriptor
from hogextract.utils import ensure_directory, list_image_files, load_image, preprocess_image, save_to_h5

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """
    Batch extraction of HOG descriptors for every image of a directory.
    """

    def __init__(self, input_dir='data/raw', output_file='data/processed/hog_features.h5',
                 crop_size=(CROP_WIDTH, CROP_HEIGHT), hog_params=None, grayscale=False,
                 append=True):
        """
        Initialize the feature extractor.

        Args:
            input_dir (str): Directory containing the images to describe
            output_file (str): H5 file the descriptors are appended to
            crop_size (tuple): (width, height) every image is resized to
            hog_params (dict): Overrides for the default HOG parameters
            grayscale (bool): Convert color images to grayscale before extraction
            append (bool): Add rows to an existing output file instead of replacing it
        """
        self.input_dir = input_dir
        self.output_file = output_file
        self.crop_size = tuple(crop_size)
        self.grayscale = grayscale
        self.append = append

        if (len(self.crop_size) != 2
                or any(isinstance(v, bool) or not isinstance(v, int) or v < 1 for v in self.crop_size)):
            raise ConfigInvalid(f"crop_size must be two positive integers, got {crop_size!r}")

        # Validated HOG parameters, defaults updated with custom ones
        self.config = HOGConfig.from_dict(hog_params)
        self.hog = HOGDescriptor(config=self.config)

        # Ensure output directory exists
        ensure_directory(os.path.dirname(self.output_file))

    @property
    def descriptor_size(self):
        """Length of the descriptor of one crop."""
        return self.config.descriptor_size(*self.crop_size)

    def extract_features(self, image):
        """
        Extract the HOG descriptor of an image resized to the crop size.

        Args:
            image: Decoded image (grayscale or BGR)

        Returns:
            HOG features as a 1D float32 array
        """
        crop = preprocess_image(image, self.crop_size, grayscale=self.grayscale)
        self.hog.process(crop)
        return self.hog.retrieve((0, 0, crop.shape[1], crop.shape[0]))

    def process_dataset(self):
        """
        Describe every regular file of the input directory and save the results.

        Unreadable files are skipped with a warning.
        The output file is only touched once every file has been processed.

        Returns:
            bool: True if processing was successful, False otherwise
        """
        if not os.path.isdir(self.input_dir):
            logger.error(f"Input directory not found: {self.input_dir}")
            return False

        filenames = list_image_files(self.input_dir)
        if not filenames:
            logger.error(f"No files found in {self.input_dir}")
            return False

        n = len(filenames)
        logger.info(f"Found {n} files in {self.input_dir}, descriptor size {self.descriptor_size}")

        hog_features = np.zeros((n, self.descriptor_size), dtype=np.float32)
        described = []

        begin = time.perf_counter()
        for i, filename in enumerate(filenames):
            img_path = os.path.join(self.input_dir, filename)
            image = load_image(img_path, grayscale=self.grayscale)
            if image is None:
                continue

            try:
                hist = self.extract_features(image)
            except (HOGError, cv2.error) as e:
                logger.error(f"Error processing {img_path}: {e}")
                continue

            hog_features[len(described)] = hist
            described.append(filename)
            logger.info(f"({i}/{n - 1}) {filename} -> DONE")

        # Check if we have features
        if not described:
            logger.error("No features extracted from dataset")
            return False

        success = save_to_h5(hog_features[:len(described)], described, self.output_file,
                             append=self.append)
        elapsed_ms = (time.perf_counter() - begin) * 1000

        if success:
            logger.info(f"Processed {len(described)} of {n} files")
            logger.info(f"Features shape: ({len(described)}, {self.descriptor_size})")
        logger.info(f"Total elapsed time = {elapsed_ms:.0f} ms")

        return success
