import os
import sys
import argparse
import cv2
from hogextract.config import (BINNING, BLOCKSIZE, CELLSIZE, CROP_HEIGHT, CROP_WIDTH, STRIDE, HOGConfig,
                               GRADIENT_SIGNED, GRADIENT_UNSIGNED)
from hogextract.errors import HOGError
from hogextract.extract import FeatureExtractor
from hogextract.hog import HOGDescriptor
from hogextract.normalization import BLOCK_NORMS
from hogextract.utils import drop_alpha, ensure_directory, load_image, setup_logger

def build_parser():
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(description='HOG descriptor extraction')

    # Mode selection
    parser.add_argument('--mode', type=str, required=True,
                       choices=['extract', 'visualize'],
                       help='Operation mode: extract or visualize')

    # HOG parameters
    parser.add_argument('--blocksize', type=int, default=BLOCKSIZE,
                       help=f'Block size in pixels (default: {BLOCKSIZE})')
    parser.add_argument('--cellsize', type=int, default=CELLSIZE,
                       help=f'Cell size in pixels (default: {CELLSIZE})')
    parser.add_argument('--stride', type=int, default=STRIDE,
                       help=f'Block stride in pixels (default: {STRIDE})')
    parser.add_argument('--binning', type=int, default=BINNING,
                       help=f'Number of orientation bins (default: {BINNING})')
    parser.add_argument('--signed', action='store_true',
                       help='Use signed gradients (0..360) instead of unsigned (0..180)')
    parser.add_argument('--block_norm', type=str, default='L2hys',
                       choices=sorted(BLOCK_NORMS),
                       help='Block normalization (default: L2hys)')
    parser.add_argument('--grayscale', action='store_true',
                       help='Convert images to grayscale before extraction')
    parser.add_argument('--log_dir', type=str, default='logs',
                       help='Directory for log files (default: logs)')

    # Extract mode arguments
    parser.add_argument('--input_dir', type=str,
                       help='Directory of images to describe (required for extract mode)')
    parser.add_argument('--output_file', type=str, default='hog_features.h5',
                       help='H5 file the descriptors are appended to (default: hog_features.h5)')
    parser.add_argument('--crop_width', type=int, default=CROP_WIDTH,
                       help=f'Width images are resized to (default: {CROP_WIDTH})')
    parser.add_argument('--crop_height', type=int, default=CROP_HEIGHT,
                       help=f'Height images are resized to (default: {CROP_HEIGHT})')
    parser.add_argument('--overwrite', action='store_true',
                       help='Replace the output file instead of appending to it')

    # Visualize mode arguments
    parser.add_argument('--image', type=str,
                       help='Image to visualize (required for visualize mode)')
    parser.add_argument('--output_image', type=str, default='hog_vectors.png',
                       help='Where to write the vector mask (default: hog_vectors.png)')
    parser.add_argument('--thickness', type=int, default=1,
                       help='Line thickness of the vector mask (default: 1)')

    return parser

def main(argv=None):
    """
    Main entry point for the HOG extraction tool.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logger
    logger = setup_logger(args.log_dir)

    hog_params = {
        'blocksize': args.blocksize,
        'cellsize': args.cellsize,
        'stride': args.stride,
        'binning': args.binning,
        'grad_type': GRADIENT_SIGNED if args.signed else GRADIENT_UNSIGNED,
        'block_norm': args.block_norm,
    }

    # Execute requested mode
    if args.mode == 'extract':
        if args.input_dir is None:
            parser.error("Extract mode requires --input_dir")

        logger.info("Starting feature extraction mode")

        try:
            feature_extractor = FeatureExtractor(
                input_dir=args.input_dir,
                output_file=args.output_file,
                crop_size=(args.crop_width, args.crop_height),
                hog_params=hog_params,
                grayscale=args.grayscale,
                append=not args.overwrite,
            )
        except HOGError as e:
            logger.error(f"Invalid extraction parameters: {e}")
            return 1

        # Process dataset
        success = feature_extractor.process_dataset()

        if success:
            logger.info(f"Successfully extracted HOG features to {args.output_file}")
            return 0
        logger.error("Failed to extract HOG features from dataset")
        return 1

    elif args.mode == 'visualize':
        if args.image is None:
            parser.error("Visualize mode requires --image")

        logger.info("Starting visualization mode")

        image = drop_alpha(load_image(args.image, grayscale=args.grayscale))
        if image is None:
            return 1

        try:
            hog = HOGDescriptor(config=HOGConfig.from_dict(hog_params))
            hog.process(image)
        except HOGError as e:
            logger.error(f"Failed to process {args.image}: {e}")
            return 1

        ensure_directory(os.path.dirname(args.output_image))
        cv2.imwrite(args.output_image, hog.get_vector_mask(args.thickness))
        logger.info(f"Saved vector mask to {args.output_image}")
        return 0

if __name__ == '__main__':
    sys.exit(main())
