#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ******************************************************************************
# Project: GeoTIFF Sampling Kit (GTSK)
# Author: Eric Robeck <robeckgeo@gmail.com>
#
# Copyright (c) 2025, Eric Robeck
# Licensed under the MIT License
# ******************************************************************************

"""
Command-line interface for the GeoTIFF Sampling Kit (GTSK).

This script provides the main entry point for the `gtsk` command,
parsing user arguments and dispatching them to the appropriate tool.
"""
import argparse
import logging
import sys
from pathlib import Path
from gtsk.utils.config_loader import config
from gtsk.utils.exceptions import GeoTiffError
from gtsk.utils.log_helpers import setup_logger, shutdown_logger
from gtsk.utils.script_arguments import DescribeArguments, SampleArguments

def str2bool(v):
    if isinstance(v, bool):
        return v
    if v.lower() in ('yes', 'true', 't', 'y', '1'):
        return True
    elif v.lower() in ('no', 'false', 'f', 'n', '0'):
        return False
    else:
        raise argparse.ArgumentTypeError('Boolean value expected.')

def main(argv=None):
    """
    Main function to parse arguments and call the appropriate tool.
    """
    parser = argparse.ArgumentParser(
        description="GeoTIFF Sampling Kit (GTSK): describe GeoTIFFs and sample their values at a coordinate.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='tool', required=True, help='Available tools')

    # --- Describe Tool ---
    describe_parser = subparsers.add_parser(
        'describe',
        help='Describe the raster layout and georeference of a GeoTIFF.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    describe_parser.add_argument('-i', '--input', required=True, type=Path, dest='input_path', help='Path to the input GeoTIFF file.')
    describe_parser.add_argument('--json', type=str2bool, nargs='?', const=True, default=False, dest='json', help='Print the description as JSON.')
    describe_parser.add_argument('-t', '--tags', type=str2bool, nargs='?', const=True, default=False, dest='tags', help='Also list the TIFF tags of every IFD.')
    describe_parser.add_argument('--log-file', type=Path, dest='log_file', help='Path to a log file for debugging.')
    describe_parser.add_argument('-v', '--verbose', action='store_true', dest='verbose', help='Enable verbose logging.')

    # --- Sample Tool ---
    sample_parser = subparsers.add_parser(
        'sample',
        help='Sample every band of a GeoTIFF at a latitude/longitude.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sample_parser.add_argument('-i', '--input', required=True, type=Path, dest='input_path', help='Path to the input GeoTIFF file.')
    sample_parser.add_argument('--lat', required=True, type=float, dest='lat', help='Latitude of the query point, in [-90, 90].')
    sample_parser.add_argument('--lon', required=True, type=float, dest='lon', help='Longitude of the query point, in [-180, 180].')
    sample_parser.add_argument('-d', '--decimals', type=int, dest='decimals', help='Round floating-point values to this many decimals.')
    sample_parser.add_argument('--json', type=str2bool, nargs='?', const=True, default=False, dest='json', help='Print the values as a JSON array.')
    sample_parser.add_argument('--log-file', type=Path, dest='log_file', help='Path to a log file for debugging.')
    sample_parser.add_argument('-v', '--verbose', action='store_true', dest='verbose', help='Enable verbose logging.')

    args = parser.parse_args(argv)
    tool = args.tool
    args_dict = vars(args)
    args_dict.pop('tool', None)

    # --- Logger Setup ---
    log_level = logging.DEBUG if args.verbose else config.get('logging.level', 'INFO')
    log_file = args.log_file or config.get('logging.file')
    logger = setup_logger(log_file=str(log_file) if log_file else None, level=log_level)

    try:
        if tool == 'describe':
            from gtsk.tools.describe_geotiff import describe_geotiff
            script_args = DescribeArguments(**args_dict)
            describe_geotiff(script_args)
        elif tool == 'sample':
            from gtsk.tools.sample_geotiff import sample_geotiff
            script_args = SampleArguments(**args_dict)
            sample_geotiff(script_args)
    except (GeoTiffError, OSError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}", exc_info=args.verbose)
        shutdown_logger(logger)
        sys.exit(1)

    shutdown_logger(logger)

if __name__ == "__main__":
    main()
