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
GeoTIFF Point Sampling Tool for GTSK.

This module powers the 'sample' command and the `gtsk.sample` function. The
query latitude/longitude is read in the raster's own CRS axes (x = longitude,
y = latitude); no reprojection is performed.
"""

import json
import logging
import math
from typing import List, Optional
from gtsk.tools.describe_geotiff import describe
from gtsk.utils.config_loader import config
from gtsk.utils.data_models import GeoTiffDetails
from gtsk.utils.exceptions import InvalidCoordinate
from gtsk.utils.script_arguments import SampleArguments
from gtsk.utils.value_sampler import SampleValue, ValueSampler

logger = logging.getLogger('sample_geotiff')


def validate_coordinate(lat: float, lon: float):
    """Raise InvalidCoordinate unless lat is in [-90, 90] and lon in [-180, 180]."""
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"Coordinate ({lat!r}, {lon!r}) is not numeric") from None
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise InvalidCoordinate(f"Latitude {lat} outside [-90, 90]")
    if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
        raise InvalidCoordinate(f"Longitude {lon} outside [-180, 180]")


def sample(lat: float, lon: float, details: GeoTiffDetails,
           decimals: Optional[int] = None) -> List[SampleValue]:
    """
    Sample every band of a described GeoTIFF at a coordinate.

    Args:
        lat: Latitude (model y), in [-90, 90].
        lon: Longitude (model x), in [-180, 180].
        details: Handle returned by `describe`.
        decimals: Round floating-point values; defaults to the
            `sampling.decimals` configuration value (no rounding if unset).

    Returns:
        One value per band in file order. None means NoData or a coordinate
        outside the raster extent.

    Example:
        >>> details = describe('MAT.tif')
        >>> sample(45.5, -73.57, details)
        [6.5]
    """
    validate_coordinate(lat, lon)
    if decimals is None:
        decimals = config.get('sampling.decimals')
    return ValueSampler(details, decimals=decimals).sample(float(lon), float(lat))


def sample_geotiff(args: SampleArguments) -> List[SampleValue]:
    """Run the sample command and print one value per band."""
    details = describe(args.input_path)
    values = sample(args.lat, args.lon, details, decimals=args.decimals)
    if args.json:
        print(json.dumps(values))
    else:
        for band, value in enumerate(values, start=1):
            print(f"Band {band}: {'nodata' if value is None else value}")
    return values
