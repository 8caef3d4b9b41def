# ******************************************************************************
# Project: GeoTIFF Sampling Kit (GTSK)
# Author: Eric Robeck <robeckgeo@gmail.com>
#
# Copyright (c) 2025, Eric Robeck
# Licensed under the MIT License
# ******************************************************************************

"""
GeoTIFF Sampling Kit: describe a GeoTIFF once, then sample it at coordinates.

    >>> import gtsk
    >>> details = gtsk.describe('MAT.tif')
    >>> gtsk.sample(45.5, -73.57, details)
    [6.5]
"""

from gtsk.geo.geodesy import distance, geo_to_3d, get_closest
from gtsk.geo.styled_layer_descriptor import styled_layer_descriptor
from gtsk.tools.describe_geotiff import describe
from gtsk.tools.sample_geotiff import sample
from gtsk.utils.data_models import GeoTiffDetails
from gtsk.utils.exceptions import (
    GeoTiffError,
    InvalidCoordinate,
    InvalidFormat,
    MissingGeoReference,
    UnsupportedCompression,
    UnsupportedCRS,
)

__version__ = '0.1.0'

__all__ = [
    'describe',
    'sample',
    'distance',
    'geo_to_3d',
    'get_closest',
    'styled_layer_descriptor',
    'GeoTiffDetails',
    'GeoTiffError',
    'InvalidCoordinate',
    'InvalidFormat',
    'MissingGeoReference',
    'UnsupportedCompression',
    'UnsupportedCRS',
]
