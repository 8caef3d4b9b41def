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
Custom Exceptions Module.

A centralized module for custom exceptions used throughout the GeoTIFF Sampling Kit.
File-system problems (missing or unreadable files) are not wrapped and surface
as the built-in FileNotFoundError / OSError.
"""

class GeoTiffError(Exception):
    """Base exception for all GeoTIFF describe/sample failures."""
    pass

class InvalidFormat(GeoTiffError):
    """Corrupt or truncated TIFF header, directory or tag."""
    pass

class UnsupportedCompression(GeoTiffError):
    """The raster declares a compression scheme the decoder cannot handle."""
    pass

class MissingGeoReference(GeoTiffError):
    """No usable georeferencing tags were found in the raster."""
    pass

class UnsupportedCRS(GeoTiffError):
    """The GeoKey directory references a custom or unresolvable CRS."""
    pass

class InvalidCoordinate(GeoTiffError, ValueError):
    """A query latitude/longitude lies outside the valid geographic range."""
    pass
