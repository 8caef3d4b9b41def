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
Test fixtures and mock data factories for GTSK tests.

This package contains:
- MockGeoTIFF: Factory for GeoTIFF files with known pixel values
- TiffBuilder: Byte-level TIFF assembler for malformed-file cases
"""

from tests.fixtures.mock_geotiff_factory import MockGeoTIFF, TiffBuilder, geotiff_builder

__all__ = ['MockGeoTIFF', 'TiffBuilder', 'geotiff_builder']
