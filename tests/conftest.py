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
Pytest configuration and shared fixtures for GTSK test suite.

This module provides:
- Shared fixtures for generated GeoTIFFs
- Sample tags and GeoKeys for unit tests
- The MAT.tif mean-annual-temperature grid used by the sampling scenario

Fixtures are organized by scope:
- session: Created once per test session (expensive setup)
- function: Created for each test function (default)

Example:
    >>> def test_using_fixture(mat_tif):
    ...     details = describe(mat_tif)
    ...     assert details.width == 80
"""

import pytest
import numpy as np
from gtsk.utils.data_models import GeoKey, Ifd, TagType, TiffTag
from tests.fixtures.mock_geotiff_factory import MockGeoTIFF

# MAT.tif: 0.25 degree grid over southern Quebec / Ontario, EPSG:4326
MAT_GEO_TRANSFORM = (-80.0, 0.25, 0.0, 50.1, 0.0, -0.25)
MAT_WIDTH = 80
MAT_HEIGHT = 40
MAT_NODATA = -9999.0
MONTREAL = (45.5, -73.57)  # (lat, lon) -> pixel (col 25, row 18)


def make_mat_grid() -> np.ndarray:
    """
    Synthetic mean annual temperature (deg C) in half-degree steps.

    Temperature falls northwards; the eastern columns are NoData (ocean).
    """
    rows = np.arange(MAT_HEIGHT, dtype=np.float32)[:, np.newaxis]
    cols = np.arange(MAT_WIDTH, dtype=np.float32)[np.newaxis, :]
    grid = np.round((2.0 + 0.25 * rows - 0.05 * cols) * 2.0) / 2.0
    grid = grid.astype(np.float32)
    grid[18, 25] = 6.5
    grid[:, 70:] = MAT_NODATA
    return grid


# =============================================================================
# Session-scope Fixtures (Created once per test session)
# =============================================================================

@pytest.fixture(scope="session")
def temp_dir(tmp_path_factory):
    """
    Create a temporary directory for the entire test session.

    Returns:
        Path: Path to temporary directory
    """
    return tmp_path_factory.mktemp("gtsk_tests")


@pytest.fixture(scope="session")
def mat_grid():
    """Pixel values written to MAT.tif."""
    return make_mat_grid()


@pytest.fixture(scope="session")
def mat_tif(temp_dir, mat_grid):
    """
    MAT.tif: single-band Float32, DEFLATE with floating-point predictor,
    16 x 16 tiles, NoData -9999.

    Returns:
        Path: Path to MAT.tif
    """
    mock = MockGeoTIFF(
        pixel_data=mat_grid,
        geo_transform=MAT_GEO_TRANSFORM,
        epsg=4326,
        nodata=MAT_NODATA,
        compression='zlib',
        predictor=3,
        tile=(16, 16),
    )
    return mock.save_to_file(temp_dir / "MAT.tif")


# =============================================================================
# Function-scope Fixtures (Created for each test)
# =============================================================================

@pytest.fixture
def mock_geotiff_basic():
    """
    A basic single-band Float32 GeoTIFF with WGS84 georeferencing.

    Returns:
        MockGeoTIFF: Configured mock GeoTIFF object
    """
    return MockGeoTIFF(width=32, height=24, bands=1, dtype='float32', epsg=4326)


@pytest.fixture
def mock_geotiff_multiband():
    """
    A 3-band UInt16 GeoTIFF, DEFLATE with horizontal predictor.

    Returns:
        MockGeoTIFF: Configured mock GeoTIFF with 3 bands
    """
    return MockGeoTIFF(
        width=40,
        height=30,
        bands=3,
        dtype='uint16',
        compression='zlib',
        predictor=2,
    )


@pytest.fixture
def mock_geotiff_with_nodata():
    """
    A Int16 GeoTIFF with NoData -9999 in its top-left pixel.

    Returns:
        MockGeoTIFF: Configured mock GeoTIFF with NoData
    """
    mock = MockGeoTIFF(width=20, height=20, dtype='int16', nodata=-9999)
    mock.pixel_data[0, 0, 0] = -9999
    return mock


@pytest.fixture
def sample_ifd():
    """
    An IFD with the structural tags of a small stripped image.

    Returns:
        Ifd: IFD 0 of a 1024 x 768 3-band image
    """
    tags = (
        TiffTag(256, 'ImageWidth', TagType.SHORT, 1, (1024,)),
        TiffTag(257, 'ImageLength', TagType.SHORT, 1, (768,)),
        TiffTag(258, 'BitsPerSample', TagType.SHORT, 3, (8, 8, 8)),
        TiffTag(259, 'Compression', TagType.SHORT, 1, (5,)),
        TiffTag(262, 'PhotometricInterpretation', TagType.SHORT, 1, (2,)),
        TiffTag(273, 'StripOffsets', TagType.LONG, 3, (100, 200, 300)),
        TiffTag(277, 'SamplesPerPixel', TagType.SHORT, 1, (3,)),
        TiffTag(278, 'RowsPerStrip', TagType.SHORT, 1, (256,)),
        TiffTag(279, 'StripByteCounts', TagType.LONG, 3, (100, 100, 100)),
    )
    return Ifd(index=0, offset=8, tags=tags)


@pytest.fixture
def sample_geokeys():
    """
    GeoKeys for a projected CRS (UTM zone 10N).

    Returns:
        List[GeoKey]: Common GeoKeys for projected CRS
    """
    return [
        GeoKey(id=1024, name='GTModelTypeGeoKey', value=1),
        GeoKey(id=1025, name='GTRasterTypeGeoKey', value=1),
        GeoKey(id=3072, name='ProjectedCRSGeoKey', value=32610),
    ]


@pytest.fixture
def write_bytes(tmp_path):
    """Write raw bytes to a temporary .tif file and return its path."""
    def _write(data: bytes, name: str = 'raw.tif'):
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write
