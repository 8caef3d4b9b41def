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
End-to-End tests for the `gtsk describe` command.

These tests verify the complete workflow from CLI invocation to printed output.
"""

import json
import subprocess
import sys
from pathlib import Path
import pytest
from tests.fixtures.mock_geotiff_factory import MockGeoTIFF

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def run_gtsk(*args):
    return subprocess.run(
        [sys.executable, '-m', 'gtsk', *map(str, args)],
        capture_output=True, text=True, cwd=PROJECT_ROOT
    )


@pytest.mark.e2e
class TestDescribeCommand:
    """Test the `gtsk describe` command end-to-end."""

    def test_describe_text(self, mat_tif):
        """Test the human-readable summary."""
        result = run_gtsk('describe', '-i', mat_tif)

        assert result.returncode == 0, f"Command failed: {result.stdout}{result.stderr}"
        assert 'Size:           80 x 40 pixels, 1 band(s)' in result.stdout
        assert 'EPSG:4326 (WGS 84)' in result.stdout
        assert 'DEFLATE (predictor 3)' in result.stdout
        assert 'NoData:         -9999.0' in result.stdout

    def test_describe_json(self, tmp_path):
        """Test JSON output for a multiband file."""
        test_file = tmp_path / 'multi.tif'
        MockGeoTIFF(bands=3, dtype='uint16', compression='lzw', tile=(16, 16), byteorder='>').save_to_file(test_file)

        result = run_gtsk('describe', '-i', test_file, '--json')

        assert result.returncode == 0, f"Command failed: {result.stdout}{result.stderr}"
        info = json.loads(result.stdout)
        assert info['width'] == 32
        assert info['band_count'] == 3
        assert info['data_type'] == 'uint16'
        assert info['compression'] == 'LZW'
        assert info['tiled'] is True
        assert info['byte_order'] == 'big-endian'
        assert info['crs'] == 'EPSG:4326'
        assert info['geo_transform'] == [-80.0, 0.5, 0.0, 50.0, 0.0, -0.5]

    def test_describe_tags(self, tmp_path):
        """Test the tag listing."""
        test_file = tmp_path / 'tags.tif'
        MockGeoTIFF(nodata=-9999).save_to_file(test_file)

        result = run_gtsk('describe', '-i', test_file, '--tags')

        assert result.returncode == 0, f"Command failed: {result.stdout}{result.stderr}"
        assert 'IFD 0 (offset' in result.stdout
        assert 'ImageWidth' in result.stdout
        assert 'GeoKeyDirectoryTag' in result.stdout
        assert 'GDAL_NODATA' in result.stdout

    def test_describe_missing_file(self, tmp_path):
        """Test that a missing file exits with status 1."""
        result = run_gtsk('describe', '-i', tmp_path / 'missing.tif')

        assert result.returncode == 1
        assert 'FileNotFoundError' in result.stdout

    def test_describe_not_a_tiff(self, tmp_path):
        """Test that a non-TIFF file is reported as InvalidFormat."""
        test_file = tmp_path / 'notes.tif'
        test_file.write_text('this is not a TIFF file at all')

        result = run_gtsk('describe', '-i', test_file)

        assert result.returncode == 1
        assert 'InvalidFormat' in result.stdout

    def test_describe_log_file(self, tmp_path, mat_tif):
        """Test that --log-file captures debug messages with -v."""
        log_file = tmp_path / 'logs' / 'describe.log'

        result = run_gtsk('describe', '-i', mat_tif, '--log-file', log_file, '-v')

        assert result.returncode == 0, f"Command failed: {result.stdout}{result.stderr}"
        assert log_file.exists()
        assert 'Described' in log_file.read_text()
