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
Unit tests for GTSK data models.

This module tests the dataclasses defined in gtsk.utils.data_models:
- Tag model classes (TagType, TiffTag, Ifd, GeoKey)
- Georeferencing classes (GeoTransform, CrsDescriptor)
- Raster classes (RasterLayout, GeoTiffDetails)

Organization:
- Each dataclass gets its own test class
- Tests verify instantiation, accessors and helper methods
- Edge cases and validation are tested
"""

import dataclasses
import math
import numpy as np
import pytest
from gtsk.utils.data_models import (
    CrsDescriptor,
    GeoKey,
    GeoTiffDetails,
    GeoTransform,
    RasterLayout,
    TagType,
    TiffTag,
)
from gtsk.utils.exceptions import InvalidFormat, MissingGeoReference


def make_details(**overrides) -> GeoTiffDetails:
    """GeoTiffDetails for a 10 x 5 single-band Float32 raster."""
    layout = RasterLayout(
        byte_order='<', bigtiff=False, tiled=False, block_width=10, block_height=5,
        planar_config=1, predictor=1, offsets=(100,), byte_counts=(200,),
    )
    values = dict(
        path='/data/test.tif',
        width=10,
        height=5,
        band_count=1,
        geo_transform=GeoTransform(-80.0, 0.5, 0.0, 50.0, 0.0, -0.5),
        crs=CrsDescriptor(epsg=4326, kind='geographic', name='WGS 84'),
        nodata=None,
        bits_per_sample=32,
        sample_format=3,
        compression=1,
        layout=layout,
    )
    values.update(overrides)
    return GeoTiffDetails(**values)


@pytest.mark.unit
@pytest.mark.models
class TestTagType:
    """Test TagType enumeration."""

    def test_sizes(self):
        """Test element sizes of common field types."""
        assert TagType.SHORT.size == 2
        assert TagType.LONG.size == 4
        assert TagType.RATIONAL.size == 8
        assert TagType.DOUBLE.size == 8
        assert TagType.LONG8.size == 8

    def test_integer_and_float_classification(self):
        """Test is_integer/is_float split the numeric types."""
        assert TagType.SHORT.is_integer()
        assert TagType.IFD8.is_integer()
        assert not TagType.DOUBLE.is_integer()
        assert TagType.RATIONAL.is_float()
        assert not TagType.ASCII.is_float()
        assert not TagType.ASCII.is_integer()


@pytest.mark.unit
@pytest.mark.models
class TestTiffTag:
    """Test TiffTag typed accessors."""

    def test_as_int(self):
        """Test reading a single integer value."""
        tag = TiffTag(256, 'ImageWidth', TagType.SHORT, 1, (1024,))
        assert tag.as_int() == 1024
        assert tag.as_ints() == (1024,)
        assert tag.is_array() is False

    def test_as_floats(self):
        """Test reading a double array."""
        tag = TiffTag(33550, 'ModelPixelScaleTag', TagType.DOUBLE, 3, (0.5, 0.5, 0.0))
        assert tag.as_floats() == (0.5, 0.5, 0.0)
        assert tag.as_float() == 0.5
        assert tag.is_array() is True

    def test_as_str(self):
        """Test reading ASCII text."""
        tag = TiffTag(42113, 'GDAL_NODATA', TagType.ASCII, 6, '-9999')
        assert tag.as_str() == '-9999'

    def test_as_bytes(self):
        """Test reading UNDEFINED bytes."""
        tag = TiffTag(37724, 'ImageSourceData', TagType.UNDEFINED, 3, b'\x01\x02\x03')
        assert tag.as_bytes() == b'\x01\x02\x03'

    def test_variant_mismatch_raises(self):
        """Test that reading the wrong variant raises instead of coercing."""
        tag = TiffTag(256, 'ImageWidth', TagType.SHORT, 1, (1024,))
        with pytest.raises(InvalidFormat, match='ImageWidth'):
            tag.as_str()
        with pytest.raises(InvalidFormat):
            tag.as_float()

        text = TiffTag(42113, 'GDAL_NODATA', TagType.ASCII, 2, '0')
        with pytest.raises(InvalidFormat, match='GDAL_NODATA'):
            text.as_int()

    def test_empty_value_raises(self):
        """Test that a zero-count integer tag cannot yield a single value."""
        tag = TiffTag(273, 'StripOffsets', TagType.LONG, 0, ())
        with pytest.raises(InvalidFormat, match='empty'):
            tag.as_int()

    def test_tag_is_frozen(self):
        """Test that TiffTag is immutable."""
        tag = TiffTag(256, 'ImageWidth', TagType.SHORT, 1, (1024,))
        with pytest.raises(dataclasses.FrozenInstanceError):
            tag.value = (1,)


@pytest.mark.unit
@pytest.mark.models
class TestIfd:
    """Test Ifd lookups."""

    def test_get_and_contains(self, sample_ifd):
        """Test finding tags by code."""
        assert 256 in sample_ifd
        assert 322 not in sample_ifd
        assert sample_ifd.get(257).as_int() == 768
        assert sample_ifd.get(322) is None
        assert len(sample_ifd) == 9

    def test_require_missing_tag(self, sample_ifd):
        """Test that require names the missing tag."""
        with pytest.raises(InvalidFormat, match=r'TileWidth \(322\)'):
            sample_ifd.require(322, 'TileWidth')


@pytest.mark.unit
@pytest.mark.models
class TestGeoKey:
    """Test GeoKey data model."""

    def test_defaults(self):
        """Test that GeoKey defaults to a SHORT stored in the directory."""
        key = GeoKey(id=1024, name='GTModelTypeGeoKey', value=2)
        assert key.location == 0
        assert key.count == 1


@pytest.mark.unit
@pytest.mark.models
class TestGeoTransform:
    """Test GeoTransform data model."""

    def test_forward_and_inverse(self):
        """Test mapping pixel corners to model coordinates and back."""
        gt = GeoTransform(-180.0, 0.5, 0.0, 90.0, 0.0, -0.5)
        assert gt.forward(2, 4) == (-179.0, 88.0)
        assert gt.inverse(-179.0, 88.0) == (2.0, 4.0)

    def test_inverse_with_rotation(self):
        """Test that a rotated transform round-trips."""
        gt = GeoTransform(1000.0, 2.0, 0.5, 5000.0, 0.25, -2.0)
        x, y = gt.forward(13.0, 7.0)
        col, row = gt.inverse(x, y)
        assert col == pytest.approx(13.0)
        assert row == pytest.approx(7.0)
        assert not gt.is_north_up()

    def test_as_tuple_and_resolution(self):
        """Test GDAL-order tuple and absolute resolution."""
        gt = GeoTransform(500000.0, 30.0, 0.0, 4500000.0, 0.0, -30.0)
        assert gt.as_tuple() == (500000.0, 30.0, 0.0, 4500000.0, 0.0, -30.0)
        assert gt.resolution() == (30.0, 30.0)
        assert gt.is_north_up()
        assert gt.determinant() == -900.0

    def test_singular_transform_rejected(self):
        """Test that a non-invertible transform cannot be created."""
        with pytest.raises(MissingGeoReference, match='not invertible'):
            GeoTransform(0.0, 0.0, 0.0, 0.0, 0.0, -1.0)

    def test_non_finite_transform_rejected(self):
        """Test that NaN coefficients are rejected."""
        with pytest.raises(MissingGeoReference, match='non-finite'):
            GeoTransform(math.nan, 1.0, 0.0, 0.0, 0.0, -1.0)


@pytest.mark.unit
@pytest.mark.models
class TestCrsDescriptor:
    """Test CrsDescriptor data model."""

    def test_to_string(self):
        """Test the EPSG authority string."""
        assert CrsDescriptor(epsg=4326, kind='geographic').to_string() == 'EPSG:4326'
        assert CrsDescriptor(epsg=None).to_string() is None

    def test_is_geographic(self):
        """Test the CRS kind check."""
        assert CrsDescriptor(epsg=4326, kind='geographic').is_geographic()
        assert not CrsDescriptor(epsg=32610, kind='projected').is_geographic()


@pytest.mark.unit
@pytest.mark.models
class TestRasterLayout:
    """Test RasterLayout block arithmetic."""

    def test_block_counts_round_up(self):
        """Test that partial edge blocks are counted."""
        layout = RasterLayout('<', False, True, 16, 16, 1, 1, (), ())
        assert layout.blocks_across(80) == 5
        assert layout.blocks_across(81) == 6
        assert layout.blocks_down(1) == 1
        assert layout.block_size() == '16 x 16'


@pytest.mark.unit
@pytest.mark.models
class TestGeoTiffDetails:
    """Test GeoTiffDetails data model."""

    def test_dtypes(self):
        """Test file and native data types."""
        details = make_details(layout=dataclasses.replace(make_details().layout, byte_order='>'))
        assert details.file_dtype() == np.dtype('>f4')
        assert details.dtype() == np.dtype('float32')
        assert details.dtype().isnative

    def test_typed_nodata_float(self):
        """Test NoData cast to a float band type."""
        details = make_details(nodata=-9999.0)
        assert details.typed_nodata() == np.float32(-9999.0)
        assert isinstance(details.typed_nodata(), np.float32)

    def test_typed_nodata_nan(self):
        """Test a NaN NoData sentinel stays NaN."""
        assert np.isnan(make_details(nodata=math.nan).typed_nodata())

    def test_typed_nodata_integer(self):
        """Test NoData cast to an integer band type."""
        details = make_details(nodata=255.0, bits_per_sample=8, sample_format=1)
        assert details.typed_nodata() == np.uint8(255)

    @pytest.mark.parametrize('nodata, bits, fmt', [
        (-9999.0, 8, 1),    # below uint8 range
        (70000.0, 16, 2),   # above int16 range
        (1.5, 16, 1),       # fractional for an integer type
        (math.nan, 32, 2),  # NaN for an integer type
    ])
    def test_typed_nodata_unrepresentable(self, nodata, bits, fmt):
        """Test that a sentinel outside the integer type never matches."""
        assert make_details(nodata=nodata, bits_per_sample=bits, sample_format=fmt).typed_nodata() is None

    def test_typed_nodata_absent(self):
        """Test that no sentinel yields None."""
        assert make_details().typed_nodata() is None

    def test_bounding_box(self):
        """Test (west, south, east, north) of a north-up raster."""
        assert make_details().bounding_box() == (-80.0, 47.5, -75.0, 50.0)

    def test_to_dict(self):
        """Test the JSON summary."""
        info = make_details(nodata=math.nan).to_dict()
        assert info['width'] == 10
        assert info['height'] == 5
        assert info['data_type'] == 'float32'
        assert info['compression'] == 'Uncompressed'
        assert info['crs'] == 'EPSG:4326'
        assert info['nodata'] == 'nan'
        assert info['byte_order'] == 'little-endian'
        assert info['geo_transform'] == [-80.0, 0.5, 0.0, 50.0, 0.0, -0.5]

    def test_cache_not_part_of_equality(self):
        """Test that two handles to the same raster compare equal."""
        assert make_details() == make_details()
        assert 'raster_cache' not in repr(make_details())

    def test_details_are_frozen(self):
        """Test that GeoTiffDetails is immutable."""
        details = make_details()
        with pytest.raises(dataclasses.FrozenInstanceError):
            details.width = 20
