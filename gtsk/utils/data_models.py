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
Data Models for GeoTIFF Sampling Kit.

This module defines strongly-typed data classes for representing GeoTIFF
structure, georeferencing and decoded raster data. These classes provide type
safety, self-documentation, and clear contracts between modules.

Tag model classes:
    TagType: TIFF field types with their element size and struct format
    TiffTag: A single decoded TIFF tag with typed accessors
    Ifd: An Image File Directory (ordered tags)
    GeoKey: A GeoTIFF key with its value and storage location

Georeferencing classes:
    GeoTransform: Invertible affine transformation (GDAL coefficient order)
    CrsDescriptor: Coordinate reference system identifier

Raster classes:
    RasterLayout: Strip/tile organisation of the pixel payload
    RasterBand: Decoded samples of one band
    GeoTiffDetails: Immutable description returned by `describe`
"""

import math
import numpy as np
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Union
from gtsk.utils.exceptions import InvalidFormat, MissingGeoReference
from gtsk.utils.raster_cache import RasterCache


# ============================================================================
# Tag model classes
# ============================================================================

class TagType(IntEnum):
    """TIFF field types (TIFF 6.0 plus the BigTIFF 64-bit additions)."""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13
    LONG8 = 16
    SLONG8 = 17
    IFD8 = 18

    @property
    def size(self) -> int:
        """Size in bytes of a single element of this type."""
        return _TYPE_SIZES[self]

    @property
    def struct_format(self) -> str:
        """struct format character for one element (rationals use two)."""
        return _TYPE_FORMATS[self]

    def is_integer(self) -> bool:
        return self in _INTEGER_TYPES

    def is_float(self) -> bool:
        return self in _FLOAT_TYPES


_TYPE_SIZES = {
    TagType.BYTE: 1, TagType.ASCII: 1, TagType.SHORT: 2, TagType.LONG: 4,
    TagType.RATIONAL: 8, TagType.SBYTE: 1, TagType.UNDEFINED: 1,
    TagType.SSHORT: 2, TagType.SLONG: 4, TagType.SRATIONAL: 8,
    TagType.FLOAT: 4, TagType.DOUBLE: 8, TagType.IFD: 4,
    TagType.LONG8: 8, TagType.SLONG8: 8, TagType.IFD8: 8,
}

_TYPE_FORMATS = {
    TagType.BYTE: 'B', TagType.ASCII: 's', TagType.SHORT: 'H', TagType.LONG: 'I',
    TagType.RATIONAL: 'II', TagType.SBYTE: 'b', TagType.UNDEFINED: 's',
    TagType.SSHORT: 'h', TagType.SLONG: 'i', TagType.SRATIONAL: 'ii',
    TagType.FLOAT: 'f', TagType.DOUBLE: 'd', TagType.IFD: 'I',
    TagType.LONG8: 'Q', TagType.SLONG8: 'q', TagType.IFD8: 'Q',
}

_INTEGER_TYPES = frozenset({
    TagType.BYTE, TagType.SHORT, TagType.LONG, TagType.SBYTE, TagType.SSHORT,
    TagType.SLONG, TagType.IFD, TagType.LONG8, TagType.SLONG8, TagType.IFD8,
})

_FLOAT_TYPES = frozenset({
    TagType.RATIONAL, TagType.SRATIONAL, TagType.FLOAT, TagType.DOUBLE,
})


TagValue = Union[Tuple[int, ...], Tuple[float, ...], str, bytes]


@dataclass(frozen=True)
class TiffTag:
    """
    Represents a single TIFF tag decoded from an IFD entry.

    The Python type of `value` is fixed by `type`, which acts as the
    discriminator of a tagged union:
        - integer types (BYTE, SHORT, LONG, ...): tuple of int
        - RATIONAL, SRATIONAL, FLOAT, DOUBLE: tuple of float
        - ASCII: str (trailing NUL bytes removed)
        - UNDEFINED: bytes

    Values are read through the typed accessors, which raise InvalidFormat
    (naming the tag) instead of coercing a value of the wrong variant.

    Attributes:
        code: The numeric TIFF tag code (e.g., 256 for ImageWidth)
        name: The human-readable tag name (e.g., 'ImageWidth')
        type: The TIFF field type
        count: Number of elements declared in the directory entry
        value: The decoded value

    Example:
        >>> tag = TiffTag(256, 'ImageWidth', TagType.SHORT, 1, (1024,))
        >>> tag.as_int()
        1024
        >>> tag.as_str()
        Traceback (most recent call last):
        ...
        gtsk.utils.exceptions.InvalidFormat: Tag ImageWidth (256) holds SHORT values, not ASCII text
    """
    code: int
    name: str
    type: TagType
    count: int
    value: TagValue

    def _mismatch(self, expected: str) -> InvalidFormat:
        return InvalidFormat(
            f"Tag {self.name} ({self.code}) holds {self.type.name} values, not {expected}"
        )

    def is_array(self) -> bool:
        """True if the tag carries more than one numeric element."""
        return isinstance(self.value, tuple) and len(self.value) > 1

    def as_int(self) -> int:
        """Return the single integer value of the tag."""
        if not self.type.is_integer():
            raise self._mismatch('integer values')
        if not self.value:
            raise InvalidFormat(f"Tag {self.name} ({self.code}) is empty")
        return self.value[0]

    def as_ints(self) -> Tuple[int, ...]:
        """Return all integer values of the tag."""
        if not self.type.is_integer():
            raise self._mismatch('integer values')
        return self.value  # type: ignore[return-value]

    def as_float(self) -> float:
        """Return the single floating-point value of the tag."""
        if not self.type.is_float():
            raise self._mismatch('floating-point values')
        if not self.value:
            raise InvalidFormat(f"Tag {self.name} ({self.code}) is empty")
        return self.value[0]

    def as_floats(self) -> Tuple[float, ...]:
        """Return all floating-point values of the tag."""
        if not self.type.is_float():
            raise self._mismatch('floating-point values')
        return self.value  # type: ignore[return-value]

    def as_str(self) -> str:
        """Return the ASCII text of the tag."""
        if self.type != TagType.ASCII:
            raise self._mismatch('ASCII text')
        return self.value  # type: ignore[return-value]

    def as_bytes(self) -> bytes:
        """Return the raw bytes of an UNDEFINED tag."""
        if self.type != TagType.UNDEFINED:
            raise self._mismatch('UNDEFINED bytes')
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class Ifd:
    """
    Represents one Image File Directory.

    Attributes:
        index: Position of the IFD in the directory chain (0 = main image)
        offset: Byte offset of the IFD in the file
        tags: Tags in file order
    """
    index: int
    offset: int
    tags: Tuple[TiffTag, ...]

    def get(self, code: int) -> Optional[TiffTag]:
        """Return the tag with the given code, or None if absent."""
        for tag in self.tags:
            if tag.code == code:
                return tag
        return None

    def require(self, code: int, name: str) -> TiffTag:
        """Return the tag with the given code or raise InvalidFormat."""
        tag = self.get(code)
        if tag is None:
            raise InvalidFormat(f"Required tag {name} ({code}) missing from IFD {self.index}")
        return tag

    def __contains__(self, code: int) -> bool:
        return self.get(code) is not None

    def __len__(self) -> int:
        return len(self.tags)


@dataclass(frozen=True)
class GeoKey:
    """
    Represents a GeoTIFF key with its value and metadata.

    GeoKeys are stored in the GeoKeyDirectoryTag (34735). A single short value
    sits in the key entry itself (location 0), short arrays follow the entries
    of the directory (location 34735); doubles and text are stored in the
    GeoDoubleParamsTag (34736) and GeoAsciiParamsTag (34737).

    Attributes:
        id: The numeric GeoKey ID (e.g., 1024 for GTModelTypeGeoKey)
        name: The human-readable GeoKey name
        value: int, float, tuple of ints or floats, or str
        location: The TIFF tag where the value is stored (0, 34735, 34736, or 34737)
        count: The number of values for this key
    """
    id: int
    name: str
    value: Any
    location: int = 0
    count: int = 1


# ============================================================================
# Georeferencing classes
# ============================================================================

@dataclass(frozen=True)
class GeoTransform:
    """
    Represents the affine transformation between pixel and model coordinates.

    The transformation (GDAL coefficient order) is:
        X = x_origin + col * pixel_width + row * x_skew
        Y = y_origin + col * y_skew + row * pixel_height

    where (col, row) = (0, 0) is the outer corner of the upper-left pixel.
    pixel_height is negative for north-up rasters. The determinant must be
    non-zero so that the transform can be inverted.

    Example:
        >>> gt = GeoTransform(-180.0, 0.5, 0.0, 90.0, 0.0, -0.5)
        >>> gt.forward(2, 4)
        (-179.0, 88.0)
        >>> gt.inverse(-179.0, 88.0)
        (2.0, 4.0)
    """
    x_origin: float
    pixel_width: float
    x_skew: float
    y_origin: float
    y_skew: float
    pixel_height: float

    def __post_init__(self):
        if not all(math.isfinite(v) for v in self.as_tuple()):
            raise MissingGeoReference(f"GeoTransform has non-finite coefficients: {self.as_tuple()}")
        if self.determinant() == 0.0:
            raise MissingGeoReference(f"GeoTransform is not invertible: {self.as_tuple()}")

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        """Return the GeoTransform as a 6-element tuple (GDAL format)."""
        return (
            self.x_origin,
            self.pixel_width,
            self.x_skew,
            self.y_origin,
            self.y_skew,
            self.pixel_height,
        )

    def determinant(self) -> float:
        return self.pixel_width * self.pixel_height - self.x_skew * self.y_skew

    def forward(self, col: float, row: float) -> Tuple[float, float]:
        """Map pixel (col, row) to model (x, y)."""
        x = self.x_origin + col * self.pixel_width + row * self.x_skew
        y = self.y_origin + col * self.y_skew + row * self.pixel_height
        return x, y

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        """Map model (x, y) to fractional pixel (col, row)."""
        det = self.determinant()
        dx = x - self.x_origin
        dy = y - self.y_origin
        col = (self.pixel_height * dx - self.x_skew * dy) / det
        row = (self.pixel_width * dy - self.y_skew * dx) / det
        return col, row

    def is_north_up(self) -> bool:
        """True if both skew parameters are zero."""
        return self.x_skew == 0.0 and self.y_skew == 0.0

    def resolution(self) -> Tuple[float, float]:
        """Pixel resolution in x and y directions as absolute values."""
        return (abs(self.pixel_width), abs(self.pixel_height))


@dataclass(frozen=True)
class CrsDescriptor:
    """
    Coordinate reference system identifier resolved from GeoKeys.

    Attributes:
        epsg: EPSG code, or None when the file only carries a citation
        kind: 'geographic', 'projected' or 'unknown'
        name: CRS name as reported by the PROJ database
        citation: Citation text from the GeoKey directory, if any
    """
    epsg: Optional[int]
    kind: str = 'unknown'
    name: Optional[str] = None
    citation: Optional[str] = None

    def to_string(self) -> Optional[str]:
        return f"EPSG:{self.epsg}" if self.epsg is not None else None

    def is_geographic(self) -> bool:
        return self.kind == 'geographic'


# ============================================================================
# Raster classes
# ============================================================================

@dataclass(frozen=True)
class RasterLayout:
    """
    Describes how the pixel payload of the main image is chunked in the file.

    Strips are treated as blocks whose width is the image width and whose
    height is RowsPerStrip.

    Attributes:
        byte_order: '<' for little-endian (II), '>' for big-endian (MM)
        bigtiff: True for 64-bit offset BigTIFF files
        tiled: True for tile organisation, False for strips
        block_width: Tile width, or image width for strips
        block_height: Tile height, or RowsPerStrip for strips
        planar_config: 1 = chunky (interleaved), 2 = separate planes
        predictor: 1 = none, 2 = horizontal differencing, 3 = floating point
        offsets: Byte offset of every strip/tile
        byte_counts: Compressed byte count of every strip/tile
    """
    byte_order: str
    bigtiff: bool
    tiled: bool
    block_width: int
    block_height: int
    planar_config: int
    predictor: int
    offsets: Tuple[int, ...]
    byte_counts: Tuple[int, ...]

    def blocks_across(self, width: int) -> int:
        return -(-width // self.block_width)

    def blocks_down(self, height: int) -> int:
        return -(-height // self.block_height)

    def block_size(self) -> str:
        return f"{self.block_width} x {self.block_height}"


@dataclass(frozen=True)
class RasterBand:
    """
    Decoded samples of a single band.

    The array is (height, width), native byte order, and read-only so it can
    be shared between threads.
    """
    index: int
    data: np.ndarray
    bits_per_sample: int
    sample_format: int

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype


SAMPLE_FORMAT_KINDS = {
    1: 'u',  # Unsigned integer
    2: 'i',  # Signed integer
    3: 'f',  # IEEE floating point
}


@dataclass(frozen=True)
class GeoTiffDetails:
    """
    Immutable description of a GeoTIFF produced by `describe`.

    The handle is created once and may be passed into any number of `sample`
    calls. Decoded bands are kept in `raster_cache`, which belongs to this
    handle; the underlying file is assumed not to change while the handle
    is in use.

    Attributes:
        path: Canonical (resolved) path to the source file
        width: Raster width in pixels
        height: Raster height in pixels
        band_count: Number of bands (SamplesPerPixel)
        geo_transform: Pixel to model affine transform
        crs: Coordinate reference system descriptor
        nodata: NoData sentinel from the GDAL_NODATA tag, if any
        bits_per_sample: Bit depth shared by all bands
        sample_format: 1 = unsigned, 2 = signed, 3 = float
        compression: TIFF compression code
        layout: Strip/tile organisation
        ifd_count: Number of IFDs in the file (main image plus overviews/masks)
        geokeys: Decoded GeoKeys, in directory order
    """
    path: str
    width: int
    height: int
    band_count: int
    geo_transform: GeoTransform
    crs: CrsDescriptor
    nodata: Optional[float]
    bits_per_sample: int
    sample_format: int
    compression: int
    layout: RasterLayout
    ifd_count: int = 1
    geokeys: Tuple[GeoKey, ...] = ()
    raster_cache: RasterCache = field(default_factory=RasterCache, repr=False, compare=False)

    def file_dtype(self) -> np.dtype:
        """Sample data type as stored in the file (file byte order)."""
        kind = SAMPLE_FORMAT_KINDS[self.sample_format]
        return np.dtype(f"{self.layout.byte_order}{kind}{self.bits_per_sample // 8}")

    def dtype(self) -> np.dtype:
        """Sample data type of decoded bands (native byte order)."""
        return self.file_dtype().newbyteorder('=')

    def typed_nodata(self) -> Optional[np.generic]:
        """
        The NoData sentinel cast to the band data type.

        Returns None when no sentinel is declared or when it cannot be
        represented in an integer band type (e.g. -9999 for Byte data), in
        which case no sample can ever match it.
        """
        if self.nodata is None:
            return None
        dtype = self.dtype()
        if dtype.kind == "f":
            return dtype.type(self.nodata)
        if not math.isfinite(self.nodata) or not float(self.nodata).is_integer():
            return None
        info = np.iinfo(dtype)
        if not info.min <= self.nodata <= info.max:
            return None
        return dtype.type(int(self.nodata))

    def bounding_box(self) -> Tuple[float, float, float, float]:
        """Return (west, south, east, north) of the raster in model units."""
        corners = [
            self.geo_transform.forward(col, row)
            for col, row in ((0, 0), (self.width, 0), (0, self.height), (self.width, self.height))
        ]
        xs = [c[0] for c in corners]
        ys = [c[1] for c in corners]
        return (min(xs), min(ys), max(xs), max(ys))

    def to_dict(self) -> Dict[str, Any]:
        """Plain-value summary suitable for JSON output."""
        from gtsk.utils.tiff_tag_parser import COMPRESSION_NAMES
        return {
            'path': self.path,
            'width': self.width,
            'height': self.height,
            'band_count': self.band_count,
            'data_type': str(self.dtype()),
            'bits_per_sample': self.bits_per_sample,
            'sample_format': self.sample_format,
            'compression': COMPRESSION_NAMES.get(self.compression, f"Unknown ({self.compression})"),
            'predictor': self.layout.predictor,
            'tiled': self.layout.tiled,
            'block_size': self.layout.block_size(),
            'planar_config': self.layout.planar_config,
            'byte_order': 'little-endian' if self.layout.byte_order == '<' else 'big-endian',
            'bigtiff': self.layout.bigtiff,
            'ifd_count': self.ifd_count,
            'geo_transform': list(self.geo_transform.as_tuple()),
            'bounding_box': list(self.bounding_box()),
            'crs': self.crs.to_string(),
            'crs_name': self.crs.name,
            'crs_kind': self.crs.kind,
            'nodata': None if self.nodata is None else ('nan' if math.isnan(self.nodata) else self.nodata),
        }
