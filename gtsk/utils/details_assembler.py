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
Details Assembler.

Combines the parsed IFDs, the resolved georeference and the raster layout
into one immutable GeoTiffDetails. No I/O happens here; every value comes
from tags the TiffTagParser already read. Cross-tag consistency is checked
before anything is assembled so that `sample` never sees a description it
cannot decode.
"""

import logging
from typing import Optional, Sequence
from gtsk.utils.data_models import GeoTiffDetails, Ifd, RasterLayout, SAMPLE_FORMAT_KINDS
from gtsk.utils.exceptions import InvalidFormat
from gtsk.utils.geokey_parser import GeoReference

logger = logging.getLogger(__name__)

IMAGE_WIDTH = 256
IMAGE_LENGTH = 257
BITS_PER_SAMPLE = 258
COMPRESSION = 259
STRIP_OFFSETS = 273
SAMPLES_PER_PIXEL = 277
ROWS_PER_STRIP = 278
STRIP_BYTE_COUNTS = 279
PLANAR_CONFIGURATION = 284
PREDICTOR = 317
TILE_WIDTH = 322
TILE_LENGTH = 323
TILE_OFFSETS = 324
TILE_BYTE_COUNTS = 325
SAMPLE_FORMAT = 339
GDAL_NODATA = 42113

SUPPORTED_BITS = {
    'u': (8, 16, 32, 64),
    'i': (8, 16, 32, 64),
    'f': (16, 32, 64),
}


def parse_nodata(text: str) -> Optional[float]:
    """
    Parse the GDAL_NODATA ASCII value.

    Returns:
        The sentinel as a float ('nan' and '±inf' accepted), or None for an
        empty string.

    Raises:
        InvalidFormat: if the text is not a number.
    """
    text = text.strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        raise InvalidFormat(f"GDAL_NODATA (42113) value {text!r} is not a number") from None


class DetailsAssembler:
    """Validates the main IFD and assembles a GeoTiffDetails."""

    def __init__(self, path: str, ifds: Sequence[Ifd], georeference: GeoReference,
                 byte_order: str, bigtiff: bool = False):
        if not ifds:
            raise InvalidFormat("TIFF file contains no IFD")
        self.path = path
        self.ifds = tuple(ifds)
        self.ifd = self.ifds[0]
        self.georeference = georeference
        self.byte_order = byte_order
        self.bigtiff = bigtiff

    def _int_tag(self, code: int, name: str, default: Optional[int] = None) -> int:
        tag = self.ifd.get(code)
        if tag is None:
            if default is None:
                raise InvalidFormat(f"Required tag {name} ({code}) missing from IFD 0")
            return default
        return tag.as_int()

    def _per_sample(self, code: int, name: str, band_count: int, default: int) -> int:
        """Read a per-sample tag and require the same value for every band."""
        tag = self.ifd.get(code)
        if tag is None:
            return default
        values = tag.as_ints()
        if len(values) not in (1, band_count):
            raise InvalidFormat(
                f"{name} ({code}) has {len(values)} values but SamplesPerPixel is {band_count}"
            )
        if len(set(values)) != 1:
            raise InvalidFormat(f"{name} ({code}) differs between bands: {list(values)}")
        return values[0]

    def _layout(self, width: int, height: int, band_count: int, planar_config: int,
                predictor: int) -> RasterLayout:
        tiled = TILE_WIDTH in self.ifd or TILE_OFFSETS in self.ifd
        if tiled:
            block_width = self._int_tag(TILE_WIDTH, 'TileWidth')
            block_height = self._int_tag(TILE_LENGTH, 'TileLength')
            offsets = self.ifd.require(TILE_OFFSETS, 'TileOffsets').as_ints()
            counts = self.ifd.require(TILE_BYTE_COUNTS, 'TileByteCounts').as_ints()
            kind = 'tile'
        else:
            block_width = width
            block_height = min(self._int_tag(ROWS_PER_STRIP, 'RowsPerStrip', default=height), height)
            offsets = self.ifd.require(STRIP_OFFSETS, 'StripOffsets').as_ints()
            counts = self.ifd.require(STRIP_BYTE_COUNTS, 'StripByteCounts').as_ints()
            kind = 'strip'

        if block_width <= 0 or block_height <= 0:
            raise InvalidFormat(f"Invalid {kind} size {block_width} x {block_height}")
        if len(offsets) != len(counts):
            raise InvalidFormat(f"{len(offsets)} {kind} offsets but {len(counts)} byte counts")

        layout = RasterLayout(
            byte_order=self.byte_order,
            bigtiff=self.bigtiff,
            tiled=tiled,
            block_width=block_width,
            block_height=block_height,
            planar_config=planar_config,
            predictor=predictor,
            offsets=tuple(offsets),
            byte_counts=tuple(counts),
        )

        planes = band_count if planar_config == 2 else 1
        needed = layout.blocks_across(width) * layout.blocks_down(height) * planes
        if len(offsets) < needed:
            raise InvalidFormat(f"Raster needs {needed} {kind}s but only {len(offsets)} are listed")
        return layout

    def assemble(self) -> GeoTiffDetails:
        """
        Build the GeoTiffDetails for IFD 0.

        Raises:
            InvalidFormat: for missing or inconsistent structural tags.
        """
        width = self._int_tag(IMAGE_WIDTH, 'ImageWidth')
        height = self._int_tag(IMAGE_LENGTH, 'ImageLength')
        band_count = self._int_tag(SAMPLES_PER_PIXEL, 'SamplesPerPixel', default=1)
        if width <= 0 or height <= 0:
            raise InvalidFormat(f"Invalid raster dimensions {width} x {height}")
        if band_count < 1:
            raise InvalidFormat(f"SamplesPerPixel must be at least 1, got {band_count}")

        bits_per_sample = self._per_sample(BITS_PER_SAMPLE, 'BitsPerSample', band_count, default=1)
        sample_format = self._per_sample(SAMPLE_FORMAT, 'SampleFormat', band_count, default=1)
        kind = SAMPLE_FORMAT_KINDS.get(sample_format)
        if kind is None:
            raise InvalidFormat(f"SampleFormat {sample_format} is not supported")
        if bits_per_sample not in SUPPORTED_BITS[kind]:
            raise InvalidFormat(
                f"BitsPerSample {bits_per_sample} is not supported for SampleFormat {sample_format}"
            )

        compression = self._int_tag(COMPRESSION, 'Compression', default=1)
        planar_config = self._int_tag(PLANAR_CONFIGURATION, 'PlanarConfiguration', default=1)
        if planar_config not in (1, 2):
            raise InvalidFormat(f"PlanarConfiguration {planar_config} is not supported")
        predictor = self._int_tag(PREDICTOR, 'Predictor', default=1)

        layout = self._layout(width, height, band_count, planar_config, predictor)

        nodata_tag = self.ifd.get(GDAL_NODATA)
        nodata = parse_nodata(nodata_tag.as_str()) if nodata_tag is not None else None

        details = GeoTiffDetails(
            path=self.path,
            width=width,
            height=height,
            band_count=band_count,
            geo_transform=self.georeference.geo_transform,
            crs=self.georeference.crs,
            nodata=nodata,
            bits_per_sample=bits_per_sample,
            sample_format=sample_format,
            compression=compression,
            layout=layout,
            ifd_count=len(self.ifds),
            geokeys=self.georeference.geokeys,
        )
        logger.debug(
            f"Assembled details for {self.path}: {width} x {height} x {band_count}, "
            f"{details.dtype()}, nodata={nodata}"
        )
        return details

