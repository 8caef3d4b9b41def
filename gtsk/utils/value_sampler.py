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
Value Sampler.

Maps a query coordinate to a pixel and reads one value per band:
    - the GeoTransform is inverted to get fractional (col, row)
    - indices are floored (nearest-sample policy, no interpolation)
    - pixels outside [0, width) x [0, height) report None for every band
    - samples equal to the NoData sentinel report None

Bands are decoded lazily through the RasterCache owned by the details handle,
so the file is read and decompressed at most once per band.
"""

import logging
import math
import numpy as np
from typing import List, Optional, Tuple, Union
from gtsk.utils.data_models import GeoTiffDetails, RasterBand
from gtsk.utils.raster_decoder import RasterDecoder

logger = logging.getLogger(__name__)

SampleValue = Optional[Union[int, float]]


def is_nodata(value: np.generic, sentinel: Optional[np.generic]) -> bool:
    """
    Compare a raw sample with the typed NoData sentinel.

    Integer samples match by exact equality. For floating-point samples a NaN
    sentinel matches NaN samples; any other sentinel matches by equality in
    the band's float type.
    """
    if sentinel is None:
        return False
    if isinstance(value, np.floating) and np.isnan(sentinel):
        return bool(np.isnan(value))
    return bool(value == sentinel)


class ValueSampler:
    """Point sampler bound to one GeoTiffDetails handle."""

    def __init__(self, details: GeoTiffDetails, decimals: Optional[int] = None):
        """
        Args:
            details: Description returned by `describe`.
            decimals: Round floating-point results to this many decimals.
        """
        self.details = details
        self.decimals = decimals

    def pixel_for(self, x: float, y: float) -> Tuple[int, int]:
        """Return the (col, row) of the pixel containing model point (x, y)."""
        col, row = self.details.geo_transform.inverse(x, y)
        return math.floor(col), math.floor(row)

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.details.width and 0 <= row < self.details.height

    def bands(self) -> List[RasterBand]:
        """Return every band of the raster, decoding on first use."""
        details = self.details
        keys = [(details.path, band) for band in range(details.band_count)]

        def load(missing):
            decoded = RasterDecoder(details).decode_bands([band for _, band in missing])
            return {(details.path, band): raster for band, raster in decoded.items()}

        return details.raster_cache.get_or_load(keys, load)

    def sample_pixel(self, col: int, row: int) -> List[SampleValue]:
        """Read the value of every band at an in-bounds pixel."""
        sentinel = self.details.typed_nodata()
        values: List[SampleValue] = []
        for band in self.bands():
            raw = band.data[row, col]
            if is_nodata(raw, sentinel):
                values.append(None)
                continue
            value = raw.item()
            if self.decimals is not None and isinstance(value, float):
                value = round(value, self.decimals)
            values.append(value)
        return values

    def sample(self, x: float, y: float) -> List[SampleValue]:
        """
        Sample every band at model point (x, y).

        Returns:
            One entry per band, in file order; None marks NoData or a point
            outside the raster extent.
        """
        col, row = self.pixel_for(x, y)
        if not self.in_bounds(col, row):
            logger.debug(
                f"Point ({x}, {y}) maps to pixel ({col}, {row}) outside "
                f"{self.details.width} x {self.details.height} raster"
            )
            return [None] * self.details.band_count
        return self.sample_pixel(col, row)
