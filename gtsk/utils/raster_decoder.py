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
Raster Decoder.

Reconstructs full per-band sample arrays of the main image from its strip or
tile payloads:
    1. read each block's compressed bytes from the file
    2. decompress (see decompressors.py)
    3. undo the predictor (horizontal or floating-point differencing)
    4. copy the block into the band arrays, cropping edge padding

Both planar configurations are handled: chunky blocks carry every band and
are decoded once for all bands; separate planes are decoded only for the
bands that are asked for.
"""

import logging
import numpy as np
from typing import BinaryIO, Dict, Iterable
from gtsk.utils.data_models import GeoTiffDetails, RasterBand
from gtsk.utils.decompressors import get_decompressor
from gtsk.utils.exceptions import InvalidFormat

logger = logging.getLogger(__name__)

PLANAR_CHUNKY = 1
PLANAR_SEPARATE = 2

PREDICTOR_NONE = 1
PREDICTOR_HORIZONTAL = 2
PREDICTOR_FLOATING_POINT = 3


def undo_horizontal_predictor(block: np.ndarray) -> np.ndarray:
    """
    Reverse horizontal differencing on a (rows, cols, samples) integer block.

    Each sample channel is accumulated along the row; integer overflow wraps
    around exactly as the encoder's subtraction did.
    """
    return np.cumsum(block, axis=1, dtype=block.dtype)


def undo_floating_point_predictor(raw: np.ndarray, cols: int, samples: int, nbytes: int) -> np.ndarray:
    """
    Reverse the floating-point predictor (Adobe TIFF Technote 3).

    Args:
        raw: (rows, cols * samples * nbytes) uint8 array as decompressed
        cols: Block width in pixels
        samples: Samples per pixel stored in the block
        nbytes: Bytes per sample

    Returns:
        (rows, cols, samples) float array in native byte order.
    """
    rows = raw.shape[0]
    values_per_row = cols * samples
    # byte-wise differencing with a stride of one pixel
    summed = np.cumsum(raw.reshape(rows, -1, samples), axis=1, dtype=np.uint8)
    # bytes were split into planes, most significant byte first
    planes = summed.reshape(rows, nbytes, values_per_row)
    big_endian = np.ascontiguousarray(planes.transpose(0, 2, 1))
    values = big_endian.view(f'>f{nbytes}').reshape(rows, cols, samples)
    return values.astype(values.dtype.newbyteorder('='))


class RasterDecoder:
    """
    Decodes the bands of the main image described by a GeoTiffDetails handle.

    Example:
        >>> decoder = RasterDecoder(details)
        >>> bands = decoder.decode_bands([0])
        >>> bands[0].data.shape == (details.height, details.width)
        True
    """

    def __init__(self, details: GeoTiffDetails):
        self.details = details
        self.layout = details.layout
        self.decompress = get_decompressor(details.compression)
        self.file_dtype = details.file_dtype()
        self.native_dtype = details.dtype()
        self.nbytes = details.bits_per_sample // 8

        if self.layout.predictor == PREDICTOR_HORIZONTAL and self.file_dtype.kind == 'f':
            raise InvalidFormat("Predictor 2 (horizontal differencing) is not defined for floating-point samples")
        if self.layout.predictor == PREDICTOR_FLOATING_POINT and self.file_dtype.kind != 'f':
            raise InvalidFormat("Predictor 3 (floating point) requires floating-point samples")
        if self.layout.predictor not in (PREDICTOR_NONE, PREDICTOR_HORIZONTAL, PREDICTOR_FLOATING_POINT):
            raise InvalidFormat(f"Predictor {self.layout.predictor} is not supported")

    def decode_bands(self, band_indices: Iterable[int]) -> Dict[int, RasterBand]:
        """
        Decode the requested bands (0-based) into read-only RasterBand objects.

        For chunky rasters every band is decoded (the blocks interleave them),
        so the result may contain more bands than requested.
        """
        wanted = sorted(set(band_indices))
        for band in wanted:
            if not 0 <= band < self.details.band_count:
                raise IndexError(f"Band {band} out of range for {self.details.band_count} band(s)")

        if self.layout.planar_config == PLANAR_CHUNKY:
            planes = list(range(self.details.band_count))
        elif self.layout.planar_config == PLANAR_SEPARATE:
            planes = wanted
        else:
            raise InvalidFormat(f"PlanarConfiguration {self.layout.planar_config} is not supported")

        arrays = {band: self._empty_band() for band in planes}
        logger.debug(
            f"Decoding band(s) {planes} of {self.details.path} "
            f"({'tiles' if self.layout.tiled else 'strips'} {self.layout.block_size()}, "
            f"compression {self.details.compression}, predictor {self.layout.predictor})"
        )

        with open(self.details.path, 'rb') as stream:
            if self.layout.planar_config == PLANAR_CHUNKY:
                self._decode_plane(stream, plane=0, samples=self.details.band_count, targets=arrays)
            else:
                for band in planes:
                    self._decode_plane(stream, plane=band, samples=1, targets={0: arrays[band]})

        result = {}
        for band, data in arrays.items():
            data.setflags(write=False)
            result[band] = RasterBand(
                index=band,
                data=data,
                bits_per_sample=self.details.bits_per_sample,
                sample_format=self.details.sample_format,
            )
        return result

    def _empty_band(self) -> np.ndarray:
        return np.zeros((self.details.height, self.details.width), dtype=self.native_dtype)

    def _decode_plane(self, stream: BinaryIO, plane: int, samples: int, targets: Dict[int, np.ndarray]):
        """Decode every block of one plane and scatter it into `targets`."""
        width, height = self.details.width, self.details.height
        block_w, block_h = self.layout.block_width, self.layout.block_height
        across = self.layout.blocks_across(width)
        down = self.layout.blocks_down(height)
        first = plane * across * down

        for by in range(down):
            row0 = by * block_h
            rows_valid = min(block_h, height - row0)
            # strips hold only the remaining rows; tiles are always padded
            block_rows = block_h if self.layout.tiled else rows_valid
            for bx in range(across):
                col0 = bx * block_w
                cols_valid = min(block_w, width - col0)
                index = first + by * across + bx
                block = self._decode_block(stream, index, block_rows, block_w, samples)
                for sample, target in targets.items():
                    target[row0:row0 + rows_valid, col0:col0 + cols_valid] = \
                        block[:rows_valid, :cols_valid, sample]

    def _decode_block(self, stream: BinaryIO, index: int, rows: int, cols: int, samples: int) -> np.ndarray:
        """Read, decompress and un-predict one strip or tile."""
        kind = 'tile' if self.layout.tiled else 'strip'
        offset = self.layout.offsets[index]
        byte_count = self.layout.byte_counts[index]

        if byte_count == 0:
            # sparse block: nothing was written for it
            fill = self.details.typed_nodata()
            return np.full((rows, cols, samples), 0 if fill is None else fill, dtype=self.native_dtype)

        stream.seek(offset)
        payload = stream.read(byte_count)
        if len(payload) != byte_count:
            raise InvalidFormat(
                f"Truncated {kind} {index}: read {len(payload)} of {byte_count} bytes at offset {offset}"
            )

        decoded = self.decompress(payload)
        expected = rows * cols * samples * self.nbytes
        if len(decoded) < expected:
            raise InvalidFormat(f"{kind.capitalize()} {index} decoded to {len(decoded)} bytes, expected {expected}")
        decoded = decoded[:expected]

        if self.layout.predictor == PREDICTOR_FLOATING_POINT:
            raw = np.frombuffer(decoded, dtype=np.uint8).reshape(rows, -1)
            return undo_floating_point_predictor(raw, cols, samples, self.nbytes)

        block = np.frombuffer(decoded, dtype=self.file_dtype).reshape(rows, cols, samples)
        block = block.astype(self.native_dtype)
        if self.layout.predictor == PREDICTOR_HORIZONTAL:
            block = undo_horizontal_predictor(block)
        return block
