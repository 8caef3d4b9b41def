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
Decompression of TIFF strip/tile payloads.

Supported schemes (TIFF Compression tag values):
    1      Uncompressed
    5      LZW
    8      DEFLATE (Adobe)
    32946  DEFLATE (legacy code)
    32773  PackBits

LZW and PackBits are decoded with imagecodecs, the codec library behind
tifffile.
"""

import zlib
from typing import Callable, Dict
import imagecodecs
from gtsk.utils.exceptions import InvalidFormat, UnsupportedCompression
from gtsk.utils.tiff_tag_parser import COMPRESSION_NAMES


def decode_none(data: bytes) -> bytes:
    return data


def decode_lzw(data: bytes) -> bytes:
    """Decode a TIFF LZW-compressed block."""
    try:
        return bytes(imagecodecs.lzw_decode(data))
    except imagecodecs.LzwError as e:
        raise InvalidFormat(f"Corrupt LZW block: {e}") from e


def decode_packbits(data: bytes) -> bytes:
    """Decode a PackBits run-length encoded block."""
    try:
        return bytes(imagecodecs.packbits_decode(data))
    except imagecodecs.PackbitsError as e:
        raise InvalidFormat(f"Corrupt PackBits block: {e}") from e


def decode_deflate(data: bytes) -> bytes:
    """Decode a zlib/DEFLATE block."""
    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise InvalidFormat(f"Corrupt DEFLATE block: {e}") from e


DECOMPRESSORS: Dict[int, Callable[[bytes], bytes]] = {
    1: decode_none,
    5: decode_lzw,
    8: decode_deflate,
    32946: decode_deflate,
    32773: decode_packbits,
}


def get_decompressor(compression: int) -> Callable[[bytes], bytes]:
    """
    Return the decoder for a TIFF compression code.

    Raises:
        UnsupportedCompression: for any code not in DECOMPRESSORS.
    """
    try:
        return DECOMPRESSORS[compression]
    except KeyError:
        name = COMPRESSION_NAMES.get(compression, 'Unknown')
        raise UnsupportedCompression(f"Compression {compression} ({name}) is not supported") from None
