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
TIFF Tag Parser.

Reads the binary structure of a classic TIFF or BigTIFF file:
- Byte order detection from the II/MM marker
- Magic number check (42 for classic TIFF, 43 for BigTIFF)
- Walking of the Image File Directory (IFD) chain
- Decoding of every directory entry into a typed TiffTag, following the
  value offset when the data does not fit in the entry's inline slot

Any structural problem (bad marker or magic, truncated data, IFD offsets
outside the file, a looping or runaway directory chain) raises InvalidFormat.
"""

import logging
import math
import struct
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union
from gtsk.utils.config_loader import config
from gtsk.utils.data_models import Ifd, TagType, TiffTag, TagValue
from gtsk.utils.exceptions import InvalidFormat

logger = logging.getLogger(__name__)

# Baseline, extension and GeoTIFF tags the toolkit knows by name
TIFF_TAGS: Dict[int, str] = {
    254: 'NewSubfileType',
    255: 'SubfileType',
    256: 'ImageWidth',
    257: 'ImageLength',
    258: 'BitsPerSample',
    259: 'Compression',
    262: 'PhotometricInterpretation',
    266: 'FillOrder',
    269: 'DocumentName',
    270: 'ImageDescription',
    271: 'Make',
    272: 'Model',
    273: 'StripOffsets',
    274: 'Orientation',
    277: 'SamplesPerPixel',
    278: 'RowsPerStrip',
    279: 'StripByteCounts',
    282: 'XResolution',
    283: 'YResolution',
    284: 'PlanarConfiguration',
    296: 'ResolutionUnit',
    305: 'Software',
    306: 'DateTime',
    315: 'Artist',
    317: 'Predictor',
    320: 'ColorMap',
    322: 'TileWidth',
    323: 'TileLength',
    324: 'TileOffsets',
    325: 'TileByteCounts',
    338: 'ExtraSamples',
    339: 'SampleFormat',
    340: 'SMinSampleValue',
    341: 'SMaxSampleValue',
    700: 'XMP',
    33432: 'Copyright',
    33550: 'ModelPixelScaleTag',
    33922: 'ModelTiepointTag',
    34264: 'ModelTransformationTag',
    34735: 'GeoKeyDirectoryTag',
    34736: 'GeoDoubleParamsTag',
    34737: 'GeoAsciiParamsTag',
    42112: 'GDAL_METADATA',
    42113: 'GDAL_NODATA',
}

COMPRESSION_NAMES: Dict[int, str] = {
    1: "Uncompressed",
    2: "CCITT (1D RLE)",
    3: "T4/Group 3 Fax",
    4: "T6/Group 4 Fax",
    5: "LZW",
    6: "JPEG (old-style)",
    7: "JPEG",
    8: "DEFLATE",
    32773: "PackBits",
    32946: "DEFLATE",
    34887: "LERC",
    34925: "LZMA2",
    50000: "ZSTD",
    50001: "WebP",
    52546: "JPEG XL",
}

# Tag value interpretation mappings
TAG_VALUE_MAPPINGS: Dict[int, Dict[int, str]] = {
    259: COMPRESSION_NAMES,
    262: {  # PhotometricInterpretation
        0: "WhiteIsZero",
        1: "BlackIsZero",
        2: "RGB",
        3: "RGB Palette",
        4: "Transparency Mask",
        5: "CMYK",
        6: "YCbCr",
    },
    284: {  # PlanarConfiguration
        1: "Chunky / Pixel Interleave (RGBRGB...)",
        2: "Planar / Band Interleave (RR...GG...BB...)",
    },
    317: {  # Predictor
        1: "None",
        2: "Horizontal differencing",
        3: "Floating point",
    },
    339: {  # SampleFormat
        1: "Unsigned integer",
        2: "Signed integer",
        3: "IEEE floating point",
        4: "Undefined",
    },
}

# Tags summarized rather than listed in full
BINARY_TAGS = {
    273,  # StripOffsets
    279,  # StripByteCounts
    324,  # TileOffsets
    325,  # TileByteCounts
}

CLASSIC_MAGIC = 42
BIGTIFF_MAGIC = 43


def tag_name(code: int) -> str:
    return TIFF_TAGS.get(code, f'UnknownTag ({code})')


def interpret_tag(tag: TiffTag) -> Optional[str]:
    """Return a human-readable interpretation of an enumerated tag value."""
    mapping = TAG_VALUE_MAPPINGS.get(tag.code)
    if mapping is None or not tag.type.is_integer() or not tag.value:
        return None
    return mapping.get(tag.value[0])


def format_tag_value(tag: TiffTag, max_items: int = 8) -> str:
    """Format a tag value for display, summarizing long arrays."""
    if isinstance(tag.value, bytes):
        return f"<{len(tag.value)} bytes>"
    if isinstance(tag.value, str):
        return tag.value
    if tag.code in BINARY_TAGS or len(tag.value) > max_items:
        return f"[{len(tag.value)} values]"
    values = ', '.join(str(v) for v in tag.value)
    return f"[{values}]" if tag.is_array() else values


class TiffTagParser:
    """Parser for the header and Image File Directories of a TIFF file."""

    def __init__(self, filename: Union[str, Path, None] = None, stream: Optional[BinaryIO] = None):
        """
        Initialize the TIFF parser.

        Args:
            filename: Path to the TIFF file.
            stream: An optional, already opened binary stream. It must be
                seekable; it is not closed by the parser.
        """
        self.filename = Path(filename) if filename is not None else None
        self._stream_external = stream is not None
        self.stream: BinaryIO

        if stream is not None:
            self.stream = stream
        elif filename is not None:
            filepath = Path(filename)
            if not filepath.exists():
                raise FileNotFoundError(f"File not found: {filename}")
            self.stream = open(filepath, 'rb')
        else:
            raise ValueError("Either a filename or a stream is required")

        self.stream.seek(0, 2)
        self.file_size = self.stream.tell()
        self.byte_order: str = '<'
        self.bigtiff: bool = False
        self.first_ifd_offset: int = 0

    def __enter__(self):
        """Enter the context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit the context manager and close the file."""
        self.close()

    def close(self):
        """Close the underlying file unless it was supplied by the caller."""
        if not self._stream_external and not self.stream.closed:
            self.stream.close()

    @property
    def _offset_format(self) -> str:
        return 'Q' if self.bigtiff else 'I'

    @property
    def _offset_size(self) -> int:
        return 8 if self.bigtiff else 4

    def _read(self, offset: int, size: int, what: str) -> bytes:
        """Read exactly `size` bytes at `offset` or raise InvalidFormat."""
        if offset < 0 or offset + size > self.file_size:
            raise InvalidFormat(
                f"Truncated {what}: {size} bytes at offset {offset} exceed file size {self.file_size}"
            )
        self.stream.seek(offset)
        data = self.stream.read(size)
        if len(data) != size:
            raise InvalidFormat(f"Truncated {what}: read {len(data)} of {size} bytes at offset {offset}")
        return data

    def _unpack(self, fmt: str, data: bytes) -> Tuple:
        return struct.unpack(self.byte_order + fmt, data)

    def parse_header(self) -> int:
        """
        Parse the file header and return the offset of the first IFD.

        Sets `byte_order` ('<' or '>') and `bigtiff`.
        """
        header = self._read(0, 8, 'TIFF header')
        marker = header[:2]
        if marker == b'II':
            self.byte_order = '<'
        elif marker == b'MM':
            self.byte_order = '>'
        else:
            raise InvalidFormat(f"Invalid TIFF byte-order marker {marker!r}")

        magic = self._unpack('H', header[2:4])[0]
        if magic == CLASSIC_MAGIC:
            self.bigtiff = False
            first_offset = self._unpack('I', header[4:8])[0]
            header_size = 8
        elif magic == BIGTIFF_MAGIC:
            self.bigtiff = True
            header = self._read(0, 16, 'BigTIFF header')
            offset_size, reserved = self._unpack('HH', header[4:8])
            if offset_size != 8 or reserved != 0:
                raise InvalidFormat(f"Unsupported BigTIFF offset size {offset_size}")
            first_offset = self._unpack('Q', header[8:16])[0]
            header_size = 16
        else:
            raise InvalidFormat(f"Bad TIFF magic number {magic}")

        if first_offset < header_size:
            raise InvalidFormat(f"First IFD offset {first_offset} points inside the header")

        self.first_ifd_offset = first_offset
        logger.debug(
            f"TIFF header: byte order {'II' if self.byte_order == '<' else 'MM'}, "
            f"{'BigTIFF' if self.bigtiff else 'classic'}, first IFD at {first_offset}"
        )
        return first_offset

    def parse(self, max_ifds: Optional[int] = None) -> Tuple[Ifd, ...]:
        """
        Parse the header and walk the complete IFD chain.

        Args:
            max_ifds: Upper bound on the number of directories; defaults to
                the `parser.max_ifds` configuration value.

        Returns:
            The IFDs in chain order (index 0 is the main image).
        """
        if max_ifds is None:
            max_ifds = int(config.get('parser.max_ifds', 1024))

        offset = self.parse_header()
        ifds: List[Ifd] = []
        seen = set()
        while offset != 0:
            if offset in seen:
                raise InvalidFormat(f"IFD chain loops back to offset {offset}")
            if len(ifds) >= max_ifds:
                raise InvalidFormat(f"IFD chain not terminated after {max_ifds} directories")
            seen.add(offset)
            ifd, offset = self._read_ifd(len(ifds), offset)
            ifds.append(ifd)

        logger.debug(f"Parsed {len(ifds)} IFD(s) from {self.filename or 'stream'}")
        return tuple(ifds)

    def _read_ifd(self, index: int, offset: int) -> Tuple[Ifd, int]:
        """Read one IFD and return it with the offset of the next one."""
        count_format, count_size, entry_size = ('Q', 8, 20) if self.bigtiff else ('H', 2, 12)
        what = f"IFD {index}"

        num_entries = self._unpack(count_format, self._read(offset, count_size, what))[0]
        entries = self._read(offset + count_size, num_entries * entry_size, f"{what} entries")
        next_offset = self._unpack(
            self._offset_format,
            self._read(offset + count_size + num_entries * entry_size, self._offset_size, f"{what} next-IFD offset")
        )[0]

        tags: List[TiffTag] = []
        for i in range(num_entries):
            entry = entries[i * entry_size:(i + 1) * entry_size]
            tag = self._read_entry(entry)
            if tag is not None:
                tags.append(tag)

        logger.debug(f"IFD {index} at offset {offset}: {len(tags)} tags, next IFD at {next_offset}")
        return Ifd(index=index, offset=offset, tags=tuple(tags)), next_offset

    def _read_entry(self, entry: bytes) -> Optional[TiffTag]:
        """Decode a single 12-byte (or 20-byte BigTIFF) directory entry."""
        slot_size = self._offset_size
        code, type_code = self._unpack('HH', entry[:4])
        count = self._unpack(self._offset_format, entry[4:4 + slot_size])[0]
        slot = entry[4 + slot_size:]
        name = tag_name(code)

        try:
            tag_type = TagType(type_code)
        except ValueError:
            logger.debug(f"Skipping tag {name} ({code}) with unknown field type {type_code}")
            return None

        nbytes = count * tag_type.size
        if nbytes <= slot_size:
            data = slot[:nbytes]
        else:
            value_offset = self._unpack(self._offset_format, slot)[0]
            data = self._read(value_offset, nbytes, f"tag {name} ({code})")

        return TiffTag(code=code, name=name, type=tag_type, count=count,
                       value=self._decode_value(tag_type, count, data))

    def _decode_value(self, tag_type: TagType, count: int, data: bytes) -> TagValue:
        """Convert raw entry bytes into the value variant of `tag_type`."""
        if tag_type == TagType.ASCII:
            return data.decode('ascii', 'replace').rstrip('\x00')
        if tag_type == TagType.UNDEFINED:
            return bytes(data)
        if tag_type in (TagType.RATIONAL, TagType.SRATIONAL):
            fmt = tag_type.struct_format[0]
            parts = self._unpack(f"{2 * count}{fmt}", data)
            return tuple(
                num / den if den else math.nan
                for num, den in zip(parts[0::2], parts[1::2])
            )
        return self._unpack(f"{count}{tag_type.struct_format}", data)


def read_ifds(filename: Union[str, Path]) -> Tuple[Ifd, ...]:
    """
    Convenience wrapper: parse every IFD of a TIFF file.

    Example:
        >>> ifds = read_ifds('elevation.tif')
        >>> ifds[0].require(256, 'ImageWidth').as_int()
        1024
    """
    with TiffTagParser(filename) as parser:
        return parser.parse()
