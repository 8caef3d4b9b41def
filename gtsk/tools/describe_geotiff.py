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
GeoTIFF Description Tool for GTSK.

This module powers the 'describe' command and the `gtsk.describe` function.
It parses the TIFF header and IFD chain, resolves the georeference of the main
image and assembles the immutable GeoTiffDetails handle that `sample` takes.
No pixel data is read here.
"""

import json
import logging
from pathlib import Path
from typing import List, Union
from gtsk.utils.data_models import GeoTiffDetails, Ifd
from gtsk.utils.details_assembler import DetailsAssembler
from gtsk.utils.geokey_parser import GeoReferenceResolver
from gtsk.utils.script_arguments import DescribeArguments
from gtsk.utils.tiff_tag_parser import TiffTagParser, format_tag_value, interpret_tag

logger = logging.getLogger('describe_geotiff')


def describe(path: Union[str, Path]) -> GeoTiffDetails:
    """
    Describe a GeoTIFF.

    Args:
        path: Path to the GeoTIFF file.

    Returns:
        GeoTiffDetails for the main image (IFD 0).

    Raises:
        FileNotFoundError: if the file does not exist.
        OSError: if the file cannot be read.
        InvalidFormat: for a corrupt header, directory or tag.
        MissingGeoReference: if the image carries no georeferencing.
        UnsupportedCRS: for user-defined or unknown CRS codes.
    """
    filepath = Path(path)
    if not filepath.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    canonical = str(filepath.resolve())

    with TiffTagParser(canonical) as parser:
        ifds = parser.parse()
        byte_order, bigtiff = parser.byte_order, parser.bigtiff

    georeference = GeoReferenceResolver(ifds[0]).resolve()
    details = DetailsAssembler(canonical, ifds, georeference, byte_order, bigtiff).assemble()
    logger.debug(f"Described {canonical}: {details.to_dict()}")
    return details


def format_tags(ifd: Ifd) -> List[str]:
    """One line per tag of an IFD: code, name, type, count and value."""
    lines = []
    for tag in ifd.tags:
        value = format_tag_value(tag)
        meaning = interpret_tag(tag)
        if meaning:
            value = f"{value} ({meaning})"
        lines.append(f"  {tag.code:>5}  {tag.name:<28} {tag.type.name:<9} {tag.count:>6}  {value}")
    return lines


def format_details(details: GeoTiffDetails) -> str:
    """Human-readable summary of a GeoTiffDetails."""
    info = details.to_dict()
    gt = details.geo_transform
    west, south, east, north = details.bounding_box()
    lines = [
        f"File:           {info['path']}",
        f"Size:           {details.width} x {details.height} pixels, {details.band_count} band(s)",
        f"Data type:      {info['data_type']} ({details.bits_per_sample}-bit)",
        f"Compression:    {info['compression']} (predictor {details.layout.predictor})",
        f"Layout:         {'tiles' if details.layout.tiled else 'strips'} {details.layout.block_size()}, "
        f"planar config {details.layout.planar_config}",
        f"Byte order:     {info['byte_order']}{', BigTIFF' if details.layout.bigtiff else ''}",
        f"IFDs:           {details.ifd_count}",
        f"CRS:            {info['crs'] or 'unknown'}" + (f" ({details.crs.name})" if details.crs.name else ""),
        f"Origin:         ({gt.x_origin}, {gt.y_origin})",
        f"Pixel size:     ({gt.pixel_width}, {gt.pixel_height})",
        f"Bounds:         W {west}, S {south}, E {east}, N {north}",
        f"NoData:         {info['nodata'] if info['nodata'] is not None else 'none'}",
    ]
    return "\n".join(lines)


def describe_geotiff(args: DescribeArguments) -> GeoTiffDetails:
    """Run the describe command and print the result."""
    details = describe(args.input_path)
    if args.json:
        print(json.dumps(details.to_dict(), indent=2))
    else:
        print(format_details(details))

    if args.tags:
        with TiffTagParser(details.path) as parser:
            ifds = parser.parse()
        for ifd in ifds:
            print(f"\nIFD {ifd.index} (offset {ifd.offset}):")
            print("\n".join(format_tags(ifd)))
    return details
