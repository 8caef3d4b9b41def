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
GeoKey Parser and GeoReference Resolver.

Extracts georeferencing from the tags of the main IFD:
- GeoKeys from the GeoKeyDirectoryTag (34735) and its GeoDoubleParamsTag
  (34736) / GeoAsciiParamsTag (34737) value stores
- The affine GeoTransform, from ModelTransformationTag (34264) or from
  ModelPixelScaleTag (33550) combined with ModelTiepointTag (33922)
- The coordinate reference system, from ProjectedCRSGeoKey (3072) or
  GeodeticCRSGeoKey (2048), checked against the PROJ database via pyproj

Both GeoTIFF 1.0 and 1.1 key names are supported.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from pyproj import CRS
from pyproj.exceptions import CRSError
from gtsk.utils.data_models import CrsDescriptor, GeoKey, GeoTransform, Ifd
from gtsk.utils.exceptions import InvalidFormat, MissingGeoReference, UnsupportedCRS

os.environ.setdefault('PROJ_NETWORK', 'OFF')  # Disable PROJ network access

logger = logging.getLogger(__name__)

# --- Lookup Tables ---
# GeoTIFF Standard v1.1: https://docs.ogc.org/is/19-008r4/19-008r4.html#_summary_of_geokey_ids_and_names

GEOKEY_NAMES = {
    # GeoTIFF Configuration Keys
    1024: 'GTModelTypeGeoKey',
    1025: 'GTRasterTypeGeoKey',
    1026: 'GTCitationGeoKey',
    # Geographic CRS Parameter Keys
    2048: 'GeodeticCRSGeoKey',
    2049: 'GeodeticCitationGeoKey',
    2050: 'GeodeticDatumGeoKey',
    2051: 'PrimeMeridianGeoKey',
    2052: 'GeogLinearUnitsGeoKey',
    2054: 'GeogAngularUnitsGeoKey',
    2056: 'EllipsoidGeoKey',
    2057: 'EllipsoidSemiMajorAxisGeoKey',
    2058: 'EllipsoidSemiMinorAxisGeoKey',
    2059: 'EllipsoidInvFlatteningGeoKey',
    # Projected CRS Parameter Keys
    3072: 'ProjectedCRSGeoKey',
    3073: 'ProjectedCitationGeoKey',
    3074: 'ProjectionGeoKey',
    3075: 'ProjMethodGeoKey',
    3076: 'ProjLinearUnitsGeoKey',
    # Vertical CRS Parameter Keys
    4096: 'VerticalGeoKey',
    4097: 'VerticalCitationGeoKey',
    4098: 'VerticalDatumGeoKey',
    4099: 'VerticalUnitsGeoKey',
}

# Mapping of GeoTIFF key names to their v1.0 equivalents
GEOKEY_v1_0_MAP = {
    'GeodeticCRSGeoKey': 'GeographicTypeGeoKey',
    'GeodeticCitationGeoKey': 'GeogCitationGeoKey',
    'GeodeticDatumGeoKey': 'GeogGeodeticDatumGeoKey',
    'PrimeMeridianGeoKey': 'GeogPrimeMeridianGeoKey',
    'EllipsoidGeoKey': 'GeogEllipsoidGeoKey',
    'ProjectedCRSGeoKey': 'ProjectedCSTypeGeoKey',
    'ProjectedCitationGeoKey': 'PCSCitationGeoKey',
    'ProjMethodGeoKey': 'ProjCoordTransGeoKey',
    'VerticalGeoKey': 'VerticalCSTypeGeoKey',
}

MODEL_TYPE_KEY = 1024
RASTER_TYPE_KEY = 1025
CITATION_KEY = 1026
GEODETIC_CRS_KEY = 2048
GEODETIC_CITATION_KEY = 2049
PROJECTED_CRS_KEY = 3072
PROJECTED_CITATION_KEY = 3073

MODEL_TYPE_PROJECTED = 1
MODEL_TYPE_GEOGRAPHIC = 2
MODEL_TYPE_GEOCENTRIC = 3
RASTER_PIXEL_IS_POINT = 2

GEOKEY_DIRECTORY_TAG = 34735
GEO_DOUBLE_TAG = 34736
GEO_ASCII_TAG = 34737
MODEL_PIXEL_SCALE_TAG = 33550
MODEL_TIEPOINT_TAG = 33922
MODEL_TRANSFORMATION_TAG = 34264

GEOREFERENCE_TAGS = {MODEL_PIXEL_SCALE_TAG, MODEL_TIEPOINT_TAG, MODEL_TRANSFORMATION_TAG}

# GeoTIFF "User-Defined" value
KvUserDefined = 32767


class GeoKeyParser:
    """A parser for the GeoKey directory of a TIFF IFD."""

    def __init__(self, ifd: Ifd):
        """
        Args:
            ifd: The IFD carrying the GeoKey tags (normally IFD 0).
        """
        self.ifd = ifd

    def parse_geokey_directory(self) -> Tuple[Optional[str], List[GeoKey]]:
        """
        Parse GeoKeyDirectoryTag (34735) and related tags to extract GeoKeys.

        Returns:
            Tuple[version, geokeys] where:
                - version: GeoTIFF key revision ("1.0", "1.1") or None when
                  the IFD has no GeoKey directory
                - geokeys: List of GeoKey instances in directory order

        Raises:
            InvalidFormat: if the directory header or an entry is malformed.
        """
        directory_tag = self.ifd.get(GEOKEY_DIRECTORY_TAG)
        if directory_tag is None:
            return None, []

        directory = directory_tag.as_ints()
        if len(directory) < 4:
            raise InvalidFormat(f"GeoKeyDirectoryTag holds {len(directory)} values, header needs 4")

        _, key_revision, minor_revision, num_keys = directory[:4]
        if len(directory) < 4 + 4 * num_keys:
            raise InvalidFormat(
                f"GeoKeyDirectoryTag declares {num_keys} keys but holds only {(len(directory) - 4) // 4}"
            )
        version_info = f"{key_revision}.{minor_revision}"
        use_v1_0_names = version_info == "1.0"

        double_params = self.ifd.get(GEO_DOUBLE_TAG)
        ascii_params = self.ifd.get(GEO_ASCII_TAG)

        keys: List[GeoKey] = []
        for i in range(num_keys):
            key_id, tag_loc, count, value_offset = directory[4 + i * 4:8 + i * 4]
            key_name = GEOKEY_NAMES.get(key_id, f"UnknownGeoKey ({key_id})")
            if use_v1_0_names:
                key_name = GEOKEY_v1_0_MAP.get(key_name, key_name)

            value = self._get_geokey_value(key_name, tag_loc, value_offset, count, directory, double_params, ascii_params)
            keys.append(GeoKey(id=key_id, name=key_name, value=value, location=tag_loc, count=count))

        logger.debug(f"GeoKey directory v{version_info}: {len(keys)} keys")
        return version_info, keys

    def _get_geokey_value(self, key_name, tag_loc, value_offset, count, directory, double_params, ascii_params):
        """Extracts a GeoKey value from the appropriate tag."""
        if tag_loc == 0:
            return value_offset

        if tag_loc == GEOKEY_DIRECTORY_TAG:
            values = directory[value_offset:value_offset + count]
            if len(values) != count:
                raise InvalidFormat(f"{key_name} reads past the end of GeoKeyDirectoryTag")
            return values[0] if count == 1 else values

        if tag_loc == GEO_DOUBLE_TAG:
            if double_params is None:
                raise InvalidFormat(f"{key_name} refers to missing GeoDoubleParamsTag")
            values = double_params.as_floats()[value_offset:value_offset + count]
            if len(values) != count:
                raise InvalidFormat(f"{key_name} reads past the end of GeoDoubleParamsTag")
            return values[0] if count == 1 else values

        if tag_loc == GEO_ASCII_TAG:
            if ascii_params is None:
                raise InvalidFormat(f"{key_name} refers to missing GeoAsciiParamsTag")
            text = ascii_params.as_str()[value_offset:value_offset + count]
            return text.rstrip('\x00|')

        raise InvalidFormat(f"{key_name} stored in unsupported tag {tag_loc}")


@dataclass(frozen=True)
class GeoReference:
    """Result of georeference resolution for one IFD."""
    geo_transform: GeoTransform
    crs: CrsDescriptor
    geokeys: Tuple[GeoKey, ...]
    version: Optional[str] = None


class GeoReferenceResolver:
    """
    Builds the GeoTransform and CRS descriptor of an IFD.

    Example:
        >>> resolver = GeoReferenceResolver(ifds[0])
        >>> ref = resolver.resolve()
        >>> ref.crs.to_string()
        'EPSG:4326'
    """

    def __init__(self, ifd: Ifd):
        self.ifd = ifd

    def resolve(self) -> GeoReference:
        """Resolve the GeoTransform and the CRS."""
        version, geokeys = GeoKeyParser(self.ifd).parse_geokey_directory()
        keys = {key.id: key.value for key in geokeys}
        geo_transform = self.build_geo_transform(keys)
        crs = self.resolve_crs(keys)
        return GeoReference(geo_transform=geo_transform, crs=crs, geokeys=tuple(geokeys), version=version)

    def build_geo_transform(self, keys: Optional[Dict[int, object]] = None) -> GeoTransform:
        """
        Build the pixel-to-model affine transform.

        The ModelTransformationTag is used directly when present; otherwise
        ModelPixelScaleTag and the first ModelTiepointTag are combined under a
        north-up assumption. For RasterPixelIsPoint rasters the origin moves
        half a pixel up and left so that pixel centres fall on the tie point
        grid, as GDAL does.

        Raises:
            MissingGeoReference: if neither form of georeferencing is present.
        """
        keys = keys or {}
        transformation = self.ifd.get(MODEL_TRANSFORMATION_TAG)
        scale = self.ifd.get(MODEL_PIXEL_SCALE_TAG)
        tiepoint = self.ifd.get(MODEL_TIEPOINT_TAG)

        if transformation is not None:
            m = transformation.as_floats()
            if len(m) < 16:
                raise InvalidFormat(f"ModelTransformationTag holds {len(m)} values, expected 16")
            gt = [m[3], m[0], m[1], m[7], m[4], m[5]]
        elif scale is not None and tiepoint is not None:
            s = scale.as_floats()
            t = tiepoint.as_floats()
            if len(s) < 2:
                raise InvalidFormat(f"ModelPixelScaleTag holds {len(s)} values, expected 3")
            if len(t) < 6:
                raise InvalidFormat(f"ModelTiepointTag holds {len(t)} values, expected 6")
            i, j, _, x, y, _ = t[:6]
            pixel_width, pixel_height = s[0], s[1]
            gt = [x - i * pixel_width, pixel_width, 0.0, y + j * pixel_height, 0.0, -pixel_height]
        elif tiepoint is not None:
            raise MissingGeoReference("ModelTiepointTag present without ModelPixelScaleTag")
        else:
            raise MissingGeoReference(
                "No georeferencing tags (ModelTransformationTag or ModelPixelScaleTag + ModelTiepointTag)"
            )

        if keys.get(RASTER_TYPE_KEY) == RASTER_PIXEL_IS_POINT:
            gt[0] -= 0.5 * gt[1] + 0.5 * gt[2]
            gt[3] -= 0.5 * gt[4] + 0.5 * gt[5]

        return GeoTransform(*gt)

    def resolve_crs(self, keys: Dict[int, object]) -> CrsDescriptor:
        """
        Resolve the CRS from the projected or geodetic CRS GeoKey.

        Raises:
            UnsupportedCRS: for user-defined or unknown EPSG codes, and for
                geocentric model types.
        """
        model_type = keys.get(MODEL_TYPE_KEY)
        if model_type == MODEL_TYPE_GEOCENTRIC:
            raise UnsupportedCRS("Geocentric model type (GTModelTypeGeoKey = 3) is not supported")

        if PROJECTED_CRS_KEY in keys:
            code, kind = keys[PROJECTED_CRS_KEY], 'projected'
            citation = keys.get(PROJECTED_CITATION_KEY) or keys.get(CITATION_KEY)
        elif GEODETIC_CRS_KEY in keys:
            code, kind = keys[GEODETIC_CRS_KEY], 'geographic'
            citation = keys.get(GEODETIC_CITATION_KEY) or keys.get(CITATION_KEY)
        else:
            kind = {MODEL_TYPE_PROJECTED: 'projected', MODEL_TYPE_GEOGRAPHIC: 'geographic'}.get(model_type, 'unknown')
            logger.debug(f"No CRS GeoKey present; CRS kind '{kind}'")
            return CrsDescriptor(epsg=None, kind=kind, citation=keys.get(CITATION_KEY))

        if not isinstance(code, int):
            raise UnsupportedCRS(f"CRS GeoKey holds a non-integer value {code!r}")
        if code == KvUserDefined:
            raise UnsupportedCRS(
                f"User-defined {kind} CRS (code {KvUserDefined}) cannot be resolved"
                + (f": {citation}" if citation else "")
            )

        try:
            crs = CRS.from_epsg(code)
        except CRSError as e:
            raise UnsupportedCRS(f"EPSG:{code} is not a known {kind} CRS: {e}") from e

        return CrsDescriptor(epsg=code, kind=kind, name=crs.name, citation=citation)
