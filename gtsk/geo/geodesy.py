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
Spherical geodesy helpers.

Small, stateless formulas used alongside the sampler:
    distance: great-circle (haversine) distance in kilometres
    geo_to_3d: geographic to Cartesian coordinates for 3D scenes
    get_closest: nearest item of a collection to a point
"""

import copy
import math
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, TypeVar

EARTH_RADIUS_KM = 6371.0

T = TypeVar('T')


def _round(value: float, decimals: Optional[int]) -> float:
    return value if decimals is None else round(value, decimals)


def distance(lon1: float, lat1: float, lon2: float, lat2: float,
             decimals: Optional[int] = None) -> float:
    """
    Great-circle distance between two points using the haversine formula.

    Args:
        lon1, lat1: First point (decimal degrees)
        lon2, lat2: Second point (decimal degrees)
        decimals: Round the result to this many decimals

    Returns:
        Distance in kilometres on a sphere of radius 6371 km.

    Example:
        >>> distance(-73.66, 45.51, -79.43, 43.66, decimals=0)
        501.0
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + \
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    # rounding can push near-antipodal points just above 1
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return _round(EARTH_RADIUS_KM * c, decimals)


def geo_to_3d(lon: float, lat: float, radius: float = 1.0,
              decimals: Optional[int] = None) -> Dict[str, float]:
    """
    Convert longitude/latitude to Cartesian coordinates on a sphere.

    The y axis points to the north pole. Longitude is negated so that a scene
    looking down the z axis sees east on the right, as WebGL scene graphs
    expect.

    Returns:
        {'x': ..., 'y': ..., 'z': ...}
    """
    lat_rad = math.radians(lat)
    lon_rad = math.radians(-lon)
    x = radius * math.cos(lat_rad) * math.cos(lon_rad)
    y = radius * math.sin(lat_rad)
    z = radius * math.cos(lat_rad) * math.sin(lon_rad)
    return {'x': _round(x, decimals), 'y': _round(y, decimals), 'z': _round(z, decimals)}


def get_closest(lon: float, lat: float, items: Sequence[T],
                get_item_lon_lat: Callable[[T], Tuple[float, float]],
                add_distance: bool = False,
                decimals: Optional[int] = None) -> Optional[Any]:
    """
    Find the item closest to (lon, lat).

    Args:
        lon, lat: Query point (decimal degrees)
        items: Candidate items
        get_item_lon_lat: Returns (lon, lat) for an item
        add_distance: Return a copy of the winner with its distance in km,
            stored under `properties['distance']` when the item is a mapping
            with a `properties` mapping (GeoJSON features), else under
            `distance`
        decimals: Round the recorded distance

    Returns:
        The closest item (the first one on ties), or None if `items` is empty.
    """
    closest = None
    closest_distance = math.inf
    for item in items:
        item_lon, item_lat = get_item_lon_lat(item)
        d = distance(lon, lat, item_lon, item_lat)
        if d < closest_distance:
            closest, closest_distance = item, d

    if closest is None or not add_distance:
        return closest

    result = copy.deepcopy(closest)
    rounded = _round(closest_distance, decimals)
    if isinstance(result, dict):
        if isinstance(result.get('properties'), dict):
            result['properties']['distance'] = rounded
        else:
            result['distance'] = rounded
    else:
        setattr(result, 'distance', rounded)
    return result
