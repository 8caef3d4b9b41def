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
Styled Layer Descriptor (SLD) Builder.

Produces an OGC SLD 1.0.0 document that styles a single-band raster with a
color ramp, as consumed by GeoServer and QGIS. Each `(quantity, color)` rule
becomes one `ColorMapEntry` of the `RasterSymbolizer` color map.
"""
import numbers
import re
import lxml.etree as etree
from typing import Iterable, Optional, Tuple, Union

SLD_NS = 'http://www.opengis.net/sld'
OGC_NS = 'http://www.opengis.net/ogc'
XLINK_NS = 'http://www.w3.org/1999/xlink'
XSI_NS = 'http://www.w3.org/2001/XMLSchema-instance'
SLD_SCHEMA = 'http://www.opengis.net/sld http://schemas.opengis.net/sld/1.0.0/StyledLayerDescriptor.xsd'

NSMAP = {None: SLD_NS, 'ogc': OGC_NS, 'xlink': XLINK_NS, 'xsi': XSI_NS}

HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')

ColorRule = Tuple[Union[int, float], str]


def _normalize_color(color: str) -> str:
    """Return a '#rrggbb' color, expanding the '#rgb' shorthand."""
    if not HEX_COLOR.match(color):
        raise ValueError(f"Color must be a hex string like '#ff0000', got {color!r}")
    if len(color) == 4:
        color = '#' + ''.join(c * 2 for c in color[1:])
    return color.lower()


def _format_quantity(quantity: Union[int, float]) -> str:
    """Shortest exact text for a rule quantity."""
    if isinstance(quantity, numbers.Integral):
        return str(int(quantity))
    return repr(float(quantity))


def _sub(parent, tag: str, text: Optional[str] = None, **attrib) -> etree._Element:
    element = etree.SubElement(parent, f'{{{SLD_NS}}}{tag}', **attrib)
    if text is not None:
        element.text = text
    return element


def styled_layer_descriptor(color_scale: Iterable[ColorRule], layer_name: str = 'raster',
                            opacity: float = 1.0, color_map_type: str = 'ramp') -> str:
    """
    Build an SLD 1.0.0 document for a raster color map.

    Args:
        color_scale: (quantity, color) rules; colors are '#rrggbb' or '#rgb'.
        layer_name: Name of the NamedLayer and of the style.
        opacity: Raster opacity between 0 and 1.
        color_map_type: 'ramp', 'intervals' or 'values'.

    Returns:
        The SLD as a UTF-8 XML string with an XML declaration.

    Raises:
        ValueError: for an empty scale, a bad color, an opacity outside
            [0, 1] or an unknown color map type.

    Example:
        >>> xml = styled_layer_descriptor([(0, '#0000ff'), (30, '#ff0000')], layer_name='MAT')
        >>> '<ColorMapEntry color="#0000ff" quantity="0"/>' in xml
        True
    """
    rules = sorted(((q, _normalize_color(c)) for q, c in color_scale), key=lambda rule: rule[0])
    if not rules:
        raise ValueError("The color scale needs at least one (quantity, color) rule")
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"Opacity must be between 0 and 1, got {opacity}")
    if color_map_type not in ('ramp', 'intervals', 'values'):
        raise ValueError(f"Unknown color map type {color_map_type!r}")

    root = etree.Element(f'{{{SLD_NS}}}StyledLayerDescriptor', nsmap=NSMAP, version='1.0.0')
    root.set(f'{{{XSI_NS}}}schemaLocation', SLD_SCHEMA)

    named_layer = _sub(root, 'NamedLayer')
    _sub(named_layer, 'Name', layer_name)
    user_style = _sub(named_layer, 'UserStyle')
    _sub(user_style, 'Name', layer_name)
    _sub(user_style, 'Title', layer_name)
    rule = _sub(_sub(user_style, 'FeatureTypeStyle'), 'Rule')
    symbolizer = _sub(rule, 'RasterSymbolizer')
    _sub(symbolizer, 'Opacity', f'{opacity:g}')

    color_map = _sub(symbolizer, 'ColorMap')
    if color_map_type != 'ramp':
        color_map.set('type', color_map_type)
    for quantity, color in rules:
        _sub(color_map, 'ColorMapEntry', color=color, quantity=_format_quantity(quantity))

    return etree.tostring(root, encoding='UTF-8', xml_declaration=True, pretty_print=True).decode('utf-8')
