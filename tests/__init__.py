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
GeoTIFF Sampling Kit Test Suite.

This package contains tests for GTSK components including:
- Unit tests for individual functions and classes
- Integration tests for describe/sample workflows over generated GeoTIFFs
- End-to-end tests for CLI commands
"""
