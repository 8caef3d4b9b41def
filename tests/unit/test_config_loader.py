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
Unit tests for the configuration singleton.
"""

import pytest
from gtsk.utils.config_loader import Config, config


@pytest.mark.unit
class TestConfig:
    """Test configuration lookups."""

    def test_singleton(self):
        """Test that Config() always returns the same instance."""
        assert Config() is config

    def test_packaged_values(self):
        """Test values from the packaged config.toml."""
        assert config.get('parser.max_ifds') == 1024
        assert config.get('logging.level') == 'INFO'

    def test_unset_value_uses_default(self):
        """Test that an unset sampling.decimals falls back to the default."""
        assert config.get('sampling.decimals') is None
        assert config.get('sampling.decimals', 3) == 3

    def test_missing_key(self):
        """Test a key that does not exist."""
        assert config.get('parser.unknown', 'fallback') == 'fallback'
        assert config.get('nope.nothing') is None

