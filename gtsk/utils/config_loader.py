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
Configuration Management for the GeoTIFF Sampling Kit.

This module provides a singleton configuration manager (`Config`) that loads,
parses, and provides access to settings from the package `config.toml` file.
Values are loaded once and shared by the parser, the sampler and the CLI.

Classes:
    Config: A singleton class for managing application-wide configuration.
"""
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class Config:
    """Singleton configuration manager"""
    _instance = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self):
        """Load configuration from config.toml"""
        config_path = Path(__file__).parent.parent / "config.toml"
        self._config = self._default_config()
        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    loaded = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning(f"Could not load config.toml: {e}")
                return
            for section, values in loaded.items():
                if isinstance(values, dict):
                    self._config.setdefault(section, {}).update(values)
                else:
                    self._config[section] = values

    def _default_config(self) -> Dict[str, Any]:
        """Default configuration if config.toml doesn't exist"""
        return {
            "parser": {
                "max_ifds": 1024,
            },
            "sampling": {
                "decimals": None,
            },
            "logging": {
                "level": "INFO",
                "file": None,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation

        Args:
            key: Configuration key in dot notation (e.g., "parser.max_ifds")
            default: Default value if key is not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("parser.max_ifds")
            1024
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return default if value is None else value


# Singleton instance
config = Config()
