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
Dataclass-based Argument Models for GTSK Tools.

This module defines strongly-typed dataclasses for the command-line arguments
of each tool (`describe`, `sample`). `__post_init__` coerces paths and checks
values so that the tool functions receive clean inputs.

Classes:
    BaseArguments: A base dataclass for common script arguments.
    DescribeArguments: Arguments for the describe tool.
    SampleArguments: Arguments for the sample tool.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

@dataclass
class BaseArguments:
    """A base dataclass for common script arguments."""
    input_path: Optional[Path] = None
    log_file: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        """Coerce path-like arguments to Path objects."""
        if self.input_path and isinstance(self.input_path, str):
            self.input_path = Path(self.input_path)
        if self.log_file and isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

    def handle_error(self, message: str):
        """Logs an error and raises ValueError."""
        logger.error(message)
        raise ValueError(message)

@dataclass
class DescribeArguments(BaseArguments):
    """Arguments for the describe tool."""
    json: bool = False
    tags: bool = False

    def __post_init__(self):
        super().__post_init__()
        if self.input_path is None:
            self.handle_error("An input GeoTIFF is required.")

@dataclass
class SampleArguments(BaseArguments):
    """Arguments for the sample tool."""
    lat: Optional[float] = None
    lon: Optional[float] = None
    decimals: Optional[int] = None
    json: bool = False

    def __post_init__(self):
        super().__post_init__()
        if self.input_path is None:
            self.handle_error("An input GeoTIFF is required.")
        if self.lat is None or self.lon is None:
            self.handle_error("Both --lat and --lon are required.")
        if self.decimals is not None and self.decimals < 0:
            self.handle_error(f"Decimals must be zero or positive, got {self.decimals}.")
