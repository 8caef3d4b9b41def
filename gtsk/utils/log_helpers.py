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
This module provides logging helpers for the GeoTIFF Sampling Kit command line.
"""

import logging
import os
import sys
from typing import Optional, Union

def setup_logger(log_file: Optional[str] = None, level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Set up and configure the root logger.

    Args:
        log_file (str, optional): The full path to the log file.
        level (int | str): The logging level, as a number or a level name.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter('%(message)s')
    file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger

def shutdown_logger(logger: logging.Logger):
    """
    Safely shuts down a logger by removing and closing its handlers.
    This is crucial for releasing file locks.
    """
    if not logger:
        return
    handlers = logger.handlers[:]
    for handler in handlers:
        handler.flush()
        handler.close()
        logger.removeHandler(handler)
