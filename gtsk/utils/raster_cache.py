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
Single-flight cache for decoded raster bands.

Each GeoTiffDetails handle owns one RasterCache. Entries are keyed by
(canonical path, band index) and hold a Future, so that when several threads
ask for the same band at once only the first one decodes it and the others
wait for that result. Entries are never invalidated: the handle assumes the
underlying file does not change during its lifetime.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable, Iterable, List, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, int]


class RasterCache:
    """Thread-safe, single-flight cache of decoded bands."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Future] = {}

    def get_or_load(self, keys: Iterable[CacheKey],
                    loader: Callable[[List[CacheKey]], Dict[CacheKey, Any]]) -> List[Any]:
        """
        Return cached values for `keys`, loading the missing ones once.

        Args:
            keys: Cache keys in the order the results are wanted.
            loader: Called with the list of keys no other caller is already
                loading; must return a value for each of them.

        Returns:
            Values in the same order as `keys`.

        Raises:
            Whatever the loader raises. Failed keys are dropped from the cache
            so that a later call reports the failure again.
        """
        keys = list(keys)
        owned: List[CacheKey] = []
        with self._lock:
            for key in keys:
                if key not in self._entries:
                    self._entries[key] = Future()
                    owned.append(key)
            futures = [self._entries[key] for key in keys]

        if owned:
            logger.debug(f"Raster cache miss, loading {owned}")
            try:
                loaded = loader(owned)
                for key in owned:
                    self._entries[key].set_result(loaded[key])
            except BaseException as e:
                with self._lock:
                    for key in owned:
                        future = self._entries.pop(key)
                        if not future.done():
                            future.set_exception(e)
                raise
        else:
            logger.debug(f"Raster cache hit for {keys}")

        return [future.result() for future in futures]

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            future = self._entries.get(key)
        return future is not None and future.done() and future.exception() is None

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for f in self._entries.values() if f.done() and f.exception() is None)
