# ******************************************************************************
# Project: GeoTIFF Sampling Kit (GTSK)
# Author: Eric Robeck <robeckgeo@gmail.com>
#
# Copyright (c) 2025, Eric Robeck
# Licensed under the MIT License
# ******************************************************************************

from gtsk.main import main

if __name__ == "__main__":
    main()
