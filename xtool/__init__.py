"""xtool: a photo workflow tool that drives exiftool, NeatImage and x3f_extract."""

__version__ = "1.0.0"
