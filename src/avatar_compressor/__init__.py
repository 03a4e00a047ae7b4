"""Avatar Compressor: texture complexity analysis and compression decisions for 3D avatars."""

__version__ = "0.1.0"
