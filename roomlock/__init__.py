"""roomlock: canonical room geometry and renderer control signals."""

__version__ = "0.1.0"
