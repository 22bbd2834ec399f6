"""citemarker: citation marker generation for bibliography styles."""

__version__ = "0.3.0"
