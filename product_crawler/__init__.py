"""Breadth-first discovery of product-page URLs on e-commerce domains."""

from .version import __version__

__all__ = ["__version__"]
