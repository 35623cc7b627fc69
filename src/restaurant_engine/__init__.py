"""Order and table booking engine for a single restaurant."""

__version__ = "0.1.0"
