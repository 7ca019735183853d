"""Turn a Messages conversation into a chaptered LaTeX book."""

__version__ = "0.3.0"
