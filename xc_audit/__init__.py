"""Consistency checks for the xeno-canto demo sound collection."""

__version__ = "0.1.0"

__all__: list[str] = ["__version__"]
