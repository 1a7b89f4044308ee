"""Generate static `make help` targets from documented Makefiles."""

__version__ = "0.1.0"

__all__ = ["__version__"]
