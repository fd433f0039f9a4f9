"""Performance review backend: authentication and session core."""

__version__ = "1.0.0"
