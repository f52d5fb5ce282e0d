"""School digital library book reader."""

__version__ = "0.1.0"
