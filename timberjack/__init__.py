"""Rolling log file writer with size, interval and scheduled rotation, compression and cleanup."""

__version__ = "0.1.0"
__all__ = ["__version__"]