"""LocalDrop: share files between a device and a browser on the same network."""

__version__ = "1.0.0"
