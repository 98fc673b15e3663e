"""OpenCDN: locally hosted file storage and delivery service."""

__version__ = "1.0.0"
