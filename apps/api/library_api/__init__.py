"""Request-shaping core of the library management REST API."""

__version__ = "0.1.0"
