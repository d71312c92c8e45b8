"""Video room demo: token service and room session client."""

__version__ = "0.1.0"
