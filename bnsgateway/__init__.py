"""bnsgateway - Banano Name Service lookup gateway."""

__version__ = "0.1.0"
