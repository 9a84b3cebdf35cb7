"""Red Tea - anonymous dating feedback API."""

__version__ = "0.1.0"
