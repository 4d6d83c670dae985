"""zipflow - in-memory ZIP compression plugin and host."""

__version__ = "1.0.0"
