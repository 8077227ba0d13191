"""Book rankings from review statistics over time windows."""

__version__ = "0.1.0"
