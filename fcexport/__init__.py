"""Fan club message feed exporter."""

__version__ = "0.1.0"
