"""playlog: listening-history accumulation engine."""

__version__ = "0.1.0"
