"""cubectl — bulk subcube operations for financial consolidation cubes."""

__version__ = "0.4.0"
