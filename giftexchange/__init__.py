"""Gift exchange assignment engine and its exchange workflow."""

__version__ = "0.1.0"
