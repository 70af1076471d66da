"""Export Wakapi coding sessions to Solidtime."""

__version__ = "0.1.0"
