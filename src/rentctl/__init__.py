"""rentctl: instrument rental agreements with a live administrator view."""

__version__ = "0.1.0"
