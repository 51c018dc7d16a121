"""plugboard: pluggable data-source and chart-library backends."""

__version__ = "0.3.0"
