"""Row-level schema detection and standardization for KPro export records."""

__version__ = "0.3.0"
