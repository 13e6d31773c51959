"""Generic batch import/export pipeline with task tracking."""

__version__ = "1.0.0"
