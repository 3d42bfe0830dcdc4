"""Gzip metadata tools: read and write the filename, comment and timestamp of gzip files."""

__version__ = "0.1.0"
