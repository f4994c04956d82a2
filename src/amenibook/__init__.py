"""Automated booking of shared amenities on a third-party reservation platform."""

__version__ = "0.1.0"
