"""Spoken question answering for young children."""

__version__ = "0.1.0"
