"""Retrieval-grounded question answering over portfolio holdings and trades."""

__version__ = "0.1.0"
